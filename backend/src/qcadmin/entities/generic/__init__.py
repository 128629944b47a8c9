"""Generic serial-id entity framework: model, service, controller, router."""

from qcadmin.entities.generic.controller import (
    ControllerWrapper,
    EntityController,
    ParameterError,
    parse_boolean,
    parse_id,
)
from qcadmin.entities.generic.model import EntityModel, ModelWrapper
from qcadmin.entities.generic.router import create_entity_router
from qcadmin.entities.generic.service import (
    EntityService,
    ServiceWrapper,
    UniqueNameService,
    ValidationRule,
)

__all__ = [
    "ControllerWrapper",
    "EntityController",
    "EntityModel",
    "EntityService",
    "ModelWrapper",
    "ParameterError",
    "ServiceWrapper",
    "UniqueNameService",
    "ValidationRule",
    "create_entity_router",
    "parse_boolean",
    "parse_id",
]
