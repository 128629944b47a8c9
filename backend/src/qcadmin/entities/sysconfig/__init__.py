"""System configuration: the single active plant-wide settings record."""

from qcadmin.entities.sysconfig.model import SysconfigModel
from qcadmin.entities.sysconfig.router import SysconfigController, build_sysconfig_router
from qcadmin.entities.sysconfig.service import (
    SysconfigService,
    mask_passwords,
    parse_settings,
    validate_sysconfig,
)

__all__ = [
    "SysconfigController",
    "SysconfigModel",
    "SysconfigService",
    "build_sysconfig_router",
    "mask_passwords",
    "parse_settings",
    "validate_sysconfig",
]
