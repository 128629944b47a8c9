"""Defect catalogue."""

from qcadmin.entities.defects.model import DefectModel
from qcadmin.entities.defects.router import DefectController, build_defect_router
from qcadmin.entities.defects.service import DefectService, validate_defect

__all__ = [
    "DefectController",
    "DefectModel",
    "DefectService",
    "build_defect_router",
    "validate_defect",
]
