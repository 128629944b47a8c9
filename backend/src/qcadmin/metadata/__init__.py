"""Entity configuration metadata."""

from qcadmin.metadata.loader import EntityConfigLoader, MetadataError

__all__ = ["EntityConfigLoader", "MetadataError"]
