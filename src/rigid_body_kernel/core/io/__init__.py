from ..system_definition import SYSTEM_SCHEMA_VERSION
from .system_io import (
    deserialize_system_definition,
    serialize_system_definition,
    system_definition_from_dict,
    system_definition_to_dict,
)

__all__ = [
    "SYSTEM_SCHEMA_VERSION",
    "deserialize_system_definition",
    "serialize_system_definition",
    "system_definition_from_dict",
    "system_definition_to_dict",
]
