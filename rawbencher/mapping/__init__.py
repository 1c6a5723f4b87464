"""
Mapping package for RawBencher.

Exports the entity mapping registry, the AdventureWorks provider, and SQL
rendering helpers built on top of the mapping metadata.
"""

from rawbencher.mapping.provider import get_persistence_info, load_registry
from rawbencher.mapping.registry import (
    ElementMapping,
    FieldMapping,
    MappingError,
    MappingRegistry,
    RegistryFrozenError,
    ValueType,
)
from rawbencher.mapping.sql import (
    build_select,
    column_names,
    create_table_ddl,
    postgres_type,
    select_text,
)

__all__ = [
    # Registry
    "ElementMapping",
    "FieldMapping",
    "MappingError",
    "MappingRegistry",
    "RegistryFrozenError",
    "ValueType",
    # Provider
    "get_persistence_info",
    "load_registry",
    # SQL
    "build_select",
    "column_names",
    "create_table_ddl",
    "postgres_type",
    "select_text",
]
