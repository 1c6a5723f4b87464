"""
Entity mapping registry for RawBencher.

Holds the static correspondence between logical element/field names and the
physical schema (catalog, schema, table, column) plus SQL type metadata. The
registry is built once through `add_element_mapping` / `add_element_field_mapping`
calls, then frozen; after `freeze()` it is read-only reference data.

Usage:
    registry = MappingRegistry()
    registry.add_element_mapping("AddressTypeEntity", "AdventureWorks", "Person", "AddressType", 1, 0)
    registry.add_element_field_mapping(
        "AddressTypeEntity", "AddressTypeId", "AddressTypeID", False, "Int",
        0, 10, 0, True, "SCOPE_IDENTITY()", ValueType.INT, 0,
    )
    registry.freeze()
"""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError

# Length used by the generator for (n)varchar(max), varbinary(max) and xml columns.
MAX_LENGTH = 2_147_483_647


class MappingError(ValueError):
    """Raised when a registration violates the registry invariants."""


class RegistryFrozenError(MappingError):
    """Raised when registering into a registry that has been frozen."""


class ValueType(str, Enum):
    """In-memory value type of a mapped field."""

    INT = "int"
    STR = "str"
    DATETIME = "datetime"
    DECIMAL = "decimal"
    UUID = "uuid"
    BOOL = "bool"
    BYTES = "bytes"
    TIME = "time"
    GEOGRAPHY = "geography"

    @property
    def python_type(self) -> type:
        return _PYTHON_TYPES[self]


# Spatial values travel as their binary (WKB) representation.
_PYTHON_TYPES: Dict[ValueType, type] = {
    ValueType.INT: int,
    ValueType.STR: str,
    ValueType.DATETIME: dt.datetime,
    ValueType.DECIMAL: Decimal,
    ValueType.UUID: uuid.UUID,
    ValueType.BOOL: bool,
    ValueType.BYTES: bytes,
    ValueType.TIME: dt.time,
    ValueType.GEOGRAPHY: bytes,
}


class ElementMapping(BaseModel):
    """
    Mapping of one entity or typed view onto its physical table or view.
    """

    name: str = Field(..., description="Logical element name, e.g. 'AddressEntity'.")
    catalog: str = Field(..., description="Catalog (database) name.")
    schema_name: str = Field(..., description="Owning schema, e.g. 'Person'.")
    physical_name: str = Field(..., description="Physical table or view name.")
    field_count: int = Field(..., ge=0, description="Number of fields the element declares.")
    version: Optional[int] = Field(None, description="Revision; None for typed views.")

    model_config = {"frozen": True}

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.physical_name}"


class FieldMapping(BaseModel):
    """
    Mapping of one logical field onto a physical column.
    """

    element_name: str
    field_name: str
    column_name: str
    is_nullable: bool
    db_type: str = Field(..., description="SQL Server storage type name, e.g. 'NVarChar'.")
    length: int = 0
    precision: int = 0
    scale: int = 0
    is_identity: bool = False
    identity_expression: str = Field("", description="Value generation expression, if any.")
    value_type: ValueType
    ordinal: int = Field(..., ge=0)

    model_config = {"frozen": True}

    @property
    def is_max_length(self) -> bool:
        return self.length == MAX_LENGTH


class MappingRegistry:
    """
    Write-once registry of element and field mappings.

    Parameters
    ----------
    expected_element_count : int, optional
        When given, `freeze()` checks that exactly this many elements were declared.
    """

    def __init__(self, expected_element_count: Optional[int] = None) -> None:
        self._expected_element_count = expected_element_count
        self._elements: Dict[str, ElementMapping] = {}
        self._fields: Dict[str, Dict[int, FieldMapping]] = {}
        self._sorted_fields: Dict[str, Tuple[FieldMapping, ...]] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _ensure_writable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("Mapping registry is frozen; no further registrations allowed")

    def add_element_mapping(
        self,
        element_name: str,
        catalog: str,
        schema: str,
        physical_name: str,
        field_count: int,
        version: Optional[int] = None,
    ) -> ElementMapping:
        """Declare an element (entity or typed view)."""
        self._ensure_writable()
        if element_name in self._elements:
            raise MappingError(f"Element '{element_name}' is already declared")
        try:
            element = ElementMapping(
                name=element_name,
                catalog=catalog,
                schema_name=schema,
                physical_name=physical_name,
                field_count=field_count,
                version=version,
            )
        except ValidationError as exc:
            raise MappingError(f"Invalid mapping for element '{element_name}': {exc}") from exc
        self._elements[element_name] = element
        self._fields[element_name] = {}
        return element

    def add_element_field_mapping(
        self,
        element_name: str,
        field_name: str,
        column_name: str,
        is_nullable: bool,
        db_type: str,
        length: int,
        precision: int,
        scale: int,
        is_identity: bool,
        identity_expression: str,
        value_type: ValueType | str,
        ordinal: int,
    ) -> FieldMapping:
        """Declare a single field of a previously declared element."""
        self._ensure_writable()
        if element_name not in self._elements:
            raise MappingError(f"Field '{field_name}' references undeclared element '{element_name}'")
        fields = self._fields[element_name]
        if ordinal in fields:
            raise MappingError(f"Element '{element_name}' already has a field at ordinal {ordinal}")
        if any(f.field_name == field_name for f in fields.values()):
            raise MappingError(f"Element '{element_name}' already has a field named '{field_name}'")
        try:
            value_type = ValueType(value_type)
        except ValueError:
            raise MappingError(
                f"Field '{element_name}.{field_name}' has unknown value type '{value_type}'"
            ) from None

        try:
            field = FieldMapping(
                element_name=element_name,
                field_name=field_name,
                column_name=column_name,
                is_nullable=is_nullable,
                db_type=db_type,
                length=length,
                precision=precision,
                scale=scale,
                is_identity=is_identity,
                identity_expression=identity_expression or "",
                value_type=value_type,
                ordinal=ordinal,
            )
        except ValidationError as exc:
            raise MappingError(f"Invalid mapping for field '{element_name}.{field_name}': {exc}") from exc
        fields[ordinal] = field
        return field

    def freeze(self) -> "MappingRegistry":
        """
        Validate the registered data and make the registry read-only.

        Raises
        ------
        MappingError
            If an element's field count or ordinals disagree with its declaration,
            or the number of elements differs from the expected count.
        """
        if self._frozen:
            return self
        if (
            self._expected_element_count is not None
            and len(self._elements) != self._expected_element_count
        ):
            raise MappingError(
                f"Expected {self._expected_element_count} elements, got {len(self._elements)}"
            )
        for name, element in self._elements.items():
            fields = self._fields[name]
            if len(fields) != element.field_count:
                raise MappingError(
                    f"Element '{name}' declares {element.field_count} fields, "
                    f"{len(fields)} registered"
                )
            if sorted(fields) != list(range(element.field_count)):
                raise MappingError(f"Element '{name}' has non-contiguous field ordinals")
            self._sorted_fields[name] = tuple(fields[i] for i in range(element.field_count))
        self._frozen = True
        return self

    # Read API

    def element(self, element_name: str) -> ElementMapping:
        try:
            return self._elements[element_name]
        except KeyError:
            raise KeyError(f"Unknown element '{element_name}'") from None

    def fields(self, element_name: str) -> Tuple[FieldMapping, ...]:
        """Fields of an element in ordinal order."""
        self.element(element_name)
        if element_name in self._sorted_fields:
            return self._sorted_fields[element_name]
        fields = self._fields[element_name]
        return tuple(fields[i] for i in sorted(fields))

    def field(self, element_name: str, field_name: str) -> FieldMapping:
        for field in self.fields(element_name):
            if field.field_name == field_name:
                return field
        raise KeyError(f"Element '{element_name}' has no field '{field_name}'")

    def identity_field(self, element_name: str) -> Optional[FieldMapping]:
        """The auto-generated key field of an element, if it has one."""
        for field in self.fields(element_name):
            if field.is_identity:
                return field
        return None

    def element_names(self) -> List[str]:
        """Element names in declaration order."""
        return list(self._elements)

    @property
    def field_count(self) -> int:
        return sum(len(fields) for fields in self._fields.values())

    def __contains__(self, element_name: object) -> bool:
        return element_name in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[ElementMapping]:
        return iter(self._elements.values())


__all__ = [
    "MAX_LENGTH",
    "ElementMapping",
    "FieldMapping",
    "MappingError",
    "MappingRegistry",
    "RegistryFrozenError",
    "ValueType",
]
