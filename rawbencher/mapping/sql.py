"""
SQL rendering from mapping metadata.

Translates element/field mappings into the statements the benchers and the
seeding script run against PostgreSQL: a SELECT over all mapped columns and a
CREATE TABLE whose column types follow the SQL Server storage types recorded in
the mapping.
"""

from __future__ import annotations

from typing import List, Optional

from psycopg import sql

from rawbencher.mapping.registry import ElementMapping, FieldMapping, MappingRegistry

_FIXED_TYPES = {
    "Int": "integer",
    "SmallInt": "smallint",
    "TinyInt": "smallint",
    "BigInt": "bigint",
    "Bit": "boolean",
    "DateTime": "timestamp",
    "Date": "date",
    "Time": "time",
    "UniqueIdentifier": "uuid",
    "Xml": "xml",
    "Udt": "bytea",
    "Money": "numeric(19,4)",
    "SmallMoney": "numeric(10,4)",
}


def postgres_type(field: FieldMapping) -> str:
    """
    PostgreSQL column type for a mapped field.
    """
    db_type = field.db_type
    if db_type in ("NVarChar", "VarChar"):
        return "text" if field.is_max_length else f"varchar({field.length})"
    if db_type in ("NChar", "Char"):
        return f"char({field.length})"
    if db_type == "VarBinary":
        return "bytea"
    if db_type == "Decimal":
        return f"numeric({field.precision},{field.scale})"
    try:
        return _FIXED_TYPES[db_type]
    except KeyError:
        raise ValueError(
            f"No PostgreSQL type for '{db_type}' ({field.element_name}.{field.field_name})"
        ) from None


def column_names(registry: MappingRegistry, element_name: str) -> List[str]:
    """Physical column names of an element in ordinal order."""
    return [f.column_name for f in registry.fields(element_name)]


def build_select(
    registry: MappingRegistry,
    element_name: str,
    key_field: Optional[str] = None,
) -> sql.Composed:
    """
    SELECT every mapped column of an element.

    Parameters
    ----------
    key_field : str, optional
        Logical field name; adds `WHERE "<column>" = %s`.
    """
    element = registry.element(element_name)
    columns = sql.SQL(", ").join(sql.Identifier(c) for c in column_names(registry, element_name))
    query = sql.SQL("SELECT {columns} FROM {table}").format(
        columns=columns,
        table=sql.Identifier(element.schema_name, element.physical_name),
    )
    if key_field is not None:
        column = registry.field(element_name, key_field).column_name
        query = query + sql.SQL(" WHERE {} = %s").format(sql.Identifier(column))
    return query


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def select_text(
    registry: MappingRegistry,
    element_name: str,
    key_field: Optional[str] = None,
    placeholder: str = "$1",
) -> str:
    """
    Plain-text SELECT for drivers with their own placeholder style (asyncpg uses `$1`).
    """
    element = registry.element(element_name)
    columns = ", ".join(_quote(c) for c in column_names(registry, element_name))
    text = f"SELECT {columns} FROM {_quote(element.schema_name)}.{_quote(element.physical_name)}"
    if key_field is not None:
        column = registry.field(element_name, key_field).column_name
        text += f" WHERE {_quote(column)} = {placeholder}"
    return text


def _column_definition(field: FieldMapping) -> str:
    parts = [_quote(field.column_name), postgres_type(field)]
    if field.is_identity:
        parts.append("GENERATED BY DEFAULT AS IDENTITY")
    if not field.is_nullable:
        parts.append("NOT NULL")
    return " ".join(parts)


def create_table_ddl(registry: MappingRegistry, element_name: str) -> str:
    """
    CREATE SCHEMA/TABLE statements for an element, primary key on its identity field.
    """
    element: ElementMapping = registry.element(element_name)
    definitions = [_column_definition(f) for f in registry.fields(element_name)]
    identity = registry.identity_field(element_name)
    if identity is not None:
        definitions.append(f"PRIMARY KEY ({_quote(identity.column_name)})")
    body = ",\n    ".join(definitions)
    return (
        f"CREATE SCHEMA IF NOT EXISTS {_quote(element.schema_name)};\n"
        f"CREATE TABLE IF NOT EXISTS {_quote(element.schema_name)}.{_quote(element.physical_name)} (\n"
        f"    {body}\n"
        ");"
    )


def _literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def reset_identity_sql(registry: MappingRegistry, element_name: str) -> Optional[str]:
    """
    Move an element's identity sequence past the loaded keys, or to 1 for an empty table.

    Returns None when the element has no identity field.
    """
    identity = registry.identity_field(element_name)
    if identity is None:
        return None
    element = registry.element(element_name)
    table = f"{_quote(element.schema_name)}.{_quote(element.physical_name)}"
    return (
        f"SELECT setval(pg_get_serial_sequence({_literal(table)}, {_literal(identity.column_name)}), "
        f"COALESCE(MAX({_quote(identity.column_name)}), 0) + 1, false) FROM {table}"
    )


__all__ = [
    "build_select",
    "column_names",
    "create_table_ddl",
    "postgres_type",
    "reset_identity_sql",
    "select_text",
]
