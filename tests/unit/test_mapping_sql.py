from __future__ import annotations

import pytest

from rawbencher.mapping.provider import get_persistence_info
from rawbencher.mapping.registry import MAX_LENGTH, FieldMapping
from rawbencher.mapping.sql import (
    column_names,
    create_table_ddl,
    postgres_type,
    reset_identity_sql,
    select_text,
)

SOH = "SalesOrderHeaderEntity"


def _field(db_type: str, **overrides) -> FieldMapping:
    values = dict(
        element_name="E",
        field_name="F",
        column_name="F",
        is_nullable=True,
        db_type=db_type,
        value_type="str",
        ordinal=0,
    )
    values.update(overrides)
    return FieldMapping(**values)


@pytest.mark.parametrize(
    ("db_type", "overrides", "expected"),
    [
        ("Int", {}, "integer"),
        ("TinyInt", {}, "smallint"),
        ("Bit", {}, "boolean"),
        ("DateTime", {}, "timestamp"),
        ("Money", {}, "numeric(19,4)"),
        ("UniqueIdentifier", {}, "uuid"),
        ("NVarChar", {"length": 25}, "varchar(25)"),
        ("NVarChar", {"length": MAX_LENGTH}, "text"),
        ("NChar", {"length": 3}, "char(3)"),
        ("Decimal", {"precision": 8, "scale": 4}, "numeric(8,4)"),
        ("VarBinary", {"length": MAX_LENGTH}, "bytea"),
    ],
)
def test_postgres_type(db_type, overrides, expected):
    assert postgres_type(_field(db_type, **overrides)) == expected


def test_postgres_type_rejects_unknown_storage_type():
    with pytest.raises(ValueError, match="Sql_Variant"):
        postgres_type(_field("Sql_Variant"))


def test_column_names_follow_ordinals():
    names = column_names(get_persistence_info(), SOH)

    assert names[0] == "AccountNumber"
    assert names[15] == "SalesOrderID"
    assert names[-1] == "TotalDue"
    assert "rowguid" in names


def test_select_text_by_key_uses_placeholder():
    text = select_text(get_persistence_info(), SOH, key_field="SalesOrderId")

    assert text.startswith('SELECT "AccountNumber", "BillToAddressID"')
    assert text.endswith('FROM "Sales"."SalesOrderHeader" WHERE "SalesOrderID" = $1')


def test_select_text_without_key_has_no_where_clause():
    text = select_text(get_persistence_info(), SOH)

    assert "WHERE" not in text
    assert text.endswith('FROM "Sales"."SalesOrderHeader"')


def test_create_table_ddl_for_sales_order_header():
    ddl = create_table_ddl(get_persistence_info(), SOH)

    assert ddl.startswith('CREATE SCHEMA IF NOT EXISTS "Sales";')
    assert 'CREATE TABLE IF NOT EXISTS "Sales"."SalesOrderHeader" (' in ddl
    assert '"SalesOrderID" integer GENERATED BY DEFAULT AS IDENTITY NOT NULL' in ddl
    assert '"Comment" varchar(128),' in ddl
    assert '"Freight" numeric(19,4) NOT NULL' in ddl
    assert '"rowguid" uuid NOT NULL' in ddl
    assert 'PRIMARY KEY ("SalesOrderID")' in ddl
    assert ddl.rstrip().endswith(");")


def test_reset_identity_sql_restarts_after_loaded_keys():
    text = reset_identity_sql(get_persistence_info(), SOH)

    assert text == (
        "SELECT setval(pg_get_serial_sequence('\"Sales\".\"SalesOrderHeader\"', 'SalesOrderID'), "
        'COALESCE(MAX("SalesOrderID"), 0) + 1, false) FROM "Sales"."SalesOrderHeader"'
    )


def test_reset_identity_sql_without_identity_field():
    assert reset_identity_sql(get_persistence_info(), "CurrencyEntity") is None
