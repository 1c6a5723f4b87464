"""
Domain models for RawBencher.

Defines the SalesOrderHeader element fetched by the benchers. Field aliases are
the physical column names of `SalesOrderHeaderEntity`, so rows can be validated
straight from dict rows or keyword rows.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

# Mapping names of the element every bencher fetches.
SALES_ORDER_HEADER_ELEMENT = "SalesOrderHeaderEntity"
SALES_ORDER_ID_FIELD = "SalesOrderId"


class SalesOrderHeader(BaseModel):
    """
    Representation of a single row in the `Sales.SalesOrderHeader` table.
    """

    sales_order_id: int = Field(..., alias="SalesOrderID", description="Primary key (identity).")
    revision_number: int = Field(..., alias="RevisionNumber")
    order_date: datetime = Field(..., alias="OrderDate")
    due_date: datetime = Field(..., alias="DueDate")
    ship_date: Optional[datetime] = Field(None, alias="ShipDate")
    status: int = Field(..., alias="Status")
    online_order_flag: bool = Field(..., alias="OnlineOrderFlag")
    sales_order_number: str = Field(..., alias="SalesOrderNumber")
    purchase_order_number: Optional[str] = Field(None, alias="PurchaseOrderNumber")
    account_number: Optional[str] = Field(None, alias="AccountNumber")
    customer_id: int = Field(..., alias="CustomerID")
    sales_person_id: Optional[int] = Field(None, alias="SalesPersonID")
    territory_id: Optional[int] = Field(None, alias="TerritoryID")
    bill_to_address_id: int = Field(..., alias="BillToAddressID")
    ship_to_address_id: int = Field(..., alias="ShipToAddressID")
    ship_method_id: int = Field(..., alias="ShipMethodID")
    credit_card_id: Optional[int] = Field(None, alias="CreditCardID")
    credit_card_approval_code: Optional[str] = Field(None, alias="CreditCardApprovalCode")
    currency_rate_id: Optional[int] = Field(None, alias="CurrencyRateID")
    sub_total: Decimal = Field(..., alias="SubTotal")
    tax_amt: Decimal = Field(..., alias="TaxAmt")
    freight: Decimal = Field(..., alias="Freight")
    total_due: Decimal = Field(..., alias="TotalDue")
    comment: Optional[str] = Field(None, alias="Comment")
    rowguid: UUID = Field(..., alias="rowguid")
    modified_date: datetime = Field(..., alias="ModifiedDate")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }


__all__ = ["SALES_ORDER_HEADER_ELEMENT", "SALES_ORDER_ID_FIELD", "SalesOrderHeader"]
