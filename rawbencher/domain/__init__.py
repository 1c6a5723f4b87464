"""
Domain package for RawBencher.

Exports the element models fetched by the benchers. Keep this package focused
on data definitions and validation concerns.
"""

from rawbencher.domain.models import (
    SALES_ORDER_HEADER_ELEMENT,
    SALES_ORDER_ID_FIELD,
    SalesOrderHeader,
)

__all__ = [
    "SALES_ORDER_HEADER_ELEMENT",
    "SALES_ORDER_ID_FIELD",
    "SalesOrderHeader",
]
