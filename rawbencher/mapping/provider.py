"""
AdventureWorks persistence info provider.

Builds the mapping registry from the packaged CSV reference data (one row per
element in `elements.csv`, one row per column in `fields.csv`) in file order,
then freezes it. `get_persistence_info()` hands out the single process-wide
instance.
"""

from __future__ import annotations

import csv
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Optional, Union

from rawbencher.mapping.registry import MappingRegistry
from rawbencher.utils.logging import get_logger

log = get_logger(__name__)

ADVENTUREWORKS_ELEMENT_COUNT = 71

PathLike = Union[str, Path]


def _parse_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def _parse_optional_int(value: str) -> Optional[int]:
    value = value.strip()
    return int(value) if value else None


def load_registry(
    elements_csv: PathLike,
    fields_csv: PathLike,
    expected_element_count: Optional[int] = None,
) -> MappingRegistry:
    """
    Construct and freeze a registry from element and field CSV files.

    Parameters
    ----------
    elements_csv : str | Path
        CSV with columns element_name, catalog, schema, physical_name, field_count, version.
    fields_csv : str | Path
        CSV with columns element_name, field_name, column_name, is_nullable, db_type,
        length, precision, scale, is_identity, identity_expression, value_type, ordinal.
    expected_element_count : int, optional
        Number of elements the data must declare.

    Returns
    -------
    MappingRegistry
        The frozen registry.
    """
    registry = MappingRegistry(expected_element_count=expected_element_count)

    with Path(elements_csv).open("r", newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            registry.add_element_mapping(
                row["element_name"],
                row["catalog"],
                row["schema"],
                row["physical_name"],
                int(row["field_count"]),
                _parse_optional_int(row["version"]),
            )

    with Path(fields_csv).open("r", newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            registry.add_element_field_mapping(
                row["element_name"],
                row["field_name"],
                row["column_name"],
                _parse_bool(row["is_nullable"]),
                row["db_type"],
                int(row["length"]),
                int(row["precision"]),
                int(row["scale"]),
                _parse_bool(row["is_identity"]),
                row["identity_expression"],
                row["value_type"],
                int(row["ordinal"]),
            )

    registry.freeze()
    log.debug(
        "Mapping registry loaded",
        extra={"elements": len(registry), "fields": registry.field_count},
    )
    return registry


@lru_cache(maxsize=1)
def get_persistence_info() -> MappingRegistry:
    """
    Retrieve the cached AdventureWorks mapping registry.
    """
    data = resources.files("rawbencher.mapping") / "data"
    with resources.as_file(data / "elements.csv") as elements, resources.as_file(
        data / "fields.csv"
    ) as fields:
        return load_registry(elements, fields, expected_element_count=ADVENTUREWORKS_ELEMENT_COUNT)


__all__ = ["ADVENTUREWORKS_ELEMENT_COUNT", "get_persistence_info", "load_registry"]
