"""
RawBencher - fetch benchmarks for Python data-access frameworks.

This package times two operations of pluggable data-access strategies against
the AdventureWorks `Sales.SalesOrderHeader` table on PostgreSQL:

- fetching a list of rows individually by key
- fetching the full set, timing the fetch and the enumeration separately

Every fetched element is verified through a key retriever. The SQL the
strategies run is rendered from the AdventureWorks entity mapping registry,
which ships with the package as reference data.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from rawbencher.benchers.base import (
    AbstractFetchStrategy,
    Bencher,
    BenchResult,
    FetchStrategy,
    create_framework_name,
    format_framework_name,
)
from rawbencher.config import Settings, get_settings
from rawbencher.mapping.provider import get_persistence_info
from rawbencher.mapping.registry import ElementMapping, FieldMapping, MappingRegistry
from rawbencher.orchestrator import RunConfig, available_benchers, run_benchers
from rawbencher.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Harness
    "AbstractFetchStrategy",
    "Bencher",
    "BenchResult",
    "FetchStrategy",
    "create_framework_name",
    "format_framework_name",
    # Mapping
    "ElementMapping",
    "FieldMapping",
    "MappingRegistry",
    "get_persistence_info",
    # Orchestration
    "RunConfig",
    "available_benchers",
    "run_benchers",
    # Logging
    "configure_logging",
    "get_logger",
]
