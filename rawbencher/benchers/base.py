"""
Benchmark harness for RawBencher.

A `Bencher` times two operations of a data-access strategy and verifies what
comes back through a caller-supplied key retriever:

- individual fetches: one `fetch_individual(key)` per key, timed as a single loop;
  failed verifications are counted out but never stop the loop.
- set fetch: the call to `fetch_set()` is timed on its own, then the walk over the
  returned iterable (which may be lazy) is timed with verification. The first
  element that fails verification aborts the walk and the row count becomes -1.

Strategies satisfy the `FetchStrategy` protocol and are injected into the bencher.
"""

from __future__ import annotations

import abc
import time
from dataclasses import dataclass
from importlib import metadata
from types import ModuleType
from typing import (
    Any,
    Callable,
    Generic,
    Iterable,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypeVar,
    runtime_checkable,
)

T = TypeVar("T")

# Row count reported when a set fetch fails verification.
FAILED_ROW_COUNT = -1

KeyRetriever = Callable[[T], int]


@dataclass(frozen=True)
class BenchResult:
    """
    Outcome of one benchmark run.

    `enumeration_time_ms` is only set for set fetches. `rows_fetched` is the number
    of verified elements, or -1 when a set fetch failed verification.
    """

    fetch_time_ms: float
    rows_fetched: int
    enumeration_time_ms: Optional[float] = None

    @property
    def failed(self) -> bool:
        return self.rows_fetched == FAILED_ROW_COUNT


@runtime_checkable
class FetchStrategy(Protocol[T]):
    """
    Capabilities a data-access adapter provides to the bencher.

    Attributes
    ----------
    name : str
        Short machine-friendly identifier.
    uses_caching : bool
        Whether fetches use some form of caching (resultset or element caching).
    uses_change_tracking : bool
        Whether fetched elements are change tracked.
    """

    name: str
    uses_caching: bool
    uses_change_tracking: bool

    def fetch_individual(self, key: int) -> Optional[T]:
        """Fetch the element with the given key, or None if not found."""
        ...

    def fetch_set(self) -> Iterable[T]:
        """Fetch the complete set; may return a lazy iterable."""
        ...

    def create_framework_name(self) -> str:
        """Human readable name of the framework, including its version."""
        ...

    def close(self) -> None:
        """Release connections held by the strategy."""
        ...


class AbstractFetchStrategy(abc.ABC, Generic[T]):
    """
    Optional ABC helper for class-based adapters.

    Subclasses set `name` and implement the fetch methods and `create_framework_name`.
    """

    name: str
    uses_caching: bool = False
    uses_change_tracking: bool = False

    @abc.abstractmethod
    def fetch_individual(self, key: int) -> Optional[T]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def fetch_set(self) -> Iterable[T]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def create_framework_name(self) -> str:  # pragma: no cover - interface only
        raise NotImplementedError

    def close(self) -> None:
        return None


def format_framework_name(template: str, version: str, file_version: str) -> str:
    """
    Fill a framework name template: `{0}` is the version, `{1}` the file version.
    """
    return template.format(version, file_version)


def get_version_strings(module: Optional[ModuleType]) -> Tuple[str, str]:
    """
    Version strings of the distribution a module ships in.

    Returns
    -------
    tuple[str, str]
        (distribution version from installed metadata, module `__version__`);
        empty strings where unavailable.
    """
    if module is None:
        return "", ""
    top_level = module.__name__.split(".")[0]
    version = ""
    distributions = metadata.packages_distributions().get(top_level, [])
    for dist_name in [*distributions, top_level]:
        try:
            version = metadata.version(dist_name)
            break
        except metadata.PackageNotFoundError:
            continue
    file_version = str(getattr(module, "__version__", "") or "")
    return version, file_version


def create_framework_name(template: str, module: Optional[ModuleType]) -> str:
    """
    Framework name from a template and the versions of the module's distribution.
    """
    version, file_version = get_version_strings(module)
    return format_framework_name(template, version, file_version)


class Bencher(Generic[T]):
    """
    Timing and verification harness around a `FetchStrategy`.

    Parameters
    ----------
    strategy : FetchStrategy
        The data-access adapter to benchmark.
    key_retriever : Callable[[T], int]
        Extracts the key from a fetched element. A value > 0 means the element
        verified; anything else is a failure.

    Raises
    ------
    ValueError
        If `key_retriever` is None.
    TypeError
        If `key_retriever` is not callable.
    """

    def __init__(self, strategy: FetchStrategy[T], key_retriever: KeyRetriever[T]) -> None:
        if key_retriever is None:
            raise ValueError("key_retriever is required")
        if not callable(key_retriever):
            raise TypeError(f"key_retriever must be callable, got {type(key_retriever).__name__}")
        self._strategy = strategy
        self._key_retriever = key_retriever
        self.uses_caching: bool = bool(getattr(strategy, "uses_caching", False))
        self.uses_change_tracking: bool = bool(getattr(strategy, "uses_change_tracking", False))

    @property
    def strategy(self) -> FetchStrategy[T]:
        return self._strategy

    @property
    def name(self) -> str:
        return self._strategy.name

    def create_framework_name(self) -> str:
        return self._strategy.create_framework_name()

    def verify_element(self, element: Optional[T]) -> int:
        """Key of the element, or -1 when there is no element."""
        if element is None:
            return FAILED_ROW_COUNT
        return self._key_retriever(element)

    def _verify_data(self, elements: Iterable[T]) -> int:
        amount = 0
        for element in elements:
            if self.verify_element(element) <= 0:
                return FAILED_ROW_COUNT
            amount += 1
        return amount

    def perform_individual_benchmark(self, keys: Sequence[int]) -> BenchResult:
        """
        Fetch every key individually and count the verified elements.
        """
        fetched = 0
        start = time.perf_counter()
        for key in keys:
            element = self._strategy.fetch_individual(key)
            if self.verify_element(element) > 0:
                fetched += 1
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        return BenchResult(fetch_time_ms=elapsed_ms, rows_fetched=fetched)

    def perform_set_benchmark(self) -> BenchResult:
        """
        Fetch the full set, then enumerate and verify it; both phases timed separately.
        """
        start = time.perf_counter()
        elements = self._strategy.fetch_set()
        fetch_ms = (time.perf_counter() - start) * 1000.0

        start = time.perf_counter()
        rows = self._verify_data(elements)
        enumeration_ms = (time.perf_counter() - start) * 1000.0
        return BenchResult(fetch_time_ms=fetch_ms, rows_fetched=rows, enumeration_time_ms=enumeration_ms)

    def close(self) -> None:
        self._strategy.close()

    def __repr__(self) -> str:
        return f"Bencher(strategy={self._strategy!r})"


def describe(bencher: Bencher[Any]) -> dict:
    """Descriptive metadata carried alongside results."""
    return {
        "bencher": bencher.name,
        "framework": bencher.create_framework_name(),
        "uses_caching": bencher.uses_caching,
        "uses_change_tracking": bencher.uses_change_tracking,
    }


__all__ = [
    "FAILED_ROW_COUNT",
    "AbstractFetchStrategy",
    "BenchResult",
    "Bencher",
    "FetchStrategy",
    "KeyRetriever",
    "create_framework_name",
    "describe",
    "format_framework_name",
    "get_version_strings",
]
