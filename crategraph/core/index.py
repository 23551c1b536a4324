"""Package index for crategraph.

Holds every :class:`Package` of a registry index keyed by name and
drives the walk → parse → insert pipeline that builds it.

The index is assembled once through :class:`PackageIndexBuilder` (the
single writer, so duplicate detection needs no locking) and is read-only
afterwards. Parsing may fan out to a thread pool; insertion never does.

Typical usage::

    from crategraph.core.index import load_index

    result = load_index("/path/to/index", skip_malformed=True, jobs=8)
    print(len(result.index), result.index.record_count)
    for entry in result.report.skipped:
        print(entry)
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import (
    Dict,
    Iterable,
    Iterator,
    Mapping,
    Optional,
    Tuple,
    Union,
)

import semver

from crategraph.constants import DEFAULT_JOBS, DEFAULT_SKIP_MALFORMED, EXCLUDED_DIR_NAMES
from crategraph.core.parser import VersionRecordParser
from crategraph.core.walker import IndexWalker
from crategraph.exceptions import FileOperationError, IntegrityError, ParseError
from crategraph.models.diagnostic import DiagnosticReport, SkippedEntry, SkipPhase
from crategraph.models.package import Package, VersionRecord
from crategraph.utils import Stopwatch, format_identity, get_logger

logger = get_logger("index")

__all__ = [
    "PackageIndex",
    "PackageIndexBuilder",
    "IndexLoadResult",
    "IndexLoader",
    "load_index",
]


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


class PackageIndex:
    """Read-only mapping of package name to :class:`Package`.

    Two indexes are equal when they hold equal packages under the same
    names; iteration order does not matter.
    """

    __slots__ = ("_by_name", "_record_count")

    def __init__(self, packages: Mapping[str, Package]) -> None:
        self._by_name: Mapping[str, Package] = MappingProxyType(dict(packages))
        self._record_count: int = sum(len(p) for p in self._by_name.values())

    @classmethod
    def from_packages(cls, packages: Iterable[Package]) -> "PackageIndex":
        """Build an index, rejecting duplicate package names.

        Raises:
            IntegrityError: Two packages share a name.
        """
        builder = PackageIndexBuilder()
        for package in packages:
            builder.add(package)
        return builder.build()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def by_name(self) -> Mapping[str, Package]:
        return self._by_name

    @property
    def record_count(self) -> int:
        """Total number of version records across all packages."""
        return self._record_count

    def get(self, name: str) -> Optional[Package]:
        return self._by_name.get(name)

    def get_record(self, name: str, version: semver.Version) -> Optional[VersionRecord]:
        """Return the record identified by ``(name, version)``, if any."""
        package = self._by_name.get(name)
        return package.get(version) if package is not None else None

    def iter_records(self) -> Iterator[VersionRecord]:
        """Yield every version record, package by package, newest first."""
        for package in self._by_name.values():
            yield from package.versions

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[Package]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageIndex):
            return NotImplemented
        return dict(self._by_name) == dict(other._by_name)

    def __repr__(self) -> str:
        return f"PackageIndex(packages={len(self)}, records={self.record_count})"


class PackageIndexBuilder:
    """Single-writer accumulator for :class:`PackageIndex`."""

    def __init__(self) -> None:
        self._packages: Dict[str, Package] = {}

    def add(self, package: Package) -> None:
        """Insert a package.

        Raises:
            IntegrityError: A package of the same name was already added.
                When the two share versions, the first shared identity is
                named, e.g. ``x@1.0.0``.
        """
        existing = self._packages.get(package.name)
        if existing is None:
            self._packages[package.name] = package
            return

        paths = [
            existing.source_path or "<unknown>",
            package.source_path or "<unknown>",
        ]
        existing_versions = {record.version for record in existing.versions}
        shared = [r.version for r in package.versions if r.version in existing_versions]

        if shared:
            raise IntegrityError(
                f"Version record {format_identity(package.name, shared[0])} "
                f"is declared in more than one file",
                package_name=package.name,
                version=str(shared[0]),
                paths=paths,
            )
        raise IntegrityError(
            f"Package {package.name!r} is declared in more than one file",
            package_name=package.name,
            paths=paths,
        )

    def __len__(self) -> int:
        return len(self._packages)

    def build(self) -> PackageIndex:
        return PackageIndex(self._packages)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


@dataclass
class IndexLoadResult:
    """Outcome of loading an index.

    Attributes:
        index: The loaded package index.
        report: Entries skipped while walking, reading or parsing.
        files_seen: Package files discovered by the walker.
        from_cache: True when the index came from an index cache.
    """

    index: PackageIndex
    report: DiagnosticReport = field(default_factory=DiagnosticReport)
    files_seen: int = 0
    from_cache: bool = False


_Outcome = Tuple[Path, Union[Package, FileOperationError, ParseError]]


class IndexLoader:
    """Walks an index root and assembles a :class:`PackageIndex`.

    Failure policy:

    - unreadable entries (walk or read) are skipped with a diagnostic;
    - malformed package files abort the load unless ``skip_malformed``;
    - integrity errors always abort.

    Args:
        root: Registry index root.
        skip_malformed: Skip files that fail to parse instead of aborting.
        jobs: Parser threads; ``1`` parses on the calling thread.
        exclude_dirs: Directory names the walker prunes.
        parser: Parser instance to use (mostly for tests).
    """

    def __init__(
        self,
        root: Union[str, Path],
        *,
        skip_malformed: bool = DEFAULT_SKIP_MALFORMED,
        jobs: int = DEFAULT_JOBS,
        exclude_dirs: Iterable[str] = EXCLUDED_DIR_NAMES,
        parser: Optional[VersionRecordParser] = None,
    ) -> None:
        if jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {jobs}")
        self.walker = IndexWalker(root, exclude_dirs=exclude_dirs)
        self.parser = parser or VersionRecordParser()
        self.skip_malformed = skip_malformed
        self.jobs = jobs
        self.report = DiagnosticReport()
        self._builder = PackageIndexBuilder()

    def load(self) -> IndexLoadResult:
        """Run the walk/parse/insert pipeline.

        Raises:
            ParseError: A package file is malformed and ``skip_malformed``
                is off.
            IntegrityError: Duplicate package names or versions.
        """
        logger.info("Loading registry index from %s", self.walker.root)
        watch = Stopwatch()

        if self.jobs == 1:
            for path in self.walker.walk():
                self._accept(self._parse_one(path))
        else:
            pool = ThreadPoolExecutor(
                max_workers=self.jobs, thread_name_prefix="crategraph-parse"
            )
            try:
                for outcome in pool.map(self._parse_one, self.walker.walk()):
                    self._accept(outcome)
            finally:
                pool.shutdown(wait=True, cancel_futures=True)

        watch.stop()
        for entry in self.walker.skipped:
            self.report.add_skipped(entry)

        index = self._builder.build()
        logger.info(
            "Found %d package(s) in %d file(s) in %s",
            len(index),
            self.walker.files_yielded,
            watch,
        )
        logger.info("Loaded %d version record(s)", index.record_count)

        return IndexLoadResult(
            index=index,
            report=self.report,
            files_seen=self.walker.files_yielded,
        )

    def _parse_one(self, path: Path) -> _Outcome:
        try:
            return path, self.parser.parse_file(path)
        except (FileOperationError, ParseError) as exc:
            return path, exc

    def _accept(self, outcome: _Outcome) -> None:
        path, result = outcome

        if isinstance(result, Package):
            self._builder.add(result)
            return

        if isinstance(result, FileOperationError):
            logger.warning("Skipping unreadable package file %s: %s", path, result)
            self.report.add_skipped(
                SkippedEntry(path=str(path), reason=str(result), phase=SkipPhase.READ)
            )
            return

        if not self.skip_malformed:
            raise result

        logger.warning("Skipping malformed package file %s: %s", path, result)
        self.report.add_skipped(
            SkippedEntry(path=str(path), reason=str(result), phase=SkipPhase.PARSE)
        )


def load_index(
    root: Union[str, Path],
    *,
    skip_malformed: bool = DEFAULT_SKIP_MALFORMED,
    jobs: int = DEFAULT_JOBS,
    exclude_dirs: Iterable[str] = EXCLUDED_DIR_NAMES,
) -> IndexLoadResult:
    """Load a registry index from disk. See :class:`IndexLoader`."""
    return IndexLoader(
        root,
        skip_malformed=skip_malformed,
        jobs=jobs,
        exclude_dirs=exclude_dirs,
    ).load()
