"""On-disk cache of a loaded package index.

Walking and parsing a full registry checkout dominates run time, so the
result of a load can be stored as a single JSON document next to the
index directory and read back on later runs::

    {"format": 2,
     "policy": {"skip_malformed": true, "exclude_dirs": [".git"]},
     "files_seen": 3,
     "skipped": [{"path": "/idx/1/b", "reason": "...", "phase": "parse"}],
     "packages": [{"name": "a", "source_path": "/idx/1/a",
                   "versions": [<index line>, ...]}, ...]}

Versions are stored newest-declared first, exactly as held in memory.
The entries skipped during the original walk are kept so a cached run
reports the same diagnostics. A cache written under a different load
policy (``skip_malformed`` or ``exclude_dirs``) is treated as a miss,
since the walk would not have produced the same index.

A cache that cannot be read back is never fatal: it is reported and the
caller falls back to walking the index. Otherwise invalidation is
explicit (``--no-cache`` / ``--refresh-cache``); the cache is not
compared against the index contents.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from crategraph.constants import (
    CACHE_FORMAT_VERSION,
    CACHE_SUFFIX,
    DEFAULT_JOBS,
    DEFAULT_SKIP_MALFORMED,
    EXCLUDED_DIR_NAMES,
)
from crategraph.core.index import IndexLoadResult, PackageIndex, load_index
from crategraph.exceptions import CrateGraphError, FileOperationError
from crategraph.models.diagnostic import DiagnosticReport, SkippedEntry
from crategraph.models.package import Package, VersionRecord
from crategraph.utils import Stopwatch, get_logger, safe_read_file, safe_write_file

logger = get_logger("cache")

__all__ = ["IndexCache", "LoadPolicy", "default_cache_path", "get_package_index"]


def default_cache_path(root: Union[str, Path]) -> Path:
    """Return the cache file used for ``root``: a ``<name>.cache`` sibling.

    Example::

        >>> default_cache_path("/data/crates.io-index")
        PosixPath('/data/crates.io-index.cache')
    """
    path = Path(root).expanduser().resolve()
    return path.with_name(path.name + CACHE_SUFFIX)


@dataclass(frozen=True)
class LoadPolicy:
    """The load options that change what a walk produces.

    ``jobs`` is not part of it: the index is the same at any concurrency.
    """

    skip_malformed: bool = DEFAULT_SKIP_MALFORMED
    exclude_dirs: Tuple[str, ...] = tuple(sorted(EXCLUDED_DIR_NAMES))

    @classmethod
    def create(cls, skip_malformed: bool, exclude_dirs: Iterable[str]) -> "LoadPolicy":
        return cls(skip_malformed=skip_malformed, exclude_dirs=tuple(sorted(set(exclude_dirs))))

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "LoadPolicy":
        return cls.create(bool(data["skip_malformed"]), data["exclude_dirs"])

    def to_json(self) -> Dict[str, Any]:
        return {"skip_malformed": self.skip_malformed, "exclude_dirs": list(self.exclude_dirs)}


class IndexCache:
    """Reads and writes one cache file.

    Args:
        path: Location of the cache file.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self, policy: Optional[LoadPolicy] = None) -> Optional[IndexLoadResult]:
        """Read the cached load result.

        Args:
            policy: Load policy the caller is about to use. A cache written
                under another policy is not used. ``None`` accepts any.

        Returns:
            The cached result with ``from_cache`` set, or ``None`` when there
            is no usable cache. A corrupt or incompatible cache is logged as
            a warning.
        """
        if not self.exists():
            logger.debug("No index cache at %s", self.path)
            return None

        watch = Stopwatch()
        try:
            content = safe_read_file(self.path, max_size=None)
            stored_policy, result = _decode(json.loads(content))
        except (FileOperationError, ValueError) as exc:
            # json.JSONDecodeError is a ValueError
            logger.warning("Ignoring unreadable index cache %s: %s", self.path, exc)
            return None
        except (KeyError, TypeError, CrateGraphError) as exc:
            logger.warning("Ignoring corrupt index cache %s: %s", self.path, exc)
            return None

        if policy is not None and stored_policy != policy:
            logger.info(
                "Index cache %s was written with %s, not %s; reloading",
                self.path,
                stored_policy,
                policy,
            )
            return None

        watch.stop()
        logger.info(
            "Loaded %d package(s) from cache %s in %s", len(result.index), self.path, watch
        )
        return result

    def save(self, result: IndexLoadResult, policy: LoadPolicy) -> Path:
        """Write ``result`` and the policy that produced it atomically.

        Raises:
            FileOperationError: The file cannot be written.
        """
        watch = Stopwatch()
        document = {
            "format": CACHE_FORMAT_VERSION,
            "policy": policy.to_json(),
            "files_seen": result.files_seen,
            "skipped": [entry.to_json() for entry in result.report.skipped],
            "packages": [_encode_package(package) for package in result.index],
        }
        path = safe_write_file(self.path, json.dumps(document, separators=(",", ":")))
        watch.stop()
        logger.info("Saved %d package(s) to cache %s in %s", len(result.index), path, watch)
        return path

    def clear(self) -> bool:
        """Delete the cache file. Returns True if one was removed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise FileOperationError(
                f"Cannot remove index cache: {exc}",
                file_path=str(self.path),
                operation="delete",
                original_error=exc,
            ) from exc
        return True

    def __repr__(self) -> str:
        return f"IndexCache({str(self.path)!r})"


def _encode_package(package: Package) -> Dict[str, Any]:
    return {
        "name": package.name,
        "source_path": package.source_path,
        "versions": [record.to_json() for record in package.versions],
    }


def _decode(document: Any) -> Tuple[LoadPolicy, IndexLoadResult]:
    if not isinstance(document, Mapping):
        raise TypeError("cache document must be a JSON object")

    found = document.get("format")
    if found != CACHE_FORMAT_VERSION:
        raise ValueError(
            f"cache format {found!r} is not supported (expected {CACHE_FORMAT_VERSION})"
        )

    entries = document["packages"]
    skipped = document["skipped"]
    if not isinstance(entries, list) or not isinstance(skipped, list):
        raise TypeError("cache fields 'packages' and 'skipped' must be lists")

    report = DiagnosticReport()
    for entry in skipped:
        report.add_skipped(SkippedEntry.from_json(entry))

    result = IndexLoadResult(
        index=PackageIndex.from_packages(_decode_package(entry) for entry in entries),
        report=report,
        files_seen=int(document.get("files_seen", 0)),
        from_cache=True,
    )
    return LoadPolicy.from_json(document["policy"]), result


def _decode_package(entry: Mapping[str, Any]) -> Package:
    versions = tuple(VersionRecord.from_json(line) for line in entry["versions"])
    return Package(
        name=entry["name"],
        versions=versions,
        source_path=entry.get("source_path"),
    )


def get_package_index(
    root: Union[str, Path],
    *,
    cache_path: Optional[Union[str, Path]] = None,
    use_cache: bool = True,
    refresh: bool = False,
    skip_malformed: bool = DEFAULT_SKIP_MALFORMED,
    jobs: int = DEFAULT_JOBS,
    exclude_dirs: Iterable[str] = EXCLUDED_DIR_NAMES,
) -> IndexLoadResult:
    """Return the package index for ``root``, through the cache when enabled.

    Args:
        root: Registry index root.
        cache_path: Cache file; defaults to :func:`default_cache_path`.
        use_cache: Read and write the cache at all.
        refresh: Delete an existing cache and rewrite it after loading.
        skip_malformed: Passed to :func:`load_index`.
        jobs: Passed to :func:`load_index`.
        exclude_dirs: Passed to :func:`load_index`.

    Returns:
        The load result; ``from_cache`` tells whether the walk was skipped.
        A cache hit carries the entries skipped by the walk that wrote it.

    Raises:
        ParseError: A package file is malformed and ``skip_malformed`` is
            off (only on a cache miss).
    """
    exclude_dirs = list(exclude_dirs)
    policy = LoadPolicy.create(skip_malformed, exclude_dirs)
    cache = IndexCache(cache_path or default_cache_path(root)) if use_cache else None

    if cache is not None:
        if refresh:
            try:
                if cache.clear():
                    logger.info("Removed index cache %s", cache.path)
            except FileOperationError as exc:
                logger.warning("Could not remove index cache: %s", exc)
        else:
            cached = cache.load(policy)
            if cached is not None:
                return cached

    result = load_index(
        root,
        skip_malformed=skip_malformed,
        jobs=jobs,
        exclude_dirs=exclude_dirs,
    )

    if cache is not None:
        try:
            cache.save(result, policy)
        except FileOperationError as exc:
            logger.warning("Could not write index cache: %s", exc)

    return result
