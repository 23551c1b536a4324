from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pytest

from crategraph.utils.logger import disable_logging


class RegistryTree:
    """Builds a registry index checkout on disk for tests.

    Package files are placed where Cargo puts them: ``1/a``, ``2/ab``,
    ``3/a/abc`` and ``ab/cd/abcd...``.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / "config.json").write_text(
            '{"dl": "https://crates.io/api/v1/crates"}'
        )

    @staticmethod
    def shard(name: str) -> Path:
        if len(name) <= 2:
            return Path(str(len(name))) / name
        if len(name) == 3:
            return Path("3") / name[0] / name
        return Path(name[:2]) / name[2:4] / name

    @staticmethod
    def dep(name: str, req: str, **extra: Any) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "name": name,
            "req": req,
            "features": [],
            "optional": False,
            "default_features": True,
            "target": None,
            "kind": "normal",
        }
        entry.update(extra)
        return entry

    @staticmethod
    def record(
        name: str,
        vers: str,
        deps: Iterable[Dict[str, Any]] = (),
        **extra: Any,
    ) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "name": name,
            "vers": vers,
            "deps": list(deps),
            "cksum": "0" * 64,
            "features": {},
            "yanked": False,
        }
        entry.update(extra)
        return entry

    def write_lines(self, relative: str, lines: List[str]) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n")
        return path

    def add(
        self,
        name: str,
        *records: Dict[str, Any],
        relative: Optional[str] = None,
    ) -> Path:
        """Write ``records`` (oldest first) as the package file for ``name``."""
        target = relative or str(self.shard(name))
        return self.write_lines(
            target, [json.dumps(record, separators=(",", ":")) for record in records]
        )


@pytest.fixture
def registry(tmp_path: Path) -> RegistryTree:
    """Empty registry index checkout under ``tmp_path/index``."""
    return RegistryTree(tmp_path / "index")


@pytest.fixture
def scenario_registry(registry: RegistryTree) -> RegistryTree:
    """Index with the canonical small ecosystem.

    - ``a`` 1.0.0 depends on ``c ^1.0`` (missing) and dev-depends on ``d``
    - ``a`` 2.0.0 depends on ``b ^1.0``
    - ``b`` has 1.0.0, 1.5.0 and 2.0.0
    - ``d`` 0.1.0 has no dependencies
    """
    r = registry
    r.add(
        "a",
        r.record(
            "a",
            "1.0.0",
            [r.dep("c", "^1.0"), r.dep("d", "^0.1", kind="dev")],
        ),
        r.record("a", "2.0.0", [r.dep("b", "^1.0")]),
    )
    r.add(
        "b",
        r.record("b", "1.0.0"),
        r.record("b", "1.5.0"),
        r.record("b", "2.0.0"),
    )
    r.add("d", r.record("d", "0.1.0"))
    return r


@pytest.fixture(autouse=True)
def _quiet_logging():
    """Reset crategraph logging between tests."""
    yield
    disable_logging()
