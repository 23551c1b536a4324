from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from crategraph.core.locator import locate_registry_index, resolve_cargo_home
from crategraph.exceptions import FileOperationError, RegistryNotFoundError


def make_checkout(cargo_home: Path, name: str) -> Path:
    checkout = cargo_home / "registry" / "index" / name
    checkout.mkdir(parents=True)
    (checkout / "config.json").write_text("{}")
    return checkout


@pytest.mark.unit
class TestResolveCargoHome:
    """Tests for resolve_cargo_home."""

    def test_explicit(self, tmp_path: Path) -> None:
        """Test an explicit directory wins."""
        assert resolve_cargo_home(tmp_path) == tmp_path

    def test_environment(self, tmp_path: Path) -> None:
        """Test CARGO_HOME is honored."""
        with patch.dict("os.environ", {"CARGO_HOME": str(tmp_path)}):
            assert resolve_cargo_home() == tmp_path

    def test_default(self) -> None:
        """Test the fallback is ~/.cargo."""
        with patch.dict("os.environ", {}, clear=True):
            with patch("pathlib.Path.home", return_value=Path("/home/u")):
                assert resolve_cargo_home() == Path("/home/u/.cargo")


@pytest.mark.unit
class TestLocateRegistryIndex:
    """Tests for locate_registry_index."""

    def test_explicit_path(self, registry) -> None:
        """Test an explicit index directory is returned resolved."""
        assert locate_registry_index(registry.root) == registry.root.resolve()

    def test_explicit_path_must_exist(self, tmp_path: Path) -> None:
        """Test a missing explicit path is an error, not a search."""
        with pytest.raises(FileOperationError):
            locate_registry_index(tmp_path / "missing")

    def test_prefers_crates_io_checkout(self, tmp_path: Path) -> None:
        """Test the github.com checkout wins over other registries."""
        make_checkout(tmp_path, "alt.example.com-0123")
        crates_io = make_checkout(tmp_path, "github.com-1ecc6299db9ec823")

        assert locate_registry_index(cargo_home=tmp_path) == crates_io.resolve()

    def test_falls_back_to_other_registry(self, tmp_path: Path) -> None:
        """Test any checkout with config.json is accepted."""
        other = make_checkout(tmp_path, "index.crates.io-6f17d22bba15001f")

        assert locate_registry_index(cargo_home=tmp_path) == other.resolve()

    def test_directories_without_config_are_ignored(self, tmp_path: Path) -> None:
        """Test directories lacking config.json are not indexes."""
        (tmp_path / "registry" / "index" / "github.com-x").mkdir(parents=True)

        with pytest.raises(RegistryNotFoundError) as exc_info:
            locate_registry_index(cargo_home=tmp_path)

        assert exc_info.value.searched == (str(tmp_path / "registry" / "index"),)

    def test_nothing_found(self, tmp_path: Path) -> None:
        """Test an empty Cargo home raises RegistryNotFoundError."""
        with pytest.raises(RegistryNotFoundError):
            locate_registry_index(cargo_home=tmp_path)
