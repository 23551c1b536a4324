from __future__ import annotations

import io
import sys
from typing import Generator
from unittest.mock import patch

import pytest
from rich.console import Console

import crategraph.utils.console as console_module
from crategraph.utils.console import (
    CRATEGRAPH_THEME,
    _get_console,
    _should_use_color,
    get_raw_console,
    print_counts,
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)


@pytest.fixture(autouse=True)
def reset_console() -> Generator[None, None, None]:
    """Reset the console singleton around each test."""
    reconfigure_console()
    yield
    reconfigure_console()


@pytest.fixture
def output() -> io.StringIO:
    """Install a plain, wide console writing to a buffer."""
    buffer = io.StringIO()
    console_module._console = Console(
        file=buffer, theme=CRATEGRAPH_THEME, no_color=True, width=120
    )
    return buffer


@pytest.mark.unit
class TestConsoleLifecycle:
    """Tests for the console singleton and color detection."""

    def test_theme_has_required_styles(self) -> None:
        """Test the status styles used by print helpers exist."""
        for style in ("success", "error", "warning", "info", "highlight"):
            assert style in CRATEGRAPH_THEME.styles

    def test_singleton(self) -> None:
        """Test the same console is returned until reconfigured."""
        first = _get_console()

        assert get_raw_console() is first
        reconfigure_console()
        assert _get_console() is not first

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test NO_COLOR disables colored output."""
        monkeypatch.setenv("NO_COLOR", "1")

        assert _should_use_color() is False

    def test_tty_enables_color(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an interactive stdout gets colors."""
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)

        with patch.object(sys.stdout, "isatty", return_value=True):
            assert _should_use_color() is True


@pytest.mark.unit
class TestStatusMessages:
    """Tests for print_success/print_error/print_warning."""

    @pytest.mark.parametrize(
        "func, prefix",
        [(print_success, "[OK]"), (print_error, "[ERROR]"), (print_warning, "[WARNING]")],
    )
    def test_prefixes(self, output: io.StringIO, func, prefix: str) -> None:
        """Test each helper prints its prefix and the message."""
        func("3 entries skipped")

        assert output.getvalue().strip() == f"{prefix} 3 entries skipped"

    def test_markup_is_not_interpreted(self, output: io.StringIO) -> None:
        """Test square brackets in messages print literally."""
        print_error("bad requirement [^1.x]")

        assert "[^1.x]" in output.getvalue()


@pytest.mark.unit
class TestTables:
    """Tests for print_table and print_counts."""

    def test_print_table(self, output: io.StringIO) -> None:
        """Test rows and title are rendered."""
        print_table(
            [{"Package": "serde", "Version": "1.0.0"}],
            title="Dependents",
        )

        text = output.getvalue()
        assert "Dependents" in text
        assert "Package" in text
        assert "serde" in text

    def test_empty_table_prints_nothing(self, output: io.StringIO) -> None:
        """Test no rows means no output."""
        print_table([])

        assert output.getvalue() == ""

    def test_headers_select_columns(self, output: io.StringIO) -> None:
        """Test headers choose and order the columns shown."""
        print_table([{"a": "1", "b": "hidden"}], headers=["a"])

        assert "hidden" not in output.getvalue()

    def test_print_counts_formats_thousands(self, output: io.StringIO) -> None:
        """Test counts are rendered with separators."""
        print_counts({"Version records": 123456, "Edges": 7}, title="Index")

        text = output.getvalue()
        assert "Metric" in text
        assert "123,456" in text
        assert "Edges" in text
