"""Tests for CLI argument handling."""

import pytest

from game_catalog import cli


class TestOptions:
    def test_option_default(self) -> None:
        assert cli._option(["--count", "5"], "--skip", 7) == 7

    def test_option_value(self) -> None:
        args = ["--count", "200", "--min-rating", "70"]

        assert cli._option(args, "--count", 100) == 200
        assert cli._option(args, "--min-rating", 60) == 70

    def test_option_missing_value(self) -> None:
        with pytest.raises(ValueError, match="requires a value"):
            cli._option(["--count"], "--count", 100)

    def test_option_not_an_integer(self) -> None:
        with pytest.raises(ValueError, match="expects an integer"):
            cli._option(["--count", "lots"], "--count", 100)

    def test_mask(self) -> None:
        assert cli._mask("", 4) == "<not set>"
        assert cli._mask("abcdefghij", 4) == "abcd..."

    def test_positional_skips_option_values(self) -> None:
        assert cli._positional(["zelda", "--limit", "5"]) == "zelda"
        assert cli._positional(["--limit", "5", "zelda"]) == "zelda"
        assert cli._positional(["--limit", "5"]) is None
        assert cli._positional([]) is None


class TestMain:
    @pytest.fixture(autouse=True)
    def no_logging_setup(self, monkeypatch: pytest.MonkeyPatch) -> list[bool]:
        """Keep main() from binding structlog to the captured stderr."""
        calls: list[bool] = []
        monkeypatch.setattr(cli, "setup_logging", lambda: calls.append(True))
        return calls

    def test_no_command_prints_usage(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr("sys.argv", ["game-catalog"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 1
        assert "Usage: game-catalog" in capsys.readouterr().out

    def test_unknown_command(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        no_logging_setup: list[bool],
    ) -> None:
        monkeypatch.setattr("sys.argv", ["game-catalog", "frobnicate"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 1
        assert "Unknown command: frobnicate" in capsys.readouterr().out
        assert no_logging_setup == [True]

    def test_search_term_after_options(self, monkeypatch: pytest.MonkeyPatch) -> None:
        searched: list[tuple[str, int]] = []

        async def fake_search(term: str, limit: int) -> int:
            searched.append((term, limit))
            return 0

        monkeypatch.setattr(cli, "cmd_search", fake_search)
        monkeypatch.setattr("sys.argv", ["game-catalog", "search", "--limit", "5", "zelda"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 0
        assert searched == [("zelda", 5)]

    def test_search_without_term(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr("sys.argv", ["game-catalog", "search", "--limit", "5"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 1
        assert "search term required" in capsys.readouterr().out
