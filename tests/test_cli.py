"""Tests for the marketplace command line interface."""

from __future__ import annotations

import io
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from marketplace_kit.cli import build_parser, confirm_overwrite, main
from marketplace_kit.scaffold import VcsIdentity

from .conftest import PluginFactory, read_registry


@pytest.fixture(autouse=True)
def no_terminal(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every command as if stdin were a pipe."""
    monkeypatch.setattr("sys.stdin", io.StringIO(""))


@pytest.fixture
def fake_git(identity: VcsIdentity):
    with patch("marketplace_kit.scaffold.detect_vcs_identity", return_value=identity) as mock:
        yield mock


class TerminalInput(io.StringIO):
    def isatty(self) -> bool:
        return True


def run(root: Path, *args: str) -> int:
    return main([*args, "--root", str(root)])


class TestParser:
    """Tests for build_parser function."""

    def test_register_defaults(self) -> None:
        """Should default the category and leave --yes off."""
        args = build_parser().parse_args(["register", "foo"])
        assert args.category == "utilities"
        assert args.yes is False

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Should print usage and exit 1 with no command."""
        assert main([]) == 1
        assert "usage:" in capsys.readouterr().out

    def test_unknown_option_exits_2(self) -> None:
        """Should let argparse reject bad arguments with exit code 2."""
        with pytest.raises(SystemExit) as exc_info:
            main(["list", "--bogus"])
        assert exc_info.value.code == 2

    def test_global_options_before_command(self) -> None:
        """Should accept --root and --debug ahead of the subcommand."""
        args = build_parser().parse_args(["--root", "/tmp/market", "--debug", "list"])
        assert args.root == "/tmp/market"
        assert args.debug is True

    def test_global_options_after_command(self) -> None:
        """Should accept --root and --debug after the subcommand."""
        args = build_parser().parse_args(["list", "--root", "/tmp/market", "--debug"])
        assert args.root == "/tmp/market"
        assert args.debug is True

    def test_global_option_defaults(self) -> None:
        """Should leave --root unset and debugging off by default."""
        args = build_parser().parse_args(["list"])
        assert args.root is None
        assert args.debug is False


class TestCreateCommand:
    """Tests for the create command."""

    def test_creates_plugin(
        self, marketplace_root: Path, fake_git: object, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should scaffold the plugin and print next steps."""
        assert run(marketplace_root, "create", "foo-bar", "Bar tools") == 0
        assert (marketplace_root / "plugins" / "foo-bar" / ".claude-plugin" / "plugin.json").is_file()
        out = capsys.readouterr().out
        assert "Plugin created successfully" in out
        assert "Next steps:" in out

    def test_invalid_name(
        self, marketplace_root: Path, fake_git: object, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should exit 1 and create nothing for a bad name."""
        assert run(marketplace_root, "create", "Bad_Name") == 1
        assert list((marketplace_root / "plugins").iterdir()) == []
        assert "kebab-case" in capsys.readouterr().err

    def test_existing_plugin(
        self, marketplace_root: Path, fake_git: object, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should exit 1 when the plugin already exists."""
        (marketplace_root / "plugins" / "taken").mkdir()
        assert run(marketplace_root, "create", "taken") == 1
        assert "already exists" in capsys.readouterr().err


class TestValidateCommand:
    """Tests for the validate command."""

    def test_clean_plugin(
        self, marketplace_root: Path, make_plugin: PluginFactory, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should exit 0 and report no issues."""
        make_plugin()
        assert run(marketplace_root, "validate", "sample-plugin") == 0
        out = capsys.readouterr().out
        assert "=== Required Files ===" in out
        assert "passed with no issues" in out

    def test_errors_exit_1(self, marketplace_root: Path, make_plugin: PluginFactory) -> None:
        """Should exit 1 when plugin.json is missing."""
        make_plugin(manifest=None)
        assert run(marketplace_root, "validate", "sample-plugin") == 1

    def test_strict(
        self, marketplace_root: Path, make_plugin: PluginFactory, valid_manifest: dict[str, object]
    ) -> None:
        """Should fail warnings only with --strict."""
        del valid_manifest["description"]
        make_plugin(manifest=valid_manifest)
        assert run(marketplace_root, "validate", "sample-plugin") == 0
        assert run(marketplace_root, "validate", "sample-plugin", "--strict") == 1

    def test_unknown_plugin(self, marketplace_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Should exit 1 for unknown plugins."""
        assert run(marketplace_root, "validate", "nope") == 1
        assert "Plugin not found" in capsys.readouterr().err


class TestRegisterCommand:
    """Tests for the register command."""

    def test_registers(
        self, marketplace_root: Path, make_plugin: PluginFactory, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should add the entry and echo it."""
        make_plugin()
        assert run(marketplace_root, "register", "sample-plugin", "security") == 0
        assert read_registry(marketplace_root)["plugins"][0]["category"] == "security"
        out = capsys.readouterr().out
        assert "registered in marketplace" in out
        assert '"source": "./plugins/sample-plugin"' in out

    def test_reregister_without_yes_refuses(
        self, marketplace_root: Path, make_plugin: PluginFactory, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should refuse to overwrite without a terminal or --yes."""
        make_plugin()
        assert run(marketplace_root, "register", "sample-plugin") == 0
        before = read_registry(marketplace_root)
        capsys.readouterr()

        assert run(marketplace_root, "register", "sample-plugin", "security") == 1
        assert "--yes" in capsys.readouterr().err
        assert read_registry(marketplace_root) == before

    def test_reregister_with_yes(
        self, marketplace_root: Path, make_plugin: PluginFactory, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should replace the entry with --yes and warn about an unchanged version."""
        make_plugin()
        assert run(marketplace_root, "register", "sample-plugin") == 0
        assert run(marketplace_root, "register", "sample-plugin", "security", "--yes") == 0

        plugins = read_registry(marketplace_root)["plugins"]
        assert len(plugins) == 1
        assert plugins[0]["category"] == "security"
        assert "Same version already registered" in capsys.readouterr().out

    def test_missing_registry(
        self, marketplace_root: Path, make_plugin: PluginFactory, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should exit 1 without a registry."""
        make_plugin()
        (marketplace_root / ".claude-plugin" / "marketplace.json").unlink()
        assert run(marketplace_root, "register", "sample-plugin") == 1
        assert "not found" in capsys.readouterr().err


class TestConfirmOverwrite:
    """Tests for confirm_overwrite function."""

    def test_none_without_terminal(self) -> None:
        """Should give up when nobody can be asked."""
        assert confirm_overwrite(assume_yes=False) is None

    def test_yes_accepts(self) -> None:
        """Should accept every overwrite with --yes."""
        ask = confirm_overwrite(assume_yes=True)
        assert ask is not None
        assert ask({"version": "1.0.0"}, {"name": "x", "version": "2.0.0"}) is True

    def test_prompt_on_terminal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should ask the user when stdin is a terminal."""
        monkeypatch.setattr("sys.stdin", TerminalInput(""))
        with patch("marketplace_kit.cli.Confirm.ask", return_value=False) as prompt:
            ask = confirm_overwrite(assume_yes=False)
            assert ask is not None
            assert ask({"version": "1.0.0"}, {"name": "x", "version": "2.0.0"}) is False
        prompt.assert_called_once()


class TestListCommand:
    """Tests for the list command."""

    def test_json_matches_registry(
        self, marketplace_root: Path, make_plugin: PluginFactory, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should print exactly the registry's plugins array."""
        make_plugin()
        run(marketplace_root, "register", "sample-plugin")
        capsys.readouterr()

        assert run(marketplace_root, "list", "--json") == 0
        assert json.loads(capsys.readouterr().out) == read_registry(marketplace_root)["plugins"]

    def test_human_listing(
        self, marketplace_root: Path, make_plugin: PluginFactory, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should print the marketplace header and each plugin."""
        make_plugin()
        run(marketplace_root, "register", "sample-plugin")
        capsys.readouterr()

        assert run(marketplace_root, "list", "-v") == 0
        out = capsys.readouterr().out
        assert "1 plugin(s) available" in out
        assert "sample-plugin" in out

    def test_json_without_marketplace_name(
        self, marketplace_root: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should emit the plugins array from a registry with no name."""
        plugins = [{"name": "a", "version": "1.0.0"}]
        (marketplace_root / ".claude-plugin" / "marketplace.json").write_text(
            json.dumps({"plugins": plugins}), encoding="utf-8"
        )
        assert main(["--root", str(marketplace_root), "list", "--json"]) == 0
        assert json.loads(capsys.readouterr().out) == plugins

    def test_missing_registry(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Should exit 1 when there is no registry."""
        assert run(tmp_path, "list") == 1
        assert "not found" in capsys.readouterr().err


class TestVerifyCommand:
    """Tests for the verify command."""

    def test_verify(
        self, marketplace_root: Path, make_plugin: PluginFactory, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should exit 0 for a marketplace of valid plugins."""
        make_plugin()
        run(marketplace_root, "register", "sample-plugin")
        assert run(marketplace_root, "verify") == 0
        assert "All verification checks passed" in capsys.readouterr().out


class TestRoundTrip:
    """End-to-end create, validate, register, list."""

    def test_create_validate_register_list(
        self, marketplace_root: Path, fake_git: object, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should produce a valid, registered and listed plugin."""
        assert run(marketplace_root, "create", "foo-bar", "Bar tools") == 0
        assert run(marketplace_root, "validate", "foo-bar", "--strict") == 0
        assert run(marketplace_root, "register", "foo-bar") == 0
        capsys.readouterr()

        assert run(marketplace_root, "list", "--json") == 0
        plugins = json.loads(capsys.readouterr().out)
        assert [p["name"] for p in plugins] == ["foo-bar"]
        assert plugins[0]["version"] == "0.1.0"
        assert plugins[0]["description"] == "Bar tools"

    def test_root_from_environment(
        self,
        marketplace_root: Path,
        make_plugin: PluginFactory,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Should find the marketplace through MARKETPLACE_ROOT."""
        make_plugin()
        monkeypatch.setenv("MARKETPLACE_ROOT", str(marketplace_root))
        assert main(["validate", "sample-plugin"]) == 0
