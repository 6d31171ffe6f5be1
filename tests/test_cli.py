# tests/test_cli.py
"""Tests for the command-line interface and configuration."""

import json
import tempfile
from pathlib import Path

import pytest

from contentvault.cli import main
from contentvault.config import VaultConfig, load_config


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def data_dir(temp_dir):
    """Initialised vault with identities alice and bob."""
    data_dir = str(temp_dir / "vault")
    main(["--data-dir", data_dir, "init", "--administrator", "admin"])
    main(["--data-dir", data_dir, "identity", "create", "alice"])
    main(["--data-dir", data_dir, "identity", "create", "bob"])
    return data_dir


def run(data_dir, *argv):
    main(["--data-dir", data_dir, *argv])


class TestConfig:
    """Tests for VaultConfig."""

    def test_defaults(self):
        config = VaultConfig()
        assert config.port == 8400
        assert config.administrator is None

    def test_from_yaml(self):
        config = VaultConfig.from_yaml(
            "data_dir: /tmp/v\nadministrator: root\nport: '9000'\nlog_level: debug\nextra: 1\n"
        )
        assert config.data_dir == Path("/tmp/v")
        assert config.administrator == "root"
        assert config.port == 9000
        assert config.log_level == "DEBUG"

    def test_empty_yaml(self):
        assert VaultConfig.from_yaml("").host == "127.0.0.1"

    def test_non_mapping_rejected(self):
        with pytest.raises(ValueError):
            VaultConfig.from_yaml("- a\n- b\n")

    def test_overrides_win(self, temp_dir):
        path = temp_dir / "config.yaml"
        path.write_text("port: 9000\nhost: 0.0.0.0\n")

        config = load_config(path, port=9100, host=None)
        assert config.port == 9100
        assert config.host == "0.0.0.0"

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "absent.yaml")


class TestCli:
    """Tests for CLI commands."""

    def test_full_flow(self, data_dir, capsys):
        capsys.readouterr()

        run(data_dir, "create", "--as", "alice", "--title", "Doc", "--size", "100",
            "--summary", "S", "-l", "a", "-l", "b")
        assert "Created content 1" in capsys.readouterr().out

        run(data_dir, "show", "1", "--as", "alice", "--json")
        record = json.loads(capsys.readouterr().out)
        assert record["creator"] == "alice"
        assert record["labels"] == ["a", "b"]

        run(data_dir, "transfer", "1", "bob", "--as", "alice")
        run(data_dir, "owner", "1")
        assert capsys.readouterr().out.strip().endswith("bob")

        run(data_dir, "delete", "1", "--as", "bob")
        run(data_dir, "exists", "1")
        assert capsys.readouterr().out.strip().endswith("no")

        run(data_dir, "journal")
        lines = capsys.readouterr().out.strip().splitlines()
        assert lines == [
            "[1] create 1 by alice",
            "[2] transfer 1 by alice new_owner=bob",
            "[3] delete 1 by bob",
        ]

    def test_visibility_blocked_exits(self, data_dir, capsys):
        run(data_dir, "create", "--as", "alice", "--title", "Doc", "--size", "100",
            "--summary", "S", "-l", "a")

        with pytest.raises(SystemExit) as exc_info:
            run(data_dir, "show", "1", "--as", "bob")
        assert exc_info.value.code == 1
        assert "VisibilityBlocked" in capsys.readouterr().err

    def test_verify_and_stats(self, data_dir, capsys):
        run(data_dir, "create", "--as", "alice", "--title", "Doc", "--size", "100",
            "--summary", "S", "-l", "a")
        capsys.readouterr()

        run(data_dir, "verify", "1", "bob")
        out = capsys.readouterr().out
        assert "Can access: False" in out

        run(data_dir, "stats")
        out = capsys.readouterr().out
        assert "Total items: 1" in out
        assert "Administrator: admin" in out

    def test_invalid_input_exits(self, data_dir, capsys):
        with pytest.raises(SystemExit):
            run(data_dir, "create", "--as", "alice", "--title", "Doc", "--size", "0",
                "--summary", "S", "-l", "a")
        assert "SizeLimitExceeded" in capsys.readouterr().err

    def test_unknown_identity(self, data_dir, capsys):
        with pytest.raises(SystemExit):
            run(data_dir, "delete", "1", "--as", "mallory")
        assert "Unknown identity" in capsys.readouterr().err

    def test_requires_init(self, temp_dir, capsys):
        with pytest.raises(SystemExit):
            run(str(temp_dir / "empty"), "stats")
        assert "contentvault init" in capsys.readouterr().err

    def test_init_twice(self, data_dir):
        with pytest.raises(SystemExit):
            run(data_dir, "init", "--administrator", "admin")
