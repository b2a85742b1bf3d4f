"""Tests for the command-line interface."""

import foxglove
import pytest
from click.testing import CliRunner

from sysmon_agent.cli import main
from sysmon_agent.config import AgentConfig, load_config


@pytest.fixture
def runner():
    return CliRunner()


class TestCommands:
    """Commands that don't start a run."""

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "sysmon-agent" in result.output

    def test_sources_lists_topics(self, runner):
        result = runner.invoke(main, ["sources"])

        assert result.exit_code == 0
        for topic in ("/cpu", "/memory", "/components", "/disks", "/networks", "/processes", "/system"):
            assert topic in result.output
        assert "CpuSource" in result.output

    def test_init_writes_loadable_config(self, runner, tmp_path):
        output = tmp_path / "agent.yaml"

        result = runner.invoke(main, ["init", "-o", str(output)])

        assert result.exit_code == 0
        config = load_config(str(output))
        assert isinstance(config, AgentConfig)
        assert config.cpu is True
        assert config.memory is True
        assert config.disks is False

    def test_once_memory(self, runner):
        result = runner.invoke(main, ["once", "--memory"])

        assert result.exit_code == 0
        assert "/memory" in result.output


class TestRunFailures:
    """Fatal startup errors exit non-zero with a message."""

    def test_existing_recording_without_overwrite(self, runner, tmp_path):
        path = tmp_path / "output.mcap"
        path.write_bytes(b"")

        result = runner.invoke(main, ["run", "--cpu", "--format", "mcap", "--path", str(path), "--timeout", "1"])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_invalid_interval(self, runner, tmp_path):
        result = runner.invoke(main, [
            "run", "--cpu", "--format", "mcap", "--path", str(tmp_path / "out.mcap"), "--interval", "0",
        ])

        assert result.exit_code == 1
        assert "interval" in result.output

    def test_missing_config_file(self, runner, tmp_path):
        result = runner.invoke(main, ["run", "-C", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_recorder_open_failure(self, runner, tmp_path, monkeypatch):
        def refuse(path, allow_overwrite=False, context=None):
            raise OSError("No space left on device")

        monkeypatch.setattr(foxglove, "open_mcap", refuse)
        path = tmp_path / "out.mcap"

        result = runner.invoke(main, [
            "run", "--cpu", "--format", "mcap", "--path", str(path), "--timeout", "1", "--interval", "10",
        ])

        assert result.exit_code == 1
        assert "mcap" in result.output
        assert "No space left on device" in result.output
        assert not path.exists()

    def test_recorder_close_failure(self, runner, tmp_path, monkeypatch):
        class BrokenWriter:
            def close(self):
                raise OSError("flush failed")

        def open_mcap(path, allow_overwrite=False, context=None):
            open(path, "wb").close()
            return BrokenWriter()

        monkeypatch.setattr(foxglove, "open_mcap", open_mcap)
        path = tmp_path / "out.mcap"

        result = runner.invoke(main, [
            "run", "--cpu", "--format", "mcap", "--path", str(path), "--timeout", "1", "--interval", "10",
        ])

        assert result.exit_code == 1
        assert "mcap: failed to close" in result.output
        assert "flush failed" in result.output
        assert not path.exists()
