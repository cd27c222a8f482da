"""Tests for the command line entry point."""

import json
from unittest.mock import AsyncMock, patch

import pytest
import yaml

from deal_aggregator.main import async_main, build_parser, main
from deal_aggregator.models.run import RunSummary


class TestParser:
    """Test cases for argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.config is None
        assert args.day is None
        assert args.log_level == "INFO"

    def test_day_validated(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--day", "June 1"])

        assert exc_info.value.code == 2
        assert "YYYY-MM-DD" in capsys.readouterr().err


class TestMain:
    """Test cases for main and async_main."""

    @pytest.mark.asyncio
    async def test_async_main_prints_summary(self, temp_config_file, capsys):
        summary = RunSummary(success=True, timestamp="2024-06-01T12:00:00.000Z", duration_ms=42)

        with patch("deal_aggregator.main.PipelineOrchestrator") as mock_orchestrator:
            mock_orchestrator.return_value.run = AsyncMock(return_value=summary)
            success = await async_main(str(temp_config_file), "2024-06-01")

        assert success is True
        mock_orchestrator.return_value.run.assert_awaited_once_with("2024-06-01")
        config = mock_orchestrator.call_args[0][0]
        assert [s.name for s in config.sources] == ["holabird", "brooks"]
        output = json.loads(capsys.readouterr().out)
        assert output["success"] is True
        assert output["duration"] == "42ms"

    def test_main_success(self, temp_dir):
        with patch("deal_aggregator.main.setup_logging"), patch(
            "deal_aggregator.main.async_main", AsyncMock(return_value=True)
        ) as mock_run:
            main(["--config", "config.yaml", "--day", "2024-06-01", "--log-dir", str(temp_dir)])

        mock_run.assert_awaited_once_with("config.yaml", "2024-06-01")

    def test_main_failed_run_exits_nonzero(self, temp_dir):
        with patch("deal_aggregator.main.setup_logging"), patch(
            "deal_aggregator.main.async_main", AsyncMock(return_value=False)
        ):
            with pytest.raises(SystemExit) as exc_info:
                main(["--log-dir", str(temp_dir)])

        assert exc_info.value.code == 1

    def test_main_missing_config_exits_nonzero(self, temp_dir, capsys):
        with patch("deal_aggregator.main.setup_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main(["--config", str(temp_dir / "absent.yaml"), "--log-dir", str(temp_dir)])

        assert exc_info.value.code == 1
        assert "Configuration error" in capsys.readouterr().err


class TestConfigCommands:
    """Test cases for the configuration-only flags."""

    def test_validate_config_ok(self, temp_config_file, temp_dir, capsys):
        with patch("deal_aggregator.main.setup_logging"), patch(
            "deal_aggregator.main.async_main", AsyncMock(return_value=True)
        ) as mock_run:
            main(["--config", str(temp_config_file), "--validate-config",
                  "--log-dir", str(temp_dir)])

        mock_run.assert_not_called()
        assert f"Configuration OK: {temp_config_file}" in capsys.readouterr().out

    def test_validate_config_invalid_exits_nonzero(self, temp_dir, capsys):
        config_file = temp_dir / "bad.yaml"
        config_file.write_text(yaml.dump({"sources": [{"name": "holabird"}]}))

        with patch("deal_aggregator.main.setup_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main(["--config", str(config_file), "--validate-config",
                      "--log-dir", str(temp_dir)])

        assert exc_info.value.code == 1
        assert "Configuration validation failed" in capsys.readouterr().err

    def test_validate_config_missing_file(self, temp_dir, capsys):
        with patch("deal_aggregator.main.setup_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main(["--config", str(temp_dir / "absent.yaml"), "--validate-config",
                      "--log-dir", str(temp_dir)])

        assert exc_info.value.code == 1
        assert "not found" in capsys.readouterr().err

    def test_print_config_template(self, capsys):
        with patch("deal_aggregator.main.setup_logging") as mock_setup:
            main(["--print-config-template"])

        mock_setup.assert_not_called()
        template = yaml.safe_load(capsys.readouterr().out)
        assert template["sources"][0]["artifact_url"] == "${HOLABIRD_MENS_ROAD_BLOB_URL}"
