"""Logging channels and settings loading."""
from __future__ import annotations

import json
import logging
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from gunnery.engine.logger import DEFAULT_CHANNELS, GunneryLogger, LoggerConfig, init_logger


def test_missing_settings_use_defaults(tmp_path) -> None:
    config = LoggerConfig.from_settings(tmp_path / "settings.json")
    assert config.level == logging.INFO
    assert config.channels == DEFAULT_CHANNELS


def test_settings_override_level_and_channels(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "logLevel": "debug",
                "logChannels": {"engagement": True, "network": False},
            }
        )
    )
    config = LoggerConfig.from_settings(path)
    assert config.level == logging.DEBUG
    assert config.channels["engagement"]
    assert not config.channels["network"]
    assert config.channels["solver"]


def test_bad_settings_file_falls_back(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{")
    assert LoggerConfig.from_settings(path).level == logging.INFO


def test_disabled_channels_stay_quiet(caplog) -> None:
    caplog.set_level(logging.INFO)
    logger = GunneryLogger(LoggerConfig(level=logging.INFO, channels={"trigger": True, "network": False}))
    logger.channel("trigger").info("pulse started")
    logger.channel("network").info("endpoint moved")
    logger.channel("unknown").info("never seen")
    assert "pulse started" in caplog.text
    assert "endpoint moved" not in caplog.text
    assert "never seen" not in caplog.text

    logger.set_enabled("network", True)
    logger.channel("network").info("endpoint moved")
    assert "endpoint moved" in caplog.text
    assert "unknown" in logger.channels()


def test_init_logger_reads_settings(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"logChannels": {"engagement": True}}))
    logger = init_logger(path)
    assert logger.channel("engagement").enabled
    assert logger.channel("engagement").name == "engagement"
