"""Unit tests for incidentfusion.utils.logging_utils."""

from __future__ import annotations

import logging

import pytest

from incidentfusion.utils.logging_utils import (
    RunContextAdapter,
    configure_logging,
    get_logger,
    get_run_logger,
)

_YAML = """\
version: 1
disable_existing_loggers: false
formatters:
  plain:
    format: "%(levelname)s %(name)s: %(message)s"
handlers:
  file:
    class: logging.FileHandler
    formatter: plain
    filename: {filename}
    delay: true
loggers:
  incidentfusion.logtest:
    level: WARNING
    handlers: [file]
    propagate: false
  thirdparty.lib:
    level: WARNING
"""


@pytest.fixture
def isolated_logger():
    logger = logging.getLogger("incidentfusion.logtest")
    yield logger
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    logging.getLogger("thirdparty.lib").setLevel(logging.NOTSET)


class TestGetLogger:
    def test_prefixes_namespace(self):
        assert get_logger("agents.synthesis_agent").name == "incidentfusion.agents.synthesis_agent"

    def test_already_namespaced_unchanged(self):
        assert get_logger("incidentfusion.pipeline").name == "incidentfusion.pipeline"


class TestRunContextAdapter:
    def test_prefixes_run_id(self):
        adapter = get_run_logger("pipeline", run_id="20240601_170000_sentiment")
        msg, kwargs = adapter.process("Sweeping areas", {})
        assert msg == "[20240601_170000_sentiment] Sweeping areas"
        assert kwargs == {}

    def test_missing_run_id(self):
        adapter = RunContextAdapter(logging.getLogger("incidentfusion.x"), {})
        msg, _ = adapter.process("hello", {})
        assert msg == "[unknown] hello"


class TestConfigureLogging:
    def test_level_override_and_log_file(self, tmp_path, isolated_logger):
        """log_level overrides incidentfusion loggers; log_file redirects file handlers."""
        config_path = tmp_path / "logging.yaml"
        config_path.write_text(_YAML.format(filename=tmp_path / "unused.log"), encoding="utf-8")
        log_file = tmp_path / "nested" / "run.log"

        configure_logging(str(config_path), log_level="debug", log_file=str(log_file))

        assert isolated_logger.level == logging.DEBUG
        assert logging.getLogger("thirdparty.lib").level == logging.WARNING
        assert log_file.parent.is_dir()
        isolated_logger.debug("written")
        for handler in isolated_logger.handlers:
            handler.flush()
        assert "DEBUG incidentfusion.logtest: written" in log_file.read_text(encoding="utf-8")

    def test_missing_file_falls_back(self, tmp_path):
        # basicConfig is a no-op when root already has handlers; only assert no error
        configure_logging(str(tmp_path / "absent.yaml"), log_level="WARNING")
