"""Tests for converge.core.logging."""

from __future__ import annotations

import json

from converge.core.logging import LogContext, bind_context, configure_logging, get_logger


def _last_json(err: str) -> dict:
    return json.loads(err.strip().splitlines()[-1])


class TestConfigureLogging:
    def test_json_output_to_stderr(self, capsys):
        configure_logging(level="INFO", json_format=True)
        get_logger("converge.test").info("poll.converged", attempts=3)

        captured = capsys.readouterr()
        assert captured.out == ""
        record = _last_json(captured.err)
        assert record["event"] == "poll.converged"
        assert record["attempts"] == 3
        assert record["log.logger"] == "converge.test"
        assert record["log.level"] == "info"
        assert record["service.name"] == "converge"
        assert "@timestamp" in record

    def test_level_filters(self, capsys):
        configure_logging(level="WARNING", json_format=True)
        logger = get_logger("converge.test")
        logger.info("hidden")
        logger.warning("shown")
        lines = capsys.readouterr().err.strip().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["event"] == "shown"

    def test_custom_service(self, capsys):
        configure_logging(level="INFO", json_format=True, service="converge-e2e")
        get_logger().info("x")
        assert _last_json(capsys.readouterr().err)["service.name"] == "converge-e2e"


class TestContext:
    def test_bind_context(self, capsys):
        configure_logging(level="INFO", json_format=True)
        bind_context(scenario="standalone-pair")
        get_logger("t").info("step.started")
        assert _last_json(capsys.readouterr().err)["scenario"] == "standalone-pair"

    def test_log_context_scoped(self, capsys):
        configure_logging(level="INFO", json_format=True)
        logger = get_logger("t")
        with LogContext(namespace="ns-abc"):
            logger.info("inside")
        logger.info("outside")
        lines = [json.loads(line) for line in capsys.readouterr().err.strip().splitlines()]
        assert lines[0]["namespace"] == "ns-abc"
        assert "namespace" not in lines[1]


class TestModuleLoggers:
    def test_module_logger_created_at_import_is_named(self, capsys):
        from converge.polling import poller

        configure_logging(level="INFO", json_format=True)
        poller.logger.info("poll.converged", attempts=1)

        record = _last_json(capsys.readouterr().err)
        assert record["log.logger"] == "converge.polling.poller"

    def test_console_output_carries_logger_name(self, capsys):
        configure_logging(level="INFO", json_format=False)
        get_logger(__name__).info("step.started")
        assert __name__ in capsys.readouterr().err
