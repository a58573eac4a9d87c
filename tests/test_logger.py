# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oidc_provider

import json
import logging
import os
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from loguru import logger
from opentelemetry.sdk.trace import TracerProvider

from coreason_oidc_provider.utils.logger import configure_logging


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None, None, None]:
    yield
    with patch.dict(os.environ, {}, clear=False):
        for name in ("COREASON_LOG_JSON", "COREASON_LOG_FILE", "COREASON_LOG_LEVEL"):
            os.environ.pop(name, None)
        configure_logging()


def test_json_toggle(capsys: pytest.CaptureFixture[str]) -> None:
    """COREASON_LOG_JSON=true switches to JSON records on stdout."""
    with patch.dict(os.environ, {"COREASON_LOG_JSON": "true", "COREASON_LOG_LEVEL": "INFO"}):
        configure_logging()
        logger.info("JSON Message")

    captured = capsys.readouterr()
    assert captured.err == ""
    record = json.loads(captured.out)
    assert record["record"]["message"] == "JSON Message"
    assert record["record"]["level"]["name"] == "INFO"


def test_invalid_log_level_defaults_to_info(capsys: pytest.CaptureFixture[str]) -> None:
    with patch.dict(os.environ, {"COREASON_LOG_LEVEL": "INVALID_LEVEL_XYZ", "COREASON_LOG_JSON": "false"}):
        configure_logging()
        logger.info("Info message")
        logger.debug("Debug message")

    captured = capsys.readouterr()
    assert "Info message" in captured.err
    assert "Debug message" not in captured.err


def test_reconfiguration_does_not_duplicate(capsys: pytest.CaptureFixture[str]) -> None:
    with patch.dict(os.environ, {"COREASON_LOG_JSON": "false"}):
        configure_logging()
        configure_logging()
        logger.info("Single message")

    assert capsys.readouterr().err.count("Single message") == 1


def test_standard_logging_is_intercepted(capsys: pytest.CaptureFixture[str]) -> None:
    """Records of libraries using the logging module (e.g. httpx) reach loguru."""
    with patch.dict(os.environ, {"COREASON_LOG_JSON": "false"}):
        configure_logging()
        logging.getLogger("httpx").warning("intercepted record")

    assert "intercepted record" in capsys.readouterr().err


def test_trace_ids_injected() -> None:
    configure_logging()
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda msg: records.append(msg.record), level="INFO")
    tracer = TracerProvider().get_tracer("test_tracer")

    try:
        with tracer.start_as_current_span("request") as span:
            logger.info("inside span")
        logger.info("outside span")
    finally:
        logger.remove(handler_id)

    inside, outside = records
    assert inside["extra"]["trace_id"] == format(span.get_span_context().trace_id, "032x")
    assert inside["extra"]["span_id"] == format(span.get_span_context().span_id, "016x")
    assert "trace_id" not in outside["extra"]


def test_file_sink(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "provider.log"
    with patch.dict(os.environ, {"COREASON_LOG_FILE": str(log_file)}):
        configure_logging()
        logger.info("to file")
        logger.complete()

    lines = log_file.read_text().splitlines()
    assert json.loads(lines[-1])["record"]["message"] == "to file"


def test_unwritable_file_sink_falls_back(capsys: pytest.CaptureFixture[str]) -> None:
    with patch.dict(os.environ, {"COREASON_LOG_FILE": "/proc/coreason/provider.log", "COREASON_LOG_JSON": "false"}):
        with patch("coreason_oidc_provider.utils.logger.Path.mkdir", side_effect=PermissionError("read-only")):
            configure_logging()

    assert "File logging disabled" in capsys.readouterr().err
