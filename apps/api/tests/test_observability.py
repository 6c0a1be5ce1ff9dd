import json

from fastapi import FastAPI
from loguru import logger

from shinshop_api.core.logging import configure_logging
from shinshop_api.observability.tracing import configure_tracing, parse_otlp_headers


def test_parse_otlp_headers():
    assert parse_otlp_headers(None) is None
    assert parse_otlp_headers("") is None
    assert parse_otlp_headers("api-key=abc, x-team = ops,broken") == {"api-key": "abc", "x-team": "ops"}


def test_tracing_disabled_leaves_app_uninstrumented(settings):
    app = FastAPI()

    assert configure_tracing(app, settings, service_name="shinshop-api", service_version="0.1.0") is False


def test_logging_emits_structured_json(capsys):
    configure_logging(service_name="shinshop-api", environment="development", version="0.1.0")

    logger.info("Custom order notification sent", order_id="SHIN-1001", attachment_count=2)

    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["message"] == "Custom order notification sent"
    assert payload["level"] == "info"
    assert payload["service"] == "shinshop-api"
    assert payload["environment"] == "development"
    assert payload["order_id"] == "SHIN-1001"
    assert payload["attachment_count"] == 2
    assert "trace_id" not in payload
