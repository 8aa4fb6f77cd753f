import json
import logging

from app.core.config import Settings
from app.core.logging_config import HumanFormatter, JsonFormatter, setup_logging


def _record(**extra):
    record = logging.makeLogRecord({"name": "app.services.price_refresher", "msg": "Price snapshot refreshed",
                                    "levelname": "INFO", "levelno": logging.INFO})
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_extras_and_masks_secrets():
    line = JsonFormatter().format(_record(symbol_count=10, api_key="abcd1234secret"))
    entry = json.loads(line)

    assert entry["message"] == "Price snapshot refreshed"
    assert entry["symbol_count"] == 10
    assert entry["api_key"] == "abcd********"


def test_human_formatter_shortens_app_prefix():
    line = HumanFormatter(use_colors=False).format(_record(symbol_count=10))
    assert "[services.price_refresher] Price snapshot refreshed (symbol_count=10)" in line


def test_setup_logging_uses_only_the_given_format(monkeypatch):
    monkeypatch.setenv("LOG_FORMAT", "json")
    setup_logging(json_format=False, logger_name="app.test_only")

    handler = logging.getLogger("app.test_only").handlers[0]
    assert isinstance(handler.formatter, HumanFormatter)


def test_log_json_from_settings():
    assert Settings(LOG_FORMAT="json").log_json is True
    assert Settings(LOG_FORMAT="human", AWS_LAMBDA_FUNCTION_NAME="fn").log_json is False
    assert Settings(LOG_FORMAT=None, AWS_LAMBDA_FUNCTION_NAME="fn").log_json is True
    assert Settings(LOG_FORMAT=None, AWS_LAMBDA_FUNCTION_NAME=None).log_json is False
