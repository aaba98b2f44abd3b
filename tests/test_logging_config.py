import json
import logging

from alpaca_finance.logging_config import JsonFormatter, SecretMaskFilter


def make_record(msg, *args) -> logging.LogRecord:
    return logging.LogRecord("alpaca_finance.test", logging.INFO, __file__, 1, msg, args, None)


def test_secret_mask_filter_hides_secret() -> None:
    record = make_record("auth with %s", "someSecret")
    assert SecretMaskFilter(["someSecret"]).filter(record) is True
    assert record.getMessage() == "auth with ***"


def test_secret_mask_filter_leaves_other_messages() -> None:
    record = make_record("state %s", "subscribed")
    SecretMaskFilter(["someSecret"]).filter(record)
    assert record.getMessage() == "state subscribed"


def test_json_formatter_outputs_jsonl() -> None:
    payload = json.loads(JsonFormatter().format(make_record("hello")))
    assert payload["level"] == "INFO"
    assert payload["message"] == "hello"
    assert payload["name"] == "alpaca_finance.test"
