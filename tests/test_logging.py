import json
import logging

from paynudge.core.logger import JsonFormatter, QUIET_LOGGERS, init_logging
from paynudge.db.base_class import table_name_for


def _record(**extra) -> logging.LogRecord:
    record = logging.makeLogRecord({"name": "paynudge.job", "levelname": "INFO", "msg": "sent %s", "args": ("INV-1",)})
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_service_and_extra_fields():
    line = JsonFormatter(service="PayNudge", env="test").format(_record(invoice_id=7))
    entry = json.loads(line)
    assert entry["msg"] == "sent INV-1"
    assert entry["logger"] == "paynudge.job"
    assert entry["service"] == "PayNudge"
    assert entry["env"] == "test"
    assert entry["extra"] == {"invoice_id": 7}


def test_json_formatter_omits_empty_extra():
    assert "extra" not in json.loads(JsonFormatter().format(_record()))


def test_init_logging_installs_one_handler_and_quiets_clients():
    root = logging.getLogger()
    init_logging()
    init_logging()
    try:
        assert sum(1 for h in root.handlers if h.get_name() == "paynudge") == 1
        assert all(logging.getLogger(name).level == logging.WARNING for name in QUIET_LOGGERS)
    finally:
        for handler in [h for h in root.handlers if h.get_name() == "paynudge"]:
            root.removeHandler(handler)


def test_table_names_are_snake_case_plurals():
    assert table_name_for("ReminderRule") == "reminder_rules"
    assert table_name_for("WebhookEvent") == "webhook_events"
    assert table_name_for("User") == "users"
