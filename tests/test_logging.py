"""
JSON log output for structured and plain loggers.
"""

import json
import logging

from visitflow.core.structured_logger import JSONFormatter, get_logger


def test_structured_fields_reach_json_output(caplog):
    logger = get_logger("visitflow.workers.purger")

    with caplog.at_level(logging.INFO, logger="visitflow.workers.purger"):
        logger.info("[Purge] Scheduled run finished", pages=2, total_purged=7, failed_collections=[])

    line = json.loads(JSONFormatter().format(caplog.records[-1]))
    assert line["message"] == "[Purge] Scheduled run finished"
    assert line["level"] == "INFO"
    assert line["logger"] == "visitflow.workers.purger"
    assert line["pages"] == 2
    assert line["total_purged"] == 7
    assert line["failed_collections"] == []
    assert "extra_data" not in line


def test_plain_extra_keys_are_included(caplog):
    with caplog.at_level(logging.WARNING, logger="visitflow"):
        logging.getLogger("visitflow").warning("slow request", extra={"request_id": "req-1"})

    line = json.loads(JSONFormatter().format(caplog.records[-1]))
    assert line["request_id"] == "req-1"
    assert line["message"] == "slow request"
