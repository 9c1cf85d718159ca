"""
Tests for correlation id propagation into log records.
"""

import logging
from shared.logging_config import CorrelationIdFilter, get_correlation_id, reset_correlation_id, set_correlation_id


def test_filter_stamps_correlation_id_and_service():
    token = set_correlation_id("corr-1")
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)

    assert CorrelationIdFilter("api").filter(record) is True
    assert record.correlation_id == "corr-1"
    assert record.service == "api"
    assert get_correlation_id() == "corr-1"
    reset_correlation_id(token)


def test_reset_restores_previous_correlation_id():
    before = get_correlation_id()
    outer = set_correlation_id("outer")
    inner = set_correlation_id("inner")

    reset_correlation_id(inner)
    assert get_correlation_id() == "outer"
    reset_correlation_id(outer)
    assert get_correlation_id() == before
