"""Tests for log helpers"""
from shopcart.logging import get_logger, log_safe


def test_log_safe_truncates():
    assert log_safe("0123456789abcdef") == "01234567"
    assert log_safe("x" * 60, limit=50) == "x" * 50


def test_log_safe_escapes_control_characters():
    assert log_safe("a\nb\rc", limit=50) == "a\\nb\\rc"
    assert log_safe("fake\x00entry", limit=50) == "fakeentry"


def test_log_safe_empty():
    assert log_safe(None) == "N/A"
    assert log_safe("") == "N/A"
    assert log_safe(0) == "0"


def test_get_logger_is_cached():
    assert get_logger("shopcart.test") is get_logger("shopcart.test")
