"""Tests for environment readers."""

from __future__ import annotations

from twitar.utils.environment import env_float, env_int, env_str


def test_env_str(monkeypatch) -> None:
    monkeypatch.setenv("TWITAR_TEST_STR", "  value  ")
    monkeypatch.delenv("TWITAR_TEST_MISSING", raising=False)
    assert env_str("TWITAR_TEST_STR") == "value"
    assert env_str("TWITAR_TEST_MISSING", "fallback") == "fallback"


def test_env_int(monkeypatch, caplog) -> None:
    monkeypatch.setenv("TWITAR_TEST_INT", "42")
    assert env_int("TWITAR_TEST_INT", 1) == 42
    monkeypatch.setenv("TWITAR_TEST_INT", "forty-two")
    assert env_int("TWITAR_TEST_INT", 1) == 1
    assert "Ignoring non-integer" in caplog.text


def test_env_float(monkeypatch) -> None:
    monkeypatch.setenv("TWITAR_TEST_FLOAT", "0.25")
    assert env_float("TWITAR_TEST_FLOAT", 1.0) == 0.25
    monkeypatch.setenv("TWITAR_TEST_FLOAT", "   ")
    assert env_float("TWITAR_TEST_FLOAT", 1.0) == 1.0
