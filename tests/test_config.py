"""Tests for settings parsing and display helpers."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from config import Currency, Settings, format_date, format_money


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("MAX_TOOL_ROUNDS", "3")
    monkeypatch.setenv("DEFAULT_REVIEWER_ID", "9")
    monkeypatch.delenv("AZURE_OPENAI_ENDPOINT", raising=False)

    settings = Settings()

    assert settings.ai_enabled is True
    assert settings.use_azure is False
    assert settings.model == "gpt-4o-mini"
    assert settings.max_tool_rounds == 3
    assert settings.default_reviewer_id == 9


def test_bad_numbers_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_TOOL_ROUNDS", "lots")
    monkeypatch.setenv("OPENAI_TEMPERATURE", "warm")

    settings = Settings()

    assert settings.max_tool_rounds == 8
    assert settings.temperature == 0.2


def test_round_ceiling_is_clamped() -> None:
    assert Settings(max_tool_rounds=0).max_tool_rounds == 1


def test_ai_disabled_without_endpoint_or_key() -> None:
    settings = Settings(openai_api_key="", azure_endpoint="")

    assert settings.ai_enabled is False


def test_validate_reports_problems() -> None:
    settings = Settings(openai_api_key="", azure_endpoint="https://x.openai.azure.com", azure_api_key="", temperature=3.5)

    problems = settings.validate()

    assert len(problems) == 2


def test_format_helpers() -> None:
    assert format_money(Decimal("1234.5")) == "£1,234.50"
    assert format_money(9.99, Currency.EUR) == "€9.99"
    assert format_date(date(2024, 3, 1)) == "01/03/2024"
