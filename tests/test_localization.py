"""
Tests for the Localization Resolver.

Validates:
- Date rendering follows the configured token pattern
- 12h/24h time rendering
- Currency rendering with the configured symbol
- Language overrides must be supported
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal

import pytest

from crms.deployment.localization import (
    PHONE_PATTERN,
    LocalizationResolver,
    UnsupportedLanguage,
    render_date_pattern,
)
from crms.deployment.schema import Currency, Language


def _resolver(date_format: str = "DD/MM/YYYY", time_format: str = "24h") -> LocalizationResolver:
    language = Language.model_validate({
        "default": "en",
        "supported": ["en", "kri"],
        "dateFormat": date_format,
        "timeFormat": time_format,
    })
    currency = Currency.model_validate({"code": "SLE", "symbol": "Le", "name": "Leone"})
    return LocalizationResolver(language, currency)


class TestDatePatterns:
    def test_day_month_year(self):
        assert render_date_pattern("DD/MM/YYYY", date(2024, 3, 5)) == "05/03/2024"

    def test_month_first(self):
        assert render_date_pattern("MM/DD/YYYY", date(2024, 3, 5)) == "03/05/2024"

    def test_month_names(self):
        assert render_date_pattern("D MMMM YYYY", date(2024, 3, 5)) == "5 March 2024"
        assert render_date_pattern("MMM D, YY", date(2009, 12, 25)) == "Dec 25, 09"

    def test_iso_style(self):
        assert render_date_pattern("YYYY-MM-DD", date(2024, 11, 30)) == "2024-11-30"

    def test_unpadded_tokens(self):
        assert render_date_pattern("D.M.YYYY", date(2024, 1, 9)) == "9.1.2024"


class TestLocalizationResolver:
    def setup_method(self):
        self.resolver = _resolver()

    def test_format_date(self):
        assert self.resolver.format_date(date(2024, 3, 5)) == "05/03/2024"

    def test_format_date_accepts_datetime(self):
        assert self.resolver.format_date(datetime(2024, 3, 5, 18, 45)) == "05/03/2024"

    def test_format_time_24h(self):
        assert self.resolver.format_time(time(18, 5)) == "18:05"
        assert self.resolver.format_time(time(0, 0)) == "00:00"

    def test_format_time_12h(self):
        resolver = _resolver(time_format="12h")
        assert resolver.format_time(time(18, 5)) == "6:05 PM"
        assert resolver.format_time(time(0, 30)) == "12:30 AM"
        assert resolver.format_time(time(12, 0)) == "12:00 PM"
        assert resolver.format_time(time(9, 7)) == "9:07 AM"

    def test_format_datetime(self):
        assert self.resolver.format_datetime(datetime(2024, 3, 5, 9, 7)) == "05/03/2024 09:07"

    def test_format_currency(self):
        assert self.resolver.format_currency(1234.5) == "Le1,234.50"
        assert self.resolver.format_currency(Decimal("0.005")) == "Le0.01"
        assert self.resolver.format_currency("-75") == "-Le75.00"

    @pytest.mark.parametrize("amount", ["not a number", float("nan"), float("inf"), "-Infinity"])
    def test_format_currency_rejects_non_amounts(self, amount):
        with pytest.raises(ValueError, match="Not a monetary amount"):
            self.resolver.format_currency(amount)

    def test_format_currency_with_code(self):
        assert self.resolver.format_currency(1000, with_code=True) == "Le1,000.00 SLE"

    def test_default_language(self):
        assert self.resolver.default_language == "en"
        assert self.resolver.resolve_language() == "en"

    def test_supported_override(self):
        assert self.resolver.resolve_language("kri") == "kri"
        assert self.resolver.format_date(date(2024, 3, 5), "kri") == "05/03/2024"

    def test_unsupported_override(self):
        assert not self.resolver.is_supported_language("fr")
        with pytest.raises(UnsupportedLanguage, match="'fr'"):
            self.resolver.format_date(date(2024, 3, 5), "fr")

    def test_language_match_is_exact(self):
        assert not self.resolver.is_supported_language("EN")
        assert not self.resolver.is_supported_language("en-GB")


class TestPhonePattern:
    @pytest.mark.parametrize("number", ["+23276123456", "23276123456", "+14155550100"])
    def test_valid_numbers(self, number):
        assert PHONE_PATTERN.match(number)

    @pytest.mark.parametrize("number", ["076123456", "+0123456", "+2327612345678901", "+232 76 123456", ""])
    def test_invalid_numbers(self, number):
        assert not PHONE_PATTERN.match(number)
