"""
Localization Resolver — date, time and currency rendering for the deployment.

Formatting is driven entirely by the artifact: ``language.dateFormat`` (a
token pattern such as ``DD/MM/YYYY``), ``language.timeFormat`` (12h/24h) and
the configured currency. Callers may pass an explicit language tag; it must
be one of ``language.supported``. Without one, the default language applies.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from crms.deployment.schema import Currency, Language, TimeFormat

# E.164: optional '+', country code without a leading zero, at most 15 digits.
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")

DATE_TOKEN_PATTERN = re.compile(r"YYYY|YY|MMMM|MMM|MM|M|DD|D")

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_CENTS = Decimal("0.01")


class UnsupportedLanguage(ValueError):
    """A language override that the deployment does not support."""


def render_date_pattern(pattern: str, value: date) -> str:
    """Substitute date tokens in ``pattern``; everything else is literal."""

    def _token(match: re.Match[str]) -> str:
        token = match.group(0)
        if token == "YYYY":
            return f"{value.year:04d}"
        if token == "YY":
            return f"{value.year % 100:02d}"
        if token == "MMMM":
            return MONTH_NAMES[value.month - 1]
        if token == "MMM":
            return MONTH_NAMES[value.month - 1][:3]
        if token == "MM":
            return f"{value.month:02d}"
        if token == "M":
            return str(value.month)
        if token == "DD":
            return f"{value.day:02d}"
        return str(value.day)

    return DATE_TOKEN_PATTERN.sub(_token, pattern)


class LocalizationResolver:
    """Formatting rules for one deployment, shared read-only after startup."""

    def __init__(self, language: Language, currency: Currency) -> None:
        self._language = language
        self._currency = currency

    @property
    def default_language(self) -> str:
        return self._language.default

    @property
    def supported_languages(self) -> tuple[str, ...]:
        return self._language.supported

    @property
    def date_format(self) -> str:
        return self._language.date_format

    @property
    def time_format(self) -> TimeFormat:
        return self._language.time_format

    @property
    def phone_pattern(self) -> re.Pattern[str]:
        return PHONE_PATTERN

    def is_supported_language(self, tag: str) -> bool:
        """Exact membership in ``language.supported``; no negotiation or fallback."""
        return tag in self._language.supported

    def resolve_language(self, tag: str | None = None) -> str:
        if tag is None:
            return self._language.default
        if not self.is_supported_language(tag):
            raise UnsupportedLanguage(
                f"Language {tag!r} is not supported by this deployment "
                f"(supported: {', '.join(self._language.supported)})"
            )
        return tag

    def format_date(self, instant: date, language: str | None = None) -> str:
        self.resolve_language(language)
        return render_date_pattern(self._language.date_format, instant)

    def format_time(self, instant: datetime | time, language: str | None = None) -> str:
        self.resolve_language(language)
        if self._language.time_format is TimeFormat.H24:
            return f"{instant.hour:02d}:{instant.minute:02d}"
        hour = instant.hour % 12 or 12
        suffix = "AM" if instant.hour < 12 else "PM"
        return f"{hour}:{instant.minute:02d} {suffix}"

    def format_datetime(self, instant: datetime, language: str | None = None) -> str:
        return f"{self.format_date(instant, language)} {self.format_time(instant, language)}"

    def format_currency(
        self,
        amount: Decimal | int | float | str,
        language: str | None = None,
        *,
        with_code: bool = False,
    ) -> str:
        """
        Render ``amount`` with the configured symbol, e.g. ``Le1,234.50``.

        Raises:
            ValueError: ``amount`` is not a finite number.
            UnsupportedLanguage: ``language`` is not supported.
        """
        self.resolve_language(language)
        try:
            value = Decimal(str(amount))
        except InvalidOperation as exc:
            raise ValueError(f"Not a monetary amount: {amount!r}") from exc
        if not value.is_finite():
            raise ValueError(f"Not a monetary amount: {amount!r}")
        value = value.quantize(_CENTS, rounding=ROUND_HALF_UP)
        sign = "-" if value < 0 else ""
        text = f"{sign}{self._currency.symbol}{abs(value):,.2f}"
        if with_code:
            text = f"{text} {self._currency.code}"
        return text
