"""
National ID Validator — runtime check derived from the configured ID system.

A candidate is valid iff its length equals the configured ``length`` AND it
fully matches ``validationRegex``. Both checks always run: a permissive or
unanchored pattern must not let through an ID of the wrong length.
"""

from __future__ import annotations

import re

from crms.deployment.schema import NationalIdSystem


class InvalidRegex(ValueError):
    """The configured validation pattern does not compile."""


class NationalIdValidator:
    """
    Compiled national-ID check for one deployment.

    Built once from the loaded ``NationalIdSystem`` and shared read-only
    between request handlers.
    """

    def __init__(self, system: NationalIdSystem) -> None:
        try:
            self._pattern = re.compile(system.validation_regex)
        except re.error as exc:
            raise InvalidRegex(
                f"{system.display_name} validationRegex does not compile: {exc}"
            ) from exc
        self._system = system

    @classmethod
    def from_system(cls, system: NationalIdSystem) -> NationalIdValidator:
        return cls(system)

    @property
    def display_name(self) -> str:
        return self._system.display_name

    @property
    def format_hint(self) -> str:
        return self._system.format

    @property
    def length(self) -> int:
        return self._system.length

    def is_valid(self, candidate: object) -> bool:
        """True iff ``candidate`` has the configured length and fully matches the pattern."""
        if not isinstance(candidate, str):
            return False
        if len(candidate) != self._system.length:
            return False
        return self._pattern.fullmatch(candidate) is not None

    def explain(self, candidate: object) -> str | None:
        """Form-ready reason why ``candidate`` is rejected, or None if it is valid."""
        if not isinstance(candidate, str):
            return f"{self.display_name} must be text"
        if len(candidate) != self._system.length:
            return (
                f"{self.display_name} must be exactly {self._system.length} characters "
                f"(expected format {self.format_hint})"
            )
        if self._pattern.fullmatch(candidate) is None:
            return f"Invalid {self.display_name} format (expected {self.format_hint})"
        return None

    def format(self, candidate: str) -> str:
        # The artifact's ``format`` is a hint for people, not a display template.
        return candidate
