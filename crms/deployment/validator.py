"""
Schema Validator — structural and semantic validation of the raw artifact.

Validation is exhaustive, not fail-fast: a single pass reports every defect
in the document (field path + human-readable reason), so an operator can fix
a broken ``deployment.json`` in one edit rather than one error at a time.

Presence and type checks come from the pydantic models in
``crms.deployment.schema``; the cross-field invariants (default language is
supported, ID pattern compiles, enabled integrations name an endpoint,
offense codes are unique) are field validators on those same models, so they
are collected in the same pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from crms.deployment.schema import DeploymentConfig, SubcategoryForm

logger = logging.getLogger(__name__)

ROOT_PATH = "<root>"

_FORM_TAGS = frozenset(form.value for form in SubcategoryForm)


def format_path(loc: tuple[str | int, ...]) -> str:
    """
    Render a pydantic error location as an artifact path.

    ``("offenseCategories", 2, "subcategories", "records", 0, "name")``
    becomes ``offenseCategories[2].subcategories[0].name``; the variant tag
    pydantic inserts for the subcategory union is not part of the artifact.
    """
    path = ""
    previous: str | int | None = None
    for segment in loc:
        if isinstance(segment, int):
            path += f"[{segment}]"
        elif previous == "subcategories" and segment in _FORM_TAGS:
            continue
        else:
            path += f".{segment}" if path else segment
        previous = segment
    return path or ROOT_PATH


@dataclass(frozen=True)
class ValidationViolation:
    """One defect in the artifact."""

    path: str
    reason: str
    kind: str = "value_error"

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


@dataclass
class ValidationOutcome:
    """Result of validating a raw artifact: a typed config or the defect list."""

    config: DeploymentConfig | None
    violations: list[ValidationViolation] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.violations


class SchemaValidator:
    """Validates parsed artifact data against the deployment schema."""

    def validate(self, raw: Any) -> ValidationOutcome:
        """
        Validate ``raw`` (already-parsed JSON data) in one exhaustive pass.

        Returns:
            ValidationOutcome holding the frozen ``DeploymentConfig`` when the
            violation list is empty, otherwise ``config=None`` and every
            violation found.
        """
        try:
            config = DeploymentConfig.model_validate(raw)
        except ValidationError as exc:
            violations = [
                ValidationViolation(
                    path=format_path(tuple(error["loc"])),
                    reason=error["msg"],
                    kind=error["type"],
                )
                for error in exc.errors(include_url=False, include_input=False)
            ]
            logger.debug("Deployment artifact has %d violation(s)", len(violations))
            return ValidationOutcome(config=None, violations=violations)

        return ValidationOutcome(config=config)
