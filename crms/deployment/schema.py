"""
Deployment Schema — Pydantic models for the jurisdiction configuration artifact.

These models are the canonical shape of ``deployment.json``, the single file
each country customizes when deploying CRMS. They govern national-ID
validation, the offense taxonomy, police hierarchy, localization, telecom
delivery and the external integration slots.

Every model is frozen and every sequence is a tuple: once the artifact has
been validated, the aggregate is read-only for the lifetime of the process.

Field names are snake_case in Python and camelCase in the artifact; both are
accepted on input and the artifact spelling is used on output.

Cross-field invariants are attached at the narrowest field they concern so
that pydantic's single pass reports all of them, even when an unrelated part
of the document is broken.
"""

from __future__ import annotations

import enum
import re
from collections import Counter
from typing import Annotated, Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    SecretStr,
    StrictBool,
    StrictInt,
    StringConstraints,
    Tag,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
CountryCode = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^[A-Z]{2,3}$")]
CurrencyCode = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^[A-Z]{3}$")]
# Patterns are kept verbatim; surrounding whitespace is part of the pattern.
PatternStr = Annotated[str, StringConstraints(min_length=1)]

REDACTED = "**********"


# ════════════════════════════════════════════════════════════════
# Enumerations
# ════════════════════════════════════════════════════════════════


class TimeFormat(str, enum.Enum):
    """Clock convention used when rendering times."""

    H12 = "12h"
    H24 = "24h"


class PoliceStructureType(str, enum.Enum):
    """How the national police service is organized."""

    CENTRALIZED = "centralized"
    FEDERAL = "federal"
    REGIONAL = "regional"


class SubcategoryForm(str, enum.Enum):
    """Which of the two accepted shapes an offense category's subcategories use."""

    NAMES = "names"  # ["Petty", "Grand"]
    RECORDS = "records"  # [{"code": "T1", "name": "Petty"}]


class IntegrationSlot(str, enum.Enum):
    """Named external-system connection points."""

    NATIONAL_ID_REGISTRY = "nationalIdRegistry"
    COURT_SYSTEM = "courtSystem"


# ════════════════════════════════════════════════════════════════
# Base
# ════════════════════════════════════════════════════════════════


class SchemaModel(BaseModel):
    """Frozen model accepting camelCase artifact keys; unknown keys are ignored."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


def _duplicates(values: Any) -> list[str]:
    counts = Counter(values)
    return [value for value, count in counts.items() if count > 1]


def _reject_duplicates(values: tuple[str, ...], what: str) -> tuple[str, ...]:
    dupes = _duplicates(values)
    if dupes:
        raise PydanticCustomError(
            "duplicate_entry",
            "duplicate {what}: {dupes}",
            {"what": what, "dupes": ", ".join(repr(d) for d in dupes)},
        )
    return values


# ════════════════════════════════════════════════════════════════
# Identity, Language, Currency
# ════════════════════════════════════════════════════════════════


class NationalIdSystem(SchemaModel):
    """The jurisdiction's identity document (e.g. Sierra Leone's NIN)."""

    type: NonEmptyStr = Field(description="Free-form identifier, e.g. 'NIN'")
    display_name: NonEmptyStr = Field(description="Name shown to officers on forms")
    format: NonEmptyStr = Field(description="Human-readable pattern hint, e.g. 'XXXXXXXX'")
    validation_regex: PatternStr = Field(description="Pattern a valid ID must fully match")
    length: Annotated[StrictInt, Field(gt=0)] = Field(
        description="Exact number of characters in a valid ID"
    )

    @field_validator("validation_regex")
    @classmethod
    def _regex_compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise PydanticCustomError(
                "invalid_regex",
                "validationRegex does not compile: {error}",
                {"error": str(exc)},
            ) from exc
        return value


class Language(SchemaModel):
    """Language and date/time conventions."""

    # Declared before ``default`` so the membership check below can see it.
    supported: tuple[NonEmptyStr, ...] = Field(min_length=1)
    default: NonEmptyStr
    date_format: NonEmptyStr = Field(description="Token pattern, e.g. 'DD/MM/YYYY'")
    time_format: TimeFormat

    @field_validator("supported")
    @classmethod
    def _supported_unique(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _reject_duplicates(value, "language tag")

    @field_validator("default")
    @classmethod
    def _default_is_supported(cls, value: str, info: ValidationInfo) -> str:
        supported = info.data.get("supported")
        if supported is not None and value not in supported:
            raise PydanticCustomError(
                "language_not_supported",
                "default language '{tag}' is not one of the supported languages ({supported})",
                {"tag": value, "supported": ", ".join(supported)},
            )
        return value


class Currency(SchemaModel):
    code: CurrencyCode
    symbol: NonEmptyStr
    name: NonEmptyStr


# ════════════════════════════════════════════════════════════════
# Police & Legal
# ════════════════════════════════════════════════════════════════


class PoliceStructure(SchemaModel):
    """
    Police hierarchy.

    ``levels`` runs from the outermost tier inwards. ``ranks`` runs from the
    most junior rank to the most senior; seniority comparisons depend on it.
    """

    type: PoliceStructureType
    levels: tuple[NonEmptyStr, ...] = Field(min_length=1)
    ranks: tuple[NonEmptyStr, ...] = Field(min_length=1)

    @field_validator("levels")
    @classmethod
    def _levels_unique(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _reject_duplicates(value, "hierarchy level")

    @field_validator("ranks")
    @classmethod
    def _ranks_unique(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _reject_duplicates(value, "rank")


class LegalFramework(SchemaModel):
    """Citations of the statutes the deployment operates under (informational)."""

    data_protection_act: NonEmptyStr
    penal_code: NonEmptyStr
    evidence_act: NonEmptyStr


# ════════════════════════════════════════════════════════════════
# Offense Taxonomy
# ════════════════════════════════════════════════════════════════


class OffenseSubcategory(SchemaModel):
    code: NonEmptyStr | None = None
    name: NonEmptyStr


def _subcategory_form(value: Any) -> str:
    """Pick the variant tag for raw or already-parsed subcategories."""
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return SubcategoryForm.NAMES.value
    return SubcategoryForm.RECORDS.value


Subcategories = Annotated[
    Union[
        Annotated[tuple[NonEmptyStr, ...], Tag(SubcategoryForm.NAMES.value)],
        Annotated[tuple[OffenseSubcategory, ...], Tag(SubcategoryForm.RECORDS.value)],
    ],
    Discriminator(_subcategory_form),
]


class OffenseCategory(SchemaModel):
    """
    A penal-code offense category.

    ``subcategories`` is either a list of plain names or a list of
    ``{code?, name}`` records. Both forms are permanent, first-class inputs;
    the Offense Catalog presents them to consumers in one shape.
    """

    code: NonEmptyStr = Field(description="Unique key within the deployment")
    name: NonEmptyStr
    subcategories: Subcategories

    @field_validator("subcategories")
    @classmethod
    def _subcategory_codes_unique(cls, value: tuple[Any, ...]) -> tuple[Any, ...]:
        codes = [
            item.code
            for item in value
            if isinstance(item, OffenseSubcategory) and item.code is not None
        ]
        dupes = _duplicates(codes)
        if dupes:
            raise PydanticCustomError(
                "duplicate_subcategory_code",
                "duplicate subcategory code(s) within category: {dupes}",
                {"dupes": ", ".join(repr(d) for d in dupes)},
            )
        return value

    @property
    def subcategory_form(self) -> SubcategoryForm:
        return SubcategoryForm(_subcategory_form(self.subcategories))


# ════════════════════════════════════════════════════════════════
# Telecom & Integrations
# ════════════════════════════════════════════════════════════════


class Telecom(SchemaModel):
    """
    USSD and SMS delivery.

    ``sms_api_endpoint`` is optional; older artifacts without it stay valid
    and simply have SMS delivery disabled.
    """

    ussd_gateways: tuple[NonEmptyStr, ...] = Field(
        description="Telecom operators carrying the USSD service; may be empty"
    )
    ussd_shortcode: NonEmptyStr = Field(description="e.g. '*456#'")
    sms_provider: NonEmptyStr
    sms_api_key: SecretStr
    sms_api_endpoint: NonEmptyStr | None = None


class Integration(SchemaModel):
    """
    An integration slot.

    When enabled it must name an http(s) endpoint. A disabled slot may keep
    whatever endpoint it was last given.
    """

    enabled: StrictBool
    api_endpoint: NonEmptyStr | None = Field(default=None, validate_default=True)
    api_key: SecretStr | None = None

    @field_validator("api_endpoint")
    @classmethod
    def _endpoint_when_enabled(cls, value: str | None, info: ValidationInfo) -> str | None:
        if value is None:
            if info.data.get("enabled") is True:
                raise PydanticCustomError(
                    "endpoint_required",
                    "apiEndpoint is required when the integration is enabled",
                )
            return value
        if info.data.get("enabled") is True and not value.startswith(("http://", "https://")):
            raise PydanticCustomError(
                "endpoint_scheme",
                "apiEndpoint must be an http:// or https:// URL",
            )
        return value


class Integrations(SchemaModel):
    national_id_registry: Integration
    court_system: Integration

    def slot(self, slot: IntegrationSlot) -> Integration:
        if slot is IntegrationSlot.NATIONAL_ID_REGISTRY:
            return self.national_id_registry
        return self.court_system


# ════════════════════════════════════════════════════════════════
# Root Aggregate
# ════════════════════════════════════════════════════════════════


class DeploymentConfig(SchemaModel):
    """
    The complete deployment artifact for one jurisdiction.

    Exactly one instance exists per running process (see ``ConfigLoader``).
    """

    country_code: CountryCode = Field(description="ISO 3166-1 style code, e.g. 'SLE'")
    country_name: NonEmptyStr
    capital: NonEmptyStr
    national_id_system: NationalIdSystem
    language: Language
    currency: Currency
    police_structure: PoliceStructure
    legal_framework: LegalFramework
    offense_categories: tuple[OffenseCategory, ...]
    telecom: Telecom
    integrations: Integrations

    @field_validator("offense_categories")
    @classmethod
    def _category_codes_unique(
        cls, value: tuple[OffenseCategory, ...]
    ) -> tuple[OffenseCategory, ...]:
        dupes = _duplicates(category.code for category in value)
        if dupes:
            raise PydanticCustomError(
                "duplicate_category_code",
                "duplicate offense category code(s): {dupes}",
                {"dupes": ", ".join(repr(d) for d in dupes)},
            )
        return value

    def redacted_view(self) -> dict[str, Any]:
        """
        Artifact-shaped, JSON-compatible view with every secret masked.

        This is the only representation of the configuration that may leave
        the process (API responses, CLI output, logs).
        """
        return self.model_dump(mode="json", by_alias=True)
