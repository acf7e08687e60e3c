"""
Offense Catalog — indexed view of the configured offense taxonomy.

Categories are kept in configuration order and indexed by code. Whichever
form a category's subcategories were configured in (plain names or
``{code?, name}`` records), the catalog hands out ``Subcategory`` records,
with ``code=None`` for plain names.

Lookups are exact and case-sensitive. A miss returns ``None``; it is an
ordinary outcome for the caller to branch on, not an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from crms.deployment.schema import OffenseCategory, OffenseSubcategory, SubcategoryForm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Subcategory:
    """Normalized subcategory."""

    code: str | None
    name: str

    def to_dict(self) -> dict[str, str | None]:
        return {"code": self.code, "name": self.name}


def normalize_subcategories(category: OffenseCategory) -> tuple[Subcategory, ...]:
    if category.subcategory_form is SubcategoryForm.NAMES:
        return tuple(Subcategory(code=None, name=name) for name in category.subcategories)
    return tuple(
        Subcategory(code=record.code, name=record.name)
        for record in category.subcategories
        if isinstance(record, OffenseSubcategory)
    )


class OffenseCatalog:
    """Read-only index over the deployment's offense categories."""

    def __init__(self, categories: tuple[OffenseCategory, ...] | list[OffenseCategory]) -> None:
        self._categories: tuple[OffenseCategory, ...] = tuple(categories)
        self._by_code: dict[str, OffenseCategory] = {}
        self._by_name: dict[str, OffenseCategory] = {}
        self._subcategories: dict[str, tuple[Subcategory, ...]] = {}

        for category in self._categories:
            if category.code in self._by_code:
                raise ValueError(f"Duplicate offense category code: {category.code!r}")
            self._by_code[category.code] = category
            # Names are not required to be unique; the first one wins.
            self._by_name.setdefault(category.name, category)
            self._subcategories[category.code] = normalize_subcategories(category)

        logger.debug("Offense catalog indexed %d categories", len(self._categories))

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def all_categories(self) -> tuple[OffenseCategory, ...]:
        """Every category, in configuration order."""
        return self._categories

    def codes(self) -> tuple[str, ...]:
        return tuple(category.code for category in self._categories)

    def lookup_by_code(self, code: str) -> OffenseCategory | None:
        return self._by_code.get(code)

    def lookup_by_name(self, name: str) -> OffenseCategory | None:
        return self._by_name.get(name)

    def is_valid_category(self, name: str) -> bool:
        """Whether ``name`` is a configured category name (booking forms submit names)."""
        return name in self._by_name

    def subcategories_of(self, category_code: str) -> tuple[Subcategory, ...] | None:
        """Normalized subcategories in configuration order, or None for an unknown code."""
        return self._subcategories.get(category_code)

    def subcategory_names(self, category_code: str) -> tuple[str, ...] | None:
        subcategories = self.subcategories_of(category_code)
        if subcategories is None:
            return None
        return tuple(sub.name for sub in subcategories)
