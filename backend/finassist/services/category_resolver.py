"""
Resolve a free-text category label (as emitted by an extraction backend) to one
of a tenant's active categories.

Tiers are evaluated in order and the first hit wins:
    1. exact      - case-insensitive name equality
    2. synonym    - vocabulary keyword found in the label, mapped target found in a category name
    3. substring  - label inside a category name, or a category name inside the label
    4. fallback   - the tenant's designated "Other" expense category

Resolution is a pure function of (label, catalog, vocabulary): no I/O, no hidden state.
Catalog order matters; callers pass the catalog sorted by name.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from ..enums import CategoryType, ResolutionMatch
from .category_vocabulary import CategoryVocabulary, load_category_vocabulary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryResolution:
    """Resolved category plus how it was found"""
    category: Optional[Any]
    match: ResolutionMatch
    label: str
    keyword: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.match == ResolutionMatch.FALLBACK

    @property
    def is_fuzzy(self) -> bool:
        return self.match in (ResolutionMatch.SYNONYM, ResolutionMatch.SUBSTRING)

    @property
    def is_unresolved(self) -> bool:
        return self.category is None


def _normalize(value: Optional[str]) -> str:
    return " ".join((value or "").split()).lower()


def _active(catalog: Iterable[Any]) -> List[Any]:
    return [c for c in catalog if not getattr(c, "is_deleted", False) and c.name]


def find_fallback_category(catalog: Iterable[Any], vocabulary: CategoryVocabulary) -> Optional[Any]:
    """The designated catch-all expense category, honoring the vocabulary's name order"""
    candidates = [c for c in _active(catalog) if c.type == CategoryType.EXPENSE]
    for fallback_name in vocabulary.fallback_names:
        for category in candidates:
            if _normalize(category.name) == fallback_name:
                return category
    return None


def resolve_category(
    label: Optional[str],
    catalog: Iterable[Any],
    vocabulary: Optional[CategoryVocabulary] = None,
) -> CategoryResolution:
    """
    Map `label` onto a category from `catalog`.

    Args:
        label: Category text from the extraction backend
        catalog: The tenant's categories (tombstoned rows are ignored)
        vocabulary: Keyword tables; defaults to the packaged vocabulary

    Returns:
        CategoryResolution. `category` is None only when nothing matched and the
        catalog has no fallback category, which means the tenant was mis-provisioned.
    """
    vocabulary = vocabulary or load_category_vocabulary()
    active = _active(catalog)
    wanted = _normalize(label)

    if wanted:
        # 1. Exact
        for category in active:
            if _normalize(category.name) == wanted:
                return CategoryResolution(category, ResolutionMatch.EXACT, label or "")

        # 2. Synonym
        for rule in vocabulary.synonyms:
            if not rule.matches(wanted):
                continue
            for target in rule.targets:
                for category in active:
                    if target in _normalize(category.name):
                        return CategoryResolution(category, ResolutionMatch.SYNONYM, label or "", keyword=rule.keyword)

        # 3. Substring, both directions
        for category in active:
            name = _normalize(category.name)
            if wanted in name or name in wanted:
                return CategoryResolution(category, ResolutionMatch.SUBSTRING, label or "")

    # 4. Fallback
    fallback = find_fallback_category(active, vocabulary)
    if fallback is not None:
        return CategoryResolution(fallback, ResolutionMatch.FALLBACK, label or "")

    return CategoryResolution(None, ResolutionMatch.UNRESOLVED, label or "")
