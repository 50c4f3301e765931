"""
Category vocabulary: the ordered keyword tables used to map free-text labels onto
a tenant's categories, pick icons for new categories and decide their polarity.

The tables live in a versioned JSON file so resolution order can be audited and
tested without touching code. Every table is a list; list position is the
evaluation order.
"""

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_VOCABULARY_PATH = Path(__file__).resolve().parent.parent / "data" / "category_vocabulary.json"


@dataclass(frozen=True)
class SynonymRule:
    keyword: str
    targets: Tuple[str, ...]

    def matches(self, label: str) -> bool:
        """Whole-word match of the keyword inside an already lower-cased label"""
        return re.search(rf"\b{re.escape(self.keyword)}\b", label) is not None


@dataclass(frozen=True)
class CategoryVocabulary:
    version: int
    synonyms: Tuple[SynonymRule, ...]
    fallback_names: Tuple[str, ...]
    icons: Tuple[Tuple[str, str], ...]
    default_icon: str
    income_keywords: Tuple[str, ...]

    def icon_for(self, name: str) -> str:
        lowered = name.lower()
        for keyword, icon in self.icons:
            if keyword in lowered:
                return icon
        return self.default_icon

    def is_income_name(self, name: str) -> bool:
        lowered = name.lower()
        return any(keyword in lowered for keyword in self.income_keywords)

    def is_fallback_name(self, name: str) -> bool:
        return name.strip().lower() in self.fallback_names


def parse_vocabulary(raw: dict) -> CategoryVocabulary:
    """Build a CategoryVocabulary from the decoded JSON document"""
    if "version" not in raw:
        raise ValueError("Category vocabulary is missing a 'version' key")

    synonyms: List[SynonymRule] = []
    for entry in raw.get("synonyms", []):
        keyword = str(entry["keyword"]).strip().lower()
        targets = tuple(str(t).strip().lower() for t in entry.get("targets", []) if str(t).strip())
        if keyword and targets:
            synonyms.append(SynonymRule(keyword=keyword, targets=targets))

    icons = tuple(
        (str(entry["keyword"]).strip().lower(), str(entry["icon"]))
        for entry in raw.get("icons", [])
    )

    return CategoryVocabulary(
        version=int(raw["version"]),
        synonyms=tuple(synonyms),
        fallback_names=tuple(str(n).strip().lower() for n in raw.get("fallback_names", ["other"])),
        icons=icons,
        default_icon=raw.get("default_icon", "📁"),
        income_keywords=tuple(str(k).strip().lower() for k in raw.get("income_keywords", [])),
    )


@lru_cache(maxsize=8)
def load_category_vocabulary(path: Optional[str] = None) -> CategoryVocabulary:
    """Load (once per path) the vocabulary file; defaults to the packaged one"""
    vocabulary_path = Path(path) if path else DEFAULT_VOCABULARY_PATH
    with vocabulary_path.open(encoding="utf-8") as fh:
        vocabulary = parse_vocabulary(json.load(fh))
    logger.info(
        f"Loaded category vocabulary v{vocabulary.version} from {vocabulary_path} "
        f"({len(vocabulary.synonyms)} synonym rules)"
    )
    return vocabulary
