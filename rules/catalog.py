"""
Catalog - Built-in categories, fragment sets and fallback replies
=================================================================

The catalog is plain data. It is turned into immutable Category,
FragmentSet and template objects once at startup and handed to the
ResponseEngine. A YAML file with the same layout can replace or extend
the built-in catalog:

    fragments:
      punctuation: ["!", ".", "..."]
    categories:
      - name: request-help
        phrases: ["can you help me?"]
        template: "{help_opener} I am {help_negator} {help_descriptor}{punctuation}"
    fallback:
      stock: ["I do not understand."]

Fragment sets and fallback entries from the file are merged over the
built-in ones. A "categories" list in the file replaces the built-in list.
"""

import copy
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from core.exceptions import TemplateError
from core.logging import get_logger
from .engine import Category
from .templates import DeflectionReply, FragmentSet, ReplyTemplate, StockReply

logger = get_logger("rules.catalog")


DEFAULT_CATALOG: Dict[str, Any] = {
    "fragments": {
        "punctuation": ["!", ".", "..."],

        "help_opener": ["Hmmm", "Ah!", "..."],
        "help_negator": ["not", "kind of"],
        "help_descriptor": ["your toy", "tired", "busy", "miserable", "no", "confused"],

        "sympathy_hedge": ["maybe", "no", "yeah"],
        "sympathy_subject": ["It", "the pain"],
        "sympathy_ache": ["hurts", "pains", "lingers"],

        "claim_murmur": ["mmmmh", "uuuuuuh", "yeah"],
        "claim_retort": ["sure", "of course", "you"],
        "claim_verb": ["imagining", "thinking", "believing"],

        "deflection_opener": ["uuuuuh", "Hmmm", "Ok"],
        "deflection_intensifier": ["avidly", "immensely", "eagerly", "anxiously"],
        "deflection_mood": ["superficial", "mean", "joyful", "negative", "pickled", "angry"],
        "deflection_apology": ["I am sorry", "Excuse me", "Eh..."],
        "deflection_stance": ["not", "indeed"],
        "deflection_relation": ["understand", "share the same worldview as", "empathise with"],
        "deflection_assent": ["YES", "Ok", "Zzzzz"],
    },
    # Priority order: the first matching category wins
    "categories": [
        {
            "name": "request-help",
            "phrases": ["can you help me?", "can you play with me?", "when are you free next?"],
            "template": "{help_opener} I am {help_negator} {help_descriptor}{punctuation}",
        },
        {
            "name": "sympathy-check",
            "phrases": [
                "are you feeling any better?",
                "does your arm still hurts?",
                "is your forehead doing any better?",
            ],
            "template": "{sympathy_hedge} {sympathy_subject} still {sympathy_ache} me{punctuation}",
        },
        {
            "name": "fantastical-claim",
            "phrases": ["can you fly?", "is your heart made out of strings?", "can you make me a billionaire?"],
            "template": "{claim_murmur} {claim_retort} keep {claim_verb} that{punctuation}",
        },
    ],
    "fallback": {
        "stock": [
            "Sorry, come again.",
            "I do not understand.",
            "Can you repeat.",
            "No comprendo...",
            "Ne me quitte pas!",
        ],
        "deflection": [
            "{deflection_opener} don't be {?deflection_intensifier} {deflection_mood}{punctuation}",
            "{deflection_apology} I do {deflection_stance} {deflection_relation} you{punctuation}",
            "{deflection_assent}{punctuation}{punctuation}{punctuation}",
        ],
    },
}

FALLBACK_KINDS = ("stock", "deflection")


@dataclass(frozen=True)
class Catalog:
    """
    Immutable set of categories and fallback generators.

    Attributes:
        categories (tuple): Categories in priority order
        fragments (mapping): Every declared fragment set by name, read-only
        stock (StockReply): Fixed non-understanding replies
        deflection (DeflectionReply): Composed non-understanding replies
    """
    categories: Tuple[Category, ...]
    fragments: Mapping[str, FragmentSet] = field(hash=False)
    stock: StockReply
    deflection: DeflectionReply

    def __post_init__(self):
        object.__setattr__(self, "fragments", MappingProxyType(dict(self.fragments)))

    def fallback(self, kind: str = "stock"):
        """Get the fallback generator named kind."""
        if kind == "stock":
            return self.stock
        if kind == "deflection":
            return self.deflection
        raise TemplateError(f"Unknown fallback generator: {kind}", {"known": list(FALLBACK_KINDS)})


def _string_list(value: Any, where: str) -> list:
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise TemplateError(f"{where} must be a list of strings")
    return list(value)


def build_catalog(data: Dict[str, Any]) -> Catalog:
    """
    Build a Catalog from plain data, merged over the built-in catalog.

    Args:
        data: Mapping with optional "fragments", "categories", "fallback" keys

    Returns:
        Catalog instance

    Raises:
        TemplateError: If the data is malformed
    """
    if not isinstance(data, dict):
        raise TemplateError("Catalog must be a mapping")

    merged = copy.deepcopy(DEFAULT_CATALOG)

    user_fragments = data.get("fragments") or {}
    if not isinstance(user_fragments, dict):
        raise TemplateError("'fragments' must be a mapping of name to list")
    merged["fragments"].update(user_fragments)

    if "categories" in data:
        if not isinstance(data["categories"], list):
            raise TemplateError("'categories' must be a list")
        merged["categories"] = data["categories"]

    user_fallback = data.get("fallback") or {}
    if not isinstance(user_fallback, dict):
        raise TemplateError("'fallback' must be a mapping")
    merged["fallback"].update(user_fallback)

    for name in merged["fragments"]:
        if not isinstance(name, str) or not re.fullmatch(r"\w+", name):
            raise TemplateError(
                f"Invalid fragment set name: {name!r}",
                {"hint": "use letters, digits and underscores"}
            )

    fragments = {
        name: FragmentSet(name, _string_list(options, f"Fragment set '{name}'"))
        for name, options in merged["fragments"].items()
    }

    categories = []
    seen = set()
    for entry in merged["categories"]:
        if not isinstance(entry, dict) or "name" not in entry or "template" not in entry:
            raise TemplateError("Each category needs 'name', 'phrases' and 'template'", {"entry": entry})
        name = str(entry["name"])
        if name in seen:
            raise TemplateError(f"Duplicate category: {name}")
        seen.add(name)

        phrases = _string_list(entry.get("phrases", []), f"Phrases of '{name}'")
        template = ReplyTemplate(str(entry["template"]), fragments, name=name)
        categories.append(Category(name, phrases, template))

    fallback = merged["fallback"]
    stock = StockReply(_string_list(fallback.get("stock", []), "Stock fallback"))
    deflection = DeflectionReply(tuple(
        ReplyTemplate(content, fragments, name=f"deflection-{i}")
        for i, content in enumerate(_string_list(fallback.get("deflection", []), "Deflection fallback"))
    ))

    return Catalog(tuple(categories), fragments, stock, deflection)


def load_catalog(path: Optional[str] = None) -> Catalog:
    """
    Load the catalog from a YAML file, or the built-in one.

    Args:
        path: YAML file path; None for the built-in catalog

    Returns:
        Catalog instance

    Raises:
        TemplateError: If the file cannot be read or is malformed
    """
    if path is None:
        return build_catalog({})

    catalog_path = Path(path)
    try:
        with open(catalog_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise TemplateError(f"Failed to parse catalog file: {e}", {"path": str(catalog_path)})
    except IOError as e:
        raise TemplateError(f"Failed to read catalog file: {e}", {"path": str(catalog_path)})

    catalog = build_catalog(data)
    logger.info(f"Loaded {len(catalog.categories)} categories from {catalog_path}")
    return catalog


def write_default_catalog(path: str) -> Path:
    """
    Write the built-in catalog as YAML, for editing.

    Args:
        path: Destination file

    Returns:
        Path written
    """
    catalog_path = Path(path)
    catalog_path.parent.mkdir(parents=True, exist_ok=True)

    with open(catalog_path, "w", encoding="utf-8") as f:
        yaml.dump(DEFAULT_CATALOG, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    return catalog_path
