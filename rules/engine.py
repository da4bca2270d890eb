"""
Response Engine - Phrase matching and category dispatch
=======================================================

This module implements the core engine that classifies an incoming
utterance against an ordered list of categories and generates a reply
from the first category that matches.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from core.exceptions import TemplateError
from core.logging import get_logger
from .chance import RandomChoice

logger = get_logger("rules.engine")


class ReplyGenerator(Protocol):
    """Produces a reply without looking at the utterance."""

    def generate(self, chooser: RandomChoice) -> str:
        ...


def matches(utterance: str, phrases: Iterable[str]) -> bool:
    """
    Check whether any phrase occurs in the utterance, ignoring case.

    No trimming or punctuation normalization is applied; "?" in a
    phrase is a literal question mark.

    Args:
        utterance: Message to check
        phrases: Trigger phrases

    Returns:
        True on the first phrase contained in the utterance
    """
    utterance_lower = utterance.lower()
    for phrase in phrases:
        if phrase.lower() in utterance_lower:
            return True
    return False


@dataclass(frozen=True)
class Category:
    """
    A named group of trigger phrases sharing one reply generator.

    Attributes:
        name (str): Category identifier, e.g. "request-help"
        phrases (tuple): Trigger phrases, compared case-insensitively
        generator: Reply generator for this category
    """
    name: str
    phrases: Tuple[str, ...]
    generator: ReplyGenerator

    def __post_init__(self):
        object.__setattr__(self, "phrases", tuple(self.phrases))
        if not self.phrases:
            raise TemplateError(f"Category '{self.name}' has no trigger phrases")

    def matches(self, utterance: str) -> bool:
        return matches(utterance, self.phrases)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "phrases": list(self.phrases)}


def _as_text(utterance: Any) -> str:
    if utterance is None:
        return ""
    if isinstance(utterance, bytes):
        return utterance.decode("utf-8", errors="replace")
    if not isinstance(utterance, str):
        return str(utterance)
    return utterance


class ResponseEngine:
    """
    First-match-wins reply engine.

    Categories are tried strictly in the order given; there is no
    scoring. Unmatched utterances, including empty ones, go to the
    fallback generator.

    Example:
        engine = ResponseEngine(categories, StockReply(("I do not understand.",)))
        engine.respond("Can you help me?")
    """

    def __init__(
        self,
        categories: Sequence[Category],
        fallback: ReplyGenerator,
        chooser: Optional[RandomChoice] = None
    ):
        """
        Initialize response engine.

        Args:
            categories: Categories in priority order
            fallback: Generator used when no category matches
            chooser: Random choice helper (fresh unseeded one if omitted)
        """
        self.categories: Tuple[Category, ...] = tuple(categories)
        self.fallback = fallback
        self.chooser = chooser or RandomChoice()

    @classmethod
    def from_config(cls, engine_config) -> "ResponseEngine":
        """
        Build an engine from the engine section of the configuration.

        Args:
            engine_config: EngineConfig instance

        Returns:
            Engine over the configured catalog and fallback
        """
        from .catalog import load_catalog

        catalog = load_catalog(engine_config.categories_file or None)
        fallback = catalog.fallback(engine_config.fallback)
        engine = cls(
            catalog.categories,
            fallback,
            RandomChoice.seeded(engine_config.seed)
        )
        logger.info(
            f"Engine ready with {len(engine.categories)} categories, "
            f"fallback '{engine_config.fallback}'"
        )
        return engine

    def classify(
        self,
        utterance: Any,
        categories: Optional[Sequence[Category]] = None
    ) -> Optional[Category]:
        """
        Find the category an utterance is dispatched to.

        Args:
            utterance: Message to classify
            categories: Categories to try instead of the engine's own

        Returns:
            First matching Category, or None for the fallback path
        """
        text = _as_text(utterance)
        for category in self.categories if categories is None else categories:
            if category.matches(text):
                return category
        return None

    def respond(
        self,
        utterance: Any,
        categories: Optional[Sequence[Category]] = None
    ) -> str:
        """
        Generate a reply for an utterance.

        Args:
            utterance: Message to answer; None and non-strings are accepted
            categories: Categories to try instead of the engine's own

        Returns:
            Freshly generated reply
        """
        category = self.classify(utterance, categories)
        if category is None:
            logger.debug("No category matched, using fallback")
            return self.fallback.generate(self.chooser)

        logger.debug(f"Matched category '{category.name}'")
        return category.generator.generate(self.chooser)

    def category_names(self) -> List[str]:
        """Get category names in priority order."""
        return [c.name for c in self.categories]

    def get_category(self, name: str) -> Optional[Category]:
        for category in self.categories:
            if category.name == name:
                return category
        return None
