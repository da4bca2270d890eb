"""
Reply Templates - Fragment sets and randomized reply composition
================================================================

A reply template is plain text with placeholders naming fragment sets:

    "{help_opener} I am {help_negator} {help_descriptor}{punctuation}"

- {name}  - pick one fragment from the set "name"
- {?name} - flip a coin, then either pick from "name" or leave it out

Whitespace in the rendered text is collapsed to single spaces, so an
omitted optional fragment never leaves a gap. Templates never see the
utterance they answer.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Any, List, Mapping, Tuple

from core.exceptions import EmptyAlternativeSet, TemplateError
from .chance import RandomChoice

PLACEHOLDER = re.compile(r"\{(\?)?(\w+)\}")
# Anything still brace-delimited once valid placeholders are removed
MALFORMED = re.compile(r"\{[^{}]*\}")


@dataclass(frozen=True)
class FragmentSet:
    """
    Named, ordered set of interchangeable words or phrases.

    Attributes:
        name (str): Name used by template placeholders
        options (tuple): The alternatives, never empty
    """
    name: str
    options: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "options", tuple(self.options))
        if not self.options:
            raise EmptyAlternativeSet(
                f"Fragment set '{self.name}' has no options",
                {"fragment_set": self.name}
            )

    def __contains__(self, fragment: str) -> bool:
        return fragment in self.options

    def __len__(self) -> int:
        return len(self.options)


@dataclass(frozen=True)
class ReplyTemplate:
    """
    A reply grammar over a fixed group of fragment sets.

    Only the fragment sets the content refers to are kept, so a
    template can never emit words from another category's sets.

    Attributes:
        content (str): Template text with {name} / {?name} placeholders
        fragments (mapping): Read-only fragment sets by name
        name (str): Optional template name
    """
    content: str
    fragments: Mapping[str, FragmentSet] = field(default_factory=dict, hash=False)
    name: str = ""

    def __post_init__(self):
        malformed = MALFORMED.findall(PLACEHOLDER.sub("", self.content))
        if malformed:
            raise TemplateError(
                f"Template '{self.name or self.content}' has malformed placeholders",
                {"placeholders": malformed}
            )

        referenced = self.placeholders()
        missing = [n for n, _ in referenced if n not in self.fragments]
        if missing:
            raise TemplateError(
                f"Template '{self.name or self.content}' refers to undeclared fragment sets",
                {"missing": sorted(set(missing))}
            )
        used = {n: self.fragments[n] for n, _ in referenced}
        object.__setattr__(self, "fragments", MappingProxyType(used))

    def placeholders(self) -> List[Tuple[str, bool]]:
        """List (fragment set name, optional) in order of appearance."""
        return [(m.group(2), bool(m.group(1))) for m in PLACEHOLDER.finditer(self.content)]

    def generate(self, chooser: RandomChoice) -> str:
        """
        Render one reply.

        Args:
            chooser: Source of every random decision

        Returns:
            Reply text with single-space separators
        """
        def replace(match):
            options = self.fragments[match.group(2)].options
            if match.group(1):
                return chooser.maybe_pick(options)
            return chooser.pick(options)

        return " ".join(PLACEHOLDER.sub(replace, self.content).split())

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "template": self.content}


@dataclass(frozen=True)
class StockReply:
    """
    Fixed list of non-understanding replies, one picked per call.

    Attributes:
        replies (tuple): Complete reply strings, never empty
    """
    replies: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "replies", tuple(self.replies))
        if not self.replies:
            raise EmptyAlternativeSet("Stock reply list is empty")

    def generate(self, chooser: RandomChoice) -> str:
        return chooser.pick(self.replies)


@dataclass(frozen=True)
class DeflectionReply:
    """Picks one of several templates, then renders it."""
    templates: Tuple[ReplyTemplate, ...]

    def __post_init__(self):
        object.__setattr__(self, "templates", tuple(self.templates))
        if not self.templates:
            raise EmptyAlternativeSet("Deflection reply has no templates")

    def generate(self, chooser: RandomChoice) -> str:
        return chooser.pick(self.templates).generate(chooser)
