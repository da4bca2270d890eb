"""
Rules Module - Template-based response engine
=============================================

This module provides the reply engine:
- Case-insensitive phrase matching
- Ordered, first-match-wins category dispatch
- Randomized reply templates over fragment sets
- Stock and deflection fallback replies
"""

from .chance import RandomChoice, RandomSource
from .engine import ResponseEngine, Category, matches
from .templates import FragmentSet, ReplyTemplate, StockReply, DeflectionReply
from .catalog import Catalog, build_catalog, load_catalog

__all__ = [
    "RandomChoice",
    "RandomSource",
    "ResponseEngine",
    "Category",
    "matches",
    "FragmentSet",
    "ReplyTemplate",
    "StockReply",
    "DeflectionReply",
    "Catalog",
    "build_catalog",
    "load_catalog",
]
