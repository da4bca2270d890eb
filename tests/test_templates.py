"""
Test Reply Templates and Catalog
================================

Unit tests for fragment sets, reply templates and catalog loading.
"""

import re

import pytest
import yaml

from core.exceptions import EmptyAlternativeSet, TemplateError
from rules.catalog import build_catalog, load_catalog, write_default_catalog, DEFAULT_CATALOG
from rules.chance import RandomChoice
from rules.templates import (
    PLACEHOLDER, FragmentSet, ReplyTemplate, StockReply, DeflectionReply
)

PUNCTUATION = FragmentSet("punctuation", ["!", ".", "..."])


def grammar(template: ReplyTemplate) -> re.Pattern:
    """Regex accepting exactly the replies a template without optional slots can produce."""
    pattern, pos = "", 0
    for match in PLACEHOLDER.finditer(template.content):
        pattern += re.escape(template.content[pos:match.start()])
        options = template.fragments[match.group(2)].options
        pattern += "(?:" + "|".join(re.escape(o) for o in options) + ")"
        pos = match.end()
    pattern += re.escape(template.content[pos:])
    return re.compile("^" + pattern + "$")


class TestFragmentSet:
    """Tests for FragmentSet."""

    def test_empty_rejected(self):
        with pytest.raises(EmptyAlternativeSet):
            FragmentSet("nothing", [])

    def test_options_frozen(self):
        fragments = FragmentSet("moods", ["mean", "joyful"])
        assert fragments.options == ("mean", "joyful")
        assert "mean" in fragments
        assert len(fragments) == 2


class TestReplyTemplate:
    """Tests for ReplyTemplate."""

    def test_undeclared_fragment_set(self):
        with pytest.raises(TemplateError):
            ReplyTemplate("{opener} hi{punctuation}", {"punctuation": PUNCTUATION})

    def test_malformed_placeholder_rejected(self):
        fragments = {"help_opener": FragmentSet("help_opener", ["Hmmm"]), "punctuation": PUNCTUATION}
        with pytest.raises(TemplateError):
            ReplyTemplate("{help-opener} I am busy{punctuation}", fragments)
        with pytest.raises(TemplateError):
            ReplyTemplate("{ punctuation }", {"punctuation": PUNCTUATION})

    def test_plain_braces_outside_placeholders(self):
        template = ReplyTemplate("hi :-{ ok{punctuation}", {"punctuation": PUNCTUATION})
        assert template.placeholders() == [("punctuation", False)]

    def test_hashable_with_read_only_fragments(self):
        template = ReplyTemplate("ok{punctuation}", {"punctuation": PUNCTUATION})
        same = ReplyTemplate("ok{punctuation}", {"punctuation": PUNCTUATION})

        assert template == same
        assert len({template, same}) == 1
        with pytest.raises(TypeError):
            template.fragments["punctuation"] = FragmentSet("punctuation", ["?"])

    def test_keeps_only_referenced_sets(self):
        extra = FragmentSet("unused", ["x"])
        template = ReplyTemplate("ok{punctuation}", {"punctuation": PUNCTUATION, "unused": extra})
        assert set(template.fragments) == {"punctuation"}

    def test_placeholders(self):
        template = ReplyTemplate(
            "{a} {?b}{punctuation}",
            {"a": FragmentSet("a", ["1"]), "b": FragmentSet("b", ["2"]), "punctuation": PUNCTUATION}
        )
        assert template.placeholders() == [("a", False), ("b", True), ("punctuation", False)]

    def test_generate_scripted(self, scripted):
        template = ReplyTemplate(
            "{murmur} sure keep {verb} that{punctuation}",
            {
                "murmur": FragmentSet("murmur", ["mmmmh", "yeah"]),
                "verb": FragmentSet("verb", ["imagining", "thinking"]),
                "punctuation": PUNCTUATION,
            }
        )
        assert template.generate(scripted(ints=[1, 0, 2])) == "yeah sure keep imagining that..."

    def test_omitted_optional_leaves_single_spaces(self, scripted):
        template = ReplyTemplate(
            "{opener} don't be {?intensifier} {mood}{punctuation}",
            {
                "opener": FragmentSet("opener", ["Ok"]),
                "intensifier": FragmentSet("intensifier", ["avidly"]),
                "mood": FragmentSet("mood", ["mean"]),
                "punctuation": PUNCTUATION,
            }
        )
        assert template.generate(scripted(ints=[0, 0, 0], floats=[0.9])) == "Ok don't be mean!"
        assert template.generate(scripted(ints=[0, 0, 0, 0], floats=[0.1])) == "Ok don't be avidly mean!"

    def test_to_dict(self):
        template = ReplyTemplate("hi{punctuation}", {"punctuation": PUNCTUATION}, name="hi")
        assert template.to_dict() == {"name": "hi", "template": "hi{punctuation}"}


class TestFallbacks:
    """Tests for StockReply and DeflectionReply."""

    def test_stock_empty_rejected(self):
        with pytest.raises(EmptyAlternativeSet):
            StockReply(())

    def test_stock_picks_whole_reply(self, scripted):
        stock = StockReply(("Sorry, come again.", "Can you repeat."))
        assert stock.generate(scripted(ints=[1])) == "Can you repeat."

    def test_deflection_empty_rejected(self):
        with pytest.raises(EmptyAlternativeSet):
            DeflectionReply(())

    def test_deflection_picks_template(self, scripted):
        yes = ReplyTemplate("YES{punctuation}", {"punctuation": PUNCTUATION})
        no = ReplyTemplate("NO{punctuation}", {"punctuation": PUNCTUATION})
        assert DeflectionReply((yes, no)).generate(scripted(ints=[1, 0])) == "NO!"


class TestBuiltInCatalog:
    """Tests for the built-in catalog."""

    def test_priority_order(self, catalog):
        assert [c.name for c in catalog.categories] == [
            "request-help", "sympathy-check", "fantastical-claim"
        ]

    def test_no_fragment_leakage(self, catalog):
        expected = {
            "request-help": {"help_opener", "help_negator", "help_descriptor", "punctuation"},
            "sympathy-check": {"sympathy_hedge", "sympathy_subject", "sympathy_ache", "punctuation"},
            "fantastical-claim": {"claim_murmur", "claim_retort", "claim_verb", "punctuation"},
        }
        for category in catalog.categories:
            assert set(category.generator.fragments) == expected[category.name]

    def test_replies_follow_grammar(self, catalog):
        chooser = RandomChoice.seeded(2016)
        for category in catalog.categories:
            pattern = grammar(category.generator)
            for _ in range(100):
                reply = category.generator.generate(chooser)
                assert pattern.match(reply), reply
                assert reply.endswith(("!", ".", "..."))

    def test_deflection_replies_end_in_punctuation(self, catalog):
        chooser = RandomChoice.seeded(8)
        for _ in range(100):
            reply = catalog.deflection.generate(chooser)
            assert reply.endswith(("!", "."))
            assert "  " not in reply

    def test_unknown_fallback(self, catalog):
        assert catalog.fallback("stock") is catalog.stock
        assert catalog.fallback("deflection") is catalog.deflection
        with pytest.raises(TemplateError):
            catalog.fallback("silence")

    def test_catalog_hashable(self, catalog):
        assert hash(catalog) == hash(catalog)
        assert len(set(catalog.categories)) == 3
        with pytest.raises(TypeError):
            catalog.fragments["punctuation"] = FragmentSet("punctuation", ["?"])

    def test_default_data_untouched_by_build(self):
        build_catalog({"fragments": {"punctuation": ["?"]}})
        assert DEFAULT_CATALOG["fragments"]["punctuation"] == ["!", ".", "..."]


class TestCatalogFiles:
    """Tests for YAML catalog loading."""

    def test_file_replaces_categories(self, tmp_path):
        path = tmp_path / "categories.yaml"
        path.write_text(yaml.dump({
            "fragments": {"greeting": ["Hi", "Hey"]},
            "categories": [
                {"name": "greet", "phrases": ["hello"], "template": "{greeting}{punctuation}"},
            ],
        }))

        catalog = load_catalog(str(path))

        assert [c.name for c in catalog.categories] == ["greet"]
        assert "I do not understand." in catalog.stock.replies

    def test_unknown_fragment_in_file(self, tmp_path):
        path = tmp_path / "categories.yaml"
        path.write_text(yaml.dump({
            "categories": [{"name": "x", "phrases": ["x"], "template": "{nope}"}],
        }))
        with pytest.raises(TemplateError):
            load_catalog(str(path))

    def test_duplicate_category(self):
        entry = {"name": "x", "phrases": ["x"], "template": "x{punctuation}"}
        with pytest.raises(TemplateError):
            build_catalog({"categories": [entry, dict(entry)]})

    def test_hyphenated_fragment_name_rejected(self):
        with pytest.raises(TemplateError):
            build_catalog({"fragments": {"help-opener": ["Hmmm"]}})

    def test_hyphenated_placeholder_in_file(self, tmp_path):
        path = tmp_path / "categories.yaml"
        path.write_text(yaml.dump({
            "categories": [{"name": "x", "phrases": ["x"], "template": "{help-opener} hi{punctuation}"}],
        }))
        with pytest.raises(TemplateError):
            load_catalog(str(path))

    def test_empty_fragment_set_in_file(self):
        with pytest.raises(EmptyAlternativeSet):
            build_catalog({"fragments": {"punctuation": []}})

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "categories.yaml"
        path.write_text("categories: [unclosed")
        with pytest.raises(TemplateError):
            load_catalog(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(TemplateError):
            load_catalog(str(tmp_path / "absent.yaml"))

    def test_written_default_loads(self, tmp_path):
        path = write_default_catalog(str(tmp_path / "conf" / "categories.yaml"))
        catalog = load_catalog(str(path))
        assert [c.name for c in catalog.categories] == [
            "request-help", "sympathy-check", "fantastical-claim"
        ]
