# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for siteschema.synthesizer — JSON-LD document synthesis."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from siteschema.analyzer import analyze_html
from siteschema.errors import InvalidInputError
from siteschema.synthesizer import (
    SCHEMA_CONTEXT,
    NestedSchema,
    SchemaSelection,
    collapse_singletons,
    parse_selection,
    synthesize,
    to_script_tag,
)


def _result(html: str, url: str = "https://x.test/page"):
    return analyze_html(url, html)


def _page(*imgs: str, description: str | None = None) -> str:
    meta = f'<meta name="description" content="{description}">' if description else ""
    body = "".join(imgs)
    return f"<html><head><title>Page</title>{meta}</head><body>{body}</body></html>"


class TestParseSelection:
    def test_camel_case_keys(self):
        sel = parse_selection(
            {
                "mainSchema": "Product",
                "nestedSchemas": [{"type": "Offer", "context": "offers", "properties": {"price": "1"}}],
                "customProperties": {"brand": "Acme"},
            }
        )
        assert sel.main_type == "Product"
        assert sel.nested_schemas == [NestedSchema(type="Offer", context="offers", properties={"price": "1"})]
        assert sel.custom_properties == {"brand": "Acme"}

    def test_snake_case_keys(self):
        assert parse_selection({"main_type": "Article"}).main_type == "Article"

    def test_defaults(self):
        sel = parse_selection({"mainSchema": "Thing"})
        assert sel.nested_schemas == []
        assert sel.custom_properties == {}

    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"mainSchema": ""},
            {"mainSchema": "Product", "nestedSchemas": [{"type": "Offer"}]},
            {"mainSchema": "Product", "customProperties": ["not", "a", "mapping"]},
        ],
    )
    def test_invalid_shapes(self, data):
        with pytest.raises(InvalidInputError, match="Invalid schema selection"):
            parse_selection(data)

    def test_selection_is_frozen(self):
        sel = SchemaSelection(main_type="Thing")
        with pytest.raises(ValidationError):
            sel.main_type = "Other"


class TestBaseDocument:
    def test_minimal(self):
        doc = synthesize(_result(_page()), SchemaSelection(main_type="WebPage"))
        assert doc == {"@context": SCHEMA_CONTEXT, "@type": "WebPage", "name": "Page", "url": "https://x.test/page"}

    def test_description_included_when_present(self):
        doc = synthesize(_result(_page(description="About us")), SchemaSelection(main_type="WebPage"))
        assert doc["description"] == "About us"

    def test_key_order(self):
        html = _page('<img src="/a.png">', description="d")
        doc = synthesize(_result(html), SchemaSelection(main_type="WebPage"))
        assert list(doc) == ["@context", "@type", "name", "url", "description", "image"]


class TestImages:
    def test_single_image_collapses_to_object_and_is_absolutized(self):
        doc = synthesize(_result(_page('<img src="/img.png" alt="Logo">')), SchemaSelection(main_type="Thing"))
        assert doc["image"] == {"@type": "ImageObject", "url": "https://x.test/img.png", "alt": "Logo"}

    def test_two_images_stay_a_list(self):
        html = _page('<img src="/a.png">', '<img src="https://cdn.test/b.png" alt="B">')
        doc = synthesize(_result(html), SchemaSelection(main_type="Thing"))
        assert doc["image"] == [
            {"@type": "ImageObject", "url": "https://x.test/a.png", "alt": "Page"},
            {"@type": "ImageObject", "url": "https://cdn.test/b.png", "alt": "B"},
        ]

    def test_images_without_src_are_skipped(self):
        doc = synthesize(_result(_page('<img alt="lazy">')), SchemaSelection(main_type="Thing"))
        assert "image" not in doc

    def test_relative_path_resolved_against_page(self):
        doc = synthesize(_result(_page('<img src="thumb.jpg">'), "https://x.test/dir/page"), SchemaSelection(main_type="Thing"))
        assert doc["image"]["url"] == "https://x.test/dir/thumb.jpg"

    def test_unparseable_src_kept_beside_valid_image(self):
        html = _page('<img src="http://[broken/a.png">', '<img src="/ok.png">')
        doc = synthesize(_result(html), SchemaSelection(main_type="WebPage"))
        assert [img["url"] for img in doc["image"]] == ["http://[broken/a.png", "https://x.test/ok.png"]


class TestCustomProperties:
    def test_custom_properties_override(self):
        sel = SchemaSelection(main_type="Thing", custom_properties={"name": "Override", "brand": "Acme"})
        doc = synthesize(_result(_page()), sel)
        assert doc["name"] == "Override"
        assert doc["brand"] == "Acme"

    def test_custom_property_lists_of_one_collapse(self):
        sel = SchemaSelection(main_type="Thing", custom_properties={"sameAs": ["https://social.test/acme"]})
        assert synthesize(_result(_page()), sel)["sameAs"] == "https://social.test/acme"


class TestNestedSchemas:
    def test_offer_collapses_to_single_object(self):
        sel = parse_selection(
            {
                "mainSchema": "Product",
                "nestedSchemas": [
                    {"type": "Offer", "context": "offers", "properties": {"price": "19.99", "priceCurrency": "USD"}}
                ],
            }
        )
        doc = synthesize(_result(_page()), sel)
        assert doc["offers"] == {"@type": "Offer", "price": "19.99", "priceCurrency": "USD"}

    def test_two_nested_in_same_context(self):
        sel = SchemaSelection(
            main_type="Product",
            nested_schemas=[
                NestedSchema(type="Offer", context="offers", properties={"price": "1"}),
                NestedSchema(type="Offer", context="offers", properties={"price": "2"}),
            ],
        )
        doc = synthesize(_result(_page()), sel)
        assert [o["price"] for o in doc["offers"]] == ["1", "2"]

    def test_nested_merges_with_existing_scalar(self):
        sel = SchemaSelection(
            main_type="Product",
            custom_properties={"review": {"@type": "Review", "author": "A"}},
            nested_schemas=[NestedSchema(type="Review", context="review", properties={"author": "B"})],
        )
        doc = synthesize(_result(_page()), sel)
        assert doc["review"] == [{"@type": "Review", "author": "A"}, {"@type": "Review", "author": "B"}]

    def test_nested_appends_to_images(self):
        sel = SchemaSelection(
            main_type="Thing",
            nested_schemas=[NestedSchema(type="ImageObject", context="image", properties={"url": "/b.png"})],
        )
        doc = synthesize(_result(_page('<img src="/a.png">')), sel)
        assert [i["url"] for i in doc["image"]] == ["https://x.test/a.png", "https://x.test/b.png"]

    def test_only_root_relative_strings_are_absolutized(self):
        sel = SchemaSelection(
            main_type="Thing",
            nested_schemas=[
                NestedSchema(
                    type="Offer",
                    context="offers",
                    properties={"url": "/buy", "name": "plain", "sku": "a/b", "price": 5},
                )
            ],
        )
        offer = synthesize(_result(_page()), sel)["offers"]
        assert offer == {"@type": "Offer", "url": "https://x.test/buy", "name": "plain", "sku": "a/b", "price": 5}

    def test_non_absolute_page_url_fails_atomically(self):
        sel = SchemaSelection(
            main_type="Thing",
            nested_schemas=[NestedSchema(type="Offer", context="offers", properties={"url": "/buy"})],
        )
        with pytest.raises(InvalidInputError):
            synthesize(_result(_page(), url="not-a-url"), sel)

    def test_absolute_image_needs_no_base(self):
        result = _result(_page('<img src="https://cdn.test/a.png">'), url="relative/page")
        doc = synthesize(result, SchemaSelection(main_type="Thing"))
        assert doc["image"]["url"] == "https://cdn.test/a.png"


class TestCollapseSingletons:
    def test_top_level_only(self):
        doc = {"a": [1], "b": [1, 2], "c": [], "d": {"inner": [1]}, "e": "x"}
        assert collapse_singletons(doc) == {"a": 1, "b": [1, 2], "c": [], "d": {"inner": [1]}, "e": "x"}

    def test_does_not_mutate_input(self):
        doc = {"a": [1]}
        collapse_singletons(doc)
        assert doc == {"a": [1]}


class TestScriptTag:
    def test_wraps_json(self):
        tag = to_script_tag({"@type": "Thing", "name": "A"})
        assert tag.startswith('<script type="application/ld+json">\n')
        assert tag.endswith("\n</script>")
        inner = tag.removeprefix('<script type="application/ld+json">\n').removesuffix("\n</script>")
        assert json.loads(inner) == {"@type": "Thing", "name": "A"}

    def test_closing_tag_escaped(self):
        tag = to_script_tag({"name": "</script><b>"})
        assert "</script><b>" not in tag
        assert tag.count("</script>") == 1

