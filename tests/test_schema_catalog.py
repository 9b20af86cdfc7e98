# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for siteschema.schema_catalog — type catalog and advisory recommendation."""

from __future__ import annotations

import io
import urllib.error
from datetime import date

import pytest

from siteschema import DetectedElements, TechnicalDetails, WebsiteType, schema_catalog
from siteschema.errors import InvalidInputError
from siteschema.schema_catalog import (
    AI_DECISION_REQUIRED,
    CATEGORY_CHOICES,
    FLAT_TYPES,
    SCHEMA_CATEGORIES,
    SCHEMA_FULL_LIST_URL,
    STATIC_TYPE_COUNT,
    build_recommendation,
    fetch_type_count,
    get_schema_types,
)


class TestGetSchemaTypes:
    def test_all_categories(self):
        data = get_schema_types()
        assert list(data["categories"]) == list(SCHEMA_CATEGORIES)
        assert data["flat_list"] == list(FLAT_TYPES)
        assert "Thing" in data["hierarchy"]

    def test_metadata(self):
        data = get_schema_types(extracted_date=date(2025, 1, 31))
        assert data["metadata"] == {
            "total_types": STATIC_TYPE_COUNT,
            "extracted_date": "2025-01-31",
            "source": SCHEMA_FULL_LIST_URL,
        }

    def test_total_types_override(self):
        assert get_schema_types(total_types=900)["metadata"]["total_types"] == 900

    def test_category_filter(self):
        data = get_schema_types(category="ecommerce")
        assert list(data["categories"]) == ["ecommerce"]
        assert [t["name"] for t in data["categories"]["ecommerce"]] == ["Product", "Offer", "Review", "AggregateRating"]

    def test_descriptions_toggle(self):
        with_desc = get_schema_types(category="places")["categories"]["places"][0]
        without = get_schema_types(category="places", include_descriptions=False)["categories"]["places"][0]
        assert with_desc == {"name": "Place", "description": "A place"}
        assert without == {"name": "Place"}

    def test_hierarchy_toggle(self):
        assert get_schema_types(include_hierarchy=False)["hierarchy"] == {}

    def test_hierarchy_nodes_link_to_schema_org(self):
        thing = get_schema_types()["hierarchy"]["Thing"]
        assert thing["url"] == "https://schema.org/Thing"
        assert thing["children"]["CreativeWork"]["children"]["Article"]["url"] == "https://schema.org/Article"

    def test_unknown_category(self):
        with pytest.raises(InvalidInputError, match="Unknown category"):
            get_schema_types(category="pets")

    def test_every_category_is_a_choice(self):
        assert set(CATEGORY_CHOICES) == {"all", *SCHEMA_CATEGORIES}

    def test_category_types_are_in_flat_list(self):
        for types in SCHEMA_CATEGORIES.values():
            for name, _ in types:
                assert name in FLAT_TYPES


class _FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class TestFetchTypeCount:
    def test_counts_csv_rows(self, monkeypatch):
        body = b"id,label\nschema:Thing,Thing\nschema:Place,Place\n\nschema:Event,Event\n"
        monkeypatch.setattr(schema_catalog.urllib.request, "urlopen", lambda req, timeout: _FakeResponse(body))
        assert fetch_type_count() == 3

    def test_network_failure_falls_back(self, monkeypatch, caplog):
        def _fail(req, timeout):
            raise urllib.error.URLError("offline")

        monkeypatch.setattr(schema_catalog.urllib.request, "urlopen", _fail)
        assert fetch_type_count() == STATIC_TYPE_COUNT
        assert "using static count" in caplog.text

    def test_empty_body_falls_back(self, monkeypatch):
        monkeypatch.setattr(schema_catalog.urllib.request, "urlopen", lambda req, timeout: _FakeResponse(b"id\n"))
        assert fetch_type_count() == STATIC_TYPE_COUNT


class TestBuildRecommendation:
    def test_advisory_only(self):
        rec = build_recommendation(WebsiteType.BLOG, DetectedElements(), TechnicalDetails())
        assert rec.schema_type == AI_DECISION_REQUIRED
        assert rec.confidence == 0.0
        assert rec.required_fields == ()
        assert rec.optional_fields == ()
        assert "https://schema.org/" in rec.documentation

    def test_documentation_lists_observed_signals(self):
        rec = build_recommendation(
            WebsiteType.ECOMMERCE,
            DetectedElements(has_forms=True, has_shopping_cart=True),
            TechnicalDetails(payment_methods=("Stripe", "Stripe")),
        )
        assert "## Observed Signals" in rec.documentation
        assert "`ecommerce`" in rec.documentation
        assert "forms, shopping_cart" in rec.documentation
        assert "Payment providers: Stripe\n" in rec.documentation
        assert "Stripe, Stripe" not in rec.documentation

    def test_documentation_without_elements(self):
        rec = build_recommendation(WebsiteType.UNKNOWN, DetectedElements(), TechnicalDetails())
        assert "Detected page elements: none" in rec.documentation
        assert "Payment providers" not in rec.documentation
