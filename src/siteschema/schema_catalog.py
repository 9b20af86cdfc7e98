# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""schema.org type catalog and the advisory schema recommendation.

The catalog is a static, curated subset of the schema.org vocabulary
grouped by use case, plus a small Thing → CreativeWork / Place hierarchy.
``fetch_type_count`` can refresh the total type count from the live
schema.org release; the rest of the catalog never touches the network.
"""

from __future__ import annotations

import csv
import io
import logging
import urllib.error
import urllib.request
from dataclasses import fields
from datetime import date
from typing import Any

from . import DetectedElements, SchemaRecommendation, TechnicalDetails, WebsiteType
from .errors import InvalidInputError

logger = logging.getLogger(__name__)

SCHEMA_ORG_URL = "https://schema.org/"
SCHEMA_FULL_LIST_URL = "https://schema.org/docs/full.html"
SCHEMA_TYPES_CSV_URL = "https://schema.org/version/latest/schemaorg-current-https-types.csv"

# Count at the last catalog refresh
STATIC_TYPE_COUNT = 1453

_FETCH_TIMEOUT = 5.0
_USER_AGENT = "siteschema (+https://schema.org type count)"

# category → ((name, description), ...)
SCHEMA_CATEGORIES: dict[str, tuple[tuple[str, str], ...]] = {
    "travel": (
        ("TouristDestination", "A tourist destination"),
        ("TouristAttraction", "A tourist attraction"),
        ("TravelAgency", "A travel agency"),
        ("TouristTrip", "A tourist trip"),
        ("Hotel", "A hotel or lodging business"),
        ("Restaurant", "A restaurant or food establishment"),
    ),
    "business": (
        ("Organization", "An organization"),
        ("Corporation", "A corporation"),
        ("LocalBusiness", "A local business"),
        ("Service", "A service"),
    ),
    "content": (
        ("Article", "An article"),
        ("BlogPosting", "A blog post"),
        ("WebPage", "A web page"),
        ("FAQPage", "A FAQ page"),
        ("CreativeWork", "A creative work"),
    ),
    "ecommerce": (
        ("Product", "A product"),
        ("Offer", "An offer"),
        ("Review", "A review"),
        ("AggregateRating", "An aggregate rating"),
    ),
    "events": (
        ("Event", "An event"),
        ("BusinessEvent", "A business event"),
        ("EducationEvent", "An education event"),
        ("MusicEvent", "A music event"),
    ),
    "places": (
        ("Place", "A place"),
        ("PostalAddress", "A postal address"),
        ("GeoCoordinates", "Geographic coordinates"),
    ),
    "actions": (
        ("Action", "An action"),
        ("BuyAction", "A buy action"),
        ("ReviewAction", "A review action"),
    ),
}

CATEGORY_TITLES: dict[str, str] = {
    "travel": "Travel & Tourism",
    "business": "Business & Organization",
    "content": "Content & Media",
    "ecommerce": "E-commerce & Products",
    "events": "Events & Activities",
    "places": "Places & Locations",
    "actions": "Actions & Interactions",
}

CATEGORY_CHOICES: tuple[str, ...] = ("all", *SCHEMA_CATEGORIES)

FLAT_TYPES: tuple[str, ...] = (
    "Thing", "Action", "CreativeWork", "Article", "BlogPosting", "Place",
    "TouristDestination", "TouristAttraction", "TravelAgency", "TouristTrip",
    "Hotel", "Restaurant", "Organization", "Corporation", "LocalBusiness",
    "Service", "WebPage", "FAQPage", "Product", "Offer", "Review",
    "AggregateRating", "Event", "BusinessEvent", "EducationEvent", "MusicEvent",
    "PostalAddress", "GeoCoordinates", "BuyAction", "ReviewAction",
)  # fmt: skip

# Suggested starting points per kind of site (shown in the types report)
USE_CASE_TYPES: dict[str, tuple[str, ...]] = {
    "Travel Websites": ("TouristDestination", "TouristAttraction", "TravelAgency", "TouristTrip", "Hotel", "Restaurant"),
    "E-commerce": ("Product", "Offer", "Review", "AggregateRating", "Organization", "LocalBusiness"),
    "Content Sites": ("Article", "BlogPosting", "WebPage", "FAQPage", "CreativeWork", "Person"),
    "Events": ("Event", "BusinessEvent", "EducationEvent", "MusicEvent", "SportsEvent"),
    "Local Business": ("LocalBusiness", "Restaurant", "Hotel", "Store", "Service", "Organization"),
}


def _type_node(name: str, description: str | None = None, children: dict[str, Any] | None = None) -> dict[str, Any]:
    node: dict[str, Any] = {"name": name, "url": f"{SCHEMA_ORG_URL}{name}"}
    if description:
        node["description"] = description
    if children:
        node["children"] = children
    return node


def _hierarchy() -> dict[str, Any]:
    return {
        "Thing": _type_node(
            "Thing",
            "The most generic type of item",
            {
                "CreativeWork": _type_node(
                    "CreativeWork",
                    children={"Article": _type_node("Article"), "BlogPosting": _type_node("BlogPosting")},
                ),
                "Place": _type_node(
                    "Place",
                    children={
                        "TouristDestination": _type_node("TouristDestination"),
                        "TouristAttraction": _type_node("TouristAttraction"),
                    },
                ),
            },
        )
    }


def get_schema_types(
    include_hierarchy: bool = True,
    include_descriptions: bool = True,
    category: str = "all",
    *,
    total_types: int | None = None,
    extracted_date: date | None = None,
) -> dict[str, Any]:
    """Catalog view filtered by *category*.

    Raises InvalidInputError for a category outside ``CATEGORY_CHOICES``.
    """
    if category not in CATEGORY_CHOICES:
        raise InvalidInputError(
            f"Unknown category '{category}'. Choose one of: {', '.join(CATEGORY_CHOICES)}",
            value=category,
        )
    selected = SCHEMA_CATEGORIES if category == "all" else {category: SCHEMA_CATEGORIES[category]}
    categories = {
        name: [{"name": t, "description": d} if include_descriptions else {"name": t} for t, d in types]
        for name, types in selected.items()
    }
    return {
        "metadata": {
            "total_types": total_types if total_types is not None else STATIC_TYPE_COUNT,
            "extracted_date": (extracted_date or date.today()).isoformat(),
            "source": SCHEMA_FULL_LIST_URL,
        },
        "categories": categories,
        "flat_list": list(FLAT_TYPES),
        "hierarchy": _hierarchy() if include_hierarchy else {},
    }


def fetch_type_count(timeout: float = _FETCH_TIMEOUT) -> int:
    """Count types in the current schema.org release.

    Best effort: any network or parse failure falls back to
    ``STATIC_TYPE_COUNT``.
    """
    req = urllib.request.Request(SCHEMA_TYPES_CSV_URL, headers={"User-Agent": _USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:  # noqa: S310  # nosec B310
            body = resp.read().decode("utf-8", errors="replace")
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        logger.warning("schema.org type count fetch failed, using static count: %s", e)
        return STATIC_TYPE_COUNT

    rows = list(csv.reader(io.StringIO(body)))
    count = len([r for r in rows[1:] if r])
    if count == 0:
        logger.warning("schema.org type list was empty, using static count")
        return STATIC_TYPE_COUNT
    logger.info("schema.org type count refreshed: %d", count)
    return count


# --- Recommendation ---

AI_DECISION_REQUIRED = "AI_DECISION_REQUIRED"

_CORE_TYPES: tuple[tuple[str, str], ...] = (
    ("Thing", "base type"),
    ("CreativeWork", "Article, Blog, Book, Movie, MusicRecording, etc."),
    ("Organization", "Corporation, EducationalOrganization, GovernmentOrganization, etc."),
    ("Person", ""),
    ("Place", "LocalBusiness, TouristAttraction, etc."),
    ("Event", ""),
    ("Product", "with Offer, AggregateRating, Review"),
    ("Service", ""),
    ("WebPage", "AboutPage, ContactPage, FAQPage, etc."),
    ("WebSite", ""),
)

_ANALYSIS_STEPS = (
    "**Examine the scraped data** to understand the website's purpose and content",
    "**Identify primary content types** (products, articles, events, services, etc.)",
    "**Choose appropriate Schema.org types** from the official vocabulary",
    "**Map existing content** to schema properties",
    "**Consider multiple schemas** for complex websites",
    "**Reference Schema.org documentation** for accurate property names and requirements",
)

_IMPLEMENTATION_NOTES = (
    "Use JSON-LD format (recommended by Google)",
    "Validate with Google's Rich Results Test",
    "Follow Schema.org property requirements",
    "Consider inheritance (e.g., Article extends CreativeWork)",
    "Use @type to specify schema types",
    'Include @context: "https://schema.org" in JSON-LD',
)


def _documentation(website_type: WebsiteType, elements: DetectedElements, technical: TechnicalDetails) -> str:
    core = [f"- **{name}**" + (f" ({examples})" if examples else "") for name, examples in _CORE_TYPES]
    present = [f.name.removeprefix("has_") for f in fields(elements) if getattr(elements, f.name)]
    observed = [
        f"- Rule-based website type: `{website_type}`",
        f"- Detected page elements: {', '.join(present) if present else 'none'}",
    ]
    if technical.payment_methods:
        observed.append(f"- Payment providers: {', '.join(dict.fromkeys(technical.payment_methods))}")

    sections = [
        f"Based on the complete scraped data, analyze and recommend appropriate Schema.org schemas from {SCHEMA_ORG_URL}",
        "## Schema.org Reference\n"
        "Schema.org provides a shared vocabulary for structured data on the web.",
        "## Available Schema Types (from Schema.org)\n" + "\n".join([*core, "- **And many more...**"]),
        "## Observed Signals\n" + "\n".join(observed),
        "## AI Analysis Instructions\n" + "\n".join(f"{i}. {s}" for i, s in enumerate(_ANALYSIS_STEPS, 1)),
        "## Implementation Notes\n" + "\n".join(f"- {n}" for n in _IMPLEMENTATION_NOTES),
    ]
    return "\n\n".join(sections)


def build_recommendation(
    website_type: WebsiteType,
    elements: DetectedElements,
    technical: TechnicalDetails,
) -> SchemaRecommendation:
    """Advisory record: the final schema choice is left to an external decision-maker."""
    return SchemaRecommendation(
        schema_type=AI_DECISION_REQUIRED,
        confidence=0.0,
        reasoning="AI should analyze the complete scraped data to determine appropriate Schema.org schemas",
        documentation=_documentation(website_type, elements, technical),
    )
