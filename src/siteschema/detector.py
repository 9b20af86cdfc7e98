# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Snapshot → (DetectedElements, TechnicalDetails).

Pure functions of the snapshot. Element flags are ORs of tag presence and
class/id substring predicates. Framework and CMS take the first matching
signature; analytics, social and payment lists append once per matching
rule with no dedup pass.
"""

from __future__ import annotations

from . import DetectedElements, ScrapedSnapshot, TechnicalDetails
from .signatures import (
    ANALYTICS_SIGNATURES,
    CMS_SIGNATURES,
    FRAMEWORK_SIGNATURES,
    PAYMENT_CLASS_MARKERS,
    PAYMENT_IMAGE_MARKERS,
    PAYMENT_LINK_MARKERS,
    SOCIAL_PLATFORMS,
)


def _any_class(s: ScrapedSnapshot, *fragments: str) -> bool:
    return any(s.class_contains(f) for f in fragments)


def _any_id(s: ScrapedSnapshot, *fragments: str) -> bool:
    return any(s.id_contains(f) for f in fragments)


def detect_elements(s: ScrapedSnapshot) -> DetectedElements:
    return DetectedElements(
        has_video=bool(s.videos),
        has_images=bool(s.images),
        has_forms=bool(s.forms),
        has_navigation=s.has_tag("nav") or _any_class(s, "nav", "navigation"),
        has_footer=s.has_tag("footer") or _any_class(s, "footer"),
        has_sidebar=s.has_tag("aside") or _any_class(s, "sidebar", "side-bar"),
        has_comments=_any_class(s, "comment") or _any_id(s, "comment"),
        has_search="search" in s.input_types or _any_class(s, "search") or _any_id(s, "search"),
        has_shopping_cart=_any_class(s, "cart", "shopping-cart") or _any_id(s, "cart"),
        has_user_auth=_any_class(s, "login", "signin") or _any_id(s, "login", "signin"),
    )


def _has_attribute_marker(s: ScrapedSnapshot, marker: str) -> bool:
    if marker.endswith("-"):
        return any(name.startswith(marker) for name in s.attribute_names)
    return s.has_attribute(marker)


def _detect_framework(s: ScrapedSnapshot) -> str | None:
    srcs = [script.src for script in s.scripts if script.src]
    for label, src_marker, attr_marker in FRAMEWORK_SIGNATURES:
        if any(src_marker in src for src in srcs) or _has_attribute_marker(s, attr_marker):
            return label
    return None


def _detect_cms(s: ScrapedSnapshot) -> str | None:
    generator = s.meta_tags.get("generator", "")
    return next((cms for cms in CMS_SIGNATURES if cms in generator), None)


def _detect_analytics(s: ScrapedSnapshot) -> list[str]:
    found: list[str] = []
    for script in s.scripts:
        haystack = f"{script.content or ''} {script.src or ''}"
        for label, alternatives in ANALYTICS_SIGNATURES:
            if any(all(marker in haystack for marker in markers) for markers in alternatives):
                found.append(label)
    return found


def _detect_social_media(s: ScrapedSnapshot) -> list[str]:
    hrefs = [link.href for link in s.links]
    return [label for domain, label in SOCIAL_PLATFORMS if any(domain in href for href in hrefs)]


def _detect_payment_methods(s: ScrapedSnapshot) -> list[str]:
    found: list[str] = []
    for marker, label in PAYMENT_IMAGE_MARKERS:
        if any(marker in img.src for img in s.images):
            found.append(label)
    for marker, label in PAYMENT_CLASS_MARKERS:
        if s.class_contains(marker):
            found.append(label)
    for marker, label in PAYMENT_LINK_MARKERS:
        if any(marker in link.href for link in s.links):
            found.append(label)
    return found


def detect_technical_details(s: ScrapedSnapshot) -> TechnicalDetails:
    return TechnicalDetails(
        framework=_detect_framework(s),
        cms=_detect_cms(s),
        analytics=tuple(_detect_analytics(s)),
        social_media=tuple(_detect_social_media(s)),
        payment_methods=tuple(_detect_payment_methods(s)),
    )


def detect(snapshot: ScrapedSnapshot) -> tuple[DetectedElements, TechnicalDetails]:
    """Derive UI-pattern flags and technical inference from a snapshot."""
    return detect_elements(snapshot), detect_technical_details(snapshot)
