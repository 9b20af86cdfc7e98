# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""siteschema: website type analysis and schema.org markup generation.

Turns rendered HTML into:
- snapshot: flat, serializable inventory of DOM facts
- website_type: one rule-based category label
- JSON-LD: schema.org document merging a caller selection with page facts
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class WebsiteType(StrEnum):
    """Primary-purpose category of a website."""

    ECOMMERCE = "ecommerce"
    BLOG = "blog"
    NEWS = "news"
    PORTFOLIO = "portfolio"
    CORPORATE = "corporate"
    SOCIAL_MEDIA = "social_media"
    FORUM = "forum"
    DOCUMENTATION = "documentation"
    LANDING_PAGE = "landing_page"
    SAAS = "saas"
    EDUCATIONAL = "educational"
    ENTERTAINMENT = "entertainment"
    GOVERNMENT = "government"
    NONPROFIT = "nonprofit"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class ImageInfo:
    src: str
    alt: str | None = None
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True, slots=True)
class VideoInfo:
    type: str  # video, iframe
    src: str | None = None
    poster: str | None = None


@dataclass(frozen=True, slots=True)
class LinkInfo:
    href: str
    text: str
    target: str | None = None


@dataclass(frozen=True, slots=True)
class FormInput:
    type: str  # type attribute, else tag name (select, textarea)
    name: str | None = None
    placeholder: str | None = None
    required: bool = False


@dataclass(frozen=True, slots=True)
class FormInfo:
    action: str | None = None
    method: str | None = None
    inputs: tuple[FormInput, ...] = ()


@dataclass(frozen=True, slots=True)
class ScriptInfo:
    src: str | None = None
    content: str | None = None
    type: str | None = None


@dataclass(frozen=True)
class ScrapedSnapshot:
    """Flat inventory of DOM facts for one rendered page.

    Pure data: holds no reference to the rendering session. Every
    downstream decision (detection, classification, synthesis) is made
    from these fields alone.
    """

    html: str
    title: str
    description: str | None = None
    meta_tags: dict[str, str] = field(default_factory=dict)
    classes: tuple[str, ...] = ()
    ids: tuple[str, ...] = ()
    all_text: str = ""
    images: tuple[ImageInfo, ...] = ()
    videos: tuple[VideoInfo, ...] = ()
    links: tuple[LinkInfo, ...] = ()
    forms: tuple[FormInfo, ...] = ()
    scripts: tuple[ScriptInfo, ...] = ()
    stylesheets: tuple[str, ...] = ()
    structured_data: tuple[Any, ...] = ()
    social_links: tuple[str, ...] = ()
    payment_indicators: tuple[str, ...] = ()
    ecommerce_indicators: tuple[str, ...] = ()
    content_indicators: tuple[str, ...] = ()
    tag_names: tuple[str, ...] = ()  # distinct element tags, first-seen order
    attribute_names: tuple[str, ...] = ()  # distinct attribute names, first-seen order
    input_types: tuple[str, ...] = ()  # distinct lower-cased <input type>, inside or outside forms

    def has_tag(self, tag: str) -> bool:
        return tag in self.tag_names

    def has_attribute(self, name: str) -> bool:
        return name in self.attribute_names

    def has_class(self, token: str) -> bool:
        """Exact class token match (CSS ``.token``)."""
        return token in self.classes

    def class_contains(self, fragment: str) -> bool:
        """Substring match over class tokens (CSS ``[class*=fragment]``)."""
        return any(fragment in c for c in self.classes)

    def id_contains(self, fragment: str) -> bool:
        return any(fragment in i for i in self.ids)


@dataclass(frozen=True, slots=True)
class DetectedElements:
    """Presence flags for common UI patterns."""

    has_video: bool = False
    has_images: bool = False
    has_forms: bool = False
    has_navigation: bool = False
    has_footer: bool = False
    has_sidebar: bool = False
    has_comments: bool = False
    has_search: bool = False
    has_shopping_cart: bool = False
    has_user_auth: bool = False


@dataclass(frozen=True)
class TechnicalDetails:
    """Framework/CMS/analytics/payment inference.

    ``analytics``, ``social_media`` and ``payment_methods`` get one entry per
    matching rule, so the same provider can appear more than once.
    """

    framework: str | None = None
    cms: str | None = None
    analytics: tuple[str, ...] = ()
    social_media: tuple[str, ...] = ()
    payment_methods: tuple[str, ...] = ()


@dataclass(frozen=True)
class SchemaRecommendation:
    """Advisory record handed to the external schema decision-maker."""

    schema_type: str
    confidence: float
    reasoning: str
    required_fields: tuple[str, ...] = ()
    optional_fields: tuple[str, ...] = ()
    documentation: str = ""


@dataclass(frozen=True)
class AnalysisResult:
    """Complete output of one analysis call. Never mutated after return."""

    url: str
    title: str
    website_type: WebsiteType
    schema_recommendation: SchemaRecommendation
    detected_elements: DetectedElements
    technical_details: TechnicalDetails
    snapshot: ScrapedSnapshot
    description: str | None = None
    timings_ms: dict[str, float] = field(default_factory=dict, compare=False)
