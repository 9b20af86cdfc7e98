# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""First-match rule chain: snapshot + detector output → WebsiteType.

Rules are evaluated top to bottom and the first true predicate wins, so
the order of ``RULES`` is a confidence ranking: ecommerce signals beat
blog signals, blog beats news, and so on. ``unknown`` is the fallback.

Notation in rule comments: ``.x`` is a class token equal to ``x``;
``[class*=x]`` is a class token containing ``x``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from . import DetectedElements, ScrapedSnapshot, TechnicalDetails, WebsiteType


@dataclass(frozen=True, slots=True)
class RuleContext:
    """Everything a rule may look at. No raw HTML, no session."""

    snapshot: ScrapedSnapshot
    elements: DetectedElements
    technical: TechnicalDetails
    url: str

    def cls(self, *fragments: str) -> bool:
        return any(self.snapshot.class_contains(f) for f in fragments)


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    website_type: WebsiteType
    check: Callable[[RuleContext], bool]


def _is_social_media(c: RuleContext) -> bool:
    e = c.elements
    return (
        e.has_user_auth
        and e.has_comments
        and (e.has_video or e.has_images)
        and len(c.technical.social_media) > 0
    )


def _is_forum(c: RuleContext) -> bool:
    e = c.elements
    return (
        (e.has_comments and e.has_user_auth and c.snapshot.has_class("thread"))
        or c.cls("thread")
        or c.snapshot.has_class("topic")
        or c.cls("topic")
    )


RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        WebsiteType.ECOMMERCE,
        lambda c: c.elements.has_shopping_cart or len(c.technical.payment_methods) > 0 or c.cls("product", "price"),
    ),
    # <article>, [class*=post], [class*=blog]
    ClassificationRule(WebsiteType.BLOG, lambda c: c.snapshot.has_tag("article") or c.cls("post", "blog")),
    ClassificationRule(WebsiteType.NEWS, lambda c: c.cls("news", "article", "headline")),
    ClassificationRule(WebsiteType.PORTFOLIO, lambda c: c.cls("portfolio", "gallery", "work")),
    ClassificationRule(WebsiteType.SOCIAL_MEDIA, _is_social_media),
    ClassificationRule(WebsiteType.FORUM, _is_forum),
    # .documentation, [class*=docs], [class*=tutorial], [class*=guide]
    ClassificationRule(
        WebsiteType.DOCUMENTATION,
        lambda c: c.snapshot.has_class("documentation") or c.cls("docs", "tutorial", "guide"),
    ),
    ClassificationRule(
        WebsiteType.SAAS,
        lambda c: c.elements.has_user_auth and c.elements.has_forms and c.cls("dashboard", "app"),
    ),
    ClassificationRule(WebsiteType.EDUCATIONAL, lambda c: c.cls("course", "lesson", "education")),
    ClassificationRule(
        WebsiteType.ENTERTAINMENT,
        lambda c: c.elements.has_video and c.cls("entertainment", "media"),
    ),
    ClassificationRule(
        WebsiteType.GOVERNMENT,
        lambda c: c.cls("gov") or ".gov" in c.url or c.snapshot.has_class("government"),
    ),
    ClassificationRule(WebsiteType.NONPROFIT, lambda c: c.cls("nonprofit", "charity", "donate")),
    ClassificationRule(WebsiteType.LANDING_PAGE, lambda c: c.cls("landing", "hero")),
    ClassificationRule(
        WebsiteType.CORPORATE,
        lambda c: c.elements.has_navigation and c.elements.has_footer and c.cls("about", "contact"),
    ),
)


def classify(
    snapshot: ScrapedSnapshot,
    elements: DetectedElements,
    technical: TechnicalDetails,
    url: str,
) -> WebsiteType:
    """Return the type of the first matching rule, else ``WebsiteType.UNKNOWN``.

    Pure and total: the same inputs always give the same label.
    """
    ctx = RuleContext(snapshot=snapshot, elements=elements, technical=technical, url=url)
    return next((rule.website_type for rule in RULES if rule.check(ctx)), WebsiteType.UNKNOWN)
