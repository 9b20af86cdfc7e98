# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Static keyword / domain reference tables.

Leaf module. Consumed by the extractor (indicator lists, social links)
and the detector (analytics, payment, framework and CMS signatures).
Matching is plain substring containment throughout.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Text indicator keywords (matched against lower-cased whitespace tokens)
# ---------------------------------------------------------------------------

PAYMENT_KEYWORDS: tuple[str, ...] = (
    "paypal",
    "stripe",
    "square",
    "visa",
    "mastercard",
    "amex",
    "payment",
    "checkout",
    "cart",
    "buy",
    "purchase",
)

# Multi-word entries never match a single token.
ECOMMERCE_KEYWORDS: tuple[str, ...] = (
    "product",
    "price",
    "sale",
    "discount",
    "shipping",
    "inventory",
    "stock",
    "add to cart",
    "buy now",
    "shop",
)

CONTENT_KEYWORDS: tuple[str, ...] = (
    "article",
    "blog",
    "post",
    "news",
    "tutorial",
    "guide",
    "documentation",
    "help",
    "faq",
)

# ---------------------------------------------------------------------------
# Social domains
# ---------------------------------------------------------------------------

# Links collected into ScrapedSnapshot.social_links
SOCIAL_LINK_DOMAINS: tuple[str, ...] = (
    "facebook.com",
    "twitter.com",
    "linkedin.com",
    "instagram.com",
    "youtube.com",
    "tiktok.com",
    "snapchat.com",
)

# Platforms reported in TechnicalDetails.social_media: (domain, label)
SOCIAL_PLATFORMS: tuple[tuple[str, str], ...] = (
    ("facebook.com", "Facebook"),
    ("twitter.com", "Twitter"),
    ("linkedin.com", "LinkedIn"),
    ("instagram.com", "Instagram"),
    ("youtube.com", "YouTube"),
)

# ---------------------------------------------------------------------------
# Technical signatures
# ---------------------------------------------------------------------------

# (label, all-of markers) checked against each script's inline content + src
ANALYTICS_SIGNATURES: tuple[tuple[str, tuple[tuple[str, ...], ...]], ...] = (
    ("Google Analytics", (("google-analytics",), ("gtag",))),
    ("Facebook Pixel", (("facebook", "pixel"),)),
    ("Mixpanel", (("mixpanel",),)),
)

# (marker, label): image src
PAYMENT_IMAGE_MARKERS: tuple[tuple[str, str], ...] = (
    ("stripe", "Stripe"),
    ("paypal", "PayPal"),
    ("square", "Square"),
)

# (marker, label): class tokens
PAYMENT_CLASS_MARKERS: tuple[tuple[str, str], ...] = (
    ("stripe", "Stripe"),
    ("paypal", "PayPal"),
)

# (marker, label): link href (e.g. checkout.stripe.com, paypal.me)
PAYMENT_LINK_MARKERS: tuple[tuple[str, str], ...] = (
    ("stripe.com", "Stripe"),
    ("paypal.", "PayPal"),
    ("squareup.com", "Square"),
)

# First match wins, in this order. (label, script-src marker, attribute marker)
# An attribute marker ending in "-" matches any attribute with that prefix.
FRAMEWORK_SIGNATURES: tuple[tuple[str, str, str], ...] = (
    ("React", "react", "data-reactroot"),
    ("Vue.js", "vue", "data-v-"),
    ("Angular", "angular", "ng-app"),
)

# First match wins, in this order. Matched against meta[name=generator].
CMS_SIGNATURES: tuple[str, ...] = (
    "WordPress",
    "Drupal",
    "Joomla",
)

# ---------------------------------------------------------------------------
# Video embeds
# ---------------------------------------------------------------------------

VIDEO_IFRAME_HOSTS: tuple[str, ...] = ("youtube", "vimeo")
