# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Rendered HTML → ScrapedSnapshot.

Single lxml parse, then one pass per fact family. Total: malformed or
empty markup degrades to empty fields, never to an exception. Embedded
JSON-LD blocks that fail to parse are dropped (logged at debug level).
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from typing import Any

import lxml.html
from lxml import etree

from . import (
    FormInfo,
    FormInput,
    ImageInfo,
    LinkInfo,
    ScrapedSnapshot,
    ScriptInfo,
    VideoInfo,
)
from .signatures import (
    CONTENT_KEYWORDS,
    ECOMMERCE_KEYWORDS,
    PAYMENT_KEYWORDS,
    SOCIAL_LINK_DOMAINS,
    VIDEO_IFRAME_HOSTS,
)

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"

_JSONLD_TYPE = "application/ld+json"
_WS_RE = re.compile(r"\s+")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

# Text under these elements is not visible page text
_VISIBLE_TEXT_XPATH = ".//text()[not(ancestor::script or ancestor::style or ancestor::noscript or ancestor::template)]"


# --- Helpers ---


def _dedupe(items: Iterable[str]) -> tuple[str, ...]:
    """First-seen-order deduplication."""
    return tuple(dict.fromkeys(items))


def _parse_int(v: str | None) -> int | None:
    """Leading-integer parse (``"640px"`` → 640); None when absent or non-numeric."""
    if not v:
        return None
    m = _LEADING_INT_RE.match(v)
    return int(m.group(1)) if m else None


def _attr(el: lxml.html.HtmlElement, name: str) -> str | None:
    """Attribute value, with empty strings normalized to None."""
    v = el.get(name)
    return v if v else None


def _elements(doc: lxml.html.HtmlElement) -> list[lxml.html.HtmlElement]:
    """All elements in document order (comments / PIs excluded)."""
    return [el for el in doc.iter() if isinstance(el.tag, str)]


def _parse(html: str) -> lxml.html.HtmlElement | None:
    if not html or not html.strip():
        return None
    try:
        parser = lxml.html.HTMLParser(recover=True, encoding="utf-8")
        return lxml.html.document_fromstring(html.encode("utf-8"), parser=parser)
    except (etree.ParserError, etree.XMLSyntaxError, ValueError) as e:
        logger.debug("HTML parse failed, returning empty snapshot: %s", e)
        return None


# --- Field extractors ---


def _extract_title(doc: lxml.html.HtmlElement) -> str:
    for el in doc.iter("title"):
        text = el.text_content().strip()
        if text:
            return text
    return UNTITLED


def _first_meta_content(doc: lxml.html.HtmlElement, attr: str, value: str) -> str | None:
    for el in doc.iter("meta"):
        if el.get(attr) == value:
            return _attr(el, "content")
    return None


def _extract_description(doc: lxml.html.HtmlElement) -> str | None:
    return _first_meta_content(doc, "name", "description") or _first_meta_content(
        doc, "property", "og:description"
    )


def _extract_meta_tags(doc: lxml.html.HtmlElement) -> dict[str, str]:
    """name / property / http-equiv → content. Last write wins."""
    tags: dict[str, str] = {}
    for el in doc.iter("meta"):
        key = el.get("name") or el.get("property") or el.get("http-equiv")
        content = el.get("content")
        if key and content:
            tags[key] = content
    return tags


def _extract_classes_and_ids(elements: list[lxml.html.HtmlElement]) -> tuple[tuple[str, ...], tuple[str, ...]]:
    classes: list[str] = []
    ids: list[str] = []
    for el in elements:
        cls = el.get("class")
        if cls:
            classes.extend(cls.split())
        el_id = el.get("id")
        if el_id:
            ids.append(el_id)
    return _dedupe(classes), _dedupe(ids)


def _extract_text(doc: lxml.html.HtmlElement) -> str:
    body = doc.find("body")
    root = body if body is not None else doc
    text = "".join(root.xpath(_VISIBLE_TEXT_XPATH))
    return _WS_RE.sub(" ", text).strip()


def _extract_images(doc: lxml.html.HtmlElement) -> tuple[ImageInfo, ...]:
    return tuple(
        ImageInfo(
            src=el.get("src") or "",
            alt=_attr(el, "alt"),
            width=_parse_int(el.get("width")),
            height=_parse_int(el.get("height")),
        )
        for el in doc.iter("img")
    )


def _extract_videos(doc: lxml.html.HtmlElement) -> tuple[VideoInfo, ...]:
    videos: list[VideoInfo] = []
    for el in doc.iter("video", "iframe"):
        src = _attr(el, "src")
        if el.tag == "iframe" and not (src and any(h in src for h in VIDEO_IFRAME_HOSTS)):
            continue
        videos.append(VideoInfo(type=el.tag, src=src, poster=_attr(el, "poster")))
    return tuple(videos)


def _extract_links(doc: lxml.html.HtmlElement) -> tuple[LinkInfo, ...]:
    return tuple(
        LinkInfo(href=el.get("href"), text=el.text_content().strip(), target=_attr(el, "target"))
        for el in doc.iter("a")
        if el.get("href") is not None
    )


def _extract_forms(doc: lxml.html.HtmlElement) -> tuple[FormInfo, ...]:
    forms: list[FormInfo] = []
    for form in doc.iter("form"):
        inputs = tuple(
            FormInput(
                type=el.get("type") or el.tag,
                name=_attr(el, "name"),
                placeholder=_attr(el, "placeholder"),
                required=el.get("required") is not None,
            )
            for el in form.iter("input", "select", "textarea")
        )
        forms.append(FormInfo(action=_attr(form, "action"), method=_attr(form, "method"), inputs=inputs))
    return tuple(forms)


def _extract_scripts(doc: lxml.html.HtmlElement) -> tuple[ScriptInfo, ...]:
    return tuple(
        ScriptInfo(src=_attr(el, "src"), content=el.text or None, type=_attr(el, "type")) for el in doc.iter("script")
    )


def _extract_stylesheets(doc: lxml.html.HtmlElement) -> tuple[str, ...]:
    hrefs: list[str] = []
    for el in doc.iter("link"):
        rel = (el.get("rel") or "").lower().split()
        href = el.get("href")
        if "stylesheet" in rel and href:
            hrefs.append(href)
    return tuple(hrefs)


def _extract_structured_data(doc: lxml.html.HtmlElement) -> tuple[Any, ...]:
    """Parse every JSON-LD block once. Malformed blocks are skipped."""
    parsed: list[Any] = []
    for el in doc.iter("script"):
        if (el.get("type") or "").strip().lower() != _JSONLD_TYPE:
            continue
        content = el.text
        if not content or not content.strip():
            continue
        try:
            parsed.append(json.loads(content))
        except (ValueError, RecursionError) as e:
            logger.debug("Skipping malformed JSON-LD block: %s", e)
            continue
    return tuple(parsed)


def keyword_tokens(text: str, keywords: tuple[str, ...]) -> tuple[str, ...]:
    """Lower-cased whitespace tokens of *text* containing any keyword (substring match)."""
    return tuple(word for word in text.lower().split() if any(kw in word for kw in keywords))


# --- Public API ---


def extract(html: str) -> ScrapedSnapshot:
    """Build a ScrapedSnapshot from rendered HTML.

    Never raises: unparseable input yields an empty snapshot titled
    ``"Untitled"``. Calling twice on the same input yields equal snapshots.
    """
    doc = _parse(html)
    if doc is None:
        return ScrapedSnapshot(html=html, title=UNTITLED)

    elements = _elements(doc)
    classes, ids = _extract_classes_and_ids(elements)
    all_text = _extract_text(doc)
    links = _extract_links(doc)

    return ScrapedSnapshot(
        html=html,
        title=_extract_title(doc),
        description=_extract_description(doc),
        meta_tags=_extract_meta_tags(doc),
        classes=classes,
        ids=ids,
        all_text=all_text,
        images=_extract_images(doc),
        videos=_extract_videos(doc),
        links=links,
        forms=_extract_forms(doc),
        scripts=_extract_scripts(doc),
        stylesheets=_extract_stylesheets(doc),
        structured_data=_extract_structured_data(doc),
        social_links=tuple(link.href for link in links if any(d in link.href for d in SOCIAL_LINK_DOMAINS)),
        payment_indicators=keyword_tokens(all_text, PAYMENT_KEYWORDS),
        ecommerce_indicators=keyword_tokens(all_text, ECOMMERCE_KEYWORDS),
        content_indicators=keyword_tokens(all_text, CONTENT_KEYWORDS),
        tag_names=_dedupe(el.tag for el in elements),
        attribute_names=_dedupe(name for el in elements for name in el.attrib),
        input_types=_dedupe((el.get("type") or "text").lower() for el in doc.iter("input")),
    )
