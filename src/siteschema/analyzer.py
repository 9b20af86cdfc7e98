# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Analysis pipeline orchestration.

render → extract → detect → classify → recommend, each stage timed.
Only ``render`` suspends; the rest is synchronous and pure. A failure in
any stage propagates and no partial result is returned.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from . import AnalysisResult
from .classifier import classify
from .detector import detect
from .extractor import extract
from .pipeline_timer import PipelineTimer
from .renderer import PageRenderer
from .schema_catalog import build_recommendation
from .synthesizer import SchemaSelection, parse_selection, synthesize
from .urls import validate_page_url

logger = logging.getLogger(__name__)


def _run_pipeline(url: str, html: str, timer: PipelineTimer) -> AnalysisResult:
    try:
        with timer.stage("extract"):
            snapshot = extract(html)
        with timer.stage("detect"):
            elements, technical = detect(snapshot)
        with timer.stage("classify"):
            website_type = classify(snapshot, elements, technical, url)
        with timer.stage("recommend"):
            recommendation = build_recommendation(website_type, elements, technical)
    except Exception:
        logger.warning("Analysis failed for %s: %s", url, timer.failure_report())
        raise

    timings = dict(timer.timings_ms)
    logger.info("Analyzed %s: type=%s timings_ms=%s", url, website_type, timings)
    return AnalysisResult(
        url=url,
        title=snapshot.title,
        description=snapshot.description,
        website_type=website_type,
        schema_recommendation=recommendation,
        detected_elements=elements,
        technical_details=technical,
        snapshot=snapshot,
        timings_ms=timings,
    )


def analyze_html(url: str, html: str) -> AnalysisResult:
    """Analyze already-rendered *html* as if it had been served from *url*.

    Never raises on malformed markup; the URL is taken as given.
    """
    return _run_pipeline(url, html, PipelineTimer())


async def analyze_website(renderer: PageRenderer, url: str, *, allow_local: bool = False) -> AnalysisResult:
    """Validate *url*, render it, and analyze the result.

    Raises:
        InvalidInputError: malformed, non-http(s) or blocked URL.
        BrowserError: the renderer could not produce HTML.
    """
    url = validate_page_url(url, allow_local=allow_local)
    timer = PipelineTimer()
    try:
        with timer.stage("render"):
            html = await renderer.render(url)
    except Exception:
        logger.warning("Render failed for %s: %s", url, timer.failure_report())
        raise
    return _run_pipeline(url, html, timer)


async def generate_markup(
    renderer: PageRenderer,
    url: str,
    selection: SchemaSelection | Mapping[str, Any],
    *,
    allow_local: bool = False,
) -> tuple[AnalysisResult, dict[str, Any]]:
    """Analyze *url* and synthesize its JSON-LD document under *selection*.

    The selection is validated before the page is rendered.
    """
    if not isinstance(selection, SchemaSelection):
        selection = parse_selection(selection)
    result = await analyze_website(renderer, url, allow_local=allow_local)
    return result, synthesize(result, selection)
