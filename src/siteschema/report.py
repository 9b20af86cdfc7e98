# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Serialization of analysis results: JSON and Markdown reports.

Formats:
- JSON: camelCase dict of the full result for programmatic consumption
- Analysis summary: truncated Markdown overview (``analyze_website``)
- Recommendations: complete raw data Markdown (``get_schema_recommendations``)
- Markup: generated JSON-LD with embedding instructions
- Schema types: catalog listing
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from dataclasses import asdict
from typing import Any

from . import AnalysisResult, FormInfo, ScrapedSnapshot
from .synthesizer import SchemaSelection, to_script_tag

RICH_RESULTS_TEST_URL = "https://search.google.com/test/rich-results"
SCHEMA_VALIDATOR_URL = "https://validator.schema.org/"

_TEXT_SAMPLE_CHARS = 1000


# --- JSON ---


def _snapshot_to_dict(s: ScrapedSnapshot) -> dict[str, Any]:
    return {
        "html": s.html,
        "title": s.title,
        "description": s.description,
        "metaTags": dict(s.meta_tags),
        "allClasses": list(s.classes),
        "allIds": list(s.ids),
        "allTextContent": s.all_text,
        "images": [asdict(i) for i in s.images],
        "videos": [asdict(v) for v in s.videos],
        "links": [asdict(link) for link in s.links],
        "forms": [
            {"action": f.action, "method": f.method, "inputs": [asdict(i) for i in f.inputs]} for f in s.forms
        ],
        "scripts": [asdict(sc) for sc in s.scripts],
        "stylesheets": list(s.stylesheets),
        "structuredData": list(s.structured_data),
        "socialMediaLinks": list(s.social_links),
        "paymentIndicators": list(s.payment_indicators),
        "ecommerceIndicators": list(s.ecommerce_indicators),
        "contentIndicators": list(s.content_indicators),
    }


def analysis_to_dict(result: AnalysisResult, *, include_html: bool = True) -> dict[str, Any]:
    """camelCase JSON shape of an analysis result."""
    e = result.detected_elements
    t = result.technical_details
    r = result.schema_recommendation
    scraped = _snapshot_to_dict(result.snapshot)
    if not include_html:
        scraped.pop("html")
    return {
        "url": result.url,
        "title": result.title,
        "description": result.description,
        "websiteType": str(result.website_type),
        "schemaRecommendation": {
            "schemaType": r.schema_type,
            "confidence": r.confidence,
            "reasoning": r.reasoning,
            "requiredFields": list(r.required_fields),
            "optionalFields": list(r.optional_fields),
            "documentation": r.documentation,
        },
        "detectedElements": {
            "hasVideo": e.has_video,
            "hasImages": e.has_images,
            "hasForms": e.has_forms,
            "hasNavigation": e.has_navigation,
            "hasFooter": e.has_footer,
            "hasSidebar": e.has_sidebar,
            "hasComments": e.has_comments,
            "hasSearch": e.has_search,
            "hasShoppingCart": e.has_shopping_cart,
            "hasUserAuth": e.has_user_auth,
        },
        "technicalDetails": {
            "framework": t.framework,
            "cms": t.cms,
            "analytics": list(t.analytics),
            "socialMedia": list(t.social_media),
            "paymentMethods": list(t.payment_methods),
        },
        "scrapedData": scraped,
        "timingsMs": dict(result.timings_ms),
    }


def to_json(result: AnalysisResult, indent: int = 2, *, include_html: bool = False) -> str:
    return json.dumps(analysis_to_dict(result, include_html=include_html), indent=indent, ensure_ascii=False)


# --- Markdown helpers ---


def _bullets(items: Iterable[str], limit: int, noun: str) -> str:
    items = list(items)
    if not items:
        return "None found"
    lines = [f"- {item}" for item in items[:limit]]
    if len(items) > limit:
        lines.append(f"- ... and {len(items) - limit} more {noun}")
    return "\n".join(lines)


def _inline(items: Sequence[str], limit: int) -> str:
    if not items:
        return "None found"
    text = ", ".join(items[:limit])
    if len(items) > limit:
        text += f" (and {len(items) - limit} more...)"
    return text


def _confidence_pct(result: AnalysisResult) -> int:
    return round(result.schema_recommendation.confidence * 100)


def _text_sample(text: str, limit: int = _TEXT_SAMPLE_CHARS) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


# --- Reports ---


def format_analysis(result: AnalysisResult) -> str:
    """Summary report with truncated lists."""
    s = result.snapshot
    rec = result.schema_recommendation
    meta = [f"**{k}**: {v}" for k, v in s.meta_tags.items()]
    forms = [
        f"**Form {i}**: {f.action or 'no action'} (method: {f.method or 'GET'}) - {len(f.inputs)} inputs"
        for i, f in enumerate(s.forms, 1)
    ]
    images = _bullets((f"**{i.src}** (alt: {i.alt or 'none'})" for i in s.images), 10, "images")
    videos = _bullets((f"**{v.src or 'embedded'}** (type: {v.type})" for v in s.videos), 5, "videos")
    structured = (
        f"Found {len(s.structured_data)} structured data blocks" if s.structured_data else "No structured data found"
    )
    return f"""# Complete Website Analysis Results

## Basic Information
- **URL**: {result.url}
- **Title**: {result.title}
- **Description**: {result.description or 'No description found'}

## Website Type Analysis
**Detected Type**: {result.website_type}
**Confidence**: {_confidence_pct(result)}%

## AI Schema Analysis Required
**Status**: {rec.schema_type}
**Reasoning**: {rec.reasoning}

## Scraped Data

### HTML Structure
- **CSS Classes**: {_inline(s.classes, 50)}
- **Element IDs**: {_inline(s.ids, 20)}

### Content Analysis
- **Total Images**: {len(s.images)}
- **Total Videos**: {len(s.videos)}
- **Total Links**: {len(s.links)}
- **Total Forms**: {len(s.forms)}
- **Total Scripts**: {len(s.scripts)}

### Images Found
{images}

### Videos Found
{videos}

### Forms Found
{_bullets(forms, 5, 'forms')}

### Meta Tags
{_bullets(meta, 10, 'meta tags')}

### Content Indicators
- **E-commerce Indicators**: {_inline(s.ecommerce_indicators, 10)}
- **Payment Indicators**: {_inline(s.payment_indicators, 10)}
- **Content Indicators**: {_inline(s.content_indicators, 10)}

### Social Media Links
{_bullets(s.social_links, 5, 'social links')}

### Structured Data Found
{structured}

### Full Text Content Sample
{_text_sample(s.all_text)}

## Schema.org Reference
{rec.documentation}
"""


def _element_guidance(result: AnalysisResult) -> list[str]:
    e = result.detected_elements
    checks = (
        (e.has_video, "**Video Content Detected** - Consider implementing VideoObject schema", "No video content detected"),
        (e.has_images, "**Images Detected** - Add ImageObject schema for better image search visibility", "No images detected"),
        (e.has_forms, "**Forms Detected** - Consider ContactPage or Event schema for form submissions", "No forms detected"),
        (e.has_shopping_cart, "**E-commerce Elements** - Implement Product and Offer schemas", "No e-commerce elements detected"),
        (e.has_user_auth, "**User Authentication** - Consider Person schema for user profiles", "No user authentication detected"),
    )  # fmt: skip
    return [f"✅ {yes}" if present else f"❌ {no}" for present, yes, no in checks]


def _lines(items: Iterable[str]) -> str:
    return "\n".join(items) or "None found"


def _form_line(index: int, form: FormInfo) -> str:
    inputs = ", ".join(f"{inp.type}({inp.name or 'unnamed'})" for inp in form.inputs)
    return f"Form {index}: action={form.action or 'none'}, method={form.method or 'GET'}, inputs=[{inputs}]"


def format_recommendations(result: AnalysisResult) -> str:
    """Complete raw data plus per-element implementation guidance."""
    s = result.snapshot
    t = result.technical_details
    rec = result.schema_recommendation
    links = [f"href: {link.href}, text: {link.text}" for link in s.links]
    scripts = [f"src: {sc.src or 'inline'}, type: {sc.type or 'text/javascript'}" for sc in s.scripts]
    images = [
        f"src: {i.src}, alt: {i.alt or 'none'}, width: {i.width or 'auto'}, height: {i.height or 'auto'}"
        for i in s.images
    ]
    videos = [f"src: {v.src or 'embedded'}, type: {v.type}, poster: {v.poster or 'none'}" for v in s.videos]
    meta = _lines(f"{k}: {v}" for k, v in s.meta_tags.items())
    forms = _lines(_form_line(i, f) for i, f in enumerate(s.forms, 1))
    structured = json.dumps(list(s.structured_data), indent=2, ensure_ascii=False) if s.structured_data else "None found"
    analytics = f"Detected: {', '.join(t.analytics)}" if t.analytics else "No analytics detected"
    payments = f"Detected: {', '.join(t.payment_methods)}" if t.payment_methods else "No payment methods detected"
    guidance = "\n".join(_element_guidance(result))

    return f"""# Detailed Schema Recommendations with Complete Data

## Website Analysis Summary
- **URL**: {result.url}
- **Title**: {result.title}
- **Detected Type**: {result.website_type}
- **Confidence**: {_confidence_pct(result)}%

## Complete Raw Data

### All CSS Classes Found
{', '.join(s.classes) or 'None found'}

### All Element IDs Found
{', '.join(s.ids) or 'None found'}

### All Meta Tags
{meta}

### Images Data
{_lines(images)}

### Videos Data
{_lines(videos)}

### Forms Data
{forms}

### Links Data
{_bullets(links, 20, 'links')}

### Scripts Data
{_bullets(scripts, 10, 'scripts')}

### Content Indicators
- **E-commerce**: {', '.join(s.ecommerce_indicators) or 'None found'}
- **Payment**: {', '.join(s.payment_indicators) or 'None found'}
- **Content**: {', '.join(s.content_indicators) or 'None found'}

### Social Media Links
{_lines(s.social_links)}

### Existing Structured Data
{structured}

### Full Text Content
{s.all_text}

## AI Schema Analysis Required
**Status**: {rec.schema_type}
**Reasoning**: {rec.reasoning}

## Content-Specific Recommendations

### Detected Elements Analysis
{guidance}

### Technical Implementation Notes
- **Framework**: {t.framework or 'Not detected - use standard HTML implementation'}
- **CMS**: {t.cms or 'Not detected - manual implementation required'}
- **Analytics**: {analytics}
- **Payment Methods**: {payments}

## Implementation Guide
{rec.documentation}

## Next Steps
1. Choose Schema.org types that match the actual content above
2. Call generate_schema_markup with the chosen main and nested schemas
3. Test using Google's Rich Results Test: {RICH_RESULTS_TEST_URL}
"""


def format_markup(result: AnalysisResult, selection: SchemaSelection, document: dict[str, Any]) -> str:
    """Generated JSON-LD with embedding and validation instructions."""
    s = result.snapshot
    pretty = json.dumps(document, indent=2, ensure_ascii=False)
    nested = ", ".join(f"{ns.type} in {ns.context}" for ns in selection.nested_schemas)
    nested_line = f"\n- **Nested Schemas**: {nested}" if nested else ""
    return f"""# Generated Schema Markup

## Website Analysis Summary
- **URL**: {result.url}
- **Title**: {result.title}
- **Main Schema**: {selection.main_type}
- **Nested Schemas**: {len(selection.nested_schemas)} schemas

## Generated JSON-LD Schema

```json
{pretty}
```

## Implementation Instructions

### 1. Add to HTML Head
Add this JSON-LD script to your website's `<head>` section:

```html
{to_script_tag(document)}
```

### 2. Validation Steps
1. **Test with Google Rich Results Test**: {RICH_RESULTS_TEST_URL}
2. **Validate with Schema.org Validator**: {SCHEMA_VALIDATOR_URL}

### 3. Schema Structure
- **@context**: References Schema.org vocabulary
- **@type**: Main schema type ({selection.main_type}){nested_line}

## Data Sources Used
- **Title**: {result.title}
- **Description**: {result.description or 'Not available'}
- **Images**: {len(s.images)} found
- **Links**: {len(s.links)} found
- **Forms**: {len(s.forms)} found
- **Classes**: {len(s.classes)} CSS classes analyzed
- **Content Indicators**: {len(s.ecommerce_indicators)} e-commerce, {len(s.payment_indicators)} payment, {len(s.content_indicators)} content indicators
"""


def schema_type_rows(data: dict[str, Any]) -> list[tuple[str, str, str]]:
    """(category, type, description) rows for tabular output."""
    return [
        (category, t["name"], t.get("description", ""))
        for category, types in data["categories"].items()
        for t in types
    ]


def format_schema_types(data: dict[str, Any], *, category: str = "all") -> str:
    """Markdown listing of a ``schema_catalog.get_schema_types`` view."""
    from .schema_catalog import CATEGORY_TITLES, USE_CASE_TYPES

    meta = data["metadata"]
    sections = []
    for name, types in data["categories"].items():
        lines = [f"- **{t['name']}**: {t.get('description') or 'No description available'}" for t in types]
        sections.append(f"### {CATEGORY_TITLES.get(name, name)}\n" + "\n".join(lines))
    categories = "\n\n".join(sections)

    flat = data["flat_list"]
    flat_text = ", ".join(flat[:50])
    if len(flat) > 50:
        flat_text += f"\n... and {len(flat) - 50} more types"

    use_cases = "\n\n".join(f"### For {label}\n- {', '.join(types)}" for label, types in USE_CASE_TYPES.items())
    hierarchy = ""
    if data["hierarchy"]:
        hierarchy = f"\n## Hierarchical Structure\n\n```json\n{json.dumps(data['hierarchy'], indent=2)}\n```\n"

    return f"""# Schema.org Types

## Metadata
- **Total Types**: {meta['total_types']}
- **Extracted Date**: {meta['extracted_date']}
- **Source**: {meta['source']}
- **Category Filter**: {category}

## Schema Types by Category

{categories}

## Complete Flat List
{flat_text}

## Key Schema Types for Different Use Cases

{use_cases}
{hierarchy}"""
