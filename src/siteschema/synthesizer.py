# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""AnalysisResult + SchemaSelection → JSON-LD document.

The document is threaded through a fixed sequence of pure steps, each
returning a new mapping:

    base → description → images → custom properties → nested schemas
         → singleton collapse

Neither the analysis result nor the selection is mutated. A malformed
page URL met while absolutizing raises InvalidInputError and no
document is produced.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import AnalysisResult
from .errors import InvalidInputError
from .urls import absolutize

SCHEMA_CONTEXT = "https://schema.org"

Document = dict[str, Any]


class NestedSchema(BaseModel):
    """One typed sub-document attached under ``context``."""

    type: str = Field(..., min_length=1, description="schema.org type, e.g. Offer")
    context: str = Field(..., min_length=1, description="Parent key to attach under, e.g. offers")
    properties: dict[str, Any] = Field(default_factory=dict, description="Properties of the nested object")


class SchemaSelection(BaseModel):
    """Schema choice supplied by the external decision-maker."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    main_type: str = Field(..., alias="mainSchema", min_length=1, description="Main schema.org type")
    nested_schemas: list[NestedSchema] = Field(default_factory=list, alias="nestedSchemas")
    custom_properties: dict[str, Any] = Field(default_factory=dict, alias="customProperties")


def parse_selection(data: Mapping[str, Any]) -> SchemaSelection:
    """Validate a raw mapping (camelCase or snake_case keys) into a SchemaSelection."""
    try:
        return SchemaSelection.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'selection'}: {err['msg']}" for err in e.errors()
        )
        raise InvalidInputError(f"Invalid schema selection: {problems}") from e


# --- Steps ---


def _base(result: AnalysisResult, selection: SchemaSelection) -> Document:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": selection.main_type,
        "name": result.title,
        "url": result.url,
    }


def _with_description(doc: Document, result: AnalysisResult) -> Document:
    if not result.description:
        return doc
    return {**doc, "description": result.description}


def _with_images(doc: Document, result: AnalysisResult) -> Document:
    image_objects = [
        {
            "@type": "ImageObject",
            "url": absolutize(img.src, result.url),
            "alt": img.alt or result.title,
        }
        for img in result.snapshot.images
        if img.src
    ]
    if not image_objects:
        return doc
    return {**doc, "image": image_objects}


def _with_custom_properties(doc: Document, selection: SchemaSelection) -> Document:
    return {**doc, **selection.custom_properties}


def _nested_object(nested: NestedSchema, base_url: str) -> Document:
    obj: Document = {"@type": nested.type}
    for key, value in nested.properties.items():
        if isinstance(value, str) and value.startswith("/"):
            value = absolutize(value, base_url)
        obj[key] = value
    return obj


def _with_nested_schemas(doc: Document, selection: SchemaSelection, base_url: str) -> Document:
    if not selection.nested_schemas:
        return doc
    out = dict(doc)
    for nested in selection.nested_schemas:
        existing = out.get(nested.context)
        if existing is None:
            bucket: list[Any] = []
        elif isinstance(existing, list):
            bucket = list(existing)
        else:
            bucket = [existing]
        bucket.append(_nested_object(nested, base_url))
        out[nested.context] = bucket
    return out


def collapse_singletons(doc: Document) -> Document:
    """Replace every top-level list of exactly one element with that element."""
    return {k: (v[0] if isinstance(v, list) and len(v) == 1 else v) for k, v in doc.items()}


# --- Public API ---


def synthesize(result: AnalysisResult, selection: SchemaSelection) -> Document:
    """Build the JSON-LD document for *result* under *selection*."""
    doc = _base(result, selection)
    doc = _with_description(doc, result)
    doc = _with_images(doc, result)
    doc = _with_custom_properties(doc, selection)
    doc = _with_nested_schemas(doc, selection, result.url)
    return collapse_singletons(doc)


def to_script_tag(document: Mapping[str, Any]) -> str:
    """Render *document* as an embeddable ``<script type="application/ld+json">`` block."""
    payload = json.dumps(document, indent=2, ensure_ascii=False)
    # A literal "</" would close the script element early
    payload = payload.replace("</", "<\\/")
    return f'<script type="application/ld+json">\n{payload}\n</script>'
