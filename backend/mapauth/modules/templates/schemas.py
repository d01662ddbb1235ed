"""Schemas for template endpoints.

Template documents themselves stay plain JSON objects: ``layergroup`` is
opaque here and validation errors must come from the registry.
"""

from __future__ import annotations

from pydantic import BaseModel


class TemplateCreateResponse(BaseModel):
    template_id: str


class TemplateListResponse(BaseModel):
    template_ids: list[str]
