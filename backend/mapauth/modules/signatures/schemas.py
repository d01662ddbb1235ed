"""Schemas for signature endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SignatureCreateRequest(BaseModel):
    """A certificate granting access to one map instance."""

    certificate: dict[str, Any] = Field(..., description="Authorization certificate")


class SignatureCreateResponse(BaseModel):
    certificate_id: str


class AuthorizationResponse(BaseModel):
    authorized: bool
