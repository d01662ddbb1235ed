"""
API Router for owner-scoped map templates.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, status

from mapauth.core.errors import MapAuthError
from mapauth.core.http import to_http_exception
from mapauth.core.redis_pool import get_redis_pool
from mapauth.modules.signatures.router import SignatureStoreDep
from mapauth.modules.templates.schemas import TemplateCreateResponse, TemplateListResponse
from mapauth.modules.templates.service import TemplateMaps

router = APIRouter()


def get_template_maps(signatures: SignatureStoreDep) -> TemplateMaps:
    return TemplateMaps(get_redis_pool(), signatures)


TemplateMapsDep = Annotated[TemplateMaps, Depends(get_template_maps)]


@router.post(
    "/{owner}",
    response_model=TemplateCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_template(
    owner: str,
    template: Annotated[Any, Body()],
    templates: TemplateMapsDep,
) -> TemplateCreateResponse:
    try:
        template_id = await templates.add_template(owner, template)
    except MapAuthError as exc:
        raise to_http_exception(exc) from exc
    return TemplateCreateResponse(template_id=template_id)


@router.get("/{owner}", response_model=TemplateListResponse)
async def list_templates(owner: str, templates: TemplateMapsDep) -> TemplateListResponse:
    try:
        template_ids = await templates.list_templates(owner)
    except MapAuthError as exc:
        raise to_http_exception(exc) from exc
    return TemplateListResponse(template_ids=template_ids)


@router.get("/{owner}/{name}")
async def get_template(owner: str, name: str, templates: TemplateMapsDep) -> dict[str, Any]:
    try:
        return await templates.get_template(owner, name)
    except MapAuthError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{owner}/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def update_template(
    owner: str,
    name: str,
    template: Annotated[Any, Body()],
    templates: TemplateMapsDep,
) -> None:
    try:
        await templates.upd_template(owner, name, template)
    except MapAuthError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{owner}/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(owner: str, name: str, templates: TemplateMapsDep) -> None:
    try:
        await templates.del_template(owner, name)
    except MapAuthError as exc:
        raise to_http_exception(exc) from exc
