"""
Template registry.

Templates are stored per owner in the ``map_tpl|<owner>`` hash, keyed by
template name, as JSON documents. Every mutation runs under the
(owner, name) lock and installs or removes the template's certificate
through the signature store.
"""

from __future__ import annotations

import copy
import json
import re
from collections.abc import Mapping
from typing import Any

import redis.asyncio as redis

from mapauth.core.canonicalization import serialize_json_stringify
from mapauth.core.config import get_settings
from mapauth.core.errors import (
    InvalidNameError,
    MissingNameError,
    NotImplementedFeatureError,
    StoreFailureError,
    TemplateExistsError,
    TemplateNotFoundError,
    TemplateValidationError,
    UnsupportedVersionError,
)
from mapauth.core.keys import template_key
from mapauth.core.logging import get_logger, operation_context
from mapauth.core.redis_pool import RedisPool
from mapauth.modules.signatures.service import SignatureStore
from mapauth.modules.templates.locks import hold_template_lock

logger = get_logger(__name__)

TEMPLATE_VERSION = "0.0.1"

_TEMPLATE_NAME_RE = re.compile(r"[a-zA-Z][0-9a-zA-Z_]*")


class TemplateMaps:
    """Add, fetch and delete named map templates of an owner."""

    def __init__(
        self,
        pool: RedisPool,
        signatures: SignatureStore,
        *,
        db: int | None = None,
    ) -> None:
        self._pool = pool
        self._signatures = signatures
        self._db = get_settings().redis_templates_db if db is None else db

    @staticmethod
    def validate_template(template: Any) -> str:
        """Check version, name and shape of *template*; return its name."""
        if not isinstance(template, Mapping):
            raise TemplateValidationError("Template must be a JSON object")
        version = template.get("version")
        if version != TEMPLATE_VERSION:
            raise UnsupportedVersionError(version)

        name = template.get("name")
        if name is None:
            raise MissingNameError()
        if not isinstance(name, str) or not _TEMPLATE_NAME_RE.fullmatch(name):
            raise InvalidNameError(name)

        if "auth" in template and not isinstance(template["auth"], Mapping):
            raise TemplateValidationError(f"Invalid auth in template '{name}'")
        try:
            serialize_json_stringify(template)
        except (TypeError, ValueError) as exc:
            raise TemplateValidationError(f"Template '{name}' is not valid JSON: {exc}") from exc
        return name

    async def add_template(self, owner: str, template: Mapping[str, Any]) -> str:
        """Register *template* for *owner* and return its identifier (the name).

        The certificate is installed before the template is written, so a
        crash in between leaves an unreferenced certificate behind.
        """
        name = self.validate_template(template)
        document = copy.deepcopy(dict(template))
        auth = dict(document.get("auth") or {})
        certificate = copy.deepcopy(auth)
        certificate["template_id"] = name
        key = template_key(owner)

        with operation_context("add_template", owner=owner, template=name):
            async with self._pool.acquire(self._db) as client:
                async with hold_template_lock(client, owner, name):
                    if await client.hexists(key, name):
                        raise TemplateExistsError(owner, name)

                    crt_id = await self._signatures.add_certificate(
                        owner, certificate, client=self._shared(client)
                    )

                    if "auth" in document:
                        auth.pop("name", None)
                        document["auth"] = auth
                    document["auth_id"] = crt_id
                    created = await client.hset(key, name, serialize_json_stringify(document))
                    if not created:
                        # HSET only reports 0 when the field existed: someone
                        # wrote it without taking the lock
                        logger.error("template_overwritten_without_lock")
            logger.info("template_added", certificate_id=crt_id)
        return name

    async def get_template(self, owner: str, name: str) -> dict[str, Any]:
        """Return the stored template document, ``auth_id`` included."""
        key = template_key(owner)
        async with self._pool.acquire(self._db) as client:
            raw = await client.hget(key, name)
        if raw is None:
            raise TemplateNotFoundError(owner, name)
        document = self._decode(owner, name, raw)
        if document is None:
            raise TemplateNotFoundError(owner, name)
        return document

    async def del_template(self, owner: str, name: str) -> None:
        """Delete a template and the certificate it references.

        The template entry is removed even when deleting the certificate
        fails; that failure is raised afterwards.
        """
        key = template_key(owner)
        with operation_context("del_template", owner=owner, template=name):
            async with self._pool.acquire(self._db) as client:
                async with hold_template_lock(client, owner, name):
                    raw = await client.hget(key, name)
                    if raw is None:
                        raise TemplateNotFoundError(owner, name)
                    document = self._decode(owner, name, raw) or {}

                    certificate_error: StoreFailureError | None = None
                    crt_id = document.get("auth_id")
                    if not crt_id:
                        logger.error("template_without_auth_id")
                    else:
                        try:
                            await self._signatures.del_certificate(
                                owner, crt_id, client=self._shared(client)
                            )
                        except StoreFailureError as exc:
                            logger.error(
                                "certificate_delete_failed", certificate_id=crt_id, error=str(exc)
                            )
                            certificate_error = exc

                    deleted = await client.hdel(key, name)
                    if not deleted:
                        logger.error("template_externally_removed")

                    if certificate_error is not None:
                        raise StoreFailureError(
                            f"Could not delete certificate '{crt_id}' associated with "
                            f"template '{name}' of user '{owner}': {certificate_error}"
                        ) from certificate_error
            logger.info("template_deleted")

    async def upd_template(self, owner: str, name: str, template: Mapping[str, Any]) -> None:
        # Needs an atomic swap, a reissued certificate and invalidation of
        # every instance signature of the old one.
        raise NotImplementedFeatureError("Updating a template is not implemented yet")

    async def list_templates(self, owner: str) -> list[str]:
        raise NotImplementedFeatureError("Listing templates is not implemented yet")

    def _shared(self, client: redis.Redis) -> redis.Redis | None:
        # One checkout per operation when both stores live on the same db
        return client if self._signatures.db == self._db else None

    @staticmethod
    def _decode(owner: str, name: str, raw: str) -> dict[str, Any] | None:
        try:
            document = json.loads(raw)
        except json.JSONDecodeError:
            logger.error("template_unparsable", owner=owner, template=name)
            return None
        if not isinstance(document, dict):
            logger.error("template_unparsable", owner=owner, template=name)
            return None
        return document
