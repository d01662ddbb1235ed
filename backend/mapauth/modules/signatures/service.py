"""
Certificate and signature storage.

A signer owns a set of serialized certificates (``map_crt|<signer>``); each
map instance has a set of certificate ids (``map_sig|<signer>|<map>``) that
grant access to it. A certificate is identified by the MD5 of its canonical
serialization, so the same content always yields the same id.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from mapauth.core.canonicalization import certificate_id, serialize_certificate
from mapauth.core.config import get_settings
from mapauth.core.errors import (
    CertificateNotFoundError,
    NotImplementedFeatureError,
    StoreFailureError,
)
from mapauth.core.keys import certificate_key, signature_key
from mapauth.core.logging import get_logger, operation_context
from mapauth.core.redis_pool import RedisPool

logger = get_logger(__name__)

AUTH_METHOD_OPEN = "open"
AUTH_METHOD_TOKEN = "token"


def certificate_grants(certificate: Mapping[str, Any], credential: str | None) -> bool:
    """Return whether *certificate* lets a caller presenting *credential* in.

    The authorization descriptor is the certificate's ``auth`` member when
    present, otherwise the certificate itself (template certificates are the
    template's ``auth`` block).
    """
    auth = certificate.get("auth")
    descriptor: Mapping[str, Any] = auth if isinstance(auth, Mapping) else certificate

    method = descriptor.get("method")
    if method == AUTH_METHOD_OPEN:
        return True
    if method == AUTH_METHOD_TOKEN:
        if not isinstance(credential, str) or not credential:
            return False
        tokens = descriptor.get("valid_tokens") or []
        if isinstance(tokens, str):
            tokens = [tokens]
        return credential in tokens
    return False


class SignatureStore:
    """Registers certificates and signatures and answers authorization checks."""

    def __init__(
        self,
        pool: RedisPool,
        *,
        db: int | None = None,
        canonicalization: str | None = None,
    ) -> None:
        settings = get_settings()
        self._pool = pool
        self._db = settings.redis_signatures_db if db is None else db
        self._canonicalization = canonicalization or settings.certificate_canonicalization

    @property
    def db(self) -> int:
        return self._db

    @asynccontextmanager
    async def _connection(self, client: redis.Redis | None) -> AsyncIterator[redis.Redis]:
        """Use *client* when the caller already holds one on our db, else check one out."""
        if client is None:
            async with self._pool.acquire(self._db) as acquired:
                yield acquired
            return
        try:
            yield client
        except RedisError as exc:
            logger.warning("redis_command_failed", db=self._db, error=str(exc))
            raise StoreFailureError(str(exc)) from exc

    def serialize(self, certificate: Mapping[str, Any]) -> tuple[str, str]:
        """Return ``(serialized, certificate_id)`` for *certificate*."""
        serialized = serialize_certificate(certificate, canonicalization=self._canonicalization)
        return serialized, certificate_id(serialized)

    async def add_signature(
        self, signer: str, map_id: str, certificate: Mapping[str, Any]
    ) -> str:
        """Authorize holders of *certificate* to access *map_id* as *signer*.

        The certificate and the signature reference are written in one
        MULTI/EXEC so neither is visible without the other.
        """
        serialized, crt_id = self.serialize(certificate)
        crt_key, sig_key = certificate_key(signer), signature_key(signer, map_id)
        with operation_context("add_signature", signer=signer, map_id=map_id):
            async with self._pool.acquire(self._db) as client:
                tx = client.pipeline(transaction=True)
                tx.sadd(crt_key, serialized)
                tx.sadd(sig_key, crt_id)
                await tx.execute()
            logger.info("signature_added", certificate_id=crt_id)
        return crt_id

    async def add_certificate(
        self,
        signer: str,
        certificate: Mapping[str, Any],
        *,
        client: redis.Redis | None = None,
    ) -> str:
        """Store *certificate* in the signer's certificate set and return its id.

        *client* is an already checked-out connection on this store's db.
        """
        serialized, crt_id = self.serialize(certificate)
        key = certificate_key(signer)
        with operation_context("add_certificate", signer=signer):
            async with self._connection(client) as conn:
                added = await conn.sadd(key, serialized)
            if not added:
                logger.info("certificate_already_present", certificate_id=crt_id)
        return crt_id

    async def del_certificate(
        self, signer: str, crt_id: str, *, client: redis.Redis | None = None
    ) -> bool:
        """Remove the certificate with id *crt_id* from the signer's set.

        Signature sets may keep referencing the id; ``is_authorized`` skips
        ids with no certificate behind them, so removal revokes access.
        """
        key = certificate_key(signer)
        with operation_context("del_certificate", signer=signer, certificate_id=crt_id):
            async with self._connection(client) as conn:
                members = await conn.smembers(key)
                matches = [value for value in members if certificate_id(value) == crt_id]
                if not matches:
                    logger.warning("certificate_not_found")
                    return False
                await conn.srem(key, *matches)
            logger.info("certificate_deleted")
        return True

    async def get_certificate(self, signer: str, crt_id: str) -> dict[str, Any]:
        """Return the decoded certificate with id *crt_id*."""
        key = certificate_key(signer)
        async with self._pool.acquire(self._db) as client:
            members = await client.smembers(key)
        certificates = self._index_certificates(signer, members)
        if crt_id not in certificates:
            raise CertificateNotFoundError(signer, crt_id)
        return certificates[crt_id]

    async def is_authorized(self, signer: str, map_id: str, credential: str | None) -> bool:
        """Check whether any signature by *signer* lets *credential* access *map_id*."""
        crt_key, sig_key = certificate_key(signer), signature_key(signer, map_id)
        with operation_context("is_authorized", signer=signer, map_id=map_id):
            async with self._pool.acquire(self._db) as client:
                crt_ids = await client.smembers(sig_key)
                if not crt_ids:
                    logger.debug("no_signatures")
                    return False
                members = await client.smembers(crt_key)

            certificates = self._index_certificates(signer, members)
            for crt_id in sorted(crt_ids):
                certificate = certificates.get(crt_id)
                if certificate is None:
                    logger.debug("signature_references_missing_certificate", certificate_id=crt_id)
                    continue
                if certificate_grants(certificate, credential):
                    logger.debug("authorized_by_certificate", certificate_id=crt_id)
                    return True
        return False

    async def del_signature(self, crt_id: str) -> None:
        """Revoke a certificate and every signature that references it.

        Needs a reverse index from certificate id to signer and map
        instances, which the key layout does not have yet.
        """
        raise NotImplementedFeatureError("Certificate revocation interface not implemented yet")

    @staticmethod
    def _index_certificates(signer: str, members: set[str]) -> dict[str, dict[str, Any]]:
        certificates: dict[str, dict[str, Any]] = {}
        for value in members:
            try:
                decoded = json.loads(value)
            except json.JSONDecodeError:
                logger.error("certificate_unparsable", signer=signer)
                continue
            if isinstance(decoded, dict):
                certificates[certificate_id(value)] = decoded
        return certificates
