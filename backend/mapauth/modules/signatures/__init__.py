"""Certificates and per-map signatures, and the authorization check over them."""

from mapauth.modules.signatures.service import SignatureStore, certificate_grants

__all__ = ["SignatureStore", "certificate_grants"]
