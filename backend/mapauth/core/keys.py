"""Redis key layout for templates, template locks, certificates and signatures."""

from __future__ import annotations

from mapauth.core.errors import InvalidIdentifierError

KEY_SEPARATOR = "|"


def _component(kind: str, value: str) -> str:
    # Ids holding the separator would alias other keys (map_tpl|a|locks)
    if not isinstance(value, str) or not value or KEY_SEPARATOR in value:
        raise InvalidIdentifierError(kind, value)
    return value


def template_key(owner: str) -> str:
    """Hash of ``template name -> serialized template`` owned by *owner*."""
    return f"map_tpl|{_component('owner', owner)}"


def template_lock_key(owner: str) -> str:
    """Hash of ``template name -> lock creation time (ms)`` for *owner*."""
    return f"map_tpl|{_component('owner', owner)}|locks"


def certificate_key(signer: str) -> str:
    """Set of serialized certificates issued by *signer*."""
    return f"map_crt|{_component('signer', signer)}"


def signature_key(signer: str, map_id: str) -> str:
    """Set of certificate ids by *signer* that grant access to *map_id*."""
    return f"map_sig|{_component('signer', signer)}|{_component('map id', map_id)}"
