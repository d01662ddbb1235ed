"""
Error taxonomy shared by the template registry and the signature store.

Every failure carries a stable ``code`` so the HTTP layer (and any other
caller) can branch on the kind rather than on message text. Messages keep
the historical wording because existing clients match on it.
"""

from __future__ import annotations


class MapAuthError(Exception):
    """Base class for all registry and signature failures."""

    code = "map_auth_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TemplateValidationError(MapAuthError, ValueError):
    """Raised when a template document is rejected before touching the store."""

    code = "invalid_template"


class UnsupportedVersionError(TemplateValidationError):
    code = "unsupported_version"

    def __init__(self, version: object) -> None:
        super().__init__(f"Unsupported template version {version}")
        self.version = version


class MissingNameError(TemplateValidationError):
    code = "missing_name"

    def __init__(self) -> None:
        super().__init__("Missing template name")


class InvalidNameError(TemplateValidationError):
    code = "invalid_name"

    def __init__(self, name: object) -> None:
        super().__init__(f"Invalid characters in template name '{name}'")
        self.name = name


class InvalidIdentifierError(MapAuthError, ValueError):
    """An owner, signer or map id that cannot be embedded in a store key."""

    code = "invalid_identifier"

    def __init__(self, kind: str, value: object) -> None:
        super().__init__(f"Invalid {kind} '{value}'")
        self.kind = kind
        self.value = value


class TemplateLockedError(MapAuthError):
    """Another operation holds the lock for this (owner, name); try again later."""

    code = "locked"

    def __init__(self, owner: str, name: str) -> None:
        super().__init__(f"Template '{name}' of user '{owner}' is locked")
        self.owner = owner
        self.name = name


class TemplateExistsError(MapAuthError):
    code = "already_exists"

    def __init__(self, owner: str, name: str) -> None:
        super().__init__(f"Template '{name}' of user '{owner}' already exists")
        self.owner = owner
        self.name = name


class NotFoundError(MapAuthError):
    code = "not_found"


class TemplateNotFoundError(NotFoundError):
    def __init__(self, owner: str, name: str) -> None:
        super().__init__(f"Template '{name}' of user '{owner}' not found")
        self.owner = owner
        self.name = name


class CertificateNotFoundError(NotFoundError):
    def __init__(self, signer: str, certificate_id: str) -> None:
        super().__init__(f"Certificate '{certificate_id}' of signer '{signer}' not found")
        self.signer = signer
        self.certificate_id = certificate_id


class NotImplementedFeatureError(MapAuthError, NotImplementedError):
    """A declared operation whose semantics are not designed yet."""

    code = "not_implemented"


class StoreFailureError(MapAuthError):
    """The key-value store rejected a command or could not be reached."""

    code = "store_failure"
