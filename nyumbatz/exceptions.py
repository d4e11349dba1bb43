"""Error taxonomy for the NyumbaTZ data layer.

    NyumbaError (base)
    ├── ConfigurationMissing   Supabase not configured; absorbed by the selector
    ├── RemoteRequestFailed    network/service failure, surfaced to the caller
    ├── ValidationFailed       malformed filters or payloads, rejected before dispatch
    ├── PermissionDenied       caller does not own the record
    └── AuthenticationFailed   bad credentials or an unusable access token

A single-entity lookup that finds nothing returns None rather than raising.
"""

from __future__ import annotations


class NyumbaError(Exception):
    """Base exception for all NyumbaTZ errors."""

    code = "error"

    def __init__(self, message: str, *args):
        self.message = message
        super().__init__(message, *args)

    def to_payload(self) -> dict:
        return {"code": self.code, "message": self.message}


class ConfigurationMissing(NyumbaError):
    """Raised when the Supabase endpoint or key is absent or a placeholder."""

    code = "configuration_missing"


class RemoteRequestFailed(NyumbaError):
    """Raised when a Supabase call fails.

    ``message`` is safe to show to end users; the backend's own error is kept
    on ``cause`` for logging only.
    """

    code = "remote_request_failed"

    def __init__(self, message: str, operation: str = "", cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(message)


class ValidationFailed(NyumbaError):
    """Raised when caller-supplied filters or mutation payloads are malformed."""

    code = "validation_failed"

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        self.errors = errors or {}
        super().__init__(message)

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["fields"] = self.errors
        return payload


class PermissionDenied(NyumbaError):
    """Raised when a caller mutates a record they do not own."""

    code = "permission_denied"


class AuthenticationFailed(NyumbaError):
    """Raised when sign-in is rejected or an access token cannot be resolved."""

    code = "authentication_failed"
