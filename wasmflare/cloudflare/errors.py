from __future__ import annotations

from typing import List


class CloudflareError(Exception):
    """Base class for setup and deploy errors.

    Each layer that lets an error pass records its operation name with
    ``within()`` so the final message reads like
    ``cloudflare: create scoped token: token value empty in response`` while the
    exception keeps its concrete type.
    """

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.operations: List[str] = []

    def within(self, operation: str) -> "CloudflareError":
        self.operations.insert(0, operation)
        return self

    def __str__(self) -> str:
        trail = "".join(f"{op}: " for op in self.operations)
        return f"cloudflare: {trail}{self.message}"


class ConfigurationError(CloudflareError):
    """A required credential-store value is missing or empty."""

    def __init__(self, field: str) -> None:
        super().__init__(f"{field} not configured")
        self.field = field


class PermissionNotFound(CloudflareError):
    """No permission group matched both name markers."""


class APIError(CloudflareError):
    """The platform answered with ``success=false``."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"CF API error {code}: {message}")
        self.code = code
        self.api_message = message


class DecodeError(CloudflareError):
    """Response bytes are not a well-formed envelope (or result payload)."""


class TokenCreationFailed(CloudflareError):
    """Token creation succeeded on the wire but carried no usable value."""


class ArtifactReadError(CloudflareError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"read {path}: {reason}")
        self.path = path


class PersistError(CloudflareError):
    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"store {key}: {reason}")
        self.key = key


class TransportError(CloudflareError):
    """The request never produced a response (DNS, TLS, timeout, reset)."""


class DeployNotImplemented(CloudflareError):
    """Deployment path exists in the interface but is not supported yet."""
