"""Cloudflare API client: scoped token setup and Pages deployments."""

from .api import CF_API_BASE, CloudflareApi
from .deploy import ArtifactPart, ArtifactSet, DeploymentUploader, PagesTarget, WorkerTarget
from .envelope import Envelope, decode_response, parse_envelope
from .errors import (
    APIError,
    ArtifactReadError,
    CloudflareError,
    ConfigurationError,
    DecodeError,
    DeployNotImplemented,
    PermissionNotFound,
    PersistError,
    TokenCreationFailed,
    TransportError,
)
from .permissions import PermissionGroup, PermissionResolver, select_permission_group
from .tokens import TokenScoper

__all__ = [
    "APIError",
    "ArtifactPart",
    "ArtifactReadError",
    "ArtifactSet",
    "CF_API_BASE",
    "CloudflareApi",
    "CloudflareError",
    "ConfigurationError",
    "DecodeError",
    "DeployNotImplemented",
    "DeploymentUploader",
    "Envelope",
    "PagesTarget",
    "PermissionGroup",
    "PermissionNotFound",
    "PermissionResolver",
    "PersistError",
    "TokenCreationFailed",
    "TokenScoper",
    "TransportError",
    "WorkerTarget",
    "decode_response",
    "parse_envelope",
    "select_permission_group",
]
