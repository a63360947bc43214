from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List

from .errors import APIError, DecodeError


UNSPECIFIED_FAILURE = "unspecified failure"


@dataclass(frozen=True)
class EnvelopeError:
    code: int
    message: str


@dataclass(frozen=True)
class Envelope:
    """Cloudflare's uniform ``{success, errors, result}`` response wrapper."""

    success: bool
    errors: List[EnvelopeError] = field(default_factory=list)
    result: Any = None


def parse_envelope(raw: bytes) -> Envelope:
    """Parse response bytes into an Envelope without judging success.

    Raises:
        DecodeError: body is not JSON or does not have the envelope shape.
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise DecodeError(f"parse envelope: {e}")

    if not isinstance(data, dict):
        raise DecodeError("parse envelope: expected JSON object")
    success = data.get("success")
    if not isinstance(success, bool):
        raise DecodeError("parse envelope: 'success' must be a boolean")

    errors_raw = data.get("errors")
    if errors_raw is None:
        errors_raw = []
    if not isinstance(errors_raw, list):
        raise DecodeError("parse envelope: 'errors' must be a list")

    errors: List[EnvelopeError] = []
    for item in errors_raw:
        if not isinstance(item, dict):
            raise DecodeError("parse envelope: error entries must be objects")
        try:
            code = int(item.get("code") or 0)
        except (TypeError, ValueError):
            raise DecodeError(f"parse envelope: invalid error code {item.get('code')!r}")
        errors.append(EnvelopeError(code=code, message=str(item.get("message") or "")))

    return Envelope(success=success, errors=errors, result=data.get("result"))


def decode_response(raw: bytes) -> Any:
    """Decode an envelope and return its opaque ``result`` on success.

    A failure envelope raises APIError built from the first error entry, or a
    generic ``APIError(0, "unspecified failure")`` when the platform sent none.
    """
    env = parse_envelope(raw)
    if env.success:
        return env.result
    if env.errors:
        first = env.errors[0]
        raise APIError(first.code, first.message)
    raise APIError(0, UNSPECIFIED_FAILURE)
