from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class RelayError(Exception):
    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    status_code: int = 400

    def __str__(self) -> str:
        return self.message


class NotFound(RelayError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__("not_found", "Transaction not found", {"transaction_id": transaction_id}, 404)


class AlreadyExists(RelayError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(
            "already_exists",
            "A different transaction is already stored under this id",
            {"transaction_id": transaction_id},
            409,
        )


class AlreadySigned(RelayError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(
            "already_signed",
            "Transaction already has a secondary signature",
            {"transaction_id": transaction_id},
            409,
        )


class MalformedSignature(RelayError):
    def __init__(self, reason: str) -> None:
        super().__init__("malformed_signature", f"Malformed signature: {reason}", {"reason": reason}, 400)


class InvalidEncoding(RelayError):
    def __init__(self, reason: str) -> None:
        super().__init__("invalid_encoding", f"Invalid transaction encoding: {reason}", {"reason": reason}, 400)


class TransportError(RelayError):
    def __init__(self, message: str, data: Dict[str, Any] | None = None) -> None:
        super().__init__("bad_request", message, data or {}, 400)


class PayloadTooLarge(RelayError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            "payload_too_large",
            f"Request body of {size} bytes exceeds the {limit} byte limit",
            {"size": size, "limit": limit},
            413,
        )


def classify_exception(e: Exception) -> RelayError:
    """
    Map any exception into a stable relay error.
    """
    if isinstance(e, RelayError):
        return e
    return RelayError("internal_error", str(e) or e.__class__.__name__, {"type": e.__class__.__name__}, 500)
