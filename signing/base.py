from __future__ import annotations

from abc import ABC, abstractmethod


class SignatureValidator(ABC):
    """
    Checks that an authenticator blob is well-formed before the relay accepts it.
    """

    @abstractmethod
    def validate_and_normalize(self, signature: bytes) -> bytes:
        """Return the canonical encoding or raise MalformedSignature."""
        raise NotImplementedError
