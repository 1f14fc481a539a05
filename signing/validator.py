from __future__ import annotations

from codec.bcs import DeserializationError, decode, encode
from errors import MalformedSignature
from observability import build_log_context, log_event

from .authenticator import AccountAuthenticator
from .base import SignatureValidator

VALIDATOR_CTX = build_log_context(component="signature_validator")


class BcsSignatureValidator(SignatureValidator):
    """
    Decodes the blob as a BCS `AccountAuthenticator` and re-encodes it.

    The re-encoding is what gets stored, so two signers producing the same
    authenticator always hand the submitter identical bytes.
    """

    def validate_and_normalize(self, signature: bytes) -> bytes:
        if not signature:
            raise MalformedSignature("empty signature")
        try:
            auth = decode(signature, AccountAuthenticator)
        except DeserializationError as e:
            raise MalformedSignature(str(e)) from e
        normalized = encode(auth)
        log_event(
            "signature_decoded",
            ctx=VALIDATOR_CTX,
            data={"length": len(signature), "changed": normalized != signature, **auth.describe()},
        )
        return normalized
