from .authenticator import AccountAuthenticator, AnyPublicKey, AnySignature, AuthenticatorKind
from .base import SignatureValidator
from .validator import BcsSignatureValidator

__all__ = [
    "AccountAuthenticator",
    "AnyPublicKey",
    "AnySignature",
    "AuthenticatorKind",
    "BcsSignatureValidator",
    "SignatureValidator",
]
