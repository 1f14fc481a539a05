from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from codec.bcs import DeserializationError, Deserializer, Serializer

ED25519_PUBLIC_KEY_LENGTH = 32
ED25519_SIGNATURE_LENGTH = 64
SECP_PUBLIC_KEY_LENGTH = 65
SECP_SIGNATURE_LENGTH = 64
MULTI_ED25519_MAX_KEYS = 32
MULTI_ED25519_BITMAP_LENGTH = 4


def _sized_bytes(des: Deserializer, expected: int, what: str) -> bytes:
    value = des.to_bytes()
    if len(value) != expected:
        raise DeserializationError(f"{what} must be {expected} bytes, got {len(value)}")
    return value


class AuthenticatorKind:
    ED25519 = 0
    MULTI_ED25519 = 1
    SINGLE_KEY = 2
    MULTI_KEY = 3
    NO_ACCOUNT = 4


# AnyPublicKey / AnySignature variants accepted, with their fixed lengths.
# WebAuthn signatures are opaque assertion blobs (None = any length).
_ANY_PUBLIC_KEY_LENGTHS = {
    0: ED25519_PUBLIC_KEY_LENGTH,
    1: SECP_PUBLIC_KEY_LENGTH,
    2: SECP_PUBLIC_KEY_LENGTH,
}
_ANY_SIGNATURE_LENGTHS: Dict[int, Optional[int]] = {
    0: ED25519_SIGNATURE_LENGTH,
    1: SECP_SIGNATURE_LENGTH,
    2: None,
}
_PUBLIC_KEY_SCHEMES = {0: "ed25519", 1: "secp256k1_ecdsa", 2: "secp256r1_ecdsa"}
_SIGNATURE_SCHEMES = {0: "ed25519", 1: "secp256k1_ecdsa", 2: "webauthn"}


@dataclass(frozen=True)
class AnyPublicKey:
    variant: int
    key: bytes

    @staticmethod
    def deserialize(des: Deserializer) -> "AnyPublicKey":
        variant = des.uleb128()
        expected = _ANY_PUBLIC_KEY_LENGTHS.get(variant)
        if expected is None:
            raise DeserializationError(f"unsupported public key variant {variant}")
        return AnyPublicKey(variant, _sized_bytes(des, expected, "public key"))

    def serialize(self, ser: Serializer) -> None:
        ser.uleb128(self.variant)
        ser.to_bytes(self.key)


@dataclass(frozen=True)
class AnySignature:
    variant: int
    signature: bytes

    @staticmethod
    def deserialize(des: Deserializer) -> "AnySignature":
        variant = des.uleb128()
        if variant not in _ANY_SIGNATURE_LENGTHS:
            raise DeserializationError(f"unsupported signature variant {variant}")
        expected = _ANY_SIGNATURE_LENGTHS[variant]
        if expected is None:
            return AnySignature(variant, des.to_bytes())
        return AnySignature(variant, _sized_bytes(des, expected, "signature"))

    def serialize(self, ser: Serializer) -> None:
        ser.uleb128(self.variant)
        ser.to_bytes(self.signature)


@dataclass(frozen=True)
class AccountAuthenticator:
    """
    Proof that one account authorized a transaction.

    `public_keys`/`signatures` hold the raw key material for the Ed25519 and
    MultiEd25519 variants; `any_public_keys`/`any_signatures` hold the tagged
    keys of SingleKey and MultiKey.
    """

    kind: int
    public_keys: Tuple[bytes, ...] = ()
    signatures: Tuple[bytes, ...] = ()
    any_public_keys: Tuple[AnyPublicKey, ...] = ()
    any_signatures: Tuple[AnySignature, ...] = ()
    threshold: Optional[int] = None
    bitmap: bytes = b""

    @staticmethod
    def deserialize(des: Deserializer) -> "AccountAuthenticator":
        kind = des.uleb128()
        if kind == AuthenticatorKind.ED25519:
            key = _sized_bytes(des, ED25519_PUBLIC_KEY_LENGTH, "ed25519 public key")
            sig = _sized_bytes(des, ED25519_SIGNATURE_LENGTH, "ed25519 signature")
            return AccountAuthenticator(kind, public_keys=(key,), signatures=(sig,))
        if kind == AuthenticatorKind.MULTI_ED25519:
            return _deserialize_multi_ed25519(des)
        if kind == AuthenticatorKind.SINGLE_KEY:
            key = AnyPublicKey.deserialize(des)
            sig = AnySignature.deserialize(des)
            return AccountAuthenticator(kind, any_public_keys=(key,), any_signatures=(sig,))
        if kind == AuthenticatorKind.MULTI_KEY:
            keys = tuple(des.sequence(AnyPublicKey.deserialize))
            required = des.u8()
            sigs = tuple(des.sequence(AnySignature.deserialize))
            bitmap = des.to_bytes()
            if not keys or required == 0 or required > len(keys):
                raise DeserializationError(f"invalid multi-key threshold {required} of {len(keys)}")
            return AccountAuthenticator(
                kind, any_public_keys=keys, any_signatures=sigs, threshold=required, bitmap=bitmap
            )
        if kind == AuthenticatorKind.NO_ACCOUNT:
            return AccountAuthenticator(kind)
        raise DeserializationError(f"unknown authenticator variant {kind}")

    def serialize(self, ser: Serializer) -> None:
        ser.uleb128(self.kind)
        if self.kind == AuthenticatorKind.ED25519:
            ser.to_bytes(self.public_keys[0])
            ser.to_bytes(self.signatures[0])
        elif self.kind == AuthenticatorKind.MULTI_ED25519:
            ser.to_bytes(b"".join(self.public_keys) + bytes([self.threshold or 0]))
            ser.to_bytes(b"".join(self.signatures) + self.bitmap)
        elif self.kind == AuthenticatorKind.SINGLE_KEY:
            self.any_public_keys[0].serialize(ser)
            self.any_signatures[0].serialize(ser)
        elif self.kind == AuthenticatorKind.MULTI_KEY:
            ser.sequence(list(self.any_public_keys), Serializer.struct)
            ser.u8(self.threshold or 0)
            ser.sequence(list(self.any_signatures), Serializer.struct)
            ser.to_bytes(self.bitmap)

    def describe(self) -> Dict[str, Any]:
        """Loggable summary (no signature bytes)."""
        if self.kind == AuthenticatorKind.ED25519:
            return {"scheme": "ed25519", "public_key": "0x" + self.public_keys[0].hex()}
        if self.kind == AuthenticatorKind.MULTI_ED25519:
            return {"scheme": "multi_ed25519", "keys": len(self.public_keys), "threshold": self.threshold}
        if self.kind == AuthenticatorKind.SINGLE_KEY:
            return {
                "scheme": "single_key",
                "key_scheme": _PUBLIC_KEY_SCHEMES[self.any_public_keys[0].variant],
                "signature_scheme": _SIGNATURE_SCHEMES[self.any_signatures[0].variant],
            }
        if self.kind == AuthenticatorKind.MULTI_KEY:
            return {
                "scheme": "multi_key",
                "keys": len(self.any_public_keys),
                "threshold": self.threshold,
                "signatures": len(self.any_signatures),
            }
        return {"scheme": "no_account"}


def _deserialize_multi_ed25519(des: Deserializer) -> AccountAuthenticator:
    key_blob = des.to_bytes()
    keys_len = len(key_blob) - 1
    if keys_len <= 0 or keys_len % ED25519_PUBLIC_KEY_LENGTH != 0:
        raise DeserializationError(f"multi-ed25519 public key has invalid length {len(key_blob)}")
    n = keys_len // ED25519_PUBLIC_KEY_LENGTH
    threshold = key_blob[-1]
    if n > MULTI_ED25519_MAX_KEYS or threshold == 0 or threshold > n:
        raise DeserializationError(f"invalid multi-ed25519 threshold {threshold} of {n}")
    keys = tuple(
        key_blob[i * ED25519_PUBLIC_KEY_LENGTH : (i + 1) * ED25519_PUBLIC_KEY_LENGTH] for i in range(n)
    )

    sig_blob = des.to_bytes()
    sigs_len = len(sig_blob) - MULTI_ED25519_BITMAP_LENGTH
    if sigs_len <= 0 or sigs_len % ED25519_SIGNATURE_LENGTH != 0:
        raise DeserializationError(f"multi-ed25519 signature has invalid length {len(sig_blob)}")
    k = sigs_len // ED25519_SIGNATURE_LENGTH
    sigs = tuple(
        sig_blob[i * ED25519_SIGNATURE_LENGTH : (i + 1) * ED25519_SIGNATURE_LENGTH] for i in range(k)
    )
    return AccountAuthenticator(
        AuthenticatorKind.MULTI_ED25519,
        public_keys=keys,
        signatures=sigs,
        threshold=threshold,
        bitmap=sig_blob[sigs_len:],
    )
