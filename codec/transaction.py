from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from .bcs import DeserializationError, Deserializer, Serializer, decode, encode

ADDRESS_LENGTH = 32
MAX_TYPE_TAG_NESTING = 8


@dataclass(frozen=True)
class AccountAddress:
    value: bytes

    def __post_init__(self) -> None:
        if len(self.value) != ADDRESS_LENGTH:
            raise ValueError(f"account address must be {ADDRESS_LENGTH} bytes, got {len(self.value)}")

    @staticmethod
    def deserialize(des: Deserializer) -> "AccountAddress":
        return AccountAddress(des.fixed_bytes(ADDRESS_LENGTH))

    def serialize(self, ser: Serializer) -> None:
        ser.fixed_bytes(self.value)

    def __str__(self) -> str:
        return "0x" + self.value.hex()


class TypeTagKind:
    BOOL = 0
    U8 = 1
    U64 = 2
    U128 = 3
    ADDRESS = 4
    SIGNER = 5
    VECTOR = 6
    STRUCT = 7
    U16 = 8
    U32 = 9
    U256 = 10


@dataclass(frozen=True)
class StructTag:
    address: AccountAddress
    module: str
    name: str
    type_args: Tuple["TypeTag", ...] = ()

    @staticmethod
    def deserialize(des: Deserializer, depth: int = 1) -> "StructTag":
        return StructTag(
            address=AccountAddress.deserialize(des),
            module=des.str(),
            name=des.str(),
            type_args=tuple(des.sequence(lambda d: TypeTag.deserialize(d, depth + 1))),
        )

    def serialize(self, ser: Serializer) -> None:
        self.address.serialize(ser)
        ser.str(self.module)
        ser.str(self.name)
        ser.sequence(list(self.type_args), Serializer.struct)


@dataclass(frozen=True)
class TypeTag:
    kind: int
    inner: Union["TypeTag", StructTag, None] = None

    @staticmethod
    def deserialize(des: Deserializer, depth: int = 1) -> "TypeTag":
        if depth > MAX_TYPE_TAG_NESTING:
            raise DeserializationError(f"type tag nesting exceeds {MAX_TYPE_TAG_NESTING} levels")
        kind = des.uleb128()
        if kind == TypeTagKind.VECTOR:
            return TypeTag(kind, TypeTag.deserialize(des, depth + 1))
        if kind == TypeTagKind.STRUCT:
            return TypeTag(kind, StructTag.deserialize(des, depth))
        if kind > TypeTagKind.U256:
            raise DeserializationError(f"unknown type tag variant {kind}")
        return TypeTag(kind)

    def serialize(self, ser: Serializer) -> None:
        ser.uleb128(self.kind)
        if self.inner is not None:
            self.inner.serialize(ser)


@dataclass(frozen=True)
class ModuleId:
    address: AccountAddress
    name: str

    @staticmethod
    def deserialize(des: Deserializer) -> "ModuleId":
        return ModuleId(AccountAddress.deserialize(des), des.str())

    def serialize(self, ser: Serializer) -> None:
        self.address.serialize(ser)
        ser.str(self.name)

    def __str__(self) -> str:
        return f"{self.address}::{self.name}"


@dataclass(frozen=True)
class EntryFunction:
    module: ModuleId
    function: str
    type_args: Tuple[TypeTag, ...]
    args: Tuple[bytes, ...]

    @staticmethod
    def deserialize(des: Deserializer) -> "EntryFunction":
        return EntryFunction(
            module=ModuleId.deserialize(des),
            function=des.str(),
            type_args=tuple(des.sequence(TypeTag.deserialize)),
            args=tuple(des.sequence(Deserializer.to_bytes)),
        )

    def serialize(self, ser: Serializer) -> None:
        self.module.serialize(ser)
        ser.str(self.function)
        ser.sequence(list(self.type_args), Serializer.struct)
        ser.sequence(list(self.args), Serializer.to_bytes)


# Script argument variants: (reader, writer) keyed by tag.
_SCRIPT_ARG_CODECS = {
    0: (Deserializer.u8, Serializer.u8),
    1: (Deserializer.u64, Serializer.u64),
    2: (Deserializer.u128, Serializer.u128),
    3: (AccountAddress.deserialize, Serializer.struct),
    4: (Deserializer.to_bytes, Serializer.to_bytes),
    5: (Deserializer.bool, Serializer.bool),
    6: (Deserializer.u16, Serializer.u16),
    7: (Deserializer.u32, Serializer.u32),
    8: (Deserializer.u256, Serializer.u256),
    9: (Deserializer.to_bytes, Serializer.to_bytes),
}


@dataclass(frozen=True)
class ScriptArgument:
    variant: int
    value: Any

    @staticmethod
    def deserialize(des: Deserializer) -> "ScriptArgument":
        variant = des.uleb128()
        codec = _SCRIPT_ARG_CODECS.get(variant)
        if codec is None:
            raise DeserializationError(f"unknown script argument variant {variant}")
        return ScriptArgument(variant, codec[0](des))

    def serialize(self, ser: Serializer) -> None:
        ser.uleb128(self.variant)
        _SCRIPT_ARG_CODECS[self.variant][1](ser, self.value)


@dataclass(frozen=True)
class Script:
    code: bytes
    type_args: Tuple[TypeTag, ...]
    args: Tuple[ScriptArgument, ...]

    @staticmethod
    def deserialize(des: Deserializer) -> "Script":
        return Script(
            code=des.to_bytes(),
            type_args=tuple(des.sequence(TypeTag.deserialize)),
            args=tuple(des.sequence(ScriptArgument.deserialize)),
        )

    def serialize(self, ser: Serializer) -> None:
        ser.to_bytes(self.code)
        ser.sequence(list(self.type_args), Serializer.struct)
        ser.sequence(list(self.args), Serializer.struct)


@dataclass(frozen=True)
class Multisig:
    multisig_address: AccountAddress
    entry_function: Optional[EntryFunction]

    @staticmethod
    def deserialize(des: Deserializer) -> "Multisig":
        address = AccountAddress.deserialize(des)
        entry_function = None
        if des.bool():
            variant = des.uleb128()
            if variant != 0:
                raise DeserializationError(f"unknown multisig payload variant {variant}")
            entry_function = EntryFunction.deserialize(des)
        return Multisig(address, entry_function)

    def serialize(self, ser: Serializer) -> None:
        self.multisig_address.serialize(ser)
        if self.entry_function is None:
            ser.bool(False)
            return
        ser.bool(True)
        ser.uleb128(0)
        self.entry_function.serialize(ser)


class PayloadKind:
    SCRIPT = 0
    MODULE_BUNDLE = 1
    ENTRY_FUNCTION = 2
    MULTISIG = 3


_PAYLOAD_TYPES = {
    PayloadKind.SCRIPT: Script,
    PayloadKind.ENTRY_FUNCTION: EntryFunction,
    PayloadKind.MULTISIG: Multisig,
}


@dataclass(frozen=True)
class TransactionPayload:
    kind: int
    value: Union[Script, EntryFunction, Multisig]

    @staticmethod
    def deserialize(des: Deserializer) -> "TransactionPayload":
        kind = des.uleb128()
        if kind == PayloadKind.MODULE_BUNDLE:
            raise DeserializationError("module bundle payloads are deprecated")
        cls = _PAYLOAD_TYPES.get(kind)
        if cls is None:
            raise DeserializationError(f"unknown transaction payload variant {kind}")
        return TransactionPayload(kind, cls.deserialize(des))

    def serialize(self, ser: Serializer) -> None:
        ser.uleb128(self.kind)
        self.value.serialize(ser)


@dataclass(frozen=True)
class RawTransaction:
    sender: AccountAddress
    sequence_number: int
    payload: TransactionPayload
    max_gas_amount: int
    gas_unit_price: int
    expiration_timestamp_secs: int
    chain_id: int

    @staticmethod
    def deserialize(des: Deserializer) -> "RawTransaction":
        return RawTransaction(
            sender=AccountAddress.deserialize(des),
            sequence_number=des.u64(),
            payload=TransactionPayload.deserialize(des),
            max_gas_amount=des.u64(),
            gas_unit_price=des.u64(),
            expiration_timestamp_secs=des.u64(),
            chain_id=des.u8(),
        )

    def serialize(self, ser: Serializer) -> None:
        self.sender.serialize(ser)
        ser.u64(self.sequence_number)
        self.payload.serialize(ser)
        ser.u64(self.max_gas_amount)
        ser.u64(self.gas_unit_price)
        ser.u64(self.expiration_timestamp_secs)
        ser.u8(self.chain_id)


@dataclass(frozen=True)
class MultiAgentTransaction:
    """
    A raw transaction plus the secondary signers who must co-sign it.

    Some encoders stop after the secondary signer list; others append an
    optional fee payer address. Both are accepted, the option tag is always
    written back.
    """

    raw_transaction: RawTransaction
    secondary_signers: Tuple[AccountAddress, ...]
    fee_payer: Optional[AccountAddress] = None

    @property
    def sequence_number(self) -> int:
        return self.raw_transaction.sequence_number

    @property
    def sender(self) -> AccountAddress:
        return self.raw_transaction.sender

    @staticmethod
    def deserialize(des: Deserializer) -> "MultiAgentTransaction":
        raw = RawTransaction.deserialize(des)
        signers = tuple(des.sequence(AccountAddress.deserialize))
        fee_payer = None
        if des.remaining() > 0:
            fee_payer = des.option(AccountAddress.deserialize)
        return MultiAgentTransaction(raw, signers, fee_payer)

    def serialize(self, ser: Serializer) -> None:
        self.raw_transaction.serialize(ser)
        ser.sequence(list(self.secondary_signers), Serializer.struct)
        ser.option(self.fee_payer, Serializer.struct)


def decode_multi_agent(data: bytes) -> MultiAgentTransaction:
    return decode(data, MultiAgentTransaction)


def encode_multi_agent(tx: MultiAgentTransaction) -> bytes:
    return encode(tx)


def parse_sequence_number(data: bytes) -> Optional[int]:
    """
    Best-effort read of the sender's sequence number (u64 LE right after the
    32-byte sender address). Diagnostic only; never raises.
    """
    if len(data) < ADDRESS_LENGTH + 8:
        return None
    return int.from_bytes(data[ADDRESS_LENGTH : ADDRESS_LENGTH + 8], "little")
