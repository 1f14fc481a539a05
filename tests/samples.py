from codec.bcs import Serializer, encode
from codec.transaction import (
    AccountAddress,
    EntryFunction,
    ModuleId,
    MultiAgentTransaction,
    PayloadKind,
    RawTransaction,
    TransactionPayload,
    TypeTag,
    TypeTagKind,
)

SENDER = AccountAddress(bytes([0xAA]) * 32)
SECONDARY = AccountAddress(bytes([0xBB]) * 32)
FEE_PAYER = AccountAddress(bytes([0xCC]) * 32)
FRAMEWORK = AccountAddress(bytes(31) + b"\x01")


def make_transaction(sequence_number=5, fee_payer=None, amount=1000):
    call = EntryFunction(
        module=ModuleId(FRAMEWORK, "aptos_account"),
        function="transfer_coins",
        type_args=(TypeTag(TypeTagKind.U64),),
        args=(SECONDARY.value, amount.to_bytes(8, "little")),
    )
    raw = RawTransaction(
        sender=SENDER,
        sequence_number=sequence_number,
        payload=TransactionPayload(PayloadKind.ENTRY_FUNCTION, call),
        max_gas_amount=200_000,
        gas_unit_price=100,
        expiration_timestamp_secs=1_900_000_000,
        chain_id=4,
    )
    return MultiAgentTransaction(raw, (SECONDARY,), fee_payer)


def transaction_bytes(sequence_number=5, **kwargs):
    return encode(make_transaction(sequence_number, **kwargs))


def legacy_transaction_bytes(sequence_number=5):
    # Encoders that stop after the secondary signer list omit the fee payer option tag.
    data = transaction_bytes(sequence_number)
    assert data[-1] == 0
    return data[:-1]


def ed25519_authenticator(key_byte=0x11, sig_byte=0x22):
    return b"\x00" + b"\x20" + bytes([key_byte]) * 32 + b"\x40" + bytes([sig_byte]) * 64


def nested_type_arg_transaction_bytes(vector_depth, sequence_number=5):
    # Entry function whose only type argument is `vector_depth` nested vectors around u8.
    ser = Serializer()
    SENDER.serialize(ser)
    ser.u64(sequence_number)
    ser.uleb128(PayloadKind.ENTRY_FUNCTION)
    ModuleId(FRAMEWORK, "aptos_account").serialize(ser)
    ser.str("transfer_coins")
    ser.uleb128(1)
    ser.fixed_bytes(bytes([TypeTagKind.VECTOR]) * vector_depth + bytes([TypeTagKind.U8]))
    ser.sequence([], Serializer.to_bytes)
    ser.u64(200_000)
    ser.u64(100)
    ser.u64(1_900_000_000)
    ser.u8(4)
    ser.sequence([SECONDARY], Serializer.struct)
    ser.option(None, Serializer.struct)
    return ser.output()
