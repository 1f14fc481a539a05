from .bcs import DeserializationError, Deserializer, Serializer
from .hexutil import hex_preview, parse_hex, to_hex
from .transaction import (
    AccountAddress,
    EntryFunction,
    ModuleId,
    MultiAgentTransaction,
    RawTransaction,
    TransactionPayload,
    decode_multi_agent,
    encode_multi_agent,
    parse_sequence_number,
)

__all__ = [
    "AccountAddress",
    "DeserializationError",
    "Deserializer",
    "EntryFunction",
    "ModuleId",
    "MultiAgentTransaction",
    "RawTransaction",
    "Serializer",
    "TransactionPayload",
    "decode_multi_agent",
    "encode_multi_agent",
    "hex_preview",
    "parse_hex",
    "parse_sequence_number",
    "to_hex",
]
