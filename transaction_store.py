from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional

from codec.bcs import DeserializationError
from codec.hexutil import hex_preview
from codec.transaction import decode_multi_agent, encode_multi_agent, parse_sequence_number
from errors import AlreadyExists, AlreadySigned, InvalidEncoding, NotFound
from keyed_locks import KeyedLocks
from observability import build_log_context, log_event
from signing.base import SignatureValidator

DUPLICATE_POLICIES = ("reject", "overwrite")


@dataclass
class TransactionRecord:
    transaction_id: str
    payload: bytes
    original_payload: bytes
    sequence_number: Optional[int]
    created_at: int
    secondary_signature: Optional[bytes] = None
    signed_at: Optional[int] = None


@dataclass(frozen=True)
class RecordSnapshot:
    transaction_id: str
    payload: bytes
    sequence_number: Optional[int]
    created_at: int
    secondary_signature: Optional[bytes]
    signed_at: Optional[int]
    payload_changed: bool
    age_seconds: int = 0

    @property
    def state(self) -> str:
        return "signed" if self.secondary_signature is not None else "created"


@dataclass(frozen=True)
class PutResult:
    sequence_number: Optional[int]
    created: bool
    payload_changed: bool


class TransactionStore:
    """
    In-memory store for multi-agent transactions awaiting a secondary signature.

    Records live for the lifetime of the process. A record's signature can be
    attached only once; every operation on one id runs under that id's lock.

    In reserialize mode payloads are decoded and re-encoded on the way in and
    on the way out, so the submitter receives this relay's encoding of the
    transaction rather than the bytes the first signer sent.
    """

    def __init__(
        self,
        *,
        reserialize: bool,
        validator: SignatureValidator,
        duplicate_policy: str = "reject",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if duplicate_policy not in DUPLICATE_POLICIES:
            raise ValueError(f"Unknown duplicate policy: {duplicate_policy}")
        self.reserialize = reserialize
        self.duplicate_policy = duplicate_policy
        self._validator = validator
        self._clock = clock
        self._locks = KeyedLocks()
        self._items: Dict[str, TransactionRecord] = {}
        self._ctx = build_log_context(
            component="transaction_store", mode="reserialize" if reserialize else "pass_through"
        )

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._items

    @property
    def mode(self) -> str:
        return "reserialize" if self.reserialize else "pass_through"

    def put_transaction(self, transaction_id: str, payload: bytes) -> PutResult:
        payload = bytes(payload)
        if self.reserialize:
            try:
                tx = decode_multi_agent(payload)
            except DeserializationError as e:
                log_event(
                    "transaction_decode_failed",
                    ctx=self._ctx,
                    data={"transaction_id": transaction_id, "error": str(e), "length": len(payload)},
                    level=logging.WARNING,
                )
                raise InvalidEncoding(str(e)) from e
            stored = encode_multi_agent(tx)
            sequence_number: Optional[int] = tx.sequence_number
        else:
            stored = payload
            sequence_number = parse_sequence_number(payload)

        with self._locks.hold(transaction_id):
            existing = self._items.get(transaction_id)
            if existing is not None and self.duplicate_policy == "reject":
                if existing.original_payload != payload:
                    raise AlreadyExists(transaction_id)
                log_event("transaction_store_repeated", ctx=self._ctx, data={"transaction_id": transaction_id})
                return PutResult(existing.sequence_number, created=False, payload_changed=existing.payload != payload)

            self._items[transaction_id] = TransactionRecord(
                transaction_id=transaction_id,
                payload=stored,
                original_payload=payload,
                sequence_number=sequence_number,
                created_at=int(self._clock()),
            )

        changed = stored != payload
        log_event(
            "transaction_stored",
            ctx=self._ctx,
            data={
                "transaction_id": transaction_id,
                "length": len(payload),
                "prefix": hex_preview(payload),
                "sequence_number": sequence_number,
                "overwrote": existing is not None,
            },
        )
        if changed:
            log_event(
                "transaction_reencoded",
                ctx=self._ctx,
                data={
                    "transaction_id": transaction_id,
                    "original_length": len(payload),
                    "reencoded_length": len(stored),
                    "original_prefix": hex_preview(payload),
                    "reencoded_prefix": hex_preview(stored),
                },
                level=logging.WARNING,
            )
        return PutResult(sequence_number, created=True, payload_changed=changed)

    def put_signature(self, transaction_id: str, signature: bytes) -> RecordSnapshot:
        with self._locks.hold(transaction_id):
            record = self._items.get(transaction_id)
            if record is None:
                raise NotFound(transaction_id)
            if record.secondary_signature is not None:
                raise AlreadySigned(transaction_id)
            normalized = self._validator.validate_and_normalize(bytes(signature))
            record.secondary_signature = normalized
            record.signed_at = int(self._clock())
            snap = self._snapshot(record)

        log_event(
            "signature_stored",
            ctx=self._ctx,
            data={"transaction_id": transaction_id, "length": len(normalized), "prefix": hex_preview(normalized)},
        )
        return snap

    def get(self, transaction_id: str) -> RecordSnapshot:
        with self._locks.hold(transaction_id):
            record = self._items.get(transaction_id)
            if record is None:
                raise NotFound(transaction_id)
            snap = self._snapshot(record)

        snap = replace(snap, age_seconds=max(0, int(self._clock()) - snap.created_at))
        if self.reserialize:
            snap = self._reencode_on_read(snap)
        log_event(
            "transaction_fetched",
            ctx=self._ctx,
            data={
                "transaction_id": transaction_id,
                "age_seconds": snap.age_seconds,
                "sequence_number": snap.sequence_number,
                "state": snap.state,
            },
        )
        return snap

    def _reencode_on_read(self, snap: RecordSnapshot) -> RecordSnapshot:
        try:
            payload = encode_multi_agent(decode_multi_agent(snap.payload))
        except DeserializationError as e:
            # Stored bytes already passed decoding at write time.
            log_event(
                "transaction_reencode_failed",
                ctx=self._ctx,
                data={"transaction_id": snap.transaction_id, "error": str(e)},
                level=logging.WARNING,
            )
            return snap
        if payload == snap.payload:
            return snap
        return replace(snap, payload=payload, payload_changed=True)

    @staticmethod
    def _snapshot(record: TransactionRecord) -> RecordSnapshot:
        return RecordSnapshot(
            transaction_id=record.transaction_id,
            payload=record.payload,
            sequence_number=record.sequence_number,
            created_at=record.created_at,
            secondary_signature=record.secondary_signature,
            signed_at=record.signed_at,
            payload_changed=record.payload != record.original_payload,
        )
