from __future__ import annotations

import time
from typing import Callable

from app.core.settings import Settings, settings
from observability import AuditLog
from signing import BcsSignatureValidator, SignatureValidator
from transaction_store import TransactionStore


class Container:
    def __init__(
        self,
        cfg: Settings | None = None,
        *,
        validator: SignatureValidator | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = cfg or settings

        # Observability
        self.audit_log = AuditLog(self.settings.AUDIT_DB_PATH)

        # Stores
        self.signature_validator = validator or BcsSignatureValidator()
        self.transaction_store = TransactionStore(
            reserialize=self.settings.RESERIALIZE,
            validator=self.signature_validator,
            duplicate_policy=self.settings.DUPLICATE_POLICY.value,
            clock=clock,
        )

global_container = Container()
