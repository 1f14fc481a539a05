import os
import sys

import pytest
from fastapi.testclient import TestClient

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from api_server import create_app
from app.core.container import Container
from app.core.settings import DuplicatePolicy, Settings
from signing import BcsSignatureValidator
from transaction_store import TransactionStore


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def validator():
    return BcsSignatureValidator()

@pytest.fixture
def pass_through_store(validator, clock):
    return TransactionStore(reserialize=False, validator=validator, clock=clock)

@pytest.fixture
def reserialize_store(validator, clock):
    return TransactionStore(reserialize=True, validator=validator, clock=clock)

@pytest.fixture
def make_client():
    def _make(clock=None, **overrides):
        overrides.setdefault("AUDIT_DB_PATH", "")
        if clock is None:
            container = Container(Settings(**overrides))
        else:
            container = Container(Settings(**overrides), clock=clock)
        return TestClient(create_app(container)), container
    return _make

@pytest.fixture
def client(make_client):
    c, _ = make_client()
    return c

@pytest.fixture
def reserialize_client(make_client):
    c, _ = make_client(RESERIALIZE=True)
    return c

@pytest.fixture
def overwrite_client(make_client):
    c, _ = make_client(DUPLICATE_POLICY=DuplicatePolicy.OVERWRITE)
    return c
