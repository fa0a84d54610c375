import pytest
from fastapi.testclient import TestClient

from pharmstock.app.api.deps import get_ledger_client, get_today
from pharmstock.app.main import app
from pharmstock.app.schemas.ledger import AdjustmentSnapshot
from pharmstock.tests.factories import TODAY, FakeLedgerClient, build_snapshot_payload


@pytest.fixture
def snapshot_payload() -> dict:
    return build_snapshot_payload()


@pytest.fixture
def snapshot(snapshot_payload) -> AdjustmentSnapshot:
    return AdjustmentSnapshot.model_validate(snapshot_payload)


@pytest.fixture
def ledger() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture
def client(ledger):
    def override_client():
        yield ledger

    app.dependency_overrides[get_ledger_client] = override_client
    app.dependency_overrides[get_today] = lambda: TODAY
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
