from __future__ import annotations

from datetime import date
from typing import Generator

from pharmstock.app.core import config
from pharmstock.services.ledger_client import LedgerApiClient


def get_ledger_client() -> Generator:
    client = LedgerApiClient(config.LEDGER_API_URL, timeout=config.LEDGER_API_TIMEOUT)
    try:
        yield client
    finally:
        client.close()


def get_today() -> date:
    return date.today()
