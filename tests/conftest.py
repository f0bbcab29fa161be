"""Shared fixtures: an in-memory store, fixed clock and wired services."""

import itertools
from datetime import datetime
from decimal import Decimal

import pytest

from finledger.audit import AuditLogger
from finledger.config import LedgerSettings
from finledger.models.ledger import Transaction, TransactionType
from finledger.services import InMemoryLedgerStore
from finledger.services.ledger import LedgerService
from finledger.services.planning import PlanningService

_ids = itertools.count(1)


def make_tx(**fields) -> Transaction:
    """Build a stored transaction with sensible defaults."""
    defaults = {
        "id": f"tx-{next(_ids)}",
        "description": "Test",
        "amount": Decimal("100.00"),
        "date": "2024-03-10",
        "type": TransactionType.EXPENSE,
        "category": "Alimentação",
        "is_paid": True,
    }
    defaults.update(fields)
    if isinstance(defaults["amount"], str):
        defaults["amount"] = Decimal(defaults["amount"])
    return Transaction(**defaults)


def fixed_clock(year: int = 2024, month: int = 3, day: int = 15):
    moment = datetime(year, month, day, 12, 0)
    return lambda: moment


@pytest.fixture
def ledger_settings():
    return LedgerSettings()


@pytest.fixture
def store():
    return InMemoryLedgerStore(owner_id="owner-1")


@pytest.fixture
def ledger(store, ledger_settings):
    return LedgerService(
        store,
        audit_logger=AuditLogger(store),
        settings=ledger_settings,
        clock=fixed_clock(),
    )


@pytest.fixture
def planning(store, ledger):
    return PlanningService(store, ledger)
