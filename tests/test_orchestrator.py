"""Tests for the load-time automation run."""

import asyncio
from decimal import Decimal

import pytest
from conftest import fixed_clock

from finledger.models.ledger import NotificationType, TransactionDraft, TransactionType
from finledger.orchestrator import AutomationDriver, create_app_components
from finledger.services import InMemoryLedgerStore, Table


def _template(ledger, day="2024-01-05", amount="1500.00", category="Moradia"):
    return asyncio.run(ledger.create(TransactionDraft(
        description="Aluguel",
        amount=Decimal(amount),
        date=day,
        type=TransactionType.EXPENSE,
        category=category,
        is_recurring=True,
    )))[0]


def _event_types(store):
    return [e["event_type"] for e in asyncio.run(store.get_all(Table.AUDIT_LOG))]


class TestRecurrenceAutomation:
    """Tests for occurrence generation during a run."""

    def test_fills_the_horizon_once(self, ledger, planning):
        template = _template(ledger)
        driver = AutomationDriver(ledger, planning)

        first = asyncio.run(driver.run())
        second = asyncio.run(driver.run())

        assert len(first.occurrences) == 12
        assert first.occurrences[0].date == "2024-03-05"
        assert first.occurrences[-1].date == "2025-02-05"
        assert all(o.recurrence_parent_id == template.id for o in first.occurrences)
        assert second.occurrences == []

    def test_closed_month_is_skipped_and_audited(self, ledger, planning, store):
        _template(ledger)
        asyncio.run(ledger.set_closure(2024, 4, True))

        report = asyncio.run(AutomationDriver(ledger, planning).run())

        assert len(report.occurrences) == 11
        assert "2024-04-05" not in [o.date for o in report.occurrences]
        assert "recurrence_failed" in _event_types(store)

    def test_store_failure_on_one_occurrence_does_not_stop_the_batch(self, ledger, planning, store, monkeypatch):
        _template(ledger)
        original_insert = store.insert
        calls = {"n": 0}

        async def flaky_insert(table, records):
            if table == Table.TRANSACTIONS:
                calls["n"] += 1
                if calls["n"] == 2:
                    raise ConnectionError("network down")
            return await original_insert(table, records)

        monkeypatch.setattr(store, "insert", flaky_insert)

        report = asyncio.run(AutomationDriver(ledger, planning).run())

        assert len(report.occurrences) == 11


class TestGoalAutomation:
    """Tests for monthly automatic goal contributions."""

    def _goal(self, planning, day):
        return asyncio.run(planning.create_goal({
            "name": "Reserva",
            "target_amount": "10000.00",
            "auto_contribution_amount": "200.00",
            "auto_contribution_day": day,
        }))

    def test_contributes_once_per_month(self, ledger, planning):
        goal = self._goal(planning, day=10)
        driver = AutomationDriver(ledger, planning)

        first = asyncio.run(driver.run())
        second = asyncio.run(driver.run())

        assert len(first.goal_contributions) == 2
        assert second.goal_contributions == []
        assert asyncio.run(planning.list_goals())[0].current_amount == Decimal("200.00")
        assert all("auto" in t.tags for t in first.goal_contributions)
        assert first.goal_contributions[0].description == "Transf. para Investimentos"
        assert goal.id

    def test_not_before_the_configured_day(self, ledger, planning):
        self._goal(planning, day=20)

        report = asyncio.run(AutomationDriver(ledger, planning).run())

        assert report.goal_contributions == []

    def test_paused_goal_is_skipped(self, ledger, planning):
        goal = self._goal(planning, day=1)
        asyncio.run(planning.update_goal(goal.id, {"status": "paused"}))

        report = asyncio.run(AutomationDriver(ledger, planning).run())

        assert report.goal_contributions == []

    def test_failure_is_audited_and_run_continues(self, ledger, planning, store):
        self._goal(planning, day=1)
        asyncio.run(ledger.set_closure(2024, 3, True))

        report = asyncio.run(AutomationDriver(ledger, planning).run())

        assert report.goal_contributions == []
        assert "goal_automation_failed" in _event_types(store)


class TestNotifications:
    """Tests for alerts returned by a run."""

    def test_budget_and_bill_alerts(self, ledger, planning):
        asyncio.run(planning.create_budget({"category": "Alimentação", "limit": "100.00"}))
        asyncio.run(ledger.create(TransactionDraft(
            description="Restaurante",
            amount=Decimal("150.00"),
            date="2024-03-02",
            type=TransactionType.EXPENSE,
            category="Alimentação",
        )))
        template = _template(ledger, day="2024-01-18")

        report = asyncio.run(AutomationDriver(ledger, planning).run())

        types = {n.id: n.type for n in report.notifications}
        assert NotificationType.CRITICAL in types.values()
        assert types[f"bill-{template.id}"] == NotificationType.INFO
        assert [b.due_date for b in report.upcoming_bills] == ["2024-03-18"]


class TestLoadFailure:
    """Tests for a run whose store cannot be read."""

    def test_load_error_is_audited_and_raised(self, ledger, planning, store, monkeypatch):
        original_get_all = store.get_all

        async def failing_get_all(table):
            if table == Table.GOALS:
                raise ConnectionError("sheet unavailable")
            return await original_get_all(table)

        monkeypatch.setattr(store, "get_all", failing_get_all)

        with pytest.raises(ConnectionError):
            asyncio.run(AutomationDriver(ledger, planning).run())

        assert _event_types(store) == ["system_error"]


class TestAppComponents:
    """Tests for the component factory."""

    def test_wires_components_around_given_store(self):
        store = InMemoryLedgerStore("owner-9")

        components = create_app_components(store=store, clock=fixed_clock())

        assert components.store is store
        assert components.ledger.today().isoformat() == "2024-03-15"
        report = asyncio.run(components.automation.run())
        assert report.occurrences == []
