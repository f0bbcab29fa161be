"""Tests for the debt payoff simulation."""

from decimal import Decimal

from finledger.engine.debts import simulate_payoff
from finledger.models.ledger import Debt
from finledger.models.simulation import DebtStrategy


def _debt(debt_id: str, balance: str, rate: str, minimum: str) -> Debt:
    return Debt(
        id=debt_id,
        name=debt_id,
        total_amount=Decimal(balance),
        current_amount=Decimal(balance),
        interest_rate=Decimal(rate),
        min_payment=Decimal(minimum),
    )


class TestSimulatePayoff:
    """Tests for convergence, interest and ordering."""

    def test_converges_with_enough_extra_payment(self):
        debts = [
            _debt("card", "3000.00", "10", "100.00"),
            _debt("loan", "5000.00", "2", "150.00"),
        ]

        result = simulate_payoff(debts, Decimal("1000.00"), DebtStrategy.AVALANCHE)

        assert result.converged
        assert result.months < 360
        assert result.remaining_balance == Decimal("0.00")
        assert result.history[-1].balance == Decimal("0.00")
        assert result.total_interest > 0

    def test_minimum_below_interest_never_converges(self):
        debts = [_debt("card", "10000.00", "10", "500.00")]

        result = simulate_payoff(debts, Decimal("0"), DebtStrategy.AVALANCHE)

        assert not result.converged
        assert result.is_insufficient_payment
        assert result.months == 360
        assert result.remaining_balance > 0

    def test_custom_cap(self):
        debts = [_debt("card", "10000.00", "10", "0")]
        result = simulate_payoff(debts, Decimal("0"), max_months=24)
        assert result.months == 24

    def test_zero_interest_payoff_month_count(self):
        debts = [_debt("friend", "1000.00", "0", "100.00")]

        result = simulate_payoff(debts, Decimal("0"))

        assert result.converged
        assert result.months == 10
        assert result.total_interest == Decimal("0.00")

    def test_history_has_first_month_and_every_third(self):
        debts = [_debt("friend", "1000.00", "0", "100.00")]

        result = simulate_payoff(debts, Decimal("0"))

        assert [p.month for p in result.history] == [1, 3, 6, 9, 10]
        assert result.history[0].balance == Decimal("900.00")

    def test_avalanche_pays_less_interest_than_snowball(self):
        debts = [
            _debt("small-cheap", "1000.00", "1", "50.00"),
            _debt("big-expensive", "5000.00", "8", "100.00"),
        ]

        avalanche = simulate_payoff(debts, Decimal("600.00"), DebtStrategy.AVALANCHE)
        snowball = simulate_payoff(debts, Decimal("600.00"), DebtStrategy.SNOWBALL)

        assert avalanche.converged and snowball.converged
        assert avalanche.total_interest < snowball.total_interest

    def test_inputs_are_not_modified(self):
        debts = [_debt("card", "1000.00", "5", "100.00")]
        simulate_payoff(debts, Decimal("200.00"))
        assert debts[0].current_amount == Decimal("1000.00")

    def test_no_debts(self):
        result = simulate_payoff([], Decimal("100.00"))
        assert result.converged
        assert result.months == 0
        assert result.history == []
