"""
Debt Payoff Simulation

Month-by-month amortization of a set of debts under one of two
repayment strategies:

- AVALANCHE: extra money goes to the highest interest rate first
- SNOWBALL:  extra money goes to the smallest remaining balance first

Each simulated month every open debt accrues interest (its monthly
rate), receives its minimum payment, and then the extra-payment budget
is spent greedily in strategy order. Paid-off debts always sort last.

The loop is capped (360 months by default). A run that hits the cap
with money still owed is NON-CONVERGENT: it is reported, not raised,
and `PayoffSimulation.is_insufficient_payment` tells the caller not to
present a payoff date.
"""

from decimal import Decimal
from typing import Callable

from finledger.models.ledger import Debt, quantize_money
from finledger.models.simulation import DebtStrategy, PayoffSimulation, SimulationPoint

ZERO = Decimal("0")


def _priority(strategy: DebtStrategy) -> Callable[[Debt], tuple]:
    if strategy == DebtStrategy.AVALANCHE:
        return lambda d: (d.current_amount <= 0, -d.interest_rate)
    return lambda d: (d.current_amount <= 0, d.current_amount)


def _outstanding(debts: list[Debt]) -> Decimal:
    return sum((d.current_amount for d in debts), ZERO)


def simulate_payoff(
    debts: list[Debt],
    extra_payment: Decimal = ZERO,
    strategy: DebtStrategy = DebtStrategy.AVALANCHE,
    max_months: int = 360,
) -> PayoffSimulation:
    """
    Simulate paying off `debts` with minimums plus `extra_payment` a month.

    The input debts are not modified.

    Returns:
        PayoffSimulation with months elapsed, interest paid, the history
        (month 1 and every 3rd month) and whether every balance hit zero
    """
    extra = max(Decimal(extra_payment), ZERO)
    sim = [d.model_copy() for d in debts]
    history: list[SimulationPoint] = []
    total_interest = ZERO
    months = 0

    while months < max_months and any(d.current_amount > 0 for d in sim):
        months += 1

        for debt in sim:
            if debt.current_amount <= 0:
                continue
            interest = debt.current_amount * debt.interest_rate / 100
            total_interest += interest
            debt.current_amount += interest
            debt.current_amount -= min(debt.current_amount, debt.min_payment)

        sim.sort(key=_priority(strategy))

        budget = extra
        for debt in sim:
            if budget <= 0:
                break
            if debt.current_amount <= 0:
                continue
            payment = min(debt.current_amount, budget)
            debt.current_amount -= payment
            budget -= payment

        if months == 1 or months % 3 == 0:
            history.append(SimulationPoint(month=months, balance=quantize_money(_outstanding(sim))))

    converged = all(d.current_amount <= 0 for d in sim)
    if converged and months > 0 and history[-1].month != months:
        history.append(SimulationPoint(month=months, balance=Decimal("0.00")))

    return PayoffSimulation(
        strategy=strategy,
        extra_payment=quantize_money(extra),
        months=months,
        total_interest=quantize_money(total_interest),
        remaining_balance=quantize_money(_outstanding(sim)),
        converged=converged,
        history=history,
    )
