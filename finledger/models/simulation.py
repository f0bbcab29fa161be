"""
Debt Payoff Simulation Models

The simulator reports what happens month by month; these models carry
that report. A simulation that hits its iteration cap is NOT an error -
it is reported with `converged=False` and callers must not present a
payoff date for it.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class DebtStrategy(str, Enum):
    """
    Which debt receives the extra payment first.

    AVALANCHE: highest monthly interest rate first
    SNOWBALL: lowest remaining balance first
    """
    AVALANCHE = "avalanche"
    SNOWBALL = "snowball"


class SimulationPoint(BaseModel):
    """Total remaining balance after a simulated month."""

    month: int = Field(..., ge=0)
    balance: Decimal = Field(..., ge=0)


class PayoffSimulation(BaseModel):
    """Outcome of a payoff simulation."""

    strategy: DebtStrategy
    extra_payment: Decimal
    months: int = Field(..., ge=0, description="Simulated months until payoff or cap")
    total_interest: Decimal = Field(..., ge=0)
    remaining_balance: Decimal = Field(..., ge=0)
    converged: bool = Field(
        ...,
        description="False when the iteration cap was hit with debt remaining"
    )
    history: list[SimulationPoint] = Field(default_factory=list)

    @property
    def is_insufficient_payment(self) -> bool:
        """Payments never outpace interest - there is no payoff date to show."""
        return not self.converged
