"""
Finledger - Source Package

A personal finance ledger. Users record income, expense and transfer
events; the engine derives recurring entries, card invoices, rolling
balances, budget status and debt payoff schedules from that ledger.

DESIGN PRINCIPLES:
1. The ledger is the single source of truth
2. Derivations are pure functions of the ledger and a reference clock
3. Generation is idempotent - running it twice never duplicates
4. Batch automations tolerate partial failure, user actions fail fast
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finledger Team"
