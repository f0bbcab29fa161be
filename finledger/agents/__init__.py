"""AI Agents package."""

from finledger.agents.ai_agents import CategoryAgent, CategorySuggestion

__all__ = [
    "CategoryAgent",
    "CategorySuggestion",
]
