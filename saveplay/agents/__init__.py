"""AI Agents package."""

from saveplay.agents.savings_tips import SavingsTip, SavingsTipAgent

__all__ = [
    "SavingsTip",
    "SavingsTipAgent",
]
