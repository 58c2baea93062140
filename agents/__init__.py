"""
Broadcast workflow and run-mode orchestration.
"""

from .broadcast_agent import BroadcastAgent
from .orchestrator import OrchestratorAgent

__all__ = [
    "BroadcastAgent",
    "OrchestratorAgent"
]
