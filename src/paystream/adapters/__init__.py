"""
Ledger adapters for PayStream.
"""

from .memory import InMemoryLedger

__all__ = ["InMemoryLedger"]
