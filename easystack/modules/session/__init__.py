"""
Session Module - Black Box Interface

Purpose: Hold the per-node session secret
Interface: SessionState.get(), set(), clear()
Hidden: Storage of the secret

Each node owns its own SessionState; nothing is shared between nodes.
"""

from .session import SessionState

__all__ = ["SessionState"]
