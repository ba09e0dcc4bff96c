"""
Audit journal of contact mutations.
"""

from .journal_recorder import JournalAction, JournalRecorder

__all__ = ["JournalRecorder", "JournalAction"]
