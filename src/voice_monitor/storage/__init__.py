"""Rolling history storage for voice_monitor"""

from .history import ABSENT, HistoryRing, NoteHistory, HistoryStore, HistorySnapshot

__all__ = ['ABSENT', 'HistoryRing', 'NoteHistory', 'HistoryStore', 'HistorySnapshot']
