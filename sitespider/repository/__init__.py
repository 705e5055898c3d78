from .history import HistoryRepository

__all__ = ["HistoryRepository"]
