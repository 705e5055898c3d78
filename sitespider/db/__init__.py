from .engine import make_engine, init_orm
from .models import Base, HistoryEntry, DiscoveredUri

__all__ = [
    "make_engine",
    "init_orm",
    "Base",
    "HistoryEntry",
    "DiscoveredUri",
]
