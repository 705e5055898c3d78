from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


class HistoryEntry(Base):
    __tablename__ = "history"

    history_id = Column(Integer, primary_key=True)
    crawl_id = Column(String(64), nullable=False, index=True)
    uri = Column(Text, nullable=False)
    method = Column(String(16), nullable=False, default="GET")
    depth = Column(Integer, nullable=False, default=0)
    parent_uri = Column(Text, nullable=True)
    context_id = Column(Text, nullable=True)
    user_id = Column(Text, nullable=True)
    status_code = Column(Integer, nullable=True)
    content_type = Column(Text, nullable=True)
    size = Column(Integer, nullable=True)
    error = Column(Text, nullable=True)
    skipped_robots = Column(Boolean, nullable=False, default=False)
    recorded_at = Column(DateTime(timezone=True), server_default=func.now())

    discovered = relationship(
        "DiscoveredUri",
        back_populates="history",
        cascade="all, delete-orphan",
        order_by="DiscoveredUri.discovered_id",
    )


class DiscoveredUri(Base):
    __tablename__ = "discovered_uris"

    discovered_id = Column(Integer, primary_key=True)
    history_id = Column(Integer, ForeignKey("history.history_id"), nullable=False)
    uri = Column(Text, nullable=False)
    method = Column(String(16), nullable=False, default="GET")
    source = Column(String(64), nullable=True)
    accepted = Column(Boolean, nullable=False, default=False)

    history = relationship("HistoryEntry", back_populates="discovered")
