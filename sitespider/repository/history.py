import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from sitespider.db.models import DiscoveredUri, HistoryEntry
from sitespider.services.history_sink import CrawlEvent

logger = logging.getLogger(__name__)


class HistoryRepository:
    """SQL history sink: one `history` row per task plus its discovered URIs.

    Requires an explicit `session_factory` (callable returning a `Session`).
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    @staticmethod
    def _sanitize_text(val: Optional[str]) -> Optional[str]:
        # Postgres TEXT cannot hold NUL
        if isinstance(val, str):
            return val.replace("\x00", "")
        return val

    def get_session(self) -> Session:
        return self.session_factory()

    def record(self, event: CrawlEvent) -> None:
        task = event.task
        accepted = set(event.accepted)
        with self.get_session() as session:
            row = HistoryEntry(
                crawl_id=event.crawl_id,
                uri=task.uri,
                method=task.method,
                depth=task.depth,
                parent_uri=task.parent_uri,
                context_id=task.context_id,
                user_id=task.user_id,
                status_code=event.status_code,
                content_type=event.content_type,
                size=event.size,
                error=self._sanitize_text(event.error),
                skipped_robots=event.skipped_robots,
                recorded_at=event.recorded_at,
            )
            for i, candidate in enumerate(event.candidates):
                row.discovered.append(
                    DiscoveredUri(
                        uri=candidate.uri,
                        method=candidate.method,
                        source=candidate.source,
                        accepted=i in accepted,
                    )
                )
            session.add(row)
            session.commit()

    def list_for_crawl(self, crawl_id: str, limit: int = 100, offset: int = 0) -> list[dict]:
        """Recorded tasks of a crawl in recording order."""
        with self.get_session() as session:
            q = (
                select(HistoryEntry)
                .where(HistoryEntry.crawl_id == crawl_id)
                .order_by(HistoryEntry.history_id)
                .offset(offset)
                .limit(limit)
                .options(selectinload(HistoryEntry.discovered))
            )
            rows = session.execute(q).scalars().all()
            return [self._to_dict(r) for r in rows]

    def count_for_crawl(self, crawl_id: str) -> int:
        with self.get_session() as session:
            q = select(func.count()).select_from(HistoryEntry).where(HistoryEntry.crawl_id == crawl_id)
            return int(session.execute(q).scalar_one())

    @staticmethod
    def _to_dict(row: HistoryEntry) -> dict:
        return {
            "uri": row.uri,
            "method": row.method,
            "depth": row.depth,
            "parent_uri": row.parent_uri,
            "status_code": row.status_code,
            "content_type": row.content_type,
            "size": row.size,
            "error": row.error,
            "skipped_robots": row.skipped_robots,
            "recorded_at": row.recorded_at,
            "discovered": [
                {"uri": d.uri, "method": d.method, "source": d.source, "accepted": d.accepted}
                for d in row.discovered
            ],
        }
