from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SpiderIdentity:
    """Context and user a fetch is performed as; both optional."""

    context_id: Optional[str] = None
    user_id: Optional[str] = None


@dataclass(frozen=True)
class FetchTask:
    """A unit of work handed from the frontier to exactly one worker."""

    uri: str
    depth: int
    method: str = "GET"
    body: Optional[str] = None
    parent_uri: Optional[str] = None
    context_id: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def parent_depth(self) -> int:
        return self.depth - 1

    @property
    def identity(self) -> SpiderIdentity:
        return SpiderIdentity(context_id=self.context_id, user_id=self.user_id)
