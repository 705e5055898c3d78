from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SpiderHandle:
    """Opaque reference to a run started through the registry."""

    crawl_id: str
    config_path: Optional[str] = None
