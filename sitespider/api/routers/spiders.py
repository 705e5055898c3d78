import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from sitespider.exceptions import (
    ConfigNotFoundError,
    ConfigurationError,
    CrawlNotFoundError,
    InvalidStateTransition,
)
from sitespider.services.config_service import ConfigService
from sitespider.services.spider_config_parser import SpiderConfigParser
from sitespider.services.spider_registry import SpiderRegistry

logger = logging.getLogger(__name__)


class StartSpiderRequest(BaseModel):
    """Either `config` (a job file name) or inline `seeds`."""

    config: Optional[str] = None
    seeds: Optional[list[str]] = None
    max_depth: Optional[int] = None
    max_children: Optional[int] = None
    concurrency: Optional[int] = None
    max_duration_seconds: Optional[float] = None
    context_id: Optional[str] = None
    user_id: Optional[str] = None
    robots: Optional[bool] = None


def create_spiders_router(
    spider_registry: SpiderRegistry,
    config_service: ConfigService,
    config_parser: Optional[SpiderConfigParser] = None,
    history_reader=None,
):
    router = APIRouter(prefix="/spiders", tags=["Spiders"])
    parser = config_parser or SpiderConfigParser()

    def _load_config(req: StartSpiderRequest):
        if req.config:
            try:
                return config_service.get_config(req.config)
            except ConfigNotFoundError as e:
                raise HTTPException(status_code=404, detail=str(e))
        if not req.seeds:
            raise HTTPException(status_code=400, detail="missing config or seeds")
        data = {"seeds": req.seeds}
        for key in ("max_depth", "max_children", "concurrency", "max_duration_seconds", "robots"):
            value = getattr(req, key)
            if value is not None:
                data[key] = value
        if req.context_id is not None or req.user_id is not None:
            data["context"] = {"id": req.context_id, "user": req.user_id}
        return parser.parse(data=data)

    def _control(crawl_id: str, action):
        try:
            action(crawl_id)
        except CrawlNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except InvalidStateTransition as e:
            raise HTTPException(status_code=409, detail=str(e))
        return asdict(spider_registry.status(crawl_id))

    @router.post("/start", status_code=202)
    def start(req: StartSpiderRequest):
        try:
            config = _load_config(req)
            handle = spider_registry.start_crawl(config)
        except ConfigurationError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return {"crawl_id": handle.crawl_id, "status": asdict(spider_registry.status(handle))}

    @router.get("/active")
    def active():
        return [asdict(s) for s in spider_registry.list_active()]

    @router.get("/{crawl_id}")
    def status(crawl_id: str):
        snap = spider_registry.find_status(crawl_id)
        if snap is None:
            raise HTTPException(status_code=404, detail="crawl not found")
        return asdict(snap)

    @router.post("/{crawl_id}/pause")
    def pause(crawl_id: str):
        return _control(crawl_id, spider_registry.pause)

    @router.post("/{crawl_id}/resume")
    def resume(crawl_id: str):
        return _control(crawl_id, spider_registry.resume)

    @router.post("/{crawl_id}/stop")
    def stop(crawl_id: str):
        return _control(crawl_id, spider_registry.stop)

    @router.get("/{crawl_id}/history")
    def history(crawl_id: str, limit: int = 100, offset: int = 0):
        if history_reader is None:
            raise HTTPException(status_code=404, detail="history not available")
        if limit < 1 or offset < 0:
            raise HTTPException(status_code=400, detail="invalid paging parameters")
        return history_reader.list_for_crawl(crawl_id, limit=limit, offset=offset)

    return router
