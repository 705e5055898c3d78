import logging

from fastapi import APIRouter, HTTPException, Response

from sitespider.exceptions import ConfigNotFoundError, ConfigurationError
from sitespider.services.config_service import ConfigService

logger = logging.getLogger(__name__)


def create_configs_router(config_service: ConfigService):
    router = APIRouter(prefix="/configs", tags=["Configs"])

    @router.get("/")
    def list_configs():
        result = []
        for name in config_service.list_configs():
            try:
                cfg = config_service.get_config(name)
            except (ConfigNotFoundError, ConfigurationError) as e:
                logger.warning("Could not load job file %s: %s", name, e)
                result.append({"config_path": name, "valid": False, "error": str(e)})
                continue
            result.append({
                "config_path": name,
                "valid": True,
                "seeds": list(cfg.seeds),
                "max_depth": cfg.max_depth,
                "max_children": cfg.max_children,
                "concurrency": cfg.concurrency,
                "context_id": cfg.context_id,
                "user_id": cfg.user_id,
                "robots": cfg.respect_robots_txt,
            })
        return result

    @router.get("/{name}")
    def get_config(name: str):
        yaml_content = config_service.get_config_yaml(name)
        if not yaml_content:
            raise HTTPException(status_code=404, detail="config not found")
        return Response(content=yaml_content, media_type="text/yaml")

    return router
