from fastapi import APIRouter


def create_systems_router(container_env: dict, spider_registry=None):
    """Create systems router with access to container environment config."""
    router = APIRouter(prefix="/systems", tags=["System"])

    @router.get("/health")
    def health():
        body = {"status": "ok"}
        if spider_registry is not None:
            body["active_crawls"] = len(spider_registry.list_active())
        return body

    @router.get("/config")
    def get_config():
        """Return current environment configuration values."""
        return {
            "environment": {
                key: str(value) if value is not None else None
                for key, value in container_env.items()
                if key != "DATABASE_URL"
            }
        }

    return router
