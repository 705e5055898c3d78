from contextlib import asynccontextmanager

from fastapi import FastAPI

from sitespider.api.routers import create_configs_router, create_spiders_router, create_systems_router


def create_app(container) -> FastAPI:
    """Build the FastAPI application from a configured container."""
    spider_registry = container.spider_registry()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        spider_registry.stop_all()

    app = FastAPI(title="SiteSpider", version="0.1.0", lifespan=lifespan)
    app.include_router(create_systems_router(container.config(), spider_registry))
    app.include_router(create_configs_router(container.config_service()))
    app.include_router(
        create_spiders_router(
            spider_registry,
            container.config_service(),
            config_parser=container.spider_config_parser(),
            history_reader=container.history_sink(),
        )
    )
    return app
