"""SiteSpider entrypoint: serve the control API or run one crawl in the foreground."""

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from typing import Optional

import uvicorn

from sitespider.api.server import create_app
from sitespider.container import Container
from sitespider.db.engine import init_orm
from sitespider.exceptions import ConfigNotFoundError, ConfigurationError

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scoped, depth-bounded web spider.")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP control API (default).")
    serve.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    serve.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))

    crawl = sub.add_parser("crawl", help="Run one crawl and print its final status as JSON.")
    crawl.add_argument("--config", default=None, help="Job file name inside SPIDER_CONFIGS_DIR.")
    crawl.add_argument("--seed", action="append", default=[], help="Seed URL (repeatable).")
    crawl.add_argument("--max_depth", type=int, default=None)
    crawl.add_argument("--concurrency", type=int, default=None)
    crawl.add_argument("--max_duration_seconds", type=float, default=None)

    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args(["serve"] + list(argv or []))
    return args


def _init_history_tables(container: Container) -> None:
    if container.config.SPIDER_HISTORY_BACKEND() != "sql":
        return
    init_orm(container.db_engine())


def run_crawl(args: argparse.Namespace, container: Container) -> int:
    if args.config:
        spider_config = container.config_service().get_config(args.config)
    elif args.seed:
        data = {"seeds": args.seed}
        for key in ("max_depth", "concurrency", "max_duration_seconds"):
            value = getattr(args, key)
            if value is not None:
                data[key] = value
        spider_config = container.spider_config_parser().parse(data=data)
    else:
        logger.error("crawl needs --config or at least one --seed")
        return 2

    controller = container.crawl_controller(spider_config)
    controller.start()
    try:
        controller.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted; stopping crawl %s", controller.crawl_id)
        controller.stop(reason="interrupted")
        controller.wait()
    print(json.dumps(asdict(controller.snapshot()), default=str, indent=2))
    return 0


def main(argv: Optional[list] = None, container: Optional[Container] = None) -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s",
    )
    args = parse_args(argv)
    container = container or Container()
    _init_history_tables(container)

    if args.command == "crawl":
        try:
            return run_crawl(args, container)
        except (ConfigNotFoundError, ConfigurationError) as e:
            logger.error("%s", e)
            return 2

    app = create_app(container)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
