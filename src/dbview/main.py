"""Application entry point for the dbview server."""

import structlog

from dbview.app import App
from dbview.config import Config
from dbview.core.modules.store.memory import InMemoryRecordStore
from dbview.logging import setup_logging
from dbview.web.runner import run_server

logger = structlog.get_logger(__name__)


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    store = InMemoryRecordStore.from_json_file(config.seed_file) if config.seed_file else InMemoryRecordStore()
    logger.info("record_store_ready", seed_file=config.seed_file)
    app = App(config, store)
    run_server(app, config)


if __name__ == "__main__":
    main()
