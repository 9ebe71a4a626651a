import asyncio
import logging
import logging.config
from pathlib import Path

import uvicorn

import config
from services.logging_config import build_logging_config
from services.storage.settings_store import ConfigStore

PROJECT_ROOT = Path(__file__).resolve().parent

logger = logging.getLogger("run_server")


def _load_server_settings() -> dict:
    """Initialize a throwaway store so the file exists and the port is known."""
    store = ConfigStore(config.SETTINGS_PATH)
    asyncio.run(store.initialize())
    return store.get_config()


if __name__ == "__main__":
    settings = _load_server_settings()
    logging.config.dictConfig(build_logging_config(settings.get("logLevel", "info")))
    port = int(settings.get("serverPort", 3001))
    logger.info("Starting server on %s:%d using %s", config.SERVER_HOST, port, config.SETTINGS_PATH)
    uvicorn.run(
        "services.webapp.main:app",
        host=config.SERVER_HOST,
        port=port,
        reload=config.SERVER_RELOAD,
        reload_dirs=[str(PROJECT_ROOT)],
        reload_excludes=["*.json", "*.log", "*.tmp"],
        log_config=None,
    )
