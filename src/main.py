"""Main application entry point.

Runs FastAPI with NiceGUI mounted for the chat interface on one server.
Environment variables are loaded from .env file. Exits with status 1 when
the provider key or listen port is missing or invalid.
"""

import logging
import os
import sys

from dotenv import load_dotenv
from pydantic import ValidationError

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def _format_errors(exc: ValidationError) -> str:
    return "; ".join(err["msg"].removeprefix("Value error, ") for err in exc.errors())


def main() -> None:
    """Validate configuration and start the integrated server."""
    from src.api.config import get_server_config
    from src.provider.config import get_provider_config

    try:
        get_provider_config()
        server_config = get_server_config()
    except ValidationError as e:
        logger.error(f"Invalid configuration: {_format_errors(e)}")
        sys.exit(1)

    os.environ.setdefault("API_BASE_URL", server_config.base_url)

    import uvicorn
    from nicegui import ui

    from src.api.app import app
    from src.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    # Mount NiceGUI onto FastAPI
    ui.run_with(
        app,
        title="Chat",
        favicon="💬",
        storage_secret=server_config.storage_secret,
    )

    logger.info(f"Starting server on http://{server_config.host}:{server_config.port}")
    logger.info(f"API docs available at http://{server_config.host}:{server_config.port}/docs")

    uvicorn.run(
        app,
        host=server_config.host,
        port=server_config.port,
        log_level=server_config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
