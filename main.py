"""Main entry point for the agentfleet coordinator API."""

import os

import uvicorn
from dotenv import load_dotenv

from agentfleet.api import create_fastapi_app
from agentfleet.config import PROJECT_ROOT
from agentfleet.logging_config import setup_logging


def main():
    """Run the application."""
    load_dotenv(PROJECT_ROOT / ".env")
    setup_logging()

    # Get configuration from environment
    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))

    app = create_fastapi_app()

    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
