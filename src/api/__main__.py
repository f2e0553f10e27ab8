"""
Serve the paper trading API.

Usage:
    python -m api

Listens on API_HOST:API_PORT (127.0.0.1:8000 by default); see
``trading.config`` for the other settings.
"""

import uvicorn

from trading.config import load_config


def main() -> None:
    config = load_config()
    uvicorn.run(
        "api.main:app",
        host=config.api_host,
        port=config.api_port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
