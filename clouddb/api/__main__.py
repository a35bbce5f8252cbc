"""
clouddb.api - Run as module

Usage: python -m clouddb.api
"""

import logging
import os

import uvicorn

logger = logging.getLogger("clouddb.api")


def main():
    """Run the API gateway server."""
    host = os.environ.get("CLOUDDB_HOST", "127.0.0.1")
    port = int(os.environ.get("CLOUDDB_PORT", "5050"))
    reload = os.environ.get("CLOUDDB_RELOAD", "false").lower() == "true"
    log_level = os.environ.get("CLOUDDB_LOG_LEVEL", "info")

    logging.basicConfig(level=log_level.upper())
    logger.info("Starting Cloud Databases gateway on %s:%s", host, port)

    uvicorn.run(
        "clouddb.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
