"""
clouddb.api - Optional REST API Gateway
========================================

This module provides an optional FastAPI-based REST gateway
exposing a Cloud Databases account over HTTP.

Usage
-----
>>> from clouddb.api import create_app
>>> app = create_app()
>>> # Run with: uvicorn clouddb.api:app

Or run directly:
>>> python -m clouddb.api

"""

from pathlib import Path

from dotenv import load_dotenv

# Load .env before building the default app
env_path = Path.cwd() / ".env"
if env_path.exists():
    load_dotenv(env_path)

from clouddb.api.gateway import create_app, CloudDBGateway

# Create default app instance for uvicorn
app = create_app()

__all__ = [
    "create_app",
    "CloudDBGateway",
    "app",
]
