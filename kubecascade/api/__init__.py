"""REST API layer for kubecascade.

Exposes:
    create_app -- FastAPI application factory.
"""

from kubecascade.api.app import create_app

__all__ = ["create_app"]
