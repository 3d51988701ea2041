"""
Routes package.
"""

from .worker import router as worker_router

__all__ = [
    "worker_router",
]
