"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.catalogue import router as catalogue_router

__all__ = [
    "catalogue_router",
]
