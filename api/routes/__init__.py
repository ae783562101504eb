"""
Route package initialization.
"""
from .extract import router as extract_router
from .listings import router as listings_router
from .stats import router as stats_router

__all__ = ["extract_router", "listings_router", "stats_router"]
