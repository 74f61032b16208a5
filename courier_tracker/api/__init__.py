"""
HTTP API routers.
"""

from courier_tracker.api.couriers import router as couriers_router

__all__ = ["couriers_router"]
