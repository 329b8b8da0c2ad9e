"""API aggregator.

Expose the combined FastAPI router via `app.api.v1.routers.router`:

    from app.api.v1.routers import router as api_router
"""

# Note: avoid `routers = ...` here to prevent shadowing the `routers` package.

__all__ = []
