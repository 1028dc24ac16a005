"""FastAPI application for the giftsettle sandbox API."""

from fastapi import FastAPI

from giftsettle import __version__
from giftsettle.api.backend import SandboxBackend
from giftsettle.api.error_handlers import register_error_handlers
from giftsettle.api.routes import router

# Singleton backend for the process
backend = SandboxBackend()

app = FastAPI(
    title="giftsettle Sandbox API",
    version=__version__,
    description="In-memory gift, ledger, donation and gift-card services for exercising the settlement client",
)

# Inject backend into app state for route access
app.state.backend = backend

register_error_handlers(app)

# Mount routes
app.include_router(router, prefix="/api")


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "version": app.version}
