from datetime import timedelta

from fastapi import FastAPI

from drafter.core.config import get_settings
from drafter.core.middleware import RequestIdMiddleware
from drafter.drafts.router import router as drafts_router
from drafter.drafts.tokens import InMemoryPropertyTokenStore


def create_app() -> FastAPI:
    settings = get_settings()

    _app = FastAPI(
        title="Drafter API",
        description="Property portal drafts from Dropbox photo folders",
        version="0.1.0",
    )

    # ---------------------------------------------------------------------------
    # Middleware
    # ---------------------------------------------------------------------------

    # Request ID: inject / forward X-Request-ID and bind to ContextVar
    _app.add_middleware(RequestIdMiddleware)

    # ---------------------------------------------------------------------------
    # Logging: configure structlog before any routers log anything
    # ---------------------------------------------------------------------------
    from drafter.core.logging import configure_structlog

    configure_structlog(debug=settings.debug)

    # ---------------------------------------------------------------------------
    # Shared state: the draft service (and its credential cache) is built on
    # the first draft request and then reused for the life of the process.
    # ---------------------------------------------------------------------------
    _app.state.token_store = InMemoryPropertyTokenStore(
        ttl=timedelta(days=settings.token_ttl_days)
    )
    _app.state.draft_service = None

    # ---------------------------------------------------------------------------
    # Routes
    # ---------------------------------------------------------------------------

    @_app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    _app.include_router(drafts_router)

    return _app


app = create_app()
