"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from myclinic.api.errors import ApiError, api_error_handler, unhandled_error_handler
from myclinic.api.routes import (
    agenda_router,
    auth_router,
    health_router,
    relatorios_router,
)
from myclinic.client import MyclinicClient
from myclinic.config import ScraperConfig, get_config
from myclinic.logging import get_logger, setup_logging

logger = get_logger(__name__)

API_VERSION = "1.0.0"


async def auto_login(client: MyclinicClient, config: ScraperConfig) -> None:
    """Log in with configured credentials; a failure is logged, not fatal."""
    if not config.has_credentials:
        logger.info("auto_login_skipped", reason="no_credentials")
        return
    if await client.login(
        config.myclinic_email, config.myclinic_password.get_secret_value()
    ):
        logger.info("auto_login_succeeded")
    else:
        logger.warning("auto_login_failed", reason="invalid_credentials_or_upstream")


def create_app(
    config: ScraperConfig | None = None, client: MyclinicClient | None = None
) -> FastAPI:
    """Build the application.

    Args:
        config: Settings; defaults to the environment.
        client: Pre-built client (tests). When omitted one is created at
            startup and closed at shutdown.
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "client", None) is None
        if owned:
            app.state.client = MyclinicClient(config)
            await auto_login(app.state.client, config)

        yield

        if owned:
            await app.state.client.aclose()
            app.state.client = None

    app = FastAPI(
        title="Myclinic API Wrapper",
        description="HTTP wrapper for the Myclinic clinic management system",
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.client = client

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(agenda_router)
    app.include_router(relatorios_router)
    return app


app = create_app()


def run() -> None:
    """Console entry point: configure logging and serve with uvicorn."""
    import uvicorn

    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    logger.info("server_starting", host=config.api_host, port=config.api_port)
    uvicorn.run(app, host=config.api_host, port=config.api_port, log_config=None)


if __name__ == "__main__":
    run()
