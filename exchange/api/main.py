"""FastAPI application for the exchange.

Note: there is no authentication layer. Callers name the acting address
in each request, so the service is meant for local simulation and testing
against in-memory token ledgers.
"""

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from exchange import __version__
from exchange.api.endpoints import router
from exchange.config import Settings
from exchange.errors import ExchangeError
from exchange.logging import configure_logging
from exchange.models.api import ErrorResponse

logger = structlog.get_logger()

settings = Settings.from_env()

app = FastAPI(
    title="RSK AMM",
    description="Constant product AMM and hash time-locked atomic swaps",
    version=__version__,
)


@app.exception_handler(ExchangeError)
async def exchange_error_handler(request: Request, exc: ExchangeError) -> JSONResponse:
    """Turn rejected operations into JSON errors with the error's status."""
    logger.info(
        "operation_rejected",
        path=request.url.path,
        error=exc.code,
        detail=str(exc),
    )
    body = ErrorResponse(error=exc.code, detail=str(exc))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


def run() -> None:
    """Run the exchange API server.

    Configuration via environment variables:
    - EXCHANGE_HOST: Host to bind to (default: 0.0.0.0)
    - EXCHANGE_PORT: Port to bind to (default: 8000)
    - EXCHANGE_DEBUG: Enable debug/reload mode (default: false)
    - EXCHANGE_LOG_LEVEL: Minimum log level (default: INFO)
    - EXCHANGE_FEE_BPS: Pool swap fee in basis points (default: 30)
    - EXCHANGE_SEED_LIQUIDITY: Seed the pool on startup (default: true)
    """
    configure_logging(settings.log_level)
    uvicorn.run(
        "exchange.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
