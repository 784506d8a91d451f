"""
Counter API - HTTP bridge for the on-chain Counter contract.

Provides REST endpoints for:
- Reading the counter (GET /value)
- Incrementing (POST /increment, POST /increment-by)
- Decrementing (POST /decrement, POST /decrement-by)
- Health checks (GET /health)
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

import structlog
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .bridge import CounterBridge
from .config import Settings, get_settings
from .errors import CounterAPIError
from .evm import ChainClient
from .intent import AMOUNT_ERROR, WriteIntent
from .lifecycle import TransactionLifecycle
from .models import (
    AmountRequest,
    ErrorResponse,
    HealthResponse,
    ValueResponse,
    WriteResponse,
)


def configure_logging(debug: bool = False) -> None:
    """Route structlog through stdlib logging as JSON lines."""
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


logger = structlog.get_logger()


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(by_alias=True),
    )


def get_bridge(request: Request) -> CounterBridge:
    """Bridge built at startup (or injected by create_app)."""
    bridge: Optional[CounterBridge] = getattr(request.app.state, "bridge", None)
    if bridge is None:
        raise HTTPException(status_code=503, detail="Chain client not initialized")
    return bridge


def create_app(
    settings: Optional[Settings] = None,
    bridge: Optional[CounterBridge] = None,
) -> FastAPI:
    """
    Build the API.

    When bridge is given it is used as-is; otherwise one is built from
    settings at startup and a configuration error aborts the startup.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        if app.state.bridge is None:
            config = settings.chain_config()
            client = ChainClient(config)
            app.state.bridge = CounterBridge(
                client,
                TransactionLifecycle(client.w3, timeout=config.receipt_timeout_seconds),
            )

            logger.info(
                "API started",
                version=__version__,
                host=settings.host,
                port=settings.port,
                network=config.network.value,
                contract=config.contract_address,
                account=client.address,
                evm_rpc=await client.check_connectivity(),
            )

        yield

        logger.info("API stopped")

    app = FastAPI(
        title="Counter API",
        description="HTTP bridge for the on-chain Counter contract",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.bridge = bridge

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CounterAPIError)
    async def counter_error_handler(request: Request, exc: CounterAPIError) -> JSONResponse:
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info(
            "Request rejected",
            path=request.url.path,
            errors=[error.get("msg") for error in exc.errors()],
        )
        return _error_response(400, AMOUNT_ERROR)

    # Routing 404/405 are raised as Starlette's base class, not FastAPI's
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail))

    # ========================================================================
    # Health Check
    # ========================================================================

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Liveness only; never touches the chain."""
        return HealthResponse(status="ok")

    # ========================================================================
    # Read
    # ========================================================================

    @app.get("/value", response_model=ValueResponse)
    async def get_value(bridge: CounterBridge = Depends(get_bridge)) -> ValueResponse:
        """Get current counter value."""
        value = await bridge.read_value()
        return ValueResponse(value=str(value))

    # ========================================================================
    # Writes
    # ========================================================================

    async def _write(bridge: CounterBridge, intent: WriteIntent) -> WriteResponse:
        record = await bridge.execute(intent)
        logger.info(
            "Counter updated",
            operation=intent.operation.value,
            amount=intent.amount,
            tx_hash=record.transaction_hash,
            block_number=record.block_number,
        )
        return WriteResponse.from_record(record, intent.amount)

    @app.post("/increment", response_model=WriteResponse, response_model_exclude_none=True)
    async def increment(bridge: CounterBridge = Depends(get_bridge)) -> WriteResponse:
        """Increment counter by 1."""
        return await _write(bridge, WriteIntent.increment())

    @app.post("/increment-by", response_model=WriteResponse, response_model_exclude_none=True)
    async def increment_by(
        request: AmountRequest,
        bridge: CounterBridge = Depends(get_bridge),
    ) -> WriteResponse:
        """Increment counter by the given amount."""
        return await _write(bridge, WriteIntent.increment(request.amount))

    @app.post("/decrement", response_model=WriteResponse, response_model_exclude_none=True)
    async def decrement(bridge: CounterBridge = Depends(get_bridge)) -> WriteResponse:
        """Decrement counter by 1."""
        return await _write(bridge, WriteIntent.decrement())

    @app.post("/decrement-by", response_model=WriteResponse, response_model_exclude_none=True)
    async def decrement_by(
        request: AmountRequest,
        bridge: CounterBridge = Depends(get_bridge),
    ) -> WriteResponse:
        """Decrement counter by the given amount."""
        return await _write(bridge, WriteIntent.decrement(request.amount))

    return app


configure_logging(get_settings().debug)
app = create_app()


# ============================================================================
# Entry Point
# ============================================================================


def run(settings: Optional[Settings] = None, env_file: Optional[Path] = None) -> None:
    """
    Run the API server.

    In debug mode the app is re-imported by the reloader, which only sees
    the environment. HOST and PORT are exported and env_file is loaded into
    the environment so the reloaded app gets the same configuration.
    """
    settings = settings or get_settings()
    if settings.debug:
        os.environ["HOST"] = settings.host
        os.environ["PORT"] = str(settings.port)
        uvicorn.run(
            "counter_api.main:app",
            host=settings.host,
            port=settings.port,
            reload=True,
            env_file=str(env_file) if env_file else None,
        )
        return
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
