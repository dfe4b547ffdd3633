"""HTTP surface of the ACS token service.

FastAPI app exposing the identity endpoints called by the Teams tab:
 - POST /Identity/exchange-token (also GET/POST /api/exchangeToken for the Functions-style route)
 - POST /Identity/refresh-acs-token
 - GET  /health
"""

import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Optional

from fastapi import Body, Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .acs_client import build_identity_client
from .claims import extract_bearer_token
from .config import AppConfig
from .errors import InternalError, TokenExchangeError
from .models import AcsTokenRefreshResponse, AcsTokenResponse, ErrorResponse, RefreshTokenRequest
from .service import TokenExchangeService

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def caller_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Bearer token from the Authorization header, if any."""
    return extract_bearer_token(authorization)


def get_service(request: Request) -> TokenExchangeService:
    return request.app.state.service


async def _guarded(call: Awaitable):
    """Await a service call, turning unexpected exceptions into InternalError.

    TokenExchangeError responses are built inside CORSMiddleware; the bare Exception handler
    runs in ServerErrorMiddleware, outside it, so its responses carry no CORS headers.
    """
    try:
        return await call
    except TokenExchangeError:
        raise
    except Exception as e:
        logger.error("Unhandled error: %s", type(e).__name__, exc_info=e)
        raise InternalError() from e


def create_app(cfg: AppConfig, service: Optional[TokenExchangeService] = None) -> FastAPI:
    """Build the app. When no service is given one is created at startup from `cfg`."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if service is not None:
            yield
            return
        client, credential = build_identity_client(cfg)
        app.state.service = TokenExchangeService.from_config(cfg, client)
        logger.info("ACS token service started")
        try:
            yield
        finally:
            if client is not None:
                await client.close()
            if credential is not None:
                await credential.close()

    app = FastAPI(
        title="ACS Token Exchange API",
        description="Exchanges Teams SSO tokens for Azure Communication Services tokens",
        version="1.0.0",
        lifespan=lifespan,
    )
    if service is not None:
        app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TokenExchangeError)
    async def token_exchange_error_handler(request: Request, exc: TokenExchangeError):
        logger.warning("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.error_code)
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s: %s", request.url.path, type(exc).__name__, exc_info=exc)
        return JSONResponse({"error": "Internal server error", "code": "internal_error"}, status_code=500)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/Identity/exchange-token", response_model=AcsTokenResponse, responses=ERROR_RESPONSES)
    @app.api_route("/api/exchangeToken", methods=["GET", "POST"], response_model=AcsTokenResponse,
                   responses=ERROR_RESPONSES)
    async def exchange_token(
        token: Optional[str] = Depends(caller_token),
        svc: TokenExchangeService = Depends(get_service),
    ):
        """Exchange the caller's Teams SSO token for ACS tokens."""
        return await _guarded(svc.exchange_token(token))

    @app.post("/Identity/refresh-acs-token", response_model=AcsTokenRefreshResponse, responses=ERROR_RESPONSES)
    async def refresh_acs_token(
        body: Optional[RefreshTokenRequest] = Body(None),
        token: Optional[str] = Depends(caller_token),
        svc: TokenExchangeService = Depends(get_service),
    ):
        """Issue a new ACS token for an existing ACS identity."""
        return await _guarded(svc.refresh_acs_token(token, body.AcsUserId if body else None))

    return app
