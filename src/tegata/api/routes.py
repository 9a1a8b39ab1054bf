"""FastAPI routes for the Tegata signing API."""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tegata import __version__
from tegata.api.models import (
    CookieValueResponse,
    ReadRequest,
    SetCookieRequest,
    SignRequest,
    SignResponse,
)
from tegata.core.manager import CookieManager, CookieNotFound, InvalidCookieName
from tegata.core.signer import SigningError, VerificationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path.home() / ".config" / "tegata" / "config.yaml"


def create_app(
    config_path: Optional[str] = None, manager: Optional[CookieManager] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The CookieManager is built once here and shared read-only by every
    request; an invalid config aborts app creation.

    Args:
        config_path: Path to tegata config.yaml. If None, uses the default location.
        manager: Prebuilt manager; skips config loading when given.

    Returns:
        FastAPI application instance

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ConfigError: If the config is empty or invalid
    """
    if manager is None:
        from tegata.config.loader import load_manager

        _config_path = Path(config_path) if config_path else DEFAULT_CONFIG
        manager = load_manager(_config_path)
        logger.info("Loaded cookie secrets from %s", _config_path)

    app = FastAPI(
        title="Tegata",
        version=__version__,
        description="Signed cookies with current/previous secret rotation",
    )
    app.state.manager = manager

    # ── Raw tokens ────────────────────────────────────────────────────────────

    @app.post("/sign", response_model=SignResponse)
    async def post_sign(req: SignRequest) -> JSONResponse:
        try:
            token = app.state.manager.sign(req.name, req.value)
        except SigningError as exc:
            logger.error("Signing failed: %s", exc)
            return JSONResponse({"error": str(exc)}, status_code=500)
        return JSONResponse(SignResponse(name=req.name, token=token).model_dump())

    @app.post("/read", response_model=CookieValueResponse)
    async def post_read(req: ReadRequest) -> JSONResponse:
        try:
            value = app.state.manager.read(req.name, req.token)
        except VerificationError as exc:
            return JSONResponse({"error": str(exc)}, status_code=401)
        return JSONResponse(CookieValueResponse(name=req.name, value=value).model_dump())

    # ── Cookies ───────────────────────────────────────────────────────────────

    @app.put("/cookies/{name}")
    async def put_cookie(name: str, req: SetCookieRequest) -> JSONResponse:
        resp = JSONResponse({"status": "set", "name": name})
        try:
            app.state.manager.set_cookie(resp, name, req.value)
        except InvalidCookieName as exc:
            return JSONResponse({"error": str(exc)}, status_code=400)
        except SigningError as exc:
            logger.error("Signing failed: %s", exc)
            return JSONResponse({"error": str(exc)}, status_code=500)
        return resp

    @app.get("/cookies/{name}", response_model=CookieValueResponse)
    async def get_cookie(request: Request, name: str) -> JSONResponse:
        try:
            value = app.state.manager.get_cookie_value(request, name)
        except CookieNotFound as exc:
            return JSONResponse({"error": str(exc)}, status_code=404)
        except VerificationError as exc:
            return JSONResponse({"error": str(exc)}, status_code=401)
        return JSONResponse(CookieValueResponse(name=name, value=value).model_dump())

    @app.delete("/cookies/{name}")
    async def delete_cookie(name: str) -> JSONResponse:
        resp = JSONResponse({"status": "deleted", "name": name})
        app.state.manager.delete_cookie(resp, name)
        return resp

    return app
