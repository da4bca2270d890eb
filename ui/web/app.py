"""
FastAPI Application - Main web application setup
===============================================

This module creates and configures the FastAPI application
with the chat socket, page route and API routes.
"""

from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.templating import Jinja2Templates
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from core.config import Config, load_config
from core.logging import setup_logging, get_logger
from rules.engine import ResponseEngine
from services.channel import MessageChannel

logger = get_logger("web.app")


def create_app(
    config: Optional[Config] = None,
    engine: Optional[ResponseEngine] = None,
    debug: bool = False
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration
        engine: Response engine (built from config if not provided)
        debug: Enable debug mode

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = load_config()

    setup_logging(
        log_dir=config.logging.log_dir or None,
        log_level="DEBUG" if debug else config.logging.level,
        json_format=config.logging.json_format,
        console_output=True
    )

    if engine is None:
        engine = ResponseEngine.from_config(config.engine)

    channel = MessageChannel.from_config(config.channel, engine)

    app = FastAPI(
        title=config.app_name,
        description="Chat with a pattern-matching robot",
        version=config.version,
        debug=debug or config.server.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    templates_dir = Path(__file__).parent / "templates"
    templates = Jinja2Templates(directory=str(templates_dir))

    app.state.config = config
    app.state.engine = engine
    app.state.channel = channel
    app.state.templates = templates

    from .routes import router as main_router
    app.include_router(main_router, prefix="")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc) if debug else "An error occurred"}
        )

    logger.info("Web application created")

    return app


def run_app(
    host: Optional[str] = None,
    port: Optional[int] = None,
    debug: bool = False,
    config: Optional[Config] = None
) -> None:
    """
    Run the web application server.

    Args:
        host: Host address to bind (config value if omitted)
        port: Port to listen on (config value if omitted)
        debug: Enable debug mode
        config: Application configuration
    """
    if config is None:
        config = load_config()

    host = host or config.server.host
    port = port or config.server.port

    app = create_app(config=config, debug=debug)

    logger.info(f"Listening on {host}:{port}")

    import uvicorn
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="debug" if debug else "info"
    )
