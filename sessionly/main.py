#!/usr/bin/env python3
"""
Sessionly - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Builds the session store and middleware
3. Serves the session API

All session logic is in the modules, following black box principles.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Path
from fastapi.responses import JSONResponse

from sessionly.config.provider import ConfigProvider, EnvConfigProvider
from sessionly.logging_config import QUIET_PATHS, configure_logging, get_logging_config
from sessionly.modules.api import SECTION_NAME_PATTERN, SectionResponse, SessionResponse, SetVariableRequest
from sessionly.modules.middleware import SessionMiddleware, get_session
from sessionly.modules.session import (
    ConfigurationError,
    NotActiveError,
    OrderingViolation,
    Session,
    SessionError,
    StartupFailure,
)
from sessionly.modules.storage import RedisStore, StoreAdapter, create_store

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotActiveError: 409,
    StartupFailure: 503,
    ConfigurationError: 500,
    OrderingViolation: 500,
}


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    store: Optional[StoreAdapter] = None,
    gc_probability: Optional[float] = None,
) -> FastAPI:
    """
    Build the session API application.

    Args:
        config_provider: Configuration source, environment by default
        store: Store engine, built from the storage configuration when omitted
        gc_probability: Override of the per-activation GC chance

    Returns:
        Configured FastAPI application
    """
    config_provider = config_provider or EnvConfigProvider()
    options = config_provider.get_session_options()
    store = store or create_store(config_provider.get_storage_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting Sessionly API with {type(store).__name__}")
        yield
        logger.info("Shutting down Sessionly API...")
        if isinstance(store, RedisStore):
            await store.redis.aclose()
        logger.info("Sessionly API shutdown complete")

    app = FastAPI(
        title="Sessionly API",
        description="Sectioned server-side sessions",
        version="1.0.0",
        lifespan=lifespan,
    )

    middleware_kwargs = {}
    if gc_probability is not None:
        middleware_kwargs["gc_probability"] = gc_probability
    app.middleware("http")(
        SessionMiddleware(store, options=options, skip_paths=list(QUIET_PATHS), **middleware_kwargs)
    )

    @app.exception_handler(SessionError)
    async def session_error_handler(request, exc):
        """Map session errors to JSON responses."""
        status_code = ERROR_STATUS.get(type(exc), 500)
        logger.error(f"Session error: {exc}")
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    @app.exception_handler(ValueError)
    async def validation_error_handler(request, exc):
        """Handle validation errors."""
        logger.error(f"Validation error: {exc}")
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/session", response_model=SessionResponse)
    async def describe_session(session: Session = Depends(get_session)):
        """Describe the current session without creating one."""
        sections = list(await session.section_names()) if session.exists() else []
        return SessionResponse(
            id=session.id,
            exists=session.exists(),
            state=session.state.value,
            sections=sections,
        )

    @app.get("/session/sections/{section}", response_model=SectionResponse)
    async def read_section(section: str = Path(..., pattern=SECTION_NAME_PATTERN), session: Session = Depends(get_session)):
        if not await session.has_section(section):
            return SectionResponse(section=section)
        return SectionResponse(
            section=section,
            variables=dict(session.get_section(section).items()),
            expires_at=session.store.expiration(section),
        )

    @app.put("/session/sections/{section}/{variable}", response_model=SectionResponse)
    async def write_variable(
        request: SetVariableRequest,
        section: str = Path(..., pattern=SECTION_NAME_PATTERN),
        variable: str = Path(..., min_length=1, max_length=100),
        session: Session = Depends(get_session),
    ):
        await session.start()
        session.get_section(section).set(variable, request.value, expiration=request.expiration)
        return SectionResponse(
            section=section,
            variables=dict(session.get_section(section).items()),
            expires_at=session.store.expiration(section),
        )

    @app.delete("/session/sections/{section}")
    async def delete_section(section: str = Path(..., pattern=SECTION_NAME_PATTERN), session: Session = Depends(get_session)):
        if await session.has_section(section):
            session.get_section(section).remove()
        return {"section": section, "removed": True}

    @app.delete("/session/sections/{section}/{variable}")
    async def delete_variable(
        section: str = Path(..., pattern=SECTION_NAME_PATTERN),
        variable: str = Path(..., min_length=1, max_length=100),
        session: Session = Depends(get_session),
    ):
        if await session.has_section(section):
            session.get_section(section).remove(variable)
        return {"section": section, "variable": variable, "removed": True}

    @app.post("/session/regenerate")
    async def regenerate(session: Session = Depends(get_session)):
        await session.start()
        await session.regenerate_id()
        return {"id": session.id}

    @app.delete("/session")
    async def destroy(session: Session = Depends(get_session)):
        if session.exists():
            await session.start()
        await session.destroy()
        return {"destroyed": True}

    return app


def main() -> None:
    """Run the session API with uvicorn."""
    config_provider = EnvConfigProvider()
    api_config = config_provider.get_api_config()
    configure_logging(api_config.log_level)
    uvicorn.run(
        create_app(config_provider),
        host=api_config.host,
        port=api_config.port,
        log_level=api_config.log_level.lower(),
        log_config=get_logging_config(api_config.log_level),
    )


if __name__ == "__main__":
    main()
