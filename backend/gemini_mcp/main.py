from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from gemini_mcp.api import gemini, health, status
from gemini_mcp.core.config import GEMINI_MCP_PORT, ExecutionConfig, load_execution_config
from gemini_mcp.core.logging import configure_logging, logger


def create_app(config: Optional[ExecutionConfig] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.config is None:
            app.state.config = load_execution_config()
        logger.info("http transport started")
        yield

    app = FastAPI(title="Gemini MCP", version="0.1.0", lifespan=lifespan)
    app.state.config = config

    app.include_router(health.router)
    app.include_router(status.router)
    app.include_router(gemini.router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    configure_logging()
    uvicorn.run(
        "gemini_mcp.main:app",
        host="127.0.0.1",
        port=GEMINI_MCP_PORT,
        log_level="info",
    )


if __name__ == "__main__":
    run()
