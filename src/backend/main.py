"""
Main application entry point: FastAPI + Socket.IO on one port.
"""

from app import create_asgi_app

# Create application instance
app = create_asgi_app()


if __name__ == "__main__":
    import uvicorn

    from core.config import settings
    from core.uvicorn_logging import LOGGING_CONFIG

    # Single worker: presence sessions live in process memory
    uvicorn.run(
        "main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
        workers=1,
        log_level="info",
        log_config=LOGGING_CONFIG,
        access_log=True,
        timeout_graceful_shutdown=10,
        server_header=False,
    )
