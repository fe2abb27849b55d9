import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv


# Load .env FIRST before any other imports that might need env vars
ROOT_DIR = Path(__file__).parent.parent
ENV_PATH = ROOT_DIR / ".env"
load_dotenv(ENV_PATH)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .auth.router import router as auth_router
from .config.logging import setup_logging
from .config.settings import get_settings
from .core.error_handlers import register_exception_handlers
from .core.shell import AppShell, create_shell
from .courses.router import router as courses_router
from .enrollments.router import router as enrollments_router
from .middleware.security import SimpleSecurityMiddleware, limiter
from .progress.router import router as progress_router
from .students.router import router as students_router


setup_logging()
logger = logging.getLogger(__name__)


def _register_routers(app: FastAPI) -> None:
    """Register all application routers."""
    app.include_router(auth_router)
    app.include_router(courses_router)
    app.include_router(enrollments_router)
    app.include_router(progress_router)
    app.include_router(students_router)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the application shell at startup and tear it down at exit."""
    owns_shell = getattr(app.state, "shell", None) is None
    if owns_shell:
        app.state.shell = await create_shell(get_settings())

    shell: AppShell = app.state.shell
    state = await shell.start()
    logger.info(f"Application shell started in {state.kind}")

    yield

    logger.info("Starting graceful shutdown...")
    await shell.close()
    if owns_shell:
        app.state.shell = None
    logger.info("Shutdown complete")


def create_app(shell: AppShell | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    `shell` is used as-is when given; otherwise the lifespan handler builds one
    from settings.
    """
    try:
        settings = get_settings()
    except Exception:
        logger.exception("Failed to load settings")
        raise

    app = FastAPI(
        title="CED E-Learning API",
        description="Application shell for the CED e-learning platform",
        version="0.1.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.shell = shell

    # Note: When allow_credentials=True, allow_origins cannot be ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SimpleSecurityMiddleware)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Check application health status."""
        return {"status": "healthy"}

    _register_routers(app)

    if settings.STORAGE_PROVIDER == "local":
        upload_dir = Path(settings.LOCAL_STORAGE_PATH)
        upload_dir.mkdir(parents=True, exist_ok=True)
        app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="127.0.0.1", port=get_settings().API_PORT)
