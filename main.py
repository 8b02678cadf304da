"""Application entry point for the LevelUp backend API.

Defines the FastAPI app, middleware, exception handlers and API routers.
The `lifespan` handler opens the storage handle and the scan analyzer on
startup and closes the storage handle on shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.dashboard import router as dashboard_router
from api.plans import router as plans_router
from api.scans import router as scans_router
from core.config import settings
from core.error_handlers import register_exception_handlers
from core.exceptions import StorageError
from core.logger import get_logger
from database import Database
from database.deps import get_db_read
from database.models import utcnow
from services.scan_analyzer import MockScanAnalyzer

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open shared resources before serving requests and release them after."""
    database = Database.from_settings(settings)
    database.init_db()
    app.state.database = database
    app.state.scan_analyzer = MockScanAnalyzer(seed=settings.ANALYZER_SEED)
    logger.info("LevelUp backend started")
    try:
        yield
    finally:
        database.close()


app = FastAPI(title="LevelUp Backend API", version="1.0.0", lifespan=lifespan)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log incoming requests and their responses."""
    logger.info("%s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response
    except Exception:
        logger.exception("Request error: %s %s", request.method, request.url.path)
        raise


@app.get("/health")
def health(db: Session = Depends(get_db_read)):
    """Return basic health status and database connectivity.

    Raises:
        StorageError: If the database cannot be reached.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.exception("Health check failed")
        raise StorageError(f"Database health check failed: {e}", operation="health") from e
    return {"status": "healthy", "database": "connected", "timestamp": utcnow().isoformat()}


# include routers
app.include_router(scans_router)
app.include_router(plans_router)
app.include_router(dashboard_router)


if __name__ == "__main__":
    # Allow starting the app via `python ./main.py`
    try:
        import uvicorn
    except ImportError as exc:
        raise RuntimeError("uvicorn is required to run the app. Install with `pip install uvicorn[standard]`. Error: %s" % exc)

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
