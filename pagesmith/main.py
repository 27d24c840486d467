"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pagesmith.config import settings
from pagesmith.database import engine, init_db
from pagesmith.errors import PagesmithError, TransactionFailure
from pagesmith.routers import projects, versions

# ── Logging setup ────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("Database ready (%s)", engine.url.render_as_string(hide_password=True))
    yield
    await engine.dispose()


app = FastAPI(
    title="Pagesmith",
    description="Multi-file web projects with versions, rollback, diffs and undo",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PagesmithError)
async def pagesmith_error_handler(request: Request, exc: PagesmithError):
    # A TransactionFailure is already logged by the unit of work; its message is safe to show.
    if exc.status_code >= 500 and not isinstance(exc, TransactionFailure):
        logger.error("Unhandled domain error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"detail": "Internal error"})
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


# Mount routers
app.include_router(projects.router, prefix="/api/projects", tags=["projects"])
app.include_router(versions.router, prefix="/api/projects", tags=["versions"])


@app.get("/health")
async def health():
    return {"status": "ok", "service": "pagesmith"}
