"""
Booksql — natural-language query assistant.
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import health, query, schema
from config import settings

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("booksql")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Booksql starting up (query tables: %s)", ", ".join(settings.query_table_list))
    yield
    logger.info("Booksql shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Booksql — Natural-language SQL assistant",
    description="Ask questions about the book catalog; answers are generated SQL run against the live database.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(health.router, prefix="/api")
app.include_router(query.router,  prefix="/api")
app.include_router(schema.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
