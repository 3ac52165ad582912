import logging
from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from contextlib import asynccontextmanager
from psycopg import OperationalError

from .routers import (
    clients,
    employees,
    profit_loss,
    projects,
)
from .db import open_pool, close_pool, pool, initialize_database


logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    open_pool()  # open DB pool at startup
    database_available = True
    try:
        initialize_database()
    except Exception as exc:  # pragma: no cover - reports fail until the database is reachable
        database_available = False
        logger.warning("Database initialization failed; report endpoints will error until it recovers: %s", exc)
    app.state.database_available = database_available
    try:
        yield
    finally:
        close_pool()  # close pool at shutdown

app = FastAPI(
    title="ProfitLens Backend",
    version="0.1.0",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

# Allow any localhost/127.* origin for dev tools (Vite/Next/Storybook, etc.)
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_origin_regex=r".*",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(profit_loss.router)
app.include_router(projects.router)
app.include_router(clients.router)
app.include_router(employees.router)

@app.get("/api/health")
def health():
    return {"ok": True}

# DB connectivity quick-check
@app.get("/api/db/ping")
def db_ping():
    schema_ready = getattr(app.state, "database_available", False)
    try:
        with pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("select 'ok'::text")
                (db_status,) = cur.fetchone()
    except OperationalError as exc:
        logger.warning("Database ping failed: %s", exc)
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"db": "unavailable", "schemaReady": schema_ready},
        )
    return {"db": db_status, "schemaReady": schema_ready}
