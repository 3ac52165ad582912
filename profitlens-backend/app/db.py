import logging
from pathlib import Path
from typing import Iterable

from psycopg_pool import ConnectionPool

from .config import settings

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
MIGRATIONS_DIR = BASE_DIR.parent / "migrations"

# start closed, we'll open in app lifespan
pool = ConnectionPool(conninfo=settings.database_url, max_size=settings.pool_max_size, open=False)


SCHEMA_STATEMENTS: Iterable[str] = (
    """
    CREATE TABLE IF NOT EXISTS profitlens.clients (
        id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
        name TEXT NOT NULL,
        email TEXT,
        phone TEXT,
        company TEXT,
        source TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS profitlens.projects (
        id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
        name TEXT NOT NULL,
        client_id TEXT NOT NULL REFERENCES profitlens.clients(id) ON DELETE CASCADE,
        start_date TIMESTAMPTZ NOT NULL,
        end_date TIMESTAMPTZ NOT NULL,
        completion_date TIMESTAMPTZ,
        budget NUMERIC(12, 2) NOT NULL,
        status TEXT NOT NULL DEFAULT 'planning',
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        CONSTRAINT projects_dates_ordered CHECK (start_date <= end_date)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_projects_client_id ON profitlens.projects(client_id)
    """,
    """
    CREATE TABLE IF NOT EXISTS profitlens.project_extensions (
        id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
        project_id TEXT NOT NULL REFERENCES profitlens.projects(id) ON DELETE CASCADE,
        new_end_date TIMESTAMPTZ,
        extended_budget NUMERIC(12, 2),
        actual_completion_date TIMESTAMPTZ,
        notes TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_project_extensions_project_id ON profitlens.project_extensions(project_id)
    """,
    """
    CREATE TABLE IF NOT EXISTS profitlens.project_status_events (
        id BIGSERIAL PRIMARY KEY,
        project_id TEXT NOT NULL REFERENCES profitlens.projects(id) ON DELETE CASCADE,
        status TEXT NOT NULL,
        changed_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        notes TEXT
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_project_status_events_project_id ON profitlens.project_status_events(project_id)
    """,
    """
    CREATE TABLE IF NOT EXISTS profitlens.employees (
        id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
        name TEXT NOT NULL,
        employee_code TEXT NOT NULL UNIQUE,
        designation TEXT NOT NULL,
        salary NUMERIC(12, 2),
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS profitlens.employee_salaries (
        id BIGSERIAL PRIMARY KEY,
        employee_id TEXT NOT NULL REFERENCES profitlens.employees(id) ON DELETE CASCADE,
        financial_year TEXT NOT NULL,
        annual_salary NUMERIC(12, 2) NOT NULL,
        effective_from DATE NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_employee_salaries_employee_id ON profitlens.employee_salaries(employee_id)
    """,
    """
    CREATE TABLE IF NOT EXISTS profitlens.project_employees (
        id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
        project_id TEXT NOT NULL REFERENCES profitlens.projects(id) ON DELETE CASCADE,
        employee_id TEXT NOT NULL REFERENCES profitlens.employees(id) ON DELETE CASCADE,
        assigned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        unassigned_at TIMESTAMPTZ
    )
    """,
    """
    ALTER TABLE profitlens.project_employees ADD COLUMN IF NOT EXISTS unassigned_at TIMESTAMPTZ
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_project_employees_project_id ON profitlens.project_employees(project_id)
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_project_employees_employee_id ON profitlens.project_employees(employee_id)
    """,
)


def open_pool() -> None:
    if pool.closed:
        pool.open()


def close_pool() -> None:
    if not pool.closed:
        pool.close()


def initialize_database() -> None:
    try:
        ensure_schema()
        apply_migrations()
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Database initialization failed")
        raise


def ensure_schema() -> None:
    with pool.connection() as conn:
        with conn.cursor() as cur:
            cur.execute("CREATE SCHEMA IF NOT EXISTS profitlens")
            cur.execute("SET search_path TO profitlens, public")
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
        conn.commit()


def apply_migrations() -> None:
    """Execute idempotent SQL migrations stored in profitlens-backend/migrations."""
    if not MIGRATIONS_DIR.exists():
        return

    migration_files = sorted(MIGRATIONS_DIR.glob("*.sql"))
    if not migration_files:
        return

    with pool.connection() as conn:
        for path in migration_files:
            sql = path.read_text()
            if not sql.strip():
                continue
            logger.info("Applying migration %s", path.name)
            with conn.cursor() as cur:
                cur.execute(sql)
        conn.commit()
