"""
Row-level security for company-scoped tables.

On PostgreSQL every table that carries a ``company_id`` column gets a forced
policy restricting rows to the company stored in the
``app.current_company_id`` setting. Requests that must look across companies
before one is known (login, registration, vendor webhooks, the OAuth
callback) run under the system scope, which sets ``app.bypass_rls``.

Both settings are written with ``set_config(..., true)`` at the start of
every transaction, so they end with the transaction and never reach the next
user of a pooled connection. Other dialects rely on the application-level
company filter.
"""
import logging
from typing import List

from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .models import Base

logger = logging.getLogger(__name__)

COMPANY_SETTING = "app.current_company_id"
BYPASS_SETTING = "app.bypass_rls"
POLICY_NAME = "company_isolation"

# Session.info key holding the scope: a company id or SYSTEM_SCOPE
SCOPE_KEY = "rls_scope"
SYSTEM_SCOPE = object()


def scoped_tables() -> List[str]:
    """Names of tables isolated by company, derived from the models."""
    return [
        table.name
        for table in Base.metadata.sorted_tables
        if "company_id" in table.columns and table.name != "companies"
    ]


def policy_statements(table: str) -> List[str]:
    """DDL that forces row-level security on ``table``."""
    condition = (
        f"current_setting('{BYPASS_SETTING}', true) = 'on' "
        f"OR company_id = current_setting('{COMPANY_SETTING}', true)"
    )
    return [
        f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY",
        # Table owners are exempt from policies unless forced
        f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY",
        f"DROP POLICY IF EXISTS {POLICY_NAME} ON {table}",
        f"CREATE POLICY {POLICY_NAME} ON {table} USING ({condition}) WITH CHECK ({condition})",
    ]


def _is_postgres(bind) -> bool:
    return bind.dialect.name == "postgresql"


# PUBLIC_INTERFACE
def install_row_level_security(bind: Engine) -> None:
    """
    Enable and force row-level security with the company isolation policy.

    Args:
        bind: Engine the tables were created on

    The statements are idempotent; non-PostgreSQL engines are left untouched.
    """
    if not _is_postgres(bind):
        return

    tables = scoped_tables()
    with bind.begin() as conn:
        for table in tables:
            for statement in policy_statements(table):
                conn.execute(text(statement))
    logger.info("Row level security installed on %d tables", len(tables))


def _set_local_scope(conn, scope) -> None:
    system = scope is SYSTEM_SCOPE
    conn.execute(
        text("SELECT set_config(:bypass, :bypass_value, true), set_config(:setting, :company_id, true)"),
        {
            "bypass": BYPASS_SETTING,
            "bypass_value": "on" if system else "off",
            "setting": COMPANY_SETTING,
            "company_id": "" if system else scope,
        },
    )


@event.listens_for(Session, "after_begin")
def scope_transaction(session, transaction, connection):
    """Apply the session's scope to each transaction it begins."""
    scope = session.info.get(SCOPE_KEY)
    if scope is None or not _is_postgres(connection):
        return
    _set_local_scope(connection, scope)


def _apply(db: Session, scope) -> None:
    db.info[SCOPE_KEY] = scope
    if _is_postgres(db.get_bind()):
        # Also covers a transaction that began before the scope was set
        _set_local_scope(db.connection(), scope)


# PUBLIC_INTERFACE
def apply_company_scope(db: Session, company_id: str) -> None:
    """
    Restrict the session to one company's rows for row-level security.

    Args:
        db: Request database session
        company_id: Company the authenticated user belongs to
    """
    _apply(db, company_id)


# PUBLIC_INTERFACE
def apply_system_scope(db: Session) -> None:
    """Let the session see every company's rows (unauthenticated system flows)."""
    _apply(db, SYSTEM_SCOPE)
