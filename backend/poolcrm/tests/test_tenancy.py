"""
Row-level security tests.

PostgreSQL is not available under test, so the DDL and the per-transaction
settings are captured from mock connections; the SQLite paths run for real.
"""
from unittest.mock import MagicMock

from poolcrm.database import tenancy
from poolcrm.database.tenancy import (
    BYPASS_SETTING, COMPANY_SETTING, SCOPE_KEY, SYSTEM_SCOPE,
    apply_company_scope, apply_system_scope, install_row_level_security,
    policy_statements, scope_transaction, scoped_tables
)


def postgres_bind():
    bind = MagicMock()
    bind.dialect.name = "postgresql"
    return bind


def executed_sql(conn):
    return [str(call.args[0]) for call in conn.execute.call_args_list]


class TestScopedTables:
    """Test cases for choosing which tables get a policy."""

    def test_company_scoped_tables(self):
        tables = scoped_tables()

        for name in ("users", "company_whitelist", "customers", "projects", "project_milestones",
                     "expense_templates", "documents", "sms_messages"):
            assert name in tables

    def test_tables_without_company_column_excluded(self):
        tables = scoped_tables()

        assert "companies" not in tables
        assert "project_materials" not in tables
        assert "expense_template_subcontractors" not in tables


class TestPolicyInstall:
    """Test cases for the generated DDL."""

    def test_policy_is_forced(self):
        statements = policy_statements("customers")

        assert statements[0] == "ALTER TABLE customers ENABLE ROW LEVEL SECURITY"
        assert statements[1] == "ALTER TABLE customers FORCE ROW LEVEL SECURITY"
        assert statements[2] == "DROP POLICY IF EXISTS company_isolation ON customers"
        create = statements[3]
        assert create.startswith("CREATE POLICY company_isolation ON customers USING (")
        assert f"current_setting('{BYPASS_SETTING}', true) = 'on'" in create
        assert f"company_id = current_setting('{COMPANY_SETTING}', true)" in create
        assert "WITH CHECK (" in create

    def test_install_on_postgres(self):
        bind = postgres_bind()
        conn = bind.begin.return_value.__enter__.return_value

        install_row_level_security(bind)

        sql = executed_sql(conn)
        tables = scoped_tables()
        assert len(sql) == 4 * len(tables)
        for table in tables:
            assert f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY" in sql

    def test_install_skipped_on_sqlite(self, test_engine):
        install_row_level_security(test_engine)

        bind = MagicMock()
        bind.dialect.name = "sqlite"
        install_row_level_security(bind)
        bind.begin.assert_not_called()


class TestSessionScope:
    """Test cases for the per-transaction settings."""

    def _session(self):
        db = MagicMock()
        db.info = {}
        db.get_bind.return_value.dialect.name = "postgresql"
        return db

    def test_company_scope(self):
        db = self._session()

        apply_company_scope(db, "acme-pools")

        assert db.info[SCOPE_KEY] == "acme-pools"
        statement, params = db.connection.return_value.execute.call_args.args
        assert "set_config(:setting, :company_id, true)" in str(statement)
        assert params["company_id"] == "acme-pools"
        assert params["bypass_value"] == "off"

    def test_system_scope(self):
        db = self._session()

        apply_system_scope(db)

        assert db.info[SCOPE_KEY] is SYSTEM_SCOPE
        _, params = db.connection.return_value.execute.call_args.args
        assert params["bypass_value"] == "on"
        assert params["company_id"] == ""

    def test_new_transaction_gets_scope(self):
        session = MagicMock()
        session.info = {SCOPE_KEY: "acme-pools"}
        connection = postgres_bind()

        scope_transaction(session, MagicMock(), connection)

        statement, params = connection.execute.call_args.args
        assert "true)" in str(statement)
        assert params["setting"] == COMPANY_SETTING
        assert params["company_id"] == "acme-pools"

    def test_unscoped_transaction_left_alone(self):
        session = MagicMock()
        session.info = {}
        connection = postgres_bind()

        scope_transaction(session, MagicMock(), connection)

        connection.execute.assert_not_called()

    def test_sqlite_session_only_records_scope(self, db_session):
        apply_company_scope(db_session, "acme-pools")

        assert db_session.info[SCOPE_KEY] == "acme-pools"
        assert not tenancy._is_postgres(db_session.get_bind())

    def test_requests_run_scoped(self, client, auth_headers, customer):
        response = client.get("/api/customers", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["total"] == 1
