import os
import shutil
import sqlite3
import tempfile
import unittest
import uuid

from orderhub import create_app
from orderhub.config import Config
from orderhub.db import close_db
from orderhub.db_migrations import to_sqlalchemy_url


def _table_exists(db_path: str, table_name: str) -> bool:
    conn = sqlite3.connect(db_path)
    try:
        row = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name = ?",
            (table_name,),
        ).fetchone()
        return row is not None
    finally:
        conn.close()


class DbMigrationsTest(unittest.TestCase):
    def setUp(self) -> None:
        base_tmp = tempfile.gettempdir()
        self._tmpdir_path = os.path.join(base_tmp, f"orderhub_migrations_test_{uuid.uuid4().hex}")
        os.makedirs(self._tmpdir_path, exist_ok=True)
        self.db_path = os.path.join(self._tmpdir_path, "orderhub_test.db")
        self._prev_env = os.environ.get("FLASK_ENV")
        os.environ["FLASK_ENV"] = "development"

    def tearDown(self) -> None:
        if self._prev_env is None:
            os.environ.pop("FLASK_ENV", None)
        else:
            os.environ["FLASK_ENV"] = self._prev_env
        shutil.rmtree(self._tmpdir_path, ignore_errors=True)

    def _build_app(self, *, testing: bool, db_auto_init: bool):
        db_path = self.db_path

        class TempConfig(Config):
            DATABASE_DIR = self._tmpdir_path
            DB_PATH = db_path
            TESTING = testing
            DB_AUTO_INIT = db_auto_init
            LOG_JSON = False
            EXPECTED_SCHEMA_VERSION = None

        app = create_app(TempConfig)
        return app

    def test_schema_not_created_by_default(self) -> None:
        app = self._build_app(testing=False, db_auto_init=False)
        with app.app_context():
            close_db()

        self.assertFalse(_table_exists(self.db_path, "users"))

    def test_schema_created_with_explicit_dev_flag(self) -> None:
        app = self._build_app(testing=False, db_auto_init=True)
        with app.app_context():
            close_db()

        self.assertTrue(_table_exists(self.db_path, "users"))
        self.assertTrue(_table_exists(self.db_path, "orders"))

    def test_flask_db_upgrade_and_downgrade(self) -> None:
        app = self._build_app(testing=False, db_auto_init=False)
        runner = app.test_cli_runner()

        upgrade_result = runner.invoke(args=["db", "upgrade"])
        self.assertEqual(upgrade_result.exit_code, 0, msg=upgrade_result.output)
        self.assertIn("Schema upgraded to head", upgrade_result.output)
        self.assertTrue(_table_exists(self.db_path, "users"))
        self.assertTrue(_table_exists(self.db_path, "orders"))

        downgrade_result = runner.invoke(args=["db", "downgrade", "base"])
        self.assertEqual(downgrade_result.exit_code, 0, msg=downgrade_result.output)
        self.assertFalse(_table_exists(self.db_path, "orders"))
        self.assertFalse(_table_exists(self.db_path, "users"))

        reupgrade_result = runner.invoke(args=["db", "upgrade"])
        self.assertEqual(reupgrade_result.exit_code, 0, msg=reupgrade_result.output)
        self.assertTrue(_table_exists(self.db_path, "orders"))

        history_result = runner.invoke(args=["db", "history"])
        self.assertEqual(history_result.exit_code, 0, msg=history_result.output)

    def test_seed_command_is_idempotent(self) -> None:
        app = self._build_app(testing=False, db_auto_init=True)
        runner = app.test_cli_runner()

        first = runner.invoke(args=["seed"])
        self.assertEqual(first.exit_code, 0, msg=first.output)
        self.assertIn("Seeded 3 users and 6 orders", first.output)

        second = runner.invoke(args=["seed"])
        self.assertEqual(second.exit_code, 0, msg=second.output)
        self.assertIn("already present", second.output)

    def test_sqlalchemy_url_translation(self) -> None:
        self.assertEqual(to_sqlalchemy_url("postgres://u:p@h/db"), "postgresql://u:p@h/db")
        self.assertTrue(to_sqlalchemy_url(self.db_path).startswith("sqlite:///"))
        self.assertEqual(to_sqlalchemy_url("sqlite:///:memory:"), "sqlite:///:memory:")
        self.assertEqual(to_sqlalchemy_url(" postgresql+psycopg2://h/db "), "postgresql+psycopg2://h/db")
        with self.assertRaises(RuntimeError):
            to_sqlalchemy_url("")
