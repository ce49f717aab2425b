"""Configuration and application context tests."""

from __future__ import annotations

from sqlalchemy.pool import StaticPool

from debtsage import create_app_context
from debtsage import config as config_module
from debtsage.config import BaseConfig
from debtsage.services.debts import create_debt


def test_defaults_use_sqlite_in_data_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("DEBTSAGE_DATABASE_URL", raising=False)
    monkeypatch.delenv("DEBTSAGE_LOG_LEVEL", raising=False)

    config = BaseConfig(tmp_path / "data")

    assert config.DATA_DIR == (tmp_path / "data").resolve()
    assert config.DATA_DIR.is_dir()
    assert config.DATABASE_URL == f"sqlite:///{config.DATA_DIR / 'debtsage.db'}"
    assert config.LOG_LEVEL == "INFO"
    assert config.sqlalchemy_engine_options() == {"connect_args": {"check_same_thread": False}}


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("DEBTSAGE_DATA_DIR", str(tmp_path / "from-env"))
    monkeypatch.setenv("DEBTSAGE_DEV_MODE", "off")
    monkeypatch.setenv("DEBTSAGE_LOG_LEVEL", "debug")
    monkeypatch.setenv("DEBTSAGE_DATABASE_URL", "sqlite:///:memory:")

    config = BaseConfig()

    assert config.DATA_DIR == (tmp_path / "from-env").resolve()
    assert config.DEV_MODE is False
    assert config.LOG_LEVEL == "DEBUG"
    assert config.sqlalchemy_engine_options()["poolclass"] is StaticPool


def test_explicit_data_dir_beats_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("DEBTSAGE_DATA_DIR", str(tmp_path / "ignored"))

    assert BaseConfig(tmp_path / "chosen").DATA_DIR == (tmp_path / "chosen").resolve()


def test_in_memory_context_shares_one_database(tmp_path):
    app = create_app_context(config_module.TestConfig(tmp_path))

    debt = create_debt(
        app.debt_repo,
        name="Card",
        category="credit_card",
        original_balance_cents=10_000,
        current_balance_cents=10_000,
        apr_percent=12.0,
        minimum_payment_cents=1_000,
    )

    assert app.debt_repo.find_debt(debt.id).name == "Card"
    assert app.config.DATABASE_URL == "sqlite://"


def test_sqlite_connections_enforce_foreign_keys(tmp_path):
    app = create_app_context(config_module.TestConfig(tmp_path))

    with app.engine.connect() as conn:
        assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1
        assert conn.exec_driver_sql("PRAGMA busy_timeout").scalar() == BaseConfig.SQLITE_BUSY_TIMEOUT_MS
