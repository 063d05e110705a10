from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "alembic"


def _alembic_config() -> Config:
    # No ini file, so env.py leaves the test logging setup alone.
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    return config


def test_upgrade_and_downgrade_on_sqlite(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "migrations.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    config = _alembic_config()

    command.upgrade(config, "head")

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        inspector = inspect(engine)
        assert set(inspector.get_table_names()) >= {
            "hospitalities",
            "markup_rules",
            "hospitality_assignments",
            "ticket_markups",
            "ticket_hospitalities",
        }
        unique_names = {constraint["name"] for constraint in inspector.get_unique_constraints("markup_rules")}
        assert "uq_markup_rules_scope_key" in unique_names
    finally:
        engine.dispose()

    command.downgrade(config, "base")

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        assert set(inspect(engine).get_table_names()) == {"alembic_version"}
    finally:
        engine.dispose()
