from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

BACKEND_DIR = Path(__file__).resolve().parents[1]


def test_upgrade_creates_local_store(tmp_path):
    url = f"sqlite+pysqlite:///{tmp_path / 'migrate.db'}"
    cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", url)

    command.upgrade(cfg, "head")

    engine = create_engine(url)
    try:
        insp = inspect(engine)
        assert "local_store" in insp.get_table_names()
        columns = {c["name"] for c in insp.get_columns("local_store")}
        assert columns == {"key", "value", "updated_at"}
    finally:
        engine.dispose()

    command.downgrade(cfg, "base")
    engine = create_engine(url)
    try:
        assert "local_store" not in inspect(engine).get_table_names()
    finally:
        engine.dispose()
