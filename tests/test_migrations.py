from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from cupid.services.container import build_services
from cupid.utils.database import Database
from tests.mocks.notifications import RecordingNotificationDispatcher

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


def _alembic_config(url: str) -> Config:
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("sqlalchemy.url", url)
    config.attributes["configure_logger"] = False
    return config


def test_upgrade_creates_schema(database_url):
    command.upgrade(_alembic_config(database_url), "head")

    db = Database(database_url)
    try:
        tables = set(inspect(db.engine).get_table_names())
        assert {"users", "interactions", "blocks", "reports", "messages"} <= tables

        services = build_services(db, RecordingNotificationDispatcher())
        services.users.create_user("a")
        services.users.create_user("b")
        services.interactions.like("a", "b")
        assert services.interactions.like("b", "a").matched is True
    finally:
        db.dispose()


def test_downgrade_drops_schema(database_url):
    config = _alembic_config(database_url)
    command.upgrade(config, "head")
    command.downgrade(config, "base")

    db = Database(database_url)
    try:
        assert "interactions" not in inspect(db.engine).get_table_names()
    finally:
        db.dispose()
