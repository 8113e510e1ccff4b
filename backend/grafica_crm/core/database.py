import logging

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from grafica_crm.core.config import Settings
from grafica_crm.models.base import Base


logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> Engine:
    connect_args = {}
    if settings.database_url.startswith("sqlite"):
        # TestClient runs handlers in a worker thread
        connect_args["check_same_thread"] = False
    return create_engine(settings.database_url, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine, settings: Settings) -> None:
    # Create tables in dev/test without running Alembic
    if settings.env in {"dev", "test"}:
        import grafica_crm.models  # noqa: F401  registra as tabelas no metadata

        Base.metadata.create_all(bind=engine)
        logger.info("Tables created for env=%s", settings.env)
