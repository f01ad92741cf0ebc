# catalog_bot/database.py
# ------------------------------------------------------------
# SQLAlchemy setup for the catalog database
# - One declarative Base shared by Product and MessageLog
# - Engine/session factory built from DATABASE_URL (Postgres in prod, SQLite for dev/tests)
# - Table creation happens in the FastAPI startup hook
# ------------------------------------------------------------
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def make_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # request handlers run in the threadpool, so connections cross threads
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False keeps returned products readable after the session closes
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    from catalog_bot import models  # noqa: F401  registers tables on Base.metadata

    Base.metadata.create_all(bind=engine)
