from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker

from getitdone.config import require_database_url

Base = declarative_base()


def create_session_factory(database_url: str | None = None) -> sessionmaker:
    engine = create_engine(database_url or require_database_url(), pool_pre_ping=True)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db(session_factory: sessionmaker) -> None:
    with session_factory() as session:
        session.execute(text("SELECT 1"))
