from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from .config import settings
from .identifiers import quote_identifier

engine = create_engine(settings.database_url, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def tenant_scope(session_factory: sessionmaker, tenant_id: str):
    """Yield a session whose search_path is the tenant's schema.

    The schema is selected with SET LOCAL, so it only lasts for the
    transaction; the connection goes back to the pool without it.
    """
    schema = quote_identifier(tenant_id)
    session: Session = session_factory()
    try:
        with session.begin():
            if session.get_bind().dialect.name == "postgresql":
                session.execute(text(f"SET LOCAL search_path TO {schema}"))
            yield session
    finally:
        session.close()
