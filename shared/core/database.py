from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from shared.core.config import FOLIO_DATABASE_URL

Base = declarative_base()

POOL_SIZE = 2
MAX_OVERFLOW = 2


def create_folio_engine(url: str = FOLIO_DATABASE_URL):
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=POOL_SIZE,          # max idle connections
        max_overflow=MAX_OVERFLOW,      # max temporary extra connections
        pool_timeout=30       # wait time before failing
    )


folio_engine = create_folio_engine()
FolioSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=folio_engine)

# Dependency


def get_folio_db():
    db = FolioSessionLocal()
    try:
        yield db
    finally:
        db.close()
