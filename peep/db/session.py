from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from peep.core.config import settings

def make_engine(database_url: str):
    db_url_lower = database_url.lower()
    connect_args = {}
    if "postgres" in db_url_lower:
        # Friendly names carry emoji
        connect_args["client_encoding"] = "UTF8"
    elif db_url_lower.startswith("sqlite"):
        # The relay serves requests from a threadpool
        connect_args["check_same_thread"] = False
    return create_engine(
        database_url,
        pool_pre_ping=True,
        connect_args=connect_args,
        echo=False  # Set to True for SQL query debugging
    )

engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
