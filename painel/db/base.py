from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from painel.settings import get_settings

_settings = get_settings()

DATABASE_URL = _settings.database.url

engine = create_engine(DATABASE_URL, echo=_settings.database.echo)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
