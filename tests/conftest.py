import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from passlib.hash import bcrypt

from painel.main import app
from painel.db.base import Base, get_db
from painel.db.models import User
from painel.db.seed_data import seed_products, seed_questionnaire
from painel.routes.auth import issue_token


# Usa SQLite em memória para isolar os testes
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine
)


def _override_get_db(db_session):
    def _get_db():
        try:
            yield db_session
        finally:
            pass

    return _get_db


@pytest.fixture
def db_session():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_session):
    app.dependency_overrides[get_db] = _override_get_db(db_session)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def user_token(db_session):
    user = User(
        name="Test User",
        email="user@example.com",
        password_hash=bcrypt.hash("secret"),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    token = issue_token(user.id)
    return {"Authorization": f"Bearer {token}"}, user


@pytest.fixture
def seeded(db_session):
    """Questionário e catálogo de produtos padrão."""
    seed_questionnaire(db_session)
    seed_products(db_session)
    return db_session
