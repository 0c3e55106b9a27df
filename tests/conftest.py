import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('BCRYPT_ROUNDS', '4')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from marktracker.auth import jwt_handler  # noqa: E402
from marktracker.auth.dependencies import TokenClaims  # noqa: E402
from marktracker.database import Base, get_db, register_sqlite_functions  # noqa: E402
from marktracker.main import app  # noqa: E402
from marktracker.models import complaint, mark  # noqa: E402,F401
from marktracker.models.user import User  # noqa: E402
from marktracker.routes.auth_routes import build_claims  # noqa: E402
from marktracker.routes.user_routes import create_account  # noqa: E402

DEFAULT_PASSWORD = 'secret123'


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    register_sqlite_functions(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(username: str, role: str, password: str = DEFAULT_PASSWORD, **fields) -> User:
        return create_account(db, username=username, password=password, role=role, **fields)

    return _make_user


@pytest.fixture
def claims_for():
    def _claims_for(user: User) -> TokenClaims:
        return TokenClaims.model_validate(build_claims(user))

    return _claims_for


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        token = jwt_handler.create_access_token(build_claims(user))
        return {'Authorization': f'Bearer {token}'}

    return _auth_headers
