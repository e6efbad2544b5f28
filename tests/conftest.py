import os
import tempfile
from pathlib import Path

# Set environment variables BEFORE any imports that might use settings
# Use a temporary directory for test database to avoid permission issues
_test_db_dir = tempfile.mkdtemp()
_test_db_path = os.path.join(_test_db_dir, "test_biva.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_db_path}"
os.environ["SECRET_KEY"] = "test-secret-key-min-32-characters-long-for-testing"
os.environ["ALGORITHM"] = "HS256"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["FIRST_ADMIN_EMAIL"] = "admin@test.example.com"
os.environ["FIRST_ADMIN_PASSWORD"] = "AdminTest123!"
os.environ["DEFAULT_COUNTRY_CODE"] = "244"
os.environ["VISIT_AUTO_COMPLETE_HOURS"] = "24"

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from biva.core.security import create_access_token, get_password_hash
from biva.main import app
import biva.repositories.property as property_repo
import biva.repositories.role as role_repo
import biva.repositories.user as user_repo

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"

# 1x1 transparent PNG
PNG_SIGNATURE = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test and run migrations."""
    temp_db_dir = tempfile.mkdtemp()
    test_db_path = os.path.join(temp_db_dir, "test.db")
    test_db_url = f"sqlite:///{test_db_path}"

    test_engine = create_engine(
        test_db_url,
        connect_args={"check_same_thread": False},
        poolclass=None,  # Don't use connection pooling for SQLite
    )

    # Enable WAL mode to reduce locking issues
    @event.listens_for(test_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    # Run Alembic migrations to set up the database schema and seed data
    alembic_cfg = Config(str(ALEMBIC_INI))
    alembic_cfg.set_main_option("sqlalchemy.url", test_db_url)
    command.upgrade(alembic_cfg, "head")

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        test_engine.dispose()

        for suffix in ["", "-wal", "-shm"]:
            path = f"{test_db_path}{suffix}"
            if os.path.exists(path):
                os.remove(path)
        if os.path.exists(temp_db_dir):
            os.rmdir(temp_db_dir)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    from biva.api.deps import get_db

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session to match test naming conventions."""
    return db_session


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def make_user(
    db: Session,
    email: str,
    roles: list[str],
    full_name: str = "Test User",
    password: str = "TestPass123!",
    phone: str | None = None,
    id_document: str | None = None,
) -> dict:
    user = user_repo.create_user(
        db,
        email=email,
        full_name=full_name,
        password_hash=get_password_hash(password),
        roles=role_repo.get_roles_by_names(db, roles),
        phone=phone,
        id_document=id_document,
    )
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "password": password,
        "phone": user.phone,
        "id_document": user.id_document,
        "token": create_access_token(data={"sub": user.id}),
    }


@pytest.fixture(scope="function")
def admin_user(db: Session) -> dict:
    """The admin user created by migration 002."""
    from biva.core.config import settings

    user = user_repo.get_user_by_email(db, settings.first_admin_email)
    if not user:
        raise RuntimeError("Admin user not found. Check migration 002.")

    return {
        "id": user.id,
        "email": user.email,
        "password": settings.first_admin_password,
        "token": create_access_token(data={"sub": user.id}),
    }


@pytest.fixture(scope="function")
def admin_token(admin_user: dict) -> str:
    return admin_user["token"]


@pytest.fixture(scope="function")
def owner_user(db: Session) -> dict:
    """A property owner with an identity document and phone on file."""
    return make_user(
        db,
        "owner@example.com",
        ["owner"],
        full_name="Ana Proprietária",
        phone="+244912345678",
        id_document="123",
    )


@pytest.fixture(scope="function")
def client_user(db: Session) -> dict:
    """A client reachable by the local phone number 923456789."""
    return make_user(
        db,
        "client@example.com",
        ["client"],
        full_name="Bruno Cliente",
        phone="923456789",
    )


@pytest.fixture(scope="function")
def other_client_user(db: Session) -> dict:
    return make_user(
        db,
        "client2@example.com",
        ["client"],
        full_name="Carla Cliente",
        phone="934000111",
    )


@pytest.fixture(scope="function")
def broker_user(db: Session) -> dict:
    return make_user(db, "broker@example.com", ["broker"], full_name="Dário Mediador")


@pytest.fixture(scope="function")
def listed_property(db: Session, owner_user: dict):
    """An available rental listing owned by ``owner_user``."""
    return property_repo.create_property(
        db,
        owner_id=owner_user["id"],
        title="Apartamento T2 no Kilamba",
        listing_type="rent",
        category="apartamento",
        price=350000,
        bairro="Kilamba",
        municipio="Belas",
        provincia="Luanda",
        area=95.0,
        bedrooms=2,
        bathrooms=1,
        description="Apartamento mobilado",
        status="available",
    )
