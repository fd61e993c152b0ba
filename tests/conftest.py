import pytest
import os
from datetime import date
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from app.database import Base, get_db
from app.main import app
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# pysqlite defers BEGIN; emit it ourselves so SAVEPOINTs nest correctly
@event.listens_for(engine, "connect")
def _disable_pysqlite_transaction_handling(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None

@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

MONDAY = date(2024, 1, 1)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """
    Clean session per test. Service-level commits and rollbacks operate on
    savepoints inside an outer transaction that is always rolled back.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection, join_transaction_mode="create_savepoint")

    yield session

    session.close()
    transaction.rollback()
    connection.close()

@pytest.fixture(scope="function")
def company_settings(db_session):
    from app.models.company import CompanySettings
    settings_row = CompanySettings(
        company_name="Acme Corp",
        auto_approve_enabled=True,
        auto_approve_sick_threshold=3,
        auto_approve_personal_threshold=1,
    )
    db_session.add(settings_row)
    db_session.commit()
    return settings_row

@pytest.fixture(scope="function")
def employee(db_session):
    from app.models.employee import Employee
    emp = Employee(
        first_name="Jamie",
        last_name="Rivera",
        email="jamie.rivera@acme.com",
        vacation_days_remaining=15,
        vacation_days_entitled=15,
        sick_days_remaining=10,
        sick_days_entitled=10,
    )
    db_session.add(emp)
    db_session.commit()
    return emp

def _make_user(db_session, email, role, employee_id=None):
    from app.models.user import User
    from app.services import auth as auth_service
    user = User(
        email=email,
        hashed_password=auth_service.get_password_hash("Password123!"),
        role=role,
        employee_id=employee_id,
        is_active=True,
        full_name=email.split("@")[0],
    )
    db_session.add(user)
    db_session.commit()
    return user

@pytest.fixture(scope="function")
def admin_user(db_session):
    from app.models.user import UserRole
    return _make_user(db_session, "admin@acme.com", UserRole.ADMIN)

@pytest.fixture(scope="function")
def manager_user(db_session):
    from app.models.user import UserRole
    return _make_user(db_session, "manager@acme.com", UserRole.MANAGER)

@pytest.fixture(scope="function")
def employee_user(db_session, employee):
    from app.models.user import UserRole
    return _make_user(db_session, "jamie.rivera@acme.com", UserRole.EMPLOYEE, employee_id=employee.id)

@pytest.fixture(scope="function")
def auth_headers():
    """Helper fixture building bearer headers for a user."""
    from app.services.auth import create_access_token

    def _auth_headers(user):
        token = create_access_token(data={"sub": user.email, "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers

@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
