from pathlib import Path
from dotenv import load_dotenv
from decimal import Decimal
import pytest

# Load environment variables for tests
load_dotenv(Path(__file__).resolve().parents[1] / '.env.test')
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker

from fabquote.main import app
from fabquote.database import Base
from fabquote.api.dependencies import get_audit_sink, get_current_user, get_db
from fabquote.models import Client, Product, Service, User


class RecordingAuditSink:
    """Collects audit events in memory instead of writing them."""

    def __init__(self):
        self.events = []

    def log(self, owner_id, action, module="quotes", details=None, request_metadata=None):
        self.events.append(
            {
                "owner_id": owner_id,
                "action": action,
                "module": module,
                "details": details,
                "request_metadata": request_metadata,
            }
        )

    def actions(self):
        return [e["action"] for e in self.events]


class ExplodingAuditSink:
    def log(self, *args, **kwargs):
        raise RuntimeError("audit store unavailable")


def setup_app():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    return Session


def seed_tenant(Session, email="owner@test.com", name="Owner"):
    """Create a user with one client, two products and one service."""
    db = Session()
    user = User(email=email, name=name, is_active=True)
    db.add(user)
    db.flush()
    client = Client(owner_id=user.id, name=f"{name} Client", email=f"client+{user.id}@test.com", phone="555-0100")
    steel = Product(owner_id=user.id, name="Steel beam", price=Decimal("100.00"))
    plate = Product(owner_id=user.id, name="Aluminium plate", price=Decimal("50.00"))
    welding = Service(owner_id=user.id, name="Welding", price=Decimal("80.00"))
    db.add_all([client, steel, plate, welding])
    db.commit()
    ids = {
        "user_id": user.id,
        "client_id": client.id,
        "steel_id": steel.id,
        "plate_id": plate.id,
        "welding_id": welding.id,
    }
    db.close()
    return ids


@pytest.fixture
def Session():
    return setup_app()


@pytest.fixture
def db(Session):
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def tenant(Session):
    return seed_tenant(Session)


@pytest.fixture
def audit_sink():
    sink = RecordingAuditSink()
    app.dependency_overrides[get_audit_sink] = lambda: sink
    return sink


@pytest.fixture
def login(Session):
    """Authenticate subsequent requests as the given user id."""

    def _login(user_id):
        def override_user():
            db = Session()
            try:
                return db.get(User, user_id)
            finally:
                db.close()

        app.dependency_overrides[get_current_user] = override_user

    return _login


@pytest.fixture
def api(Session, tenant, audit_sink, login):
    login(tenant["user_id"])
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_overrides():
    yield
    app.dependency_overrides.clear()
