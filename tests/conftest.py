import pytest

from bachelor_expenses import create_app
from bachelor_expenses.models import ME, Transaction

TEST_SECRET = "test-secret-key-with-at-least-32-bytes!!"


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "expenses.db")


@pytest.fixture
def app(db_path):
    return create_app({
        "TESTING": True,
        "DB_PATH": db_path,
        "JWT_SECRET_KEY": TEST_SECRET,
        "REQUIRE_AUTH": True,
    })


@pytest.fixture
def legacy_app(db_path):
    """Same database, but identifying users by ?userId= like the old clients."""
    return create_app({
        "TESTING": True,
        "DB_PATH": db_path,
        "JWT_SECRET_KEY": TEST_SECRET,
        "REQUIRE_AUTH": False,
    })


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, email="me@example.com", password="secret123", name="Me Myself"):
    resp = client.post("/auth/register", json={"email": email, "password": password, "name": name})
    assert resp.status_code == 201, resp.get_json()
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


@pytest.fixture
def headers(client):
    return register(client)


def make_tx(amount, paid_by=ME, split_among=(ME,), date="2024-01-15", category="Misc",
            split_type="equal", custom_splits=None, id=1):
    return Transaction(
        id=id,
        date=date,
        desc="test",
        amount=amount,
        category=category,
        paid_by=paid_by,
        split_among=list(split_among),
        split_type=split_type,
        custom_splits=custom_splits,
    )
