import asyncio
import os
from itertools import count

# Settings are read at import time
os.environ.setdefault("APP_ENV", "development")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.core.security import create_access_token, hash_password
from app.db.mongo import get_database
from app.main import app
from app.models.user import new_user_document
from app.services.assignment_service import create_assignment
from utils import constants as c

_emails = count(1)


def run(coro):
    """Runs a coroutine against the mock database from synchronous tests."""
    return asyncio.run(coro)


@pytest.fixture
def db():
    return AsyncMongoMockClient()["orderdesk_test"]


@pytest.fixture
def client(db):
    async def override_get_database():
        return db

    app.dependency_overrides[get_database] = override_get_database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(role, name=None, password="secret123", assigned_by=None, **fields):
        data = {
            "name": name or f"{role.title()} {next(_emails)}",
            "email": fields.pop("email", None) or f"user{next(_emails)}@example.com",
            "role": role,
            "phone": "03001234567",
            "address": "12 Market Road",
            **fields,
        }
        doc = new_user_document(data, hash_password(password), assigned_by)
        doc["_id"] = run(db[c.USERS].insert_one(doc)).inserted_id
        return doc

    return _make


@pytest.fixture
def make_product(db):
    def _make(name="Nimko Mix", price=100.0, stock=50, category="Snacks"):
        doc = {"name": name, "price": price, "stock": stock, "category": category, "description": ""}
        doc["_id"] = run(db[c.PRODUCTS].insert_one(doc)).inserted_id
        return doc

    return _make


@pytest.fixture
def assign(db):
    def _assign(salesman, shopkeeper, assigned_by=None):
        return run(create_assignment(db, salesman["_id"], shopkeeper["_id"], assigned_by))

    return _assign


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user['_id'], 60)}"}


def fetch(db, collection, query):
    return run(db[collection].find_one(query))
