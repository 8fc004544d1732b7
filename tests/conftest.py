# tests/conftest.py - shared fixtures for ledger, notice and API tests

from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from rentdesk import create_app
from rentdesk.config import TestingConfig
from rentdesk.extensions import db as _db
from rentdesk.models import PropertyManager, RentRecord, Tenant
from rentdesk.persistence import Repository
from rentdesk.services import NoticeEngine, RentLedger


@pytest.fixture
def app():
    """App on an in-memory database, with an app context held open for the test"""
    app = create_app(TestingConfig)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def repo(app):
    return Repository(_db.session)


@pytest.fixture
def ledger(repo):
    return RentLedger(repo, late_fee_amount=Decimal("50.00"))


@pytest.fixture
def engine(repo, ledger):
    return NoticeEngine(repo, ledger, default_jurisdiction="CA")


@pytest.fixture
def manager(repo):
    return repo.insert(
        PropertyManager,
        user_id="user-1",
        name="Dana Reyes",
        email="dana@example.com",
        phone="555-0100",
    )


@pytest.fixture
def other_manager(repo):
    return repo.insert(PropertyManager, user_id="user-2", name="Sam Ortiz", email="sam@example.com")


@pytest.fixture
def make_tenant(repo, manager):
    def _make(**overrides):
        fields = {
            "property_manager_id": manager.id,
            "name": "Jordan Lee",
            "email": "jordan@example.com",
            "phone": "555-0199",
            "property_address": "12 Elm St",
            "unit_number": "4B",
            "rent_amount": Decimal("1500.00"),
            "rent_due_date": 1,
        }
        fields.update(overrides)
        return repo.insert(Tenant, **fields)
    return _make


@pytest.fixture
def tenant(make_tenant):
    return make_tenant()


@pytest.fixture
def make_record(repo):
    def _make(tenant, due_date, **overrides):
        fields = {
            "property_manager_id": tenant.property_manager_id,
            "tenant_id": tenant.id,
            "due_date": due_date,
            "amount_due": Decimal(str(tenant.rent_amount)),
            "amount_paid": Decimal("0"),
            "late_fees": Decimal("0"),
            "status": "pending",
        }
        fields.update(overrides)
        return repo.insert(RentRecord, **fields)
    return _make


@pytest.fixture
def record_count(app):
    def _count():
        return _db.session.query(RentRecord).count()
    return _count


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app, manager):
    token = create_access_token(identity=manager.user_id)
    return {"Authorization": f"Bearer {token}"}
