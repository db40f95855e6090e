"""
Pytest fixtures for back-office backend tests.

Provides test database setup, two-tenant fixtures (Org A with two branches,
Org B with one), role-specific actors, and a test client.
"""

import pytest

from backoffice import create_app
from backoffice.context import ActorContext
from backoffice.extensions import db
from backoffice.models import Branch, Customer, Organization, Product, Supplier, User
from backoffice.permissions import Role
from backoffice.services import workflow_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UNIT_OF_WORK_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def org_a(db_session):
    """Create Organization A (first tenant)."""
    org = Organization(name="Org A - Acme Corp", code="ACME", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def org_b(db_session):
    """Create Organization B (second tenant)."""
    org = Organization(name="Org B - Beta Inc", code="BETA", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def branch_a(db_session, org_a):
    """Head office of Organization A."""
    branch = Branch(org_id=org_a.id, name="Head Office", code="HQ")
    db_session.add(branch)
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def branch_a2(db_session, org_a, branch_a):
    """Warehouse of Organization A (created after HQ)."""
    branch = Branch(org_id=org_a.id, name="Warehouse", code="WH")
    db_session.add(branch)
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def branch_b(db_session, org_b):
    """Only branch of Organization B."""
    branch = Branch(org_id=org_b.id, name="Beta HQ", code="HQ")
    db_session.add(branch)
    db_session.commit()
    return branch


def _actor(db_session, org, branch, role: Role, email: str) -> ActorContext:
    user = User(
        org_id=org.id,
        branch_id=branch.id if branch is not None else None,
        name=email.split("@")[0],
        email=email,
        role=role.value,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return ActorContext.for_user(user)


@pytest.fixture(scope='function')
def staff_a(db_session, org_a, branch_a):
    return _actor(db_session, org_a, branch_a, Role.STAFF, "staff@acme.test")


@pytest.fixture(scope='function')
def manager_a(db_session, org_a, branch_a):
    return _actor(db_session, org_a, branch_a, Role.MANAGER, "manager@acme.test")


@pytest.fixture(scope='function')
def admin_a(db_session, org_a):
    """Org-level admin with no home branch."""
    return _actor(db_session, org_a, None, Role.ORG_ADMIN, "admin@acme.test")


@pytest.fixture(scope='function')
def viewer_a(db_session, org_a, branch_a):
    return _actor(db_session, org_a, branch_a, Role.VIEWER, "viewer@acme.test")


@pytest.fixture(scope='function')
def manager_b(db_session, org_b, branch_b):
    return _actor(db_session, org_b, branch_b, Role.MANAGER, "manager@beta.test")


@pytest.fixture(scope='function')
def product_a(db_session, org_a):
    product = Product(
        org_id=org_a.id,
        sku="WID-1",
        name="Widget",
        unit="pcs",
        cost=130000,
        price=35000,
        low_stock_threshold=5,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_a2(db_session, org_a):
    product = Product(org_id=org_a.id, sku="GAD-1", name="Gadget", unit="pcs", cost=50000, price=80000)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, org_b):
    product = Product(org_id=org_b.id, sku="WID-1", name="Beta Widget", unit="pcs", cost=1000, price=2000)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def customer_a(db_session, org_a):
    customer = Customer(org_id=org_a.id, name="PT Pelanggan")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def supplier_a(db_session, org_a):
    supplier = Supplier(org_id=org_a.id, name="PT Pemasok")
    db_session.add(supplier)
    db_session.commit()
    return supplier


@pytest.fixture(scope='function')
def stock_in():
    """Book an IN movement through the orchestrator and assert it committed."""
    def _stock_in(ctx, product, quantity, branch_id=None):
        result = workflow_service.record_stock_movement(ctx, {
            "product_id": product.id,
            "type": "IN",
            "quantity": quantity,
            "branch_id": branch_id,
        })
        assert result.ok, result.message
        return result
    return _stock_in


@pytest.fixture(scope='function')
def auth_headers():
    """Headers the upstream auth layer would forward for an actor."""
    def _headers(ctx: ActorContext) -> dict:
        return {"X-User-Id": str(ctx.user_id)}
    return _headers
