import os, sys, itertools, pytest
from decimal import Decimal
# Ensure backend directory is on path so 'erp' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from erp import create_app, get_db
from erp.models.authz import Base, User
# Import all model modules to ensure tables are registered before create_all
import erp.models.audit  # noqa: F401
import erp.models.product  # noqa: F401
import erp.models.raw_material  # noqa: F401
import erp.models.order  # noqa: F401
import erp.models.production_log  # noqa: F401
from erp.models.product import Product, MaterialRequirement
from erp.models.raw_material import RawMaterial
from erp.models.order import Order, OrderItem

_seq = itertools.count(1)


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    app = create_app({
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'JWT_SECRET_KEY': 'test-secret-key-with-enough-length-for-hs256',
        'PRODUCTION_RESERVE_STOCK': True,
    })
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def session():
    s = get_db()
    s.rollback()
    return s


@pytest.fixture()
def login_as(client, session):
    """Create a fresh user with `role` and return bearer headers for it."""
    def _login_as(role):
        n = next(_seq)
        email = f'user{n}@example.com'
        u = User(name=f'User{n}', email=email, password_hash='', role=role)
        u.set_password('pw')
        session.add(u)
        session.commit()
        resp = client.post('/iam/auth/login', json={'email': email, 'password': 'pw'})
        assert resp.status_code == 200, resp.get_json()
        return {'Authorization': f"Bearer {resp.get_json()['access_token']}"}
    return _login_as


@pytest.fixture()
def make_material(session):
    def _make(name, stock, unit='kg', min_level=0):
        m = RawMaterial(name=name, current_stock=Decimal(str(stock)), unit=unit,
                        min_stock_level=Decimal(str(min_level)), cost_per_unit=Decimal('1.00'))
        session.add(m)
        session.commit()
        return m
    return _make


@pytest.fixture()
def make_product(session):
    """Product with requirements given as [(material, quantity_required), ...]."""
    def _make(requirements=()):
        n = next(_seq)
        p = Product(name=f'Product{n}', sku=f'SKU-{n}', price=Decimal('10.00'))
        session.add(p)
        session.flush()
        for material, qty in requirements:
            session.add(MaterialRequirement(product_id=p.id, raw_material_id=material.id,
                                            quantity_required=Decimal(str(qty)), unit=material.unit))
        session.commit()
        return p
    return _make


@pytest.fixture()
def make_order(session):
    """Order with line items given as [(product, ordered_quantity), ...]."""
    def _make(items=()):
        n = next(_seq)
        o = Order(order_number=f'ORD-{n:05d}', customer_name=f'Customer {n}')
        session.add(o)
        session.flush()
        for product, qty in items:
            session.add(OrderItem(order_id=o.id, product_id=product.id, quantity=qty))
        session.commit()
        return o
    return _make
