import datetime

import mongomock
import pytest

import storefront
from storefront import create_app, get_auth_settings
from storefront.identity import sign_in
from storefront.models import CredentialIdentity, OAuthIdentity

PRODUCT_ID = '11111111-1111-4111-8111-111111111111'
ADMIN_PASSWORD = 'correct-horse-battery'

TEST_CONFIG = {
    'ADMIN_PASSWORD': ADMIN_PASSWORD,
    'ADMIN_USERNAMES': 'alice, kong',
    'LINUXDO_CLIENT_ID': 'client-id',
    'LINUXDO_CLIENT_SECRET': 'client-secret',
    'LINUXDO_REDIRECT_URI': 'http://localhost/api/auth/oauth/linux-do/callback',
    'FRONTEND_URL': '',
    'LDC_PID': '1001',
    'LDC_KEY': 'ldc-secret-key',
    'LDC_GATEWAY_URL': 'https://credit.example.com/epay/pay/submit.php',
    'LDC_NOTIFY_URL': 'https://shop.example.com/api/payments/ldc/notify',
    'LDC_RETURN_URL': 'https://shop.example.com/order/result',
}


@pytest.fixture
def mongo_client(monkeypatch):
    # One in-memory server shared by every get_db() call in a test
    client = mongomock.MongoClient()
    monkeypatch.setattr(storefront, 'MongoClient', lambda *args, **kwargs: client)
    return client


@pytest.fixture
def app(mongo_client):
    return create_app('testing', TEST_CONFIG)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def db(app, mongo_client):
    return mongo_client[app.config['MONGO_DB_NAME']]


@pytest.fixture
def product(db):
    doc = {
        '_id': PRODUCT_ID,
        'name': 'Gift Card',
        'slug': 'gift-card',
        'price': 9.90,
        'minQuantity': 1,
        'maxQuantity': 10,
        'stock': 5,
        'isActive': True,
        'isFeatured': False,
        'sortOrder': 0,
        'createdAt': datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc),
    }
    db.products.insert_one(doc)
    return doc


def auth_header(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_token(app):
    with app.app_context():
        return sign_in(CredentialIdentity(), get_auth_settings())


@pytest.fixture
def user_token(app):
    identity = OAuthIdentity(id='777', name='Bob', email='bob@linux.do', username='bob', trust_level=1)
    with app.app_context():
        return sign_in(identity, get_auth_settings())
