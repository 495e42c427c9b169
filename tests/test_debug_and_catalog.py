import datetime

from conftest import PRODUCT_ID, auth_header


def _place(client, headers=None):
    return client.post('/api/orders/create', json={
        'productId': PRODUCT_ID, 'quantity': 1, 'email': 'buyer@mail.com', 'queryPassword': 'secret123',
    }, headers=headers or {})


# --- debug ---

def test_debug_endpoints_are_admin_only(client, user_token):
    for path in ('/api/debug/session', '/api/debug/orders'):
        assert client.get(path).status_code == 401
        assert client.get(path, headers=auth_header(user_token)).status_code == 403


def test_debug_session_for_admin(client, admin_token):
    body = client.get('/api/debug/session', headers=auth_header(admin_token)).get_json()

    assert body['status'] == 'logged_in'
    assert body['session']['user']['id'] == 'admin'
    assert body['session']['user']['role'] == 'admin'


def test_debug_orders_exposes_only_linkage_fields(client, product, admin_token, user_token):
    _place(client, auth_header(user_token))
    _place(client, auth_header(admin_token))

    body = client.get('/api/debug/orders', headers=auth_header(admin_token)).get_json()

    assert body['currentUser']['id'] == 'admin'
    assert body['userOrdersCount'] == 1
    assert len(body['recentOrdersForDebug']) == 2
    for order in body['userOrders'] + body['recentOrdersForDebug']:
        assert set(order) == {'orderNo', 'userId', 'username', 'status', 'createdAt'}


# --- catalog ---

def test_products_lists_active_with_effective_ceiling(client, db, product):
    db.products.insert_one({
        '_id': '22222222-2222-4222-8222-222222222222', 'name': 'Hidden', 'slug': 'hidden',
        'price': 1, 'minQuantity': 1, 'maxQuantity': 1, 'stock': 1, 'isActive': False,
    })

    products = client.get('/api/products').get_json()

    assert [p['slug'] for p in products] == ['gift-card']
    assert products[0]['id'] == PRODUCT_ID
    assert products[0]['effectiveMaxQuantity'] == 5


def test_product_by_slug(client, product):
    assert client.get('/api/products/gift-card').get_json()['name'] == 'Gift Card'
    assert client.get('/api/products/missing').status_code == 404


def test_announcements_respect_time_window(client, db):
    now = datetime.datetime.now()
    fmt = '%Y-%m-%dT%H:%M'
    db.announcements.insert_many([
        {'_id': 'a', 'title': 'open', 'content': '-', 'isActive': True, 'startAt': '', 'endAt': ''},
        {'_id': 'b', 'title': 'current', 'content': '-', 'isActive': True,
         'startAt': (now - datetime.timedelta(days=1)).strftime(fmt),
         'endAt': (now + datetime.timedelta(days=1)).strftime(fmt)},
        {'_id': 'c', 'title': 'future', 'content': '-', 'isActive': True,
         'startAt': (now + datetime.timedelta(days=1)).strftime(fmt), 'endAt': ''},
        {'_id': 'd', 'title': 'over', 'content': '-', 'isActive': True,
         'startAt': '', 'endAt': (now - datetime.timedelta(days=1)).strftime(fmt)},
        {'_id': 'e', 'title': 'off', 'content': '-', 'isActive': False, 'startAt': '', 'endAt': ''},
    ])

    titles = {a['title'] for a in client.get('/api/announcements').get_json()}

    assert titles == {'open', 'current'}


def test_health(client):
    assert client.get('/api/health').get_json() == {'status': 'ok'}
