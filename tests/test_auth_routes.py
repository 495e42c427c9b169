from urllib.parse import parse_qs, urlparse

import pytest

import storefront.oauth
from storefront import create_app

from conftest import ADMIN_PASSWORD, auth_header


def login(client, password=ADMIN_PASSWORD):
    return client.post('/api/auth/login', json={'password': password})


def test_providers_lists_enabled_methods(client):
    ids = [p['id'] for p in client.get('/api/auth/providers').get_json()]

    assert ids == ['linux-do', 'credentials']


def test_providers_without_configuration(mongo_client):
    client = create_app('testing').test_client()

    assert client.get('/api/auth/providers').get_json() == []
    assert client.get('/api/auth/oauth/linux-do').status_code == 404
    assert login(client).status_code == 401


def test_half_configured_oauth_is_not_offered(mongo_client):
    app = create_app('testing', {'LINUXDO_CLIENT_ID': 'only-the-id'})

    assert app.test_client().get('/api/auth/providers').get_json() == []


def test_password_login_returns_admin_session(client):
    response = login(client)

    assert response.status_code == 200
    body = response.get_json()
    assert body['access_token']
    assert body['session']['user']['id'] == 'admin'
    assert body['session']['user']['role'] == 'admin'
    assert body['session']['expires']


@pytest.mark.parametrize('payload', [{'password': 'wrong'}, {'password': ''}, {}, {'username': 'admin'}])
def test_password_login_failures(client, payload):
    response = client.post('/api/auth/login', json=payload)

    assert response.status_code == 401
    assert 'access_token' not in response.get_json()


def test_me_and_session_use_bearer_token(client):
    token = login(client).get_json()['access_token']

    me = client.get('/api/auth/me', headers=auth_header(token))
    session = client.get('/api/auth/session', headers=auth_header(token))

    assert me.get_json()['id'] == 'admin'
    assert session.get_json()['user']['role'] == 'admin'


def test_session_is_empty_when_signed_out(client):
    assert client.get('/api/auth/session').get_json() == {}
    assert client.get('/api/auth/session', headers=auth_header('garbage')).get_json() == {}


def test_me_requires_token(client):
    assert client.get('/api/auth/me').status_code == 401


def test_refresh_keeps_identity(client, user_token):
    response = client.post('/api/auth/refresh', headers=auth_header(user_token))

    assert response.status_code == 200
    user = response.get_json()['session']['user']
    assert user['id'] == '777'
    assert user['username'] == 'bob'
    assert user['provider'] == 'linux-do'


def test_oauth_start_redirects_with_state(client):
    response = client.get('/api/auth/oauth/linux-do')

    assert response.status_code == 302
    location = urlparse(response.headers['Location'])
    query = parse_qs(location.query)
    assert location.netloc == 'connect.linux.do'
    assert query['client_id'] == ['client-id']
    assert query['scope'] == ['user']
    with client.session_transaction() as sess:
        assert query['state'] == [sess['oauth_state']]


@pytest.fixture
def fake_provider(monkeypatch):
    calls = {}

    def exchange_code(provider, code, redirect_uri):
        calls['code'] = code
        return 'provider-access-token'

    def fetch_profile(provider, access_token):
        assert access_token == 'provider-access-token'
        return calls['profile']

    monkeypatch.setattr(storefront.oauth, 'exchange_code', exchange_code)
    monkeypatch.setattr(storefront.oauth, 'fetch_profile', fetch_profile)
    return calls


def oauth_callback(client, state='state-123'):
    with client.session_transaction() as sess:
        sess['oauth_state'] = 'state-123'
    return client.get('/api/auth/oauth/linux-do/callback', query_string={'code': 'abc', 'state': state})


def test_oauth_callback_signs_in_allow_listed_admin(client, fake_provider):
    fake_provider['profile'] = {'id': 12345, 'username': 'alice', 'trust_level': 2}

    response = oauth_callback(client)

    assert response.status_code == 200
    user = response.get_json()['session']['user']
    assert user['id'] == '12345'
    assert user['email'] == 'alice@linux.do'
    assert user['role'] == 'admin'
    assert user['trustLevel'] == 2
    assert fake_provider['code'] == 'abc'


def test_oauth_callback_regular_user_has_no_role(client, fake_provider):
    fake_provider['profile'] = {'id': 99, 'username': 'carol'}

    user = oauth_callback(client).get_json()['session']['user']

    assert user['id'] == '99'
    assert user['role'] is None


def test_oauth_callback_rejects_state_mismatch(client, fake_provider):
    fake_provider['profile'] = {'id': 1, 'username': 'mallory'}

    assert oauth_callback(client, state='forged').status_code == 400


def test_oauth_callback_redirects_to_frontend(mongo_client, fake_provider):
    from conftest import TEST_CONFIG
    app = create_app('testing', dict(TEST_CONFIG, FRONTEND_URL='https://shop.example.com'))
    client = app.test_client()
    fake_provider['profile'] = {'id': 5, 'username': 'dave'}

    response = oauth_callback(client)

    assert response.status_code == 302
    assert response.headers['Location'].startswith('https://shop.example.com/auth/callback#access_token=')
