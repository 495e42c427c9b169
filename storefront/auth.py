# storefront/auth.py
from urllib.parse import urlencode
from flask import Blueprint, request, jsonify, current_app, redirect, session, url_for
from flask_login import current_user
from . import get_auth_settings
from .decorators import token_required
from .errors import AuthFailure
from .identity import authorize_credentials, profile_to_identity, project_session, decode_token, sign_in, refresh
from .models import CREDENTIALS_PROVIDER, OAUTH_PROVIDER
from . import oauth

auth_bp = Blueprint('auth', __name__)

OAUTH_STATE_KEY = 'oauth_state'

def _token_response(token, settings, status=200):
    claims = decode_token(token, settings)
    return jsonify({
        'access_token': token,
        'session': project_session(claims)
    }), status

def _oauth_redirect_uri(settings):
    return settings.oauth.redirect_uri or url_for('auth.oauth_callback', _external=True)

@auth_bp.route('/providers', methods=['GET'])
def providers():
    """Lists the login methods that are currently enabled."""
    settings = get_auth_settings()
    enabled = []
    if settings.oauth_enabled:
        enabled.append({'id': OAUTH_PROVIDER, 'name': 'Linux DO', 'type': 'oauth'})
    if settings.credentials_enabled:
        enabled.append({'id': CREDENTIALS_PROVIDER, 'name': 'Password', 'type': 'credentials'})
    return jsonify(enabled), 200


@auth_bp.route('/login', methods=['POST'])
def login():
    """Administrator password login. Only a 'password' field is accepted."""
    settings = get_auth_settings()
    data = request.get_json(silent=True) or {}

    identity = authorize_credentials(data, settings)
    if identity is None:
        current_app.logger.warning(f"Failed admin login attempt from {request.remote_addr}")
        return jsonify({'message': AuthFailure.message}), 401

    token = sign_in(identity, settings)
    current_app.logger.info("Administrator logged in with password.")
    return _token_response(token, settings)


@auth_bp.route('/oauth/linux-do', methods=['GET'])
def oauth_start():
    """Redirects the browser to the Linux DO consent page."""
    settings = get_auth_settings()
    if not settings.oauth_enabled:
        return jsonify({'message': 'OAuth login is not enabled'}), 404

    state = oauth.new_state()
    session[OAUTH_STATE_KEY] = state
    return redirect(oauth.authorization_url(settings.oauth, state, _oauth_redirect_uri(settings)))


@auth_bp.route('/oauth/linux-do/callback', methods=['GET'])
def oauth_callback():
    """Completes the authorization-code flow and hands the token to the frontend."""
    settings = get_auth_settings()
    if not settings.oauth_enabled:
        return jsonify({'message': 'OAuth login is not enabled'}), 404

    expected_state = session.pop(OAUTH_STATE_KEY, None)
    state = request.args.get('state')
    code = request.args.get('code')
    if not code or not state or state != expected_state:
        current_app.logger.warning("OAuth callback with missing code or mismatched state")
        return jsonify({'message': 'Invalid OAuth callback'}), 400

    try:
        access_token = oauth.exchange_code(settings.oauth, code, _oauth_redirect_uri(settings))
        profile = oauth.fetch_profile(settings.oauth, access_token)
    except AuthFailure as e:
        current_app.logger.error(f"OAuth sign-in failed: {e.message} ({e.__cause__})")
        return jsonify({'message': e.message}), 401

    identity = profile_to_identity(profile)
    token = sign_in(identity, settings)
    current_app.logger.info(f"OAuth user {identity.username} signed in (id {identity.id}).")

    if settings.frontend_url:
        # The fragment never reaches a server log
        fragment = urlencode({'access_token': token})
        return redirect(f"{settings.frontend_url.rstrip('/')}/auth/callback#{fragment}")
    return _token_response(token, settings)


@auth_bp.route('/refresh', methods=['POST'])
@token_required
def refresh_token():
    """Re-issues the caller's token with the same claims and a new expiry."""
    settings = get_auth_settings()
    token = request.headers['Authorization'][len('Bearer '):].strip()
    claims = decode_token(token, settings)
    return _token_response(refresh(claims, settings), settings)


@auth_bp.route('/session', methods=['GET'])
def get_session():
    """Returns the session object, or an empty object when signed out."""
    if not current_user.is_authenticated:
        return jsonify({}), 200
    return jsonify({'user': current_user.to_dict(), 'expires': current_user.expires}), 200


@auth_bp.route('/me', methods=['GET'])
@token_required
def get_current_user_info():
    """Returns information about the currently authenticated user via token."""
    return jsonify(current_user.to_dict()), 200
