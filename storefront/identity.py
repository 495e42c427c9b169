# storefront/identity.py
"""Sign-in and session callbacks.

Unauthenticated -> Authenticating -> Authenticated. A provider profile or a
password check yields an identity; ``enrich_token`` writes it into the token
claims on first sign-in and passes the claims through untouched on refresh;
``project_session`` turns claims into the session object on every request.
"""
import datetime
import hmac

import jwt
from flask import current_app

from . import bcrypt
from .models import ADMIN_ROLE, CredentialIdentity, OAuthIdentity
from .validations import LoginSchema, safe_parse

JWT_ALGORITHM = 'HS256'
AVATAR_SIZE = '120'

# Claims that are never carried over into a re-signed token
_REGISTERED_TIME_CLAIMS = ('iat', 'exp', 'nbf')


def profile_to_identity(profile):
    """Maps a validated Linux DO profile onto an OAuthIdentity.

    The numeric provider id is stringified so the same account always
    resolves to the same identity. Linux DO does not share e-mail
    addresses, so one is derived from the username.
    """
    username = profile['username']
    avatar_template = profile.get('avatar_template')
    image = avatar_template.replace('{size}', AVATAR_SIZE) if avatar_template else None

    identity = OAuthIdentity(
        id=str(profile['id']),
        name=profile.get('name') or username,
        email=f"{username}@linux.do",
        username=username,
        image=image,
        trust_level=profile.get('trust_level'),
        active=profile.get('active'),
        silenced=profile.get('silenced'),
    )
    current_app.logger.debug(f"[profile] Linux DO user {username} -> id {identity.id}")
    return identity


def verify_admin_password(password, secret):
    """Checks ``password`` against the operator secret in constant time.

    A secret that looks like a bcrypt hash is verified with bcrypt instead.
    """
    if secret.startswith(('$2a$', '$2b$', '$2y$')):
        return bcrypt.check_password_hash(secret, password)
    return hmac.compare_digest(password.encode('utf-8'), secret.encode('utf-8'))


def authorize_credentials(credentials, settings):
    """Returns the administrator identity, or None when the login fails."""
    parsed = safe_parse(LoginSchema, credentials)
    if not parsed.success:
        return None

    if not settings.credentials_enabled:
        current_app.logger.error("ADMIN_PASSWORD is not configured; password login is unavailable.")
        return None

    if not verify_admin_password(parsed.data['password'], settings.admin_password):
        return None

    return CredentialIdentity()


def enrich_token(token, settings, identity=None):
    """Token callback.

    With an ``identity`` (first sign-in) the claims are rewritten from it;
    without one (refresh) ``token`` is returned unchanged, including its role.
    """
    if identity is None:
        current_app.logger.debug(
            f"[token] refresh id={token.get('id')} sub={token.get('sub')} provider={token.get('provider')}")
        return token

    claims = {
        'name': identity.name,
        'email': identity.email,
        'picture': identity.image,
        # id and sub must always name the same identity
        'id': identity.id,
        'sub': identity.id,
        'role': identity.role,
    }

    if isinstance(identity, OAuthIdentity):
        claims['username'] = identity.username
        claims['trustLevel'] = identity.trust_level
        claims['active'] = identity.active
        claims['silenced'] = identity.silenced
        claims['provider'] = identity.provider

        if identity.username and identity.username in settings.admin_usernames:
            claims['role'] = ADMIN_ROLE
            current_app.logger.info(f"[token] OAuth user {identity.username} is on the admin allow-list")

    current_app.logger.debug(
        f"[token] sign-in id={claims['id']} provider={claims.get('provider')} role={claims['role']}")
    return claims


def project_session(claims):
    """Session callback: the shape every authenticated surface reads."""
    user = {
        'id': claims.get('id') or claims.get('sub'),
        'name': claims.get('name'),
        'email': claims.get('email'),
        'image': claims.get('picture'),
        'role': claims.get('role'),
        'username': claims.get('username'),
        'trustLevel': claims.get('trustLevel'),
        'active': claims.get('active'),
        'silenced': claims.get('silenced'),
        'provider': claims.get('provider'),
    }
    expires = None
    if claims.get('exp') is not None:
        expires = datetime.datetime.fromtimestamp(
            claims['exp'], tz=datetime.timezone.utc).isoformat()
    return {'user': user, 'expires': expires}


def issue_token(claims, settings, now=None):
    """Signs ``claims`` with a fresh issued-at and expiry."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    payload = {k: v for k, v in claims.items() if k not in _REGISTERED_TIME_CLAIMS}
    payload['iat'] = now
    payload['exp'] = now + settings.token_ttl
    return jwt.encode(payload, settings.secret_key, algorithm=JWT_ALGORITHM)


def decode_token(token, settings):
    """Raises jwt.InvalidTokenError (or a subclass) for bad or expired tokens."""
    return jwt.decode(token, settings.secret_key, algorithms=[JWT_ALGORITHM])


def sign_in(identity, settings):
    """Runs the token callback for a fresh identity and signs the result."""
    claims = enrich_token({}, settings, identity=identity)
    return issue_token(claims, settings)


def refresh(claims, settings):
    """Re-signs existing claims; nothing is re-derived from the provider."""
    return issue_token(enrich_token(claims, settings), settings)
