# storefront/oauth.py
"""Linux DO OAuth2 (authorization-code flow).

Docs: https://connect.linux.do
"""
import secrets
from typing import Optional
from urllib.parse import urlencode

import requests
from pydantic import BaseModel, Field

from .errors import AuthFailure

REQUEST_TIMEOUT = 10


class LinuxDoProfile(BaseModel):
    """What the userinfo endpoint returns; ``id`` is immutable, ``name`` is not."""
    id: int
    username: str = Field(min_length=1)
    name: Optional[str] = None
    avatar_template: Optional[str] = None
    active: Optional[bool] = None
    trust_level: Optional[int] = Field(default=None, ge=0, le=4)
    silenced: Optional[bool] = None


def new_state():
    return secrets.token_urlsafe(24)


def authorization_url(provider, state, redirect_uri):
    params = {
        'response_type': 'code',
        'client_id': provider.client_id,
        'redirect_uri': redirect_uri,
        'scope': provider.scope,
        'state': state,
    }
    return f"{provider.authorization_url}?{urlencode(params)}"


def exchange_code(provider, code, redirect_uri):
    """Trades an authorization code for an access token."""
    try:
        response = requests.post(
            provider.token_url,
            data={
                'grant_type': 'authorization_code',
                'code': code,
                'redirect_uri': redirect_uri,
            },
            auth=(provider.client_id, provider.client_secret),
            headers={'Accept': 'application/json'},
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        access_token = response.json().get('access_token')
    except (requests.RequestException, ValueError) as e:
        raise AuthFailure('OAuth token exchange failed') from e
    if not access_token:
        raise AuthFailure('OAuth token exchange failed')
    return access_token


def fetch_profile(provider, access_token):
    """Returns the user's profile as a plain dict, validated."""
    try:
        response = requests.get(
            provider.userinfo_url,
            headers={'Authorization': f'Bearer {access_token}', 'Accept': 'application/json'},
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        # pydantic's ValidationError is a ValueError, as is a JSON decode error
        profile = LinuxDoProfile.model_validate(response.json())
    except (requests.RequestException, ValueError) as e:
        raise AuthFailure('Could not load the OAuth profile') from e
    return profile.model_dump()
