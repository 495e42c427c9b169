# storefront/settings.py
"""Immutable settings objects built once from the Flask config in create_app.

Auth and payment code receives these explicitly instead of reading the
environment on its own.
"""
import datetime
from dataclasses import dataclass
from typing import FrozenSet, Optional


def parse_admin_usernames(raw):
    """'alice, bob,,carol' -> frozenset({'alice', 'bob', 'carol'})"""
    if not raw:
        return frozenset()
    return frozenset(name.strip() for name in raw.split(',') if name.strip())


@dataclass(frozen=True)
class OAuthProviderSettings:
    client_id: str
    client_secret: str
    authorization_url: str
    token_url: str
    userinfo_url: str
    redirect_uri: Optional[str] = None
    scope: str = 'user'


@dataclass(frozen=True)
class AuthSettings:
    secret_key: str
    token_ttl: datetime.timedelta
    admin_password: Optional[str] = None
    admin_usernames: FrozenSet[str] = frozenset()
    oauth: Optional[OAuthProviderSettings] = None
    frontend_url: Optional[str] = None

    @property
    def credentials_enabled(self):
        return bool(self.admin_password)

    @property
    def oauth_enabled(self):
        return self.oauth is not None

    @classmethod
    def from_config(cls, config):
        oauth = None
        # Both secrets are required; otherwise the provider is simply not offered.
        if config.get('LINUXDO_CLIENT_ID') and config.get('LINUXDO_CLIENT_SECRET'):
            oauth = OAuthProviderSettings(
                client_id=config['LINUXDO_CLIENT_ID'],
                client_secret=config['LINUXDO_CLIENT_SECRET'],
                authorization_url=config['LINUXDO_AUTHORIZATION_URL'],
                token_url=config['LINUXDO_TOKEN_URL'],
                userinfo_url=config['LINUXDO_USERINFO_URL'],
                redirect_uri=config.get('LINUXDO_REDIRECT_URI'),
            )
        return cls(
            secret_key=config['SECRET_KEY'],
            token_ttl=config['JWT_EXPIRATION_DELTA'],
            admin_password=config.get('ADMIN_PASSWORD') or None,
            admin_usernames=parse_admin_usernames(config.get('ADMIN_USERNAMES')),
            oauth=oauth,
            frontend_url=config.get('FRONTEND_URL'),
        )


@dataclass(frozen=True)
class PaymentSettings:
    pid: Optional[str] = None
    key: Optional[str] = None
    gateway_url: Optional[str] = None
    notify_url: Optional[str] = None
    return_url: Optional[str] = None

    @property
    def configured(self):
        return bool(self.pid and self.key and self.gateway_url)

    @classmethod
    def from_config(cls, config):
        return cls(
            pid=config.get('LDC_PID'),
            key=config.get('LDC_KEY'),
            gateway_url=config.get('LDC_GATEWAY_URL'),
            notify_url=config.get('LDC_NOTIFY_URL'),
            return_url=config.get('LDC_RETURN_URL'),
        )
