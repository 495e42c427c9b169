# storefront/models.py
from dataclasses import dataclass
from typing import ClassVar, Optional

from flask_login import UserMixin

ADMIN_ROLE = 'admin'
OAUTH_PROVIDER = 'linux-do'
CREDENTIALS_PROVIDER = 'credentials'


# Identities only ever live inside the signed token; nothing here is persisted.
@dataclass(frozen=True)
class CredentialIdentity:
    """The fixed administrator produced by a successful password login."""
    provider: ClassVar[str] = CREDENTIALS_PROVIDER

    id: str = 'admin'
    name: str = 'Administrator'
    email: str = 'admin@localhost'
    role: str = ADMIN_ROLE
    image: Optional[str] = None


@dataclass(frozen=True)
class OAuthIdentity:
    """A Linux DO account, normalized from the provider's profile payload."""
    provider: ClassVar[str] = OAUTH_PROVIDER

    id: str
    name: str
    email: str
    username: str
    image: Optional[str] = None
    trust_level: Optional[int] = None
    active: Optional[bool] = None
    silenced: Optional[bool] = None
    role: Optional[str] = None


class SessionUser(UserMixin):
    """The per-request user handed to Flask-Login, built from a session projection."""

    def __init__(self, session):
        user = session['user']
        self.id = user['id']
        self.name = user.get('name')
        self.email = user.get('email')
        self.image = user.get('image')
        self.username = user.get('username')
        self.trust_level = user.get('trustLevel')
        self.active = user.get('active')
        self.silenced = user.get('silenced')
        self.provider = user.get('provider')
        self.role = user.get('role')
        self.expires = session.get('expires')

    @property
    def is_admin(self):
        return self.role == ADMIN_ROLE

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'image': self.image,
            'username': self.username,
            'trustLevel': self.trust_level,
            'active': self.active,
            'silenced': self.silenced,
            'provider': self.provider,
            'role': self.role,
        }
