"""
Data model for Porter.

Identities and sessions are issued by the identity backend and only read
here. Profiles are the locally owned records keyed by identity id.
Request contexts and response descriptors live for one request.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlsplit

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, POST, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type, Authorization',
}

JSON_CONTENT_TYPE = 'application/json'
HTML_CONTENT_TYPE = 'text/html; charset=utf-8'


@dataclass
class Identity:
    """A user as the identity backend knows it."""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_backend(cls, data: Mapping[str, Any]) -> 'Identity':
        metadata = dict(data.get('user_metadata') or {})
        return cls(
            id=data['id'],
            email=data.get('email'),
            name=metadata.get('name'),
            avatar_url=metadata.get('avatar_url') or metadata.get('picture'),
            metadata=metadata,
            raw=dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        if self.raw:
            return dict(self.raw)
        return {
            'id': self.id,
            'email': self.email,
            'user_metadata': dict(self.metadata),
        }


@dataclass
class Session:
    """An access/refresh token pair handed to the caller, never stored."""
    access_token: str
    refresh_token: Optional[str] = None
    user_id: Optional[str] = None
    token_type: str = 'bearer'
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None
    user: Optional[Identity] = None

    @classmethod
    def from_backend(cls, data: Mapping[str, Any]) -> 'Session':
        user = Identity.from_backend(data['user']) if data.get('user') else None
        return cls(
            access_token=data['access_token'],
            refresh_token=data.get('refresh_token'),
            user_id=user.id if user else None,
            token_type=data.get('token_type') or 'bearer',
            expires_in=data.get('expires_in'),
            expires_at=data.get('expires_at'),
            user=user,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'access_token': self.access_token,
            'refresh_token': self.refresh_token,
            'token_type': self.token_type,
            'expires_in': self.expires_in,
            'expires_at': self.expires_at,
            'user': self.user.to_dict() if self.user else None,
        }


@dataclass
class Profile:
    """Locally owned profile row, 1:1 with an identity."""
    id: str
    name: str
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'Profile':
        return cls(
            id=row['id'],
            name=row.get('name') or '',
            email=row.get('email'),
            avatar_url=row.get('avatar_url'),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'avatar_url': self.avatar_url,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }


@dataclass
class RequestContext:
    """Everything a handler may look at for one inbound request."""
    method: str
    path: str
    url: str
    body: Optional[Dict[str, Any]] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)

    @property
    def origin(self) -> str:
        parts = urlsplit(self.url)
        return f"{parts.scheme}://{parts.netloc}"

    def body_value(self, name: str) -> Any:
        """Read a field from the JSON body, None if absent."""
        return (self.body or {}).get(name)


@dataclass
class ResponseDescriptor:
    """
    Transport-neutral response: a status with a body, or a redirect.

    `body` is a JSON-able mapping, an HTML string, or None for an empty reply.
    Exactly one of body and redirect_to may be set.
    """
    status: int
    body: Union[Dict[str, Any], str, None] = None
    headers: Dict[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))
    content_type: Optional[str] = None
    redirect_to: Optional[str] = None

    def __post_init__(self):
        if self.body is not None and self.redirect_to is not None:
            raise ValueError("A response carries a body or a redirect, not both")
        if self.content_type is None and self.body is not None:
            self.content_type = HTML_CONTENT_TYPE if isinstance(self.body, str) else JSON_CONTENT_TYPE

    @property
    def is_redirect(self) -> bool:
        return self.redirect_to is not None


def json_response(status: int, body: Dict[str, Any]) -> ResponseDescriptor:
    return ResponseDescriptor(status=status, body=body)


def error_response(status: int, message: str) -> ResponseDescriptor:
    return ResponseDescriptor(status=status, body={'error': message})


def redirect_response(target: str, status: int = 302) -> ResponseDescriptor:
    return ResponseDescriptor(status=status, redirect_to=target)


def html_response(status: int, html: str) -> ResponseDescriptor:
    return ResponseDescriptor(status=status, body=html, content_type=HTML_CONTENT_TYPE)


def empty_response(status: int = 204) -> ResponseDescriptor:
    return ResponseDescriptor(status=status)
