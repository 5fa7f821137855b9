"""
Shared authentication helpers.

Usage:
    from shared.auth import extract_bearer_token
    token = extract_bearer_token(request.headers)
"""

from shared.auth.bearer import extract_bearer_token

__all__ = [
    'extract_bearer_token',
]
