"""
Bearer token helpers shared by services that accept caller access tokens.
"""


def extract_bearer_token(headers):
    """
    Pull the token out of an `Authorization: Bearer <token>` header.

    Args:
        headers: Any mapping with a case-insensitive `get` (Flask headers)
                 or a plain dict

    Returns:
        The token string, or None if the header is missing or not a bearer header
    """
    auth_header = headers.get('Authorization') or headers.get('authorization')
    if not auth_header:
        return None

    scheme, _, token = auth_header.strip().partition(' ')
    if scheme.lower() != 'bearer':
        return None

    token = token.strip()
    return token or None
