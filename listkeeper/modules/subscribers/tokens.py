import secrets

# 32 random bytes from the OS CSPRNG, ~43 url-safe characters
TOKEN_BYTES = 32


def issue_token():
    """Return a new unguessable confirmation token"""
    return secrets.token_urlsafe(TOKEN_BYTES)
