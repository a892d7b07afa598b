import base64
import re

from listkeeper.modules.subscribers.tokens import TOKEN_BYTES, issue_token


def test_token_has_at_least_128_bits_of_entropy():
    raw = base64.urlsafe_b64decode(issue_token() + "=")
    assert len(raw) == TOKEN_BYTES
    assert len(raw) >= 16


def test_token_is_url_safe():
    token = issue_token()
    assert re.fullmatch(r'[A-Za-z0-9_-]+', token)
    assert len(token) >= 43


def test_tokens_do_not_repeat():
    tokens = {issue_token() for _ in range(1000)}
    assert len(tokens) == 1000
