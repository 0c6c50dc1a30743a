import logging
from urllib.parse import parse_qs, urlsplit

import pytest

from healthgraph import oauth, utils
from healthgraph.errors import TokenError, TransportError, ValidationError
from healthgraph.models import ClientConfig
from conftest import FakeTransport, json_reply, text_reply

CONFIG = ClientConfig(
    client_id="cid",
    client_secret="csec",
    auth_url="https://runkeeper.com/apps/authorize",
    access_token_url="https://runkeeper.com/apps/token",
    redirect_uri="http://localhost:3000/callback",
)


def test_authorize_url_includes_redirect():
    url = oauth.build_authorize_url(CONFIG)
    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == CONFIG.auth_url
    assert parse_qs(parts.query) == {
        "client_id": ["cid"],
        "response_type": ["code"],
        "redirect_uri": ["http://localhost:3000/callback"],
    }


def test_authorize_url_without_redirect():
    config = ClientConfig(client_id="cid", auth_url="https://example.test/auth")
    assert oauth.build_authorize_url(config) == (
        "https://example.test/auth?client_id=cid&response_type=code"
    )


def test_exchange_posts_form_and_returns_token():
    transport = FakeTransport(json_reply({"access_token": "AAA", "token_type": "Bearer"}))
    token = oauth.exchange_authorization_code("code-1", CONFIG, transport, timeout=5)

    assert token == "AAA"
    request = transport.requests[0]
    assert request.method == "POST"
    assert request.uri == CONFIG.access_token_url
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert request.timeout == 5
    assert parse_qs(request.body) == {
        "grant_type": ["authorization_code"],
        "code": ["code-1"],
        "client_id": ["cid"],
        "client_secret": ["csec"],
        "redirect_uri": ["http://localhost:3000/callback"],
    }


def test_exchange_requires_code():
    transport = FakeTransport()
    with pytest.raises(ValidationError):
        oauth.exchange_authorization_code("", CONFIG, transport)
    assert transport.requests == []


def test_exchange_requires_credentials():
    with pytest.raises(ValidationError):
        oauth.exchange_authorization_code(
            "code", ClientConfig(client_id="cid"), FakeTransport()
        )


def test_exchange_http_error(caplog):
    transport = FakeTransport(text_reply('{"error": "invalid_grant"}', status=400))
    with caplog.at_level(logging.ERROR):
        with pytest.raises(TokenError):
            oauth.exchange_authorization_code("code", CONFIG, transport)
    assert "invalid_grant" in caplog.text
    assert "csec" not in caplog.text


@pytest.mark.parametrize("body", ["not-json", "[]", '{"refresh": "x"}'])
def test_exchange_unusable_body(body):
    transport = FakeTransport(text_reply(body))
    with pytest.raises(TokenError):
        oauth.exchange_authorization_code("code", CONFIG, transport)


def test_exchange_transport_error_propagates():
    transport = FakeTransport(TransportError("down"))
    with pytest.raises(TransportError):
        oauth.exchange_authorization_code("code", CONFIG, transport)


def test_mask_token():
    assert oauth.mask_token("abcdef123") == "*****f123"
    assert oauth.mask_token("abc") == "abc"
    assert oauth.mask_token("") == ""
    assert oauth.mask_token("secret", visible=0) == "******"
    assert oauth.mask_token is utils.mask_token


def test_client_get_new_token(client, transport, recorder):
    transport.queue(json_reply({"access_token": "NEW"}))
    future = client.get_new_token("code", recorder)
    assert recorder.calls == [(None, "NEW")]
    assert future.result(timeout=0) == "NEW"
    # The client does not store the token itself
    assert client.access_token == "token-1234"


def test_client_get_new_token_missing_code(client, transport, recorder):
    client.get_new_token(None, recorder)
    assert isinstance(recorder.error, ValidationError)
    assert transport.requests == []


def test_client_authorize_url(make_client):
    client = make_client(redirect_uri="http://localhost/cb")
    assert client.authorize_url().startswith("https://runkeeper.com/apps/authorize?")
    assert "redirect_uri=http%3A%2F%2Flocalhost%2Fcb" in client.authorize_url()


def test_client_get_new_token_unexpected_error(client, transport, recorder):
    transport.queue(KeyError("form"))
    future = client.get_new_token("code", recorder)
    error = recorder.error
    assert isinstance(error, TokenError)
    assert isinstance(error.__cause__, KeyError)
    assert future.exception(timeout=0) is error
