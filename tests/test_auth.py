from datetime import timedelta

import jwt
import pytest
from fastapi import status
from jwt.exceptions import InvalidTokenError

from core.security import TokenVerifier


def test_token_round_trip():
    verifier = TokenVerifier("secret")
    token = verifier.issue("u1")
    assert verifier.verify(token)["id"] == "u1"

def test_token_signed_with_other_key():
    token = TokenVerifier("other-secret").issue("u1")
    with pytest.raises(InvalidTokenError):
        TokenVerifier("secret").verify(token)

def test_expired_token():
    verifier = TokenVerifier("secret")
    token = verifier.issue("u1", expires_delta=timedelta(seconds=-5))
    with pytest.raises(InvalidTokenError):
        verifier.verify(token)

def test_token_without_subject():
    token = jwt.encode({"name": "nobody"}, "secret", algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        TokenVerifier("secret").verify(token)

def test_signing_key_required():
    with pytest.raises(ValueError):
        TokenVerifier("")

def test_verifier_uses_injected_settings(app, settings):
    verifier = app.state.token_verifier
    assert verifier.secret_key == settings.JWT_SECRET_KEY
    assert verifier.algorithm == settings.JWT_ALGORITHM

def test_delete_with_invalid_token(client, make_post):
    post = make_post()
    client.cookies.set("token", "garbage")
    response = client.delete(f"/posts/{post.id}")
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json() == {"message": "Token is not Valid!"}

def test_delete_without_token(client, make_post):
    post = make_post()
    response = client.delete(f"/posts/{post.id}")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"message": "Not Authenticated!"}
