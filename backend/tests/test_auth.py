import jwt
import pytest

from talentai.core.auth import (
    check_password,
    decode_token,
    hash_password,
    issue_token,
    login,
    register_user,
    verify_password,
)
from talentai.core.errors import AuthenticationFailed, InvalidToken, ValidationFailed

USER = {"id": 3, "email": "grace@example.com", "user_type": "recruiter"}
SIGNUP = {
    "name": "Grace",
    "email": "grace@example.com",
    "password": "compilers!",
    "user_type": "candidate",
    "company": "Navy",
}


def test_password_hash_round_trip():
    hashed = hash_password("correct horse", rounds=4)
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_verify_against_garbage_hash_is_false():
    assert verify_password("anything", "not-a-bcrypt-hash") is False


@pytest.mark.parametrize("password", ["", "short", "x" * 73])
def test_weak_or_oversized_password(password):
    with pytest.raises(ValidationFailed):
        check_password(password)


def test_token_carries_user():
    claims = decode_token(issue_token(USER, secret="s"), secret="s")
    assert claims["sub"] == "3"
    assert claims["user_type"] == "recruiter"


def test_token_with_other_secret_is_rejected():
    with pytest.raises(InvalidToken):
        decode_token(issue_token(USER, secret="s"), secret="other")


def test_expired_token_is_rejected():
    token = issue_token(USER, secret="s", ttl_hours=-1)
    with pytest.raises(InvalidToken, match="expired"):
        decode_token(token, secret="s")


def test_token_without_numeric_subject_is_rejected():
    token = jwt.encode({"sub": "admin"}, "s", algorithm="HS256")
    with pytest.raises(InvalidToken):
        decode_token(token, secret="s")


def test_register_then_login(store):
    user, token = register_user(store, SIGNUP)
    assert "password_hash" not in user
    # company is kept for recruiters only
    assert user["company"] is None
    assert decode_token(token)["sub"] == str(user["id"])

    again, _ = login(store, "grace@example.com", "compilers!")
    assert again["id"] == user["id"]
    with pytest.raises(AuthenticationFailed):
        login(store, "grace@example.com", "compilers?")


def test_register_rejects_duplicate_and_weak_password(store):
    register_user(store, SIGNUP)
    with pytest.raises(ValidationFailed):
        register_user(store, SIGNUP)
    with pytest.raises(ValidationFailed):
        register_user(store, {**SIGNUP, "email": "new@example.com", "password": "1234567"})
