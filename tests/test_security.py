from datetime import timedelta

from helf.security import create_access_token, decode_access_token, verify_token


def test_token_round_trip():
    token = create_access_token({"sub": "7"})
    assert decode_access_token(token) == 7
    assert verify_token(token) == 7


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "7"}, expires_delta=timedelta(minutes=-5))
    assert decode_access_token(token) is None


def test_garbage_and_missing_subject():
    assert decode_access_token("not-a-token") is None
    assert decode_access_token(create_access_token({"role": "user"})) is None
    assert decode_access_token(create_access_token({"sub": "abc"})) is None
