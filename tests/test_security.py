import base64
import hashlib
import hmac
import string

import pytest

from strava_mcp.security import decode_state, encode_state

SECRET = "codec-secret"
B64_ALPHABET = string.ascii_letters + string.digits + "+/"


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"strava_code": "abc123"},
        {"redirect_uri": "https://client.example/cb", "client_state": "xyz", "timestamp": 1700000000000},
        {"redirect_uri": None, "client_state": None, "timestamp": 0},
        {"nested": {"list": [1, 2.5, True, None, "ünïcödé"]}},
    ],
)
def test_round_trip(payload):
    assert decode_state(encode_state(payload, SECRET), SECRET) == payload


def test_token_format():
    token = encode_state({"strava_code": "abc"}, SECRET)
    data_b64, sig_b64 = token.split(".")

    data = base64.b64decode(data_b64)
    assert data == b'{"strava_code":"abc"}'
    expected_sig = hmac.new(SECRET.encode(), data, hashlib.sha256).digest()
    assert base64.b64decode(sig_b64) == expected_sig


def test_encode_is_deterministic():
    payload = {"strava_code": "abc"}
    assert encode_state(payload, SECRET) == encode_state(payload, SECRET)


def test_bytes_and_str_secrets_agree():
    token = encode_state({"a": 1}, SECRET)
    assert decode_state(token, SECRET.encode()) == {"a": 1}


def test_wrong_key_rejected():
    token = encode_state({"strava_code": "abc"}, "secret-one")
    assert decode_state(token, "secret-two") is None


def test_single_character_mutations_rejected():
    payload = {"redirect_uri": "https://client.example/cb", "client_state": "xyz", "timestamp": 1700000000000}
    token = encode_state(payload, SECRET)

    for i, original in enumerate(token):
        for replacement in ("A", "z", "/", ".", "!"):
            if replacement == original:
                continue
            mutated = token[:i] + replacement + token[i + 1:]
            result = decode_state(mutated, SECRET)
            # Changing only the unused low bits of the final base64 character
            # before padding decodes to the same bytes, so the payload is unchanged
            assert result is None or result == payload, f"mutation at {i} to {replacement!r} accepted"


def test_payload_swap_rejected():
    token_a = encode_state({"strava_code": "a"}, SECRET)
    token_b = encode_state({"strava_code": "b"}, SECRET)
    forged = token_a.split(".")[0] + "." + token_b.split(".")[1]
    assert decode_state(forged, SECRET) is None


@pytest.mark.parametrize(
    "token",
    [
        "",
        "no-separator",
        "a.b.c",
        ".sig",
        "data.",
        "!!!!.????",
        "ZGF0YQ==.not base64",
    ],
)
def test_malformed_tokens_rejected(token):
    assert decode_state(token, SECRET) is None


def _sign_raw(data: bytes) -> str:
    sig = hmac.new(SECRET.encode(), data, hashlib.sha256).digest()
    return base64.b64encode(data).decode() + "." + base64.b64encode(sig).decode()


def test_validly_signed_non_json_rejected():
    assert decode_state(_sign_raw(b"not json at all"), SECRET) is None


def test_validly_signed_non_object_rejected():
    assert decode_state(_sign_raw(b"[1, 2, 3]"), SECRET) is None
