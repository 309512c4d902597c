import base64
import binascii
import hashlib
import hmac
import json
from typing import Any, Dict, Optional, Union

Secret = Union[str, bytes]


def _key(secret: Secret) -> bytes:
    return secret.encode("utf-8") if isinstance(secret, str) else secret


def _sign(data: bytes, secret: Secret) -> bytes:
    return hmac.new(_key(secret), data, hashlib.sha256).digest()


def encode_state(payload: Dict[str, Any], secret: Secret) -> str:
    """
    Encode a JSON payload into a signed state token.
    Format is base64(json) + "." + base64(hmac_sha256(json)).
    """
    data = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    data_b64 = base64.b64encode(data).decode("ascii")
    sig_b64 = base64.b64encode(_sign(data, secret)).decode("ascii")
    return f"{data_b64}.{sig_b64}"


def decode_state(token: str, secret: Secret) -> Optional[Dict[str, Any]]:
    """
    Verify and decode a signed state token. Returns None if the token is
    malformed, the signature does not match, or the payload is not a JSON object.
    """
    if not token or token.count(".") != 1:
        return None

    data_b64, sig_b64 = token.split(".")
    if not data_b64 or not sig_b64:
        return None

    try:
        data = base64.b64decode(data_b64, validate=True)
        signature = base64.b64decode(sig_b64, validate=True)
    except (binascii.Error, ValueError):
        return None

    if not hmac.compare_digest(_sign(data, secret), signature):
        return None

    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None

    if not isinstance(payload, dict):
        return None
    return payload
