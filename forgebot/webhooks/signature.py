"""
Webhook payload signatures.

GitHub signs every delivery with an HMAC of the raw body keyed by the
webhook secret, sent as ``X-Hub-Signature: sha1=<hex>`` (and
``X-Hub-Signature-256: sha256=<hex>``).
"""

import hashlib
import hmac

from forgebot.core.exceptions import SignatureMismatch

SIGNATURE_HEADER = "X-Hub-Signature"

_ALGORITHMS = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
}


def sign(payload: bytes, secret: str, algorithm: str = "sha1") -> str:
    """Compute the signature header value for ``payload``."""
    digest = hmac.new(secret.encode(), payload, _ALGORITHMS[algorithm]).hexdigest()
    return f"{algorithm}={digest}"


def assert_signed(signature: str, payload: bytes, secret: str) -> None:
    """
    Verify ``signature`` against ``payload``.

    Raises:
        SignatureMismatch: for any failure, without saying which part failed
    """
    algorithm, sep, received = signature.partition("=")
    digestmod = _ALGORITHMS.get(algorithm)
    if not sep or digestmod is None:
        raise SignatureMismatch()

    expected = hmac.new(secret.encode(), payload, digestmod).hexdigest()
    # Compare the text form so non-hex input costs the same as a wrong digest
    if not hmac.compare_digest(expected.encode(), received.encode()):
        raise SignatureMismatch()
