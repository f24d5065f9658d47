"""ID and secret generators for guest passes."""

import secrets

from cuid2 import cuid_wrapper

from gatepass.core.constants import PASS_ID_PREFIX, VERIFICATION_TOKEN_BYTES

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2)."""
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def generate_pass_id() -> str:
    """Return a public pass identifier, e.g. 'GP-TZ4A9...'.

    Uppercase alphanumerics plus hyphen: safe in URLs, document IDs and QR
    alphanumeric mode.
    """
    return f"{PASS_ID_PREFIX}{generate_cuid().upper()}"


def generate_verification_token() -> str:
    """Return an unguessable single-use secret (base64url, no padding)."""
    return secrets.token_urlsafe(VERIFICATION_TOKEN_BYTES)
