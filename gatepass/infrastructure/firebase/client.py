"""Process-wide Firestore client, opened at startup and closed at shutdown.

Credentials come from FIREBASE_SERVICE_ACCOUNT_KEY (inline JSON) or
FIREBASE_SERVICE_ACCOUNT_PATH (file). The inline key wins when both are set.
"""

import json
import logging
from pathlib import Path

from gatepass.core.config import Settings, get_settings
from gatepass.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    _get_credentials,
)

logger = logging.getLogger(__name__)

_client: FirestoreRESTClient | None = None


def load_service_account(settings: Settings) -> dict | None:
    """Return the service account mapping, or None when none is configured.

    Raises:
        ValueError: the inline key or the key file is not valid JSON.
    """
    secret = settings.firebase_service_account_key
    if secret is not None and secret.get_secret_value():
        try:
            return json.loads(secret.get_secret_value())
        except json.JSONDecodeError as e:
            raise ValueError("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e

    if not settings.firebase_service_account_path:
        return None
    key_file = Path(settings.firebase_service_account_path).expanduser()
    if not key_file.is_file():
        logger.warning("Service account file %s does not exist", key_file)
        return None
    try:
        return json.loads(key_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{key_file} is not valid JSON") from e


def open_firestore(settings: Settings | None = None) -> bool:
    """Open the shared client; a no-op when it is already open.

    Returns False when no usable credentials are configured. Guest pass
    routes answer 503 until a client exists.
    """
    global _client
    if _client is not None:
        return True
    settings = settings or get_settings()
    try:
        account = load_service_account(settings)
    except ValueError:
        logger.exception("Firestore credentials rejected")
        return False
    if not account:
        return False

    project_id = account.get("project_id")
    if not project_id:
        logger.error("Service account has no project_id")
        return False
    try:
        credentials = _get_credentials(account)
    except Exception:
        logger.exception("Could not build credentials for Firestore project %s", project_id)
        return False

    _client = FirestoreRESTClient(
        project_id, credentials, timeout=settings.store_timeout_seconds
    )
    logger.info("Firestore client ready for project %s", project_id)
    return True


def get_firestore_client() -> FirestoreRESTClient | None:
    """Return the shared client, or None before open_firestore succeeds."""
    return _client


async def close_firestore() -> None:
    global _client
    if _client is None:
        return
    client, _client = _client, None
    await client.aclose()
