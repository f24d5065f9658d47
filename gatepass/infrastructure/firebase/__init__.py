"""Firestore integration (REST client, collection layout, repositories)."""

from gatepass.infrastructure.firebase.client import (
    close_firestore,
    get_firestore_client,
    open_firestore,
)

__all__ = [
    "close_firestore",
    "get_firestore_client",
    "open_firestore",
]
