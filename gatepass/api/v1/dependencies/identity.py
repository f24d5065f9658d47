"""Caller identity from the user header (set by the upstream auth gateway)."""

from __future__ import annotations

import re

from fastapi import HTTPException, Request

from gatepass.core.config import get_settings

# Firebase/Cognito style IDs: alphanumeric, hyphen, underscore.
_USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def is_valid_user_id_format(value: str) -> bool:
    return bool(_USER_ID_PATTERN.match(value))


async def get_user_id(request: Request) -> str:
    """Resolve the calling user's ID from the configured header."""
    name = get_settings().user_header_name
    value = (request.headers.get(name) or "").strip()
    if not value:
        raise HTTPException(
            status_code=401,
            detail=f"Missing required header: {name}",
        )
    if not is_valid_user_id_format(value):
        raise HTTPException(
            status_code=400,
            detail="Invalid user ID format (use alphanumeric, hyphen, underscore; max 128 characters)",
        )
    return value
