"""Credential renderers: turn a pass payload into scannable artifact bytes."""

from gatepass.infrastructure.external.credentials.json_renderer import (
    JsonCredentialRenderer,
)

__all__ = ["JsonCredentialRenderer"]
