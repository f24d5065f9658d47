"""Compact JSON rendering of the credential payload.

The bytes are what a QR encoder embeds; scanners parse them back with any
JSON decoder. Image rendering is left to the delivery channel.
"""

import json
from typing import Any

from gatepass.application.dtos.guest_pass import RenderedCredential


class JsonCredentialRenderer:
    """Renders the payload as UTF-8 JSON with stable key order."""

    content_type = "application/json"
    extension = "json"

    def render(self, payload: dict[str, Any]) -> RenderedCredential:
        content = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode(
            "utf-8"
        )
        return RenderedCredential(
            content=content,
            content_type=self.content_type,
            extension=self.extension,
        )
