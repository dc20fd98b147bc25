"""
Redirect-state codec.

The OAuth ``state`` parameter carries the viewer's pre-login destination
through the identity provider. It is ``host|path`` encoded as unpadded
URL-safe base64, so it is a single opaque query value. ``|`` cannot occur in
a hostname, and decoding splits on the first ``|`` only, so any ``|`` in the
path or query survives the round trip.
"""

import base64
import binascii
import re
from typing import Optional, Tuple

from shared.errors import MalformedState
from shared.logging import get_logger

DELIMITER = "|"

_URLSAFE_B64 = re.compile(r"^[A-Za-z0-9_-]*={0,2}$")

logger = get_logger("edge_auth.state")


class RedirectStateCodec:
    """Encodes and decodes ``(host, path)`` pairs for the OAuth state."""

    def __init__(self, default_host: str, default_path: str = "/"):
        self.default_host = default_host
        self.default_path = default_path

    def encode(self, host: str, path: str) -> str:
        raw = f"{host}{DELIMITER}{path}".encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    def decode(self, state: Optional[str]) -> Tuple[str, str]:
        """Return the encoded ``(host, path)``, or the default target.

        Never raises: a broken state means the viewer lands on the homepage
        after login.
        """
        try:
            return self.parse(state)
        except MalformedState as e:
            logger.warning("Falling back to default redirect target", code=e.code, error=e.message)
            return self.default_host, self.default_path

    def parse(self, state: Optional[str]) -> Tuple[str, str]:
        """Strict decode.

        An empty path decodes to ``default_path``, so ``encode(host, "")``
        does not round-trip. Viewer URIs always start with ``/``.

        Raises:
            MalformedState: the value is not a state this codec produced
        """
        if not state:
            raise MalformedState("Empty state")

        if not _URLSAFE_B64.match(state):
            raise MalformedState("State is not URL-safe base64")

        unpadded = state.rstrip("=")
        try:
            raw = base64.urlsafe_b64decode(unpadded + "=" * (-len(unpadded) % 4))
            decoded = raw.decode("utf-8")
        except (binascii.Error, ValueError) as e:
            raise MalformedState("State could not be decoded", details={"error": str(e)}) from e

        host, sep, path = decoded.partition(DELIMITER)
        if not sep:
            raise MalformedState("State missing delimiter")
        if not host:
            raise MalformedState("State carries an empty host")

        return host, path or self.default_path
