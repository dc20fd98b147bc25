"""
CloudFront viewer-request entrypoint.

Lambda reuses a container across invocations, so the gate (with its config
and signing-key caches) and the event loop it runs on are built once per
container and kept for its lifetime.
"""

import asyncio
from typing import Any, Dict, Optional

from shared.config import get_settings
from shared.logging import clear_context, configure_logging, get_logger, set_request_id
from shared.metrics import get_metrics_collector
from .edge.gate import AuthGate
from .edge.models import EdgeRequest
from .edge.pages import service_error_page
from .wiring import build_gate

SERVICE_NAME = "edge_auth"

_gate: Optional[AuthGate] = None
_loop: Optional[asyncio.AbstractEventLoop] = None

logger = get_logger("edge_auth.lambda")


def get_gate() -> AuthGate:
    global _gate
    if _gate is None:
        settings = get_settings()
        configure_logging(SERVICE_NAME, settings.log_level)
        _gate = build_gate(settings, get_metrics_collector(SERVICE_NAME))
    return _gate


def set_gate(gate: Optional[AuthGate]) -> None:
    """Replace the container's gate. Tests use this to inject fakes."""
    global _gate
    _gate = gate


def _get_loop() -> asyncio.AbstractEventLoop:
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Handle one viewer request and return a CloudFront request or response."""
    cf = event["Records"][0]["cf"]
    request_id = set_request_id((cf.get("config") or {}).get("requestId"))
    try:
        request = EdgeRequest.from_cloudfront(cf["request"])
        decision = _get_loop().run_until_complete(get_gate().handle(request))
        return decision.to_cloudfront()
    except Exception as e:
        # Anything escaping the gate is a bug; still answer with a page
        # rather than CloudFront's generic 503.
        logger.error("Unhandled error in viewer request", error=str(e), exc_info=True)
        return service_error_page(request_id).to_cloudfront()
    finally:
        clear_context()
