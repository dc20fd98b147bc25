"""
Local edge host for the auth gate.

Stands in for CloudFront during development: every request runs through the
same gate the Lambda@Edge function uses, and forwarded requests are proxied
to ``origin_url`` (any static server laid out like the content bucket).
"""

from typing import Dict, List, Optional

import httpx
from fastapi import Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from shared.base_service import BaseService
from shared.config import EdgeAuthSettings
from shared.errors import ExternalServiceError
from .edge.gate import AuthGate, GateDecision
from .edge.models import EdgeRequest, ErrorPage, ForwardToOrigin, Redirect
from .wiring import build_gate

GATE_STATE_HEADER = "x-edge-gate-state"

# Origin statuses CloudFront swaps for the 404 page.
NOT_FOUND_STATUSES = (403, 404)


class EdgeAuthService(BaseService):
    """Local edge service implementation."""

    def __init__(
        self,
        settings: Optional[EdgeAuthSettings] = None,
        gate: Optional[AuthGate] = None,
        origin_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__("edge_auth", settings)
        self.gate = gate or build_gate(self.config, self.metrics)
        self.origin_client = origin_client or httpx.AsyncClient(timeout=self.config.http_timeout)
        self._setup_edge_routes()

    def _setup_edge_routes(self):
        """Set up the catch-all gate route."""

        @self.app.api_route(
            "/{full_path:path}",
            methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            include_in_schema=False,
        )
        async def edge(request: Request, full_path: str):
            edge_request = EdgeRequest.build(
                method=request.method,
                uri=request.url.path,
                querystring=request.url.query,
                headers=_header_multimap(request),
            )
            decision = await self.gate.handle(edge_request)
            response = await self._respond(decision)
            response.headers[GATE_STATE_HEADER] = decision.state.value
            return response

    async def _respond(self, decision: GateDecision) -> Response:
        action = decision.action
        if isinstance(action, Redirect):
            response = RedirectResponse(action.location, status_code=action.status)
            response.headers["cache-control"] = "no-store"
            for cookie in action.set_cookies:
                response.headers.append("set-cookie", cookie)
            return response

        if isinstance(action, ErrorPage):
            return HTMLResponse(action.body, status_code=action.status, headers={"cache-control": "no-store"})

        if isinstance(action, ForwardToOrigin):
            return await self._forward(action)

        raise TypeError(f"Unsupported gate action: {type(action).__name__}")

    async def _forward(self, action: ForwardToOrigin) -> Response:
        if not self.config.origin_url:
            return JSONResponse({"origin_uri": action.uri, "querystring": action.request.querystring})

        upstream = await self._fetch_origin(action.uri, action.request.querystring)
        if upstream.status_code in NOT_FOUND_STATUSES and action.uri != self.config.error_page:
            error_page = await self._fetch_origin(self.config.error_page, "")
            return Response(
                content=error_page.content if error_page.is_success else b"Not Found",
                status_code=404,
                media_type=error_page.headers.get("content-type", "text/html"),
            )

        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type"),
        )

    async def _fetch_origin(self, uri: str, querystring: str) -> httpx.Response:
        url = self.config.origin_url.rstrip("/") + uri
        if querystring:
            url = f"{url}?{querystring}"
        try:
            return await self.origin_client.get(url)
        except httpx.HTTPError as e:
            raise ExternalServiceError("origin", "Origin request failed", details={"uri": uri, "error": str(e)}) from e

    async def _check_dependencies(self) -> Dict[str, str]:
        """Report cache state; the gate never needs a live dependency to start."""
        return {
            "config": "cached" if self.gate.config_loader.cached else "not_loaded",
            "origin": "configured" if self.config.origin_url else "none",
        }


def _header_multimap(request: Request) -> Dict[str, List[str]]:
    headers: Dict[str, List[str]] = {}
    for raw_name, raw_value in request.headers.raw:
        headers.setdefault(raw_name.decode("latin-1").lower(), []).append(raw_value.decode("latin-1"))
    return headers


def create_app():
    """Create FastAPI application."""
    service = EdgeAuthService()
    return service.app


if __name__ == "__main__":
    service = EdgeAuthService()
    service.run()
