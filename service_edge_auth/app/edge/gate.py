"""
Per-request authentication and routing gate.

Each viewer request walks a small state machine until it reaches a terminal
state. Every terminal state carries exactly one action: forward to the
origin, redirect, or a synthesized page.

    START ─┬─ callback path ──► CALLBACK
           ├─ logout path ────► LOGOUT*
           ├─ apex host ──────► SERVE_NOT_FOUND*
           └─ otherwise ──────► CHECK_SESSION
    CHECK_SESSION ─┬─ valid cookie ─► ROUTE* (or SERVE_NOT_FOUND* for unknown tenants)
                   └─ otherwise ────► REDIRECT_TO_LOGIN*
    CALLBACK ─┬─ no code / failed exchange ─► REDIRECT_ROOT*
              └─ tokens ───────────────────► SET_COOKIE_AND_REDIRECT*

A config load failure short-circuits to CONFIG_ERROR* before START.
"""

from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union
from urllib.parse import parse_qs

from shared.config import EdgeAuthSettings
from shared.errors import ConfigMalformed, ConfigUnavailable
from shared.logging import get_logger, request_id_var, set_tenant
from shared.metrics import MetricsCollector
from ..config.loader import ConfigBundle, ConfigLoader
from ..oauth.flow import OAuthClient, build_login_url, build_logout_url
from ..routing.router import PathRouter
from ..state.codec import RedirectStateCodec
from ..validation.session_verifier import SessionVerifier
from .cookies import build_expired_cookie, build_session_cookie
from .models import EdgeRequest, ErrorPage, ForwardToOrigin, Redirect
from .pages import service_error_page

EdgeAction = Union[ForwardToOrigin, Redirect, ErrorPage]


class GateState(str, Enum):
    START = "start"
    CONFIG_ERROR = "config_error"
    CALLBACK = "callback"
    LOGOUT = "logout"
    SERVE_NOT_FOUND = "serve_not_found"
    CHECK_SESSION = "check_session"
    ROUTE = "route"
    REDIRECT_TO_LOGIN = "redirect_to_login"
    REDIRECT_ROOT = "redirect_root"
    SET_COOKIE_AND_REDIRECT = "set_cookie_and_redirect"


TERMINAL_STATES = frozenset({
    GateState.CONFIG_ERROR,
    GateState.LOGOUT,
    GateState.SERVE_NOT_FOUND,
    GateState.ROUTE,
    GateState.REDIRECT_TO_LOGIN,
    GateState.REDIRECT_ROOT,
    GateState.SET_COOKIE_AND_REDIRECT,
})


@dataclass(frozen=True)
class Transition:
    state: GateState
    action: Optional[EdgeAction] = None


@dataclass(frozen=True)
class GateDecision:
    """Terminal state reached for a request, and what to do about it."""

    state: GateState
    action: EdgeAction

    def to_cloudfront(self) -> Dict[str, Any]:
        return self.action.to_cloudfront()


@dataclass(frozen=True)
class _Context:
    request: EdgeRequest
    config: ConfigBundle


class AuthGate:
    """Decides what happens to each viewer request."""

    def __init__(
        self,
        settings: EdgeAuthSettings,
        config_loader: ConfigLoader,
        verifier: SessionVerifier,
        oauth_client: OAuthClient,
        codec: Optional[RedirectStateCodec] = None,
        router: Optional[PathRouter] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.settings = settings
        self.config_loader = config_loader
        self.verifier = verifier
        self.oauth_client = oauth_client
        self.codec = codec or RedirectStateCodec(default_host=settings.apex)
        self.router = router or PathRouter(settings.apex, error_page=settings.error_page)
        self.metrics = metrics
        self.logger = get_logger("edge_auth.gate")

        self._handlers: Dict[GateState, Callable[[_Context], Awaitable[Transition]]] = {
            GateState.START: self._start,
            GateState.CALLBACK: self._callback,
            GateState.LOGOUT: self._logout,
            GateState.SERVE_NOT_FOUND: self._serve_not_found,
            GateState.CHECK_SESSION: self._check_session,
        }

    async def handle(self, request: EdgeRequest) -> GateDecision:
        timer = self.metrics.time_operation("gate_duration_seconds") if self.metrics else nullcontext()
        with timer:
            decision = await self._decide(request)

        if self.metrics:
            self.metrics.record_decision(decision.state.value)
        self.logger.info(
            "Gate decision",
            state=decision.state.value,
            host=request.host,
            uri=request.uri,
        )
        return decision

    async def _decide(self, request: EdgeRequest) -> GateDecision:
        try:
            config = await self.config_loader.load()
        except (ConfigUnavailable, ConfigMalformed) as e:
            self.logger.error("Failed to load config", code=e.code, error=e.message, details=e.details)
            return GateDecision(GateState.CONFIG_ERROR, service_error_page(request_id_var.get() or ""))

        context = _Context(request=request, config=config)
        state = GateState.START
        while True:
            transition = await self._handlers[state](context)
            if transition.action is not None:
                if transition.state not in TERMINAL_STATES:
                    raise RuntimeError(f"Non-terminal state {transition.state.value} produced an action")
                return GateDecision(transition.state, transition.action)
            state = transition.state

    async def _start(self, ctx: _Context) -> Transition:
        if ctx.request.uri == self.settings.callback_path:
            return Transition(GateState.CALLBACK)
        if ctx.request.uri == self.settings.logout_path:
            return Transition(GateState.LOGOUT)
        if ctx.request.host == self.settings.apex:
            return Transition(GateState.SERVE_NOT_FOUND)
        return Transition(GateState.CHECK_SESSION)

    async def _serve_not_found(self, ctx: _Context) -> Transition:
        return Transition(
            GateState.SERVE_NOT_FOUND,
            ForwardToOrigin(ctx.request, self.router.not_found_marker.uri),
        )

    async def _check_session(self, ctx: _Context) -> Transition:
        request, config = ctx.request, ctx.config
        token = request.cookies().get(self.settings.cookie_name)

        if token and await self.verifier.verify(token, config.user_pool_id, config.region, config.client_id):
            routed = self.router.route(request.uri, request.host)
            if routed.not_found:
                return Transition(GateState.SERVE_NOT_FOUND, ForwardToOrigin(request, routed.uri))
            set_tenant(routed.tenant)
            return Transition(GateState.ROUTE, ForwardToOrigin(request, routed.uri))

        state = self.codec.encode(request.host, request.path_with_query)
        login_url = build_login_url(config.idp_domain, config.client_id, config.callback_url, state)
        return Transition(GateState.REDIRECT_TO_LOGIN, Redirect(login_url))

    async def _callback(self, ctx: _Context) -> Transition:
        request, config = ctx.request, ctx.config
        params = parse_qs(request.querystring)
        code = _first(params, "code")
        if not code:
            self.logger.warning("Callback without authorization code")
            return Transition(GateState.REDIRECT_ROOT, Redirect("/"))

        tokens = await self.oauth_client.exchange_code(
            code,
            config.callback_url,
            config.idp_domain,
            config.client_id,
            config.client_secret,
        )
        if tokens is None:
            return Transition(GateState.REDIRECT_ROOT, Redirect("/"))

        host, path = self.codec.decode(_first(params, "state"))
        if not self.settings.is_managed_host(host) or not path.startswith("/"):
            self.logger.warning("State names a foreign target", host=host)
            host, path = self.settings.apex, "/"

        cookie = build_session_cookie(
            self.settings.cookie_name,
            tokens.id_token,
            self.settings.cookie_domain,
            self.settings.cookie_max_age,
        )
        return Transition(
            GateState.SET_COOKIE_AND_REDIRECT,
            Redirect(f"https://{host}{path}", set_cookies=[cookie]),
        )

    async def _logout(self, ctx: _Context) -> Transition:
        config = ctx.config
        logout_url = build_logout_url(config.idp_domain, config.client_id, f"https://{self.settings.apex}/")
        cookie = build_expired_cookie(self.settings.cookie_name, self.settings.cookie_domain)
        return Transition(GateState.LOGOUT, Redirect(logout_url, set_cookies=[cookie]))


def _first(params: Dict[str, Any], name: str) -> Optional[str]:
    values = params.get(name)
    if not values:
        return None
    return values[0]
