"""
Route guard.

Decides, for one top-level request, whether to show the login page, bounce
back to login, render the requested page or redirect to the role's landing
page. It reads only the NavigationContext handed to it and performs no I/O.

The "entered via shell" intent is a soft UX guard that forces users through
the navigation menu instead of typed URLs. Anyone who can hit the shell
dispatch (``/go/<page>``) can set it, so it is not an access-control boundary.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, MutableMapping, Optional

from market_admin.navigation.roles import Page, RouteTable, route_table_for

# Session key holding the navigation intent; presence means "entered via shell"
NAV_INTENT_KEY = 'nav_allowed'


class GuardState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED_NO_FLAG = "authenticated_no_flag"
    AUTHENTICATED_WITH_FLAG = "authenticated_with_flag"


class Verdict(str, Enum):
    RENDER_LOGIN = "render_login"
    REDIRECT_LOGIN = "redirect_login"
    RENDER_PAGE = "render_page"
    REDIRECT_DEFAULT = "redirect_default"


@dataclass(frozen=True)
class NavigationContext:
    """What the guard knows about the current request's session."""
    authenticated: bool = False
    role: Optional[str] = None
    entered_via_shell: bool = False

    @classmethod
    def from_session(cls, store: MutableMapping[str, Any]) -> 'NavigationContext':
        user = store.get('user') or None
        return cls(
            authenticated=bool(user and store.get('token')),
            role=user.get('role') if user else None,
            entered_via_shell=bool(store.get(NAV_INTENT_KEY)),
        )

    @property
    def state(self) -> GuardState:
        if not self.authenticated:
            return GuardState.UNAUTHENTICATED
        if not self.entered_via_shell:
            return GuardState.AUTHENTICATED_NO_FLAG
        return GuardState.AUTHENTICATED_WITH_FLAG

    @property
    def routes(self) -> RouteTable:
        return route_table_for(self.role)


@dataclass(frozen=True)
class GuardDecision:
    verdict: Verdict
    page: Optional[Page] = None
    location: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.verdict == Verdict.RENDER_PAGE


def enter_via_shell(store: MutableMapping[str, Any]) -> None:
    """The single place the navigation intent is set. Never cleared here."""
    store[NAV_INTENT_KEY] = True


def evaluate(context: NavigationContext, path: str) -> GuardDecision:
    """Decision for rendering ``path`` under ``context``."""
    state = context.state
    if state == GuardState.UNAUTHENTICATED:
        return GuardDecision(Verdict.RENDER_LOGIN)
    if state == GuardState.AUTHENTICATED_NO_FLAG:
        return GuardDecision(Verdict.REDIRECT_LOGIN)

    routes = context.routes
    page = routes.match(path)
    if page is not None:
        return GuardDecision(Verdict.RENDER_PAGE, page=page)
    return GuardDecision(Verdict.REDIRECT_DEFAULT, page=routes.default, location=routes.default_path)
