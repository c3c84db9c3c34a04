"""Middleware for session context and the route guard."""
from flask import current_app, g, redirect, request, session, url_for

from market_admin.navigation import NavigationContext, Verdict, evaluate

# Blueprints that are reachable without passing the route guard
GUARD_EXEMPT_BLUEPRINTS = frozenset({'auth', 'shell', 'main', 'metrics'})


def load_navigation_context():
    """
    Load the session's navigation context into g.

    Sets g.nav (NavigationContext), g.user (session user dict or None),
    g.user_role and resets g.page for the route guard.
    """
    g.nav = NavigationContext.from_session(session)
    g.user = session.get('user') if g.nav.authenticated else None
    g.user_role = g.user.get('role') if g.user else None
    g.page = None


def cache_scope() -> str:
    """Cache namespace of the signed-in user."""
    user = g.get('user')
    return str(user.get('id')) if user and user.get('id') else 'anonymous'


def enforce_route_guard():
    """
    Run the route guard for every top-level request.

    Returns a response when the guard redirects or shows the login page,
    None when the requested page may render (g.page is then set).
    """
    if request.endpoint == 'static' or request.blueprint in GUARD_EXEMPT_BLUEPRINTS:
        return None

    decision = evaluate(g.nav, request.path)

    if decision.verdict == Verdict.RENDER_LOGIN:
        from market_admin.blueprints.auth import render_login
        return render_login()

    if decision.verdict == Verdict.REDIRECT_LOGIN:
        current_app.logger.debug(f"[GUARD] {request.path}: not entered via shell, back to login")
        return redirect(url_for('auth.login'))

    if decision.verdict == Verdict.REDIRECT_DEFAULT:
        current_app.logger.debug(
            f"[GUARD] {request.path} not allowed for role {g.user_role!r}, redirecting to {decision.location}"
        )
        return redirect(request.script_root + decision.location)

    g.page = decision.page
    return None
