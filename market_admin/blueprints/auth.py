"""
Authentication blueprint.
Handles login against the backend, logout and the login page shown by the route guard.
"""

from flask import Blueprint, render_template, request, redirect, url_for, flash, session, g, Response
from typing import Optional, Tuple, Union
import logging

from market_admin.exceptions import BackendError, NetworkError
from market_admin.forms.auth_forms import LoginForm
from market_admin.navigation import GuardState, enter_via_shell, route_table_for
from market_admin.services.api_client import get_backend_client

logger = logging.getLogger(__name__)


auth_bp = Blueprint('auth', __name__)


def render_login(form: Optional[LoginForm] = None, status: int = 200) -> Tuple[str, int]:
    """
    Login page.

    A signed-in user who has not entered through the navigation menu gets a
    "continue" action that goes through the shell to their landing page.
    """
    form = form or LoginForm()
    continue_url = None
    if g.nav.state == GuardState.AUTHENTICATED_NO_FLAG:
        continue_url = url_for('shell.enter', page=g.nav.routes.default.identity)
    return render_template('auth/login.html', form=form, continue_url=continue_url), status


@auth_bp.route('/login', methods=['GET', 'POST'])
def login() -> Union[str, Response, Tuple[str, int]]:
    """Show the login form and sign in with the backend."""
    if g.nav.state == GuardState.AUTHENTICATED_WITH_FLAG:
        return redirect(request.script_root + g.nav.routes.default_path)

    form = LoginForm()
    if request.method == 'GET':
        return render_login(form)

    if not form.validate_on_submit():
        return render_login(form, 400)

    email = form.email.data.strip().lower()
    try:
        result = get_backend_client().login(email, form.password.data)
    except NetworkError as e:
        logger.warning(f"[AUTH] Backend unreachable during login for {email}: {e.message}")
        flash('Could not reach the server. Please try again.', 'danger')
        return render_login(form, 503)
    except BackendError as e:
        logger.info(f"[AUTH] Login rejected for {email}: {e.message}")
        flash(e.message if e.status_code < 500 else 'Login failed. Please try again.', 'danger')
        return render_login(form, 401)

    session.clear()
    session['token'] = result.token
    session['user'] = {
        'id': result.user.id,
        'name': result.user.name,
        'email': result.user.email,
        'role': result.user.role,
    }
    enter_via_shell(session)
    logger.info(f"[AUTH] {email} signed in as {result.user.role or 'unspecified role'}")

    flash(f'Welcome, {result.user.name or email}!', 'success')
    return redirect(request.script_root + route_table_for(result.user.role).default_path)


@auth_bp.route('/logout', methods=['POST'])
def logout() -> Response:
    """Clear the session, including the navigation intent."""
    if g.user:
        logger.info(f"[AUTH] {g.user.get('email')} signed out")
    session.clear()
    flash('You have been signed out.', 'info')
    return redirect(url_for('auth.login'))
