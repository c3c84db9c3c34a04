"""
Navigation shell dispatch.

Every menu entry links to ``/go/<page>``. Following one records that the
user entered through the application shell and forwards to the page.
"""

from flask import Blueprint, current_app, g, redirect, request, session, url_for
from werkzeug.routing import BuildError

from market_admin.navigation import enter_via_shell

shell_bp = Blueprint('shell', __name__, url_prefix='/go')


@shell_bp.route('/<page>')
def enter(page):
    if not g.nav.authenticated:
        return redirect(url_for('auth.login'))

    enter_via_shell(session)

    routes = g.nav.routes
    target = routes.page(page) or routes.default
    try:
        location = url_for(target.endpoint, **request.args.to_dict())
    except BuildError:
        # Pages such as sale-detail need an id the link did not carry
        current_app.logger.debug(f"[SHELL] Cannot build {target.identity} from {dict(request.args)}")
        location = url_for(routes.default.endpoint)
    return redirect(location)
