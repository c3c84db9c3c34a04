"""Flask application factory."""
from flask import Flask, g, render_template, request, redirect, url_for, flash, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize CSRF protection
    CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        if request.is_json:
            return jsonify({'status': 'error', 'message': 'Your session expired. Reload the page.'}), 400
        flash('Your session expired or the form was invalid. Please try again.', 'warning')
        return redirect(request.referrer or url_for('auth.login'))

    # Sentry error tracking in production
    if app.config.get('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Redis cache for sales listings, daily stats and draft catalogs
    from market_admin.services.cache_service import init_cache
    init_cache(app)

    # Prometheus metrics instrumentation
    from market_admin.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: trust X-Forwarded-* from the reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Jinja filters
    from market_admin.utils.formatters import format_money, format_datetime, format_quantity
    currency = app.config.get('CURRENCY_LABEL', 'CFA')
    app.jinja_env.filters['money'] = lambda value: format_money(value, currency)
    app.jinja_env.filters['datetime_short'] = format_datetime
    app.jinja_env.filters['qty'] = format_quantity

    # Navigation context and route guard for each request
    from market_admin.middleware import load_navigation_context, enforce_route_guard

    @app.before_request
    def before_request_handler():
        load_navigation_context()
        return enforce_route_guard()

    # Error Handlers
    from market_admin.exceptions import MarketAdminError

    @app.errorhandler(MarketAdminError)
    def handle_market_admin_error(error):
        app.logger.error(f"MarketAdminError [{error.status_code}]: {error.message}")

        if request.is_json:
            return jsonify(error.to_dict()), error.status_code

        flash(error.message, 'danger')
        return redirect(request.referrer or url_for('auth.login'))

    @app.errorhandler(404)
    def not_found_error(error):
        if request.is_json:
            return jsonify({'status': 'error', 'message': 'Not Found'}), 404
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception: {error}", exc_info=True)
        if request.is_json:
            return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500
        return render_template('errors/500.html'), 500

    # Navigation menu and session user for the layout
    @app.context_processor
    def inject_navigation():
        nav = g.get('nav')
        if nav is None or not nav.authenticated:
            return {'menu': [], 'current_user': None, 'business_name': app.config.get('BUSINESS_NAME')}

        current_path = request.path.rstrip('/') or '/'
        menu = [
            {
                'label': page.label,
                'url': url_for('shell.enter', page=page.identity),
                'active': page.path == current_path,
            }
            for page in nav.routes.menu()
        ]
        return {
            'menu': menu,
            'current_user': g.get('user'),
            'business_name': app.config.get('BUSINESS_NAME'),
        }

    # Register blueprints
    from market_admin.blueprints.auth import auth_bp
    from market_admin.blueprints.shell import shell_bp
    from market_admin.blueprints.main import main_bp
    from market_admin.blueprints.metrics import metrics_bp
    from market_admin.blueprints.sales import sales_bp
    from market_admin.blueprints.pages import pages_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(shell_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(metrics_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(pages_bp)

    # CLI commands
    from market_admin.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"BACKEND_API_URL={app.config.get('BACKEND_API_URL')}")

    return app
