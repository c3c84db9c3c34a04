"""
Flask CLI commands for operators.

Commands:
- flask routes-for-role <role>: Show the pages, menu and landing page of a role
- flask check-backend: Verify the backend API answers
"""

import click

from market_admin.navigation import route_table_for
from market_admin.services.api_client import BackendClient


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('routes-for-role')
    @click.argument('role')
    def routes_for_role(role):
        """List the pages a role may open."""
        table = route_table_for(role)
        click.echo(click.style(f'Route table: {table.name}', bold=True))
        click.echo(f'   Default: {table.default_path}')
        for page in table.pages:
            marker = click.style('menu', fg='green') if page.in_menu else '    '
            click.echo(f'   {marker}  {page.identity:<15} {", ".join(page.patterns)}')

    @app.cli.command('check-backend')
    def check_backend():
        """Ping the backend's health endpoint."""
        client = BackendClient.from_app()
        if client.ping():
            click.echo(click.style(f'Backend reachable at {client.base_url}', fg='green'))
        else:
            click.echo(click.style(f'Backend NOT reachable at {client.base_url}', fg='red'))
            raise SystemExit(1)
