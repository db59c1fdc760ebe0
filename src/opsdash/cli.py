# src/opsdash/cli.py
"""Operations dashboard CLI: run the API or report untagged spend."""

import asyncio
import json
from pathlib import Path

import click
import structlog
import uvicorn

from opsdash.api.registry import ServiceRegistry
from opsdash.config.settings import Settings
from opsdash.core.exceptions import DashboardException
from opsdash.core.utils import setup_logging

logger = structlog.get_logger(__name__)


def _load_settings(debug: bool) -> Settings:
    settings = Settings.create_from_env()
    if debug:
        settings.debug = True
        settings.log_level = "DEBUG"
    setup_logging(settings.log_config_path, log_level="DEBUG" if debug else settings.log_level.value)
    return settings


@click.group()
def cli():
    """Operations dashboard: cached cost, security and delivery views."""


@cli.command()
@click.option('--host', default=None, help='Bind address (default: API_HOST)')
@click.option('--port', default=None, type=int, help='Bind port (default: API_PORT)')
@click.option('--reload', is_flag=True, help='Reload on code changes')
@click.option('--debug', is_flag=True, help='Enable debug logging')
def serve(host, port, reload, debug):
    """
    Serve the dashboard API with uvicorn.

    Configure your .env file with at least:
        AZURE_SUBSCRIPTION_ID=your-subscription-id
        AZURE_TENANT_ID=your-tenant-id
        AZURE_CLIENT_ID=your-client-id
        AZURE_CLIENT_SECRET=your-client-secret

    Endpoints whose settings are missing answer with a 500 naming the variable.

    Example:
        opsdash serve --port 8080
    """
    settings = _load_settings(debug)
    logger.info("Starting API server", host=host or settings.api.host, port=port or settings.api.port)
    uvicorn.run(
        "opsdash.api.app:create_app",
        factory=True,
        host=host or settings.api.host,
        port=port or settings.api.port,
        reload=reload or settings.api.reload,
        log_level="debug" if debug else "info",
    )


@cli.command('untagged-costs')
@click.option('--output', '-o', default=None, help='Write JSON to this file instead of stdout')
@click.option('--debug', is_flag=True, help='Enable debug logging')
def untagged_costs(output, debug):
    """
    List last month's spend of resource groups without a project tag.

    Example:
        opsdash untagged-costs -o untagged.json
    """

    async def run():
        registry = ServiceRegistry(settings)
        try:
            service = await registry.cost_service()
            return await service.get_untagged_costs()
        finally:
            await registry.close()

    settings = _load_settings(debug)
    try:
        entries = asyncio.run(run())
    except DashboardException as e:
        raise click.ClickException(e.message)

    payload = json.dumps([entry.to_response() for entry in entries], indent=2)
    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(payload)
        click.echo(f"Wrote {len(entries)} untagged resource groups to {output_path}")
    else:
        click.echo(payload)

    total = sum(entry.cost for entry in entries)
    click.echo(f"Untagged spend last month: {total:.2f}", err=True)


if __name__ == '__main__':
    cli()
