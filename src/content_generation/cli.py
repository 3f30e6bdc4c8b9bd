import asyncio
import json

import click

from . import __version__
from .client import ContentGenerationClient
from .config import get_settings
from .exceptions import GenerationError
from .models import ContentRequest, ContentType
from .telemetry import get_logger, setup_logging

logger = get_logger(__name__)


def get_version():
    return __version__


async def run_generate(request, user_id=None, use_fallbacks=True):
    settings = get_settings()
    async with ContentGenerationClient.from_settings(settings) as client:
        client.orchestrator.options.use_fallbacks = use_fallbacks
        return await client.generate(request, user_id=user_id)


async def run_cleanup():
    async with ContentGenerationClient.from_settings(get_settings()) as client:
        return await client.cleanup_cache()


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level):
    setup_logging(level=log_level, format="console")


@cli.command()
@click.option("--format", default="text", type=click.Choice(["text", "json"]))
def version(format):
    if format == "json":
        click.echo(json.dumps({"version": get_version()}))
    else:
        click.echo(f"v{get_version()}")


@cli.command()
@click.option("--type", "content_type", required=True, type=click.Choice([t.value for t in ContentType]))
@click.option("--context", default=None)
@click.option("--tone", default=None)
@click.option("--max-length", default=None, type=int)
@click.option("--keyword", "keywords", multiple=True)
@click.option("--user-id", default=None)
@click.option("--no-fallback", is_flag=True, help="Fail instead of returning fallback copy")
def generate(content_type, context, tone, max_length, keywords, user_id, no_fallback):
    request = ContentRequest(
        type=content_type, context=context, tone=tone, max_length=max_length, keywords=keywords
    )
    try:
        content = asyncio.run(run_generate(request, user_id=user_id, use_fallbacks=not no_fallback))
    except GenerationError as e:
        logger.error("Generate command failed", error_kind=e.kind.value, status_code=e.status_code)
        click.echo(f"Generation failed ({e.kind.value}): {e.message}", err=True)
        raise SystemExit(1)
    click.echo(content)


@cli.command()
def cleanup():
    result = asyncio.run(run_cleanup())
    logger.info("Cache cleanup finished", success=result.success, entries_removed=result.entries_removed)
    click.echo(result.message)
    if not result.success:
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
