#!/usr/bin/env python3
"""
FullFeed - Entry Content Enrichment
===================================

Main application entry point with CLI interface for management and testing.

Usage:
    python main.py --help                          # Show all commands
    python main.py check-config                    # Validate configuration
    python main.py init-db                         # Initialize database
    python main.py add-user alice                  # Create an account
    python main.py set-endpoint 1 http://localhost:3000/parser
    python main.py add-feed 1 https://example.com/feed.xml --crawler
    python main.py scrape https://example.com/post     # Try the local scraper
    python main.py fetch-content https://example.com/post --endpoint URL
    python main.py add-entry 1 https://example.com/post   # Store a new entry
    python main.py refresh-entry 42                # Fetch one entry's full content
"""

import sys
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fullfeed.config.settings import get_settings
from fullfeed.database.schema import DatabaseSchema
from fullfeed.database.connection import get_db_manager
from fullfeed.database.models import Entry, Feed, User
from fullfeed.ingestion.remote_content import RemoteContentFetcher
from fullfeed.ingestion.scraper import ContentScraper
from fullfeed.processing.rewriter import ContentRewriter
from fullfeed.processing.sanitizer import HTMLSanitizer
from fullfeed.services.content_service import ContentService
from fullfeed.storage.feed_repository import FeedRepository
from fullfeed.storage.user_repository import UserRepository
from fullfeed.utils.logging import configure_application_logging
from fullfeed.utils.exceptions import FullFeedError, get_user_friendly_message
from fullfeed.utils.validators import URLValidator, validate_url

console = Console()
logger = logging.getLogger(__name__)

PREVIEW_CHARS = 1500


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """FullFeed - full-content enrichment for feed entries."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        return

    try:
        settings = get_settings()
    except FullFeedError as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)

    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )
    ctx.obj['settings'] = settings


@cli.command()
@click.pass_context
def check_config(ctx):
    """Validate configuration and environment variables."""
    console.print("[bold blue]🔧 Checking FullFeed Configuration[/bold blue]")
    settings = ctx.obj['settings']

    table = Table(title="Configuration Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    checks = [
        ("Database", _check_database_config),
        ("Logging", _check_logging_config),
        ("Scraper", _check_scraper_config),
        ("Remote Content", _check_remote_content_config),
    ]

    all_passed = True
    for name, check_func in checks:
        status, details = check_func(settings)
        table.add_row(name, "✅ Valid" if status else "❌ Invalid", details)
        all_passed = all_passed and status

    console.print(table)

    if all_passed:
        console.print("[bold green]✅ All configuration checks passed![/bold green]")
    else:
        console.print("[bold red]❌ Configuration validation failed[/bold red]")
        sys.exit(1)


@cli.command()
@click.pass_context
def init_db(ctx):
    """Initialize database with schema."""
    console.print("[bold blue]🗄️ Initializing FullFeed Database[/bold blue]")
    settings = ctx.obj['settings']

    try:
        Path(settings.database.path).parent.mkdir(parents=True, exist_ok=True)

        schema = DatabaseSchema(settings.database.path)
        schema.create_tables()

        if not schema.verify_schema():
            console.print("[bold red]❌ Database schema verification failed[/bold red]")
            sys.exit(1)

        console.print("[bold green]✅ Database initialized successfully![/bold green]")

        info = _db(settings).get_database_info()
        info_table = Table(title="Database Information")
        info_table.add_column("Property", style="cyan")
        info_table.add_column("Value", style="green")
        info_table.add_row("Database Path", settings.database.path)
        info_table.add_row("Size", f"{info['database_size_mb']:.2f} MB")
        info_table.add_row("Page Size", f"{info['page_size']} bytes")
        info_table.add_row("Connection Pool", f"{info['open_connections']} open, {info['idle_connections']} idle")
        console.print(info_table)

    except FullFeedError as e:
        console.print(f"[bold red]❌ Database initialization error: {e}[/bold red]")
        sys.exit(1)


@cli.command()
@click.argument('username')
@click.option('--endpoint', default="", help='Remote content API endpoint')
@click.pass_context
def add_user(ctx, username, endpoint):
    """Create a user account."""
    repository = UserRepository(_db(ctx.obj['settings']))

    try:
        if endpoint:
            endpoint = URLValidator.validate_endpoint_url(endpoint)
        user_id = repository.create_user(User(username=username, remote_api_url=endpoint))
    except FullFeedError as e:
        _fail(e)

    console.print(f"[bold green]✅ Created user {username} with ID {user_id}[/bold green]")


@cli.command()
@click.argument('user_id', type=int)
@click.argument('endpoint', default="")
@click.pass_context
def set_endpoint(ctx, user_id, endpoint):
    """Set (or clear, when omitted) a user's remote content API endpoint."""
    repository = UserRepository(_db(ctx.obj['settings']))

    try:
        repository.set_remote_api_url(user_id, endpoint)
    except FullFeedError as e:
        _fail(e)

    if endpoint:
        console.print(f"[bold green]✅ Remote content endpoint of user {user_id} set to {endpoint}[/bold green]")
    else:
        console.print(f"[yellow]Remote content endpoint of user {user_id} cleared[/yellow]")


@cli.command()
@click.argument('user_id', type=int)
@click.argument('feed_url')
@click.option('--title', default=None, help='Feed title')
@click.option('--crawler', is_flag=True, help='Scrape original pages locally')
@click.option('--remote', 'use_remote_content', is_flag=True, help="Fetch content through the user's remote API")
@click.option('--scraper-rules', default="", help='CSS selectors for the scraper')
@click.option('--rewrite-rules', default="", help='Comma-separated rewrite rules')
@click.option('--user-agent', default="", help='User agent for scraping')
@click.pass_context
def add_feed(ctx, user_id, feed_url, title, crawler, use_remote_content,
             scraper_rules, rewrite_rules, user_agent):
    """Subscribe a user to a feed with its enrichment settings."""
    if not validate_url(feed_url):
        console.print(f"[bold red]❌ Invalid feed URL: {feed_url}[/bold red]")
        sys.exit(1)

    db = _db(ctx.obj['settings'])

    try:
        UserRepository(db).get_user_by_id(user_id)
        feed = Feed(
            user_id=user_id,
            feed_url=feed_url,
            title=title,
            crawler=crawler,
            use_remote_content=use_remote_content,
            scraper_rules=scraper_rules,
            rewrite_rules=rewrite_rules,
            user_agent=user_agent,
        )
        feed_id = FeedRepository(db).create_feed(feed)
    except FullFeedError as e:
        _fail(e)

    console.print(f"[bold green]✅ Added feed {feed_url} with ID {feed_id}[/bold green]")


@cli.command()
@click.argument('url')
@click.option('--endpoint', required=True, help='Remote content API endpoint')
@click.option('--raw', is_flag=True, help='Show content before rewrite and sanitize')
@click.pass_context
def fetch_content(ctx, url, endpoint, raw):
    """Fetch a page's content through a remote content API."""
    console.print(f"[bold blue]🌐 Fetching {url} via {endpoint}[/bold blue]")

    try:
        content = RemoteContentFetcher(ctx.obj['settings']).fetch(url, endpoint)
    except FullFeedError as e:
        _fail(e)

    _show_content(url, content, raw)


@cli.command()
@click.argument('url')
@click.option('--rules', default="", help='CSS selectors, empty for predefined rules or readability')
@click.option('--user-agent', default="", help='User agent to send')
@click.option('--raw', is_flag=True, help='Show content before rewrite and sanitize')
@click.pass_context
def scrape(ctx, url, rules, user_agent, raw):
    """Extract a page's main content with the local scraper."""
    console.print(f"[bold blue]🔍 Scraping {url}[/bold blue]")

    try:
        content = ContentScraper(ctx.obj['settings']).fetch(url, rules, user_agent)
    except FullFeedError as e:
        _fail(e)

    _show_content(url, content, raw)


@cli.command()
@click.argument('feed_id', type=int)
@click.argument('url')
@click.option('--title', default="", help='Entry title')
@click.option('--content', default="", help='Summary content as published in the feed')
@click.pass_context
def add_entry(ctx, feed_id, url, title, content):
    """Enrich and store a new feed entry, as a feed refresh would."""
    if not validate_url(url):
        console.print(f"[bold red]❌ Invalid entry URL: {url}[/bold red]")
        sys.exit(1)

    settings = ctx.obj['settings']
    db = _db(settings)

    try:
        feed = FeedRepository(db).get_feed_by_id(feed_id)
        if feed is None:
            console.print(f"[bold red]❌ Feed {feed_id} not found[/bold red]")
            sys.exit(1)

        entry = Entry(user_id=feed.user_id, feed_id=feed_id, url=url, title=title, content=content)
        inserted = ContentService(db, settings=settings).store_feed_entries(feed_id, [entry])
    except FullFeedError as e:
        _fail(e)

    if not inserted:
        console.print(f"[yellow]Entry already stored for feed {feed_id}: {url}[/yellow]")
        return

    console.print(f"[bold green]✅ Stored entry {entry.id}[/bold green]")
    _print_preview(entry.url, entry.content)


@cli.command()
@click.argument('entry_id', type=int)
@click.pass_context
def refresh_entry(ctx, entry_id):
    """Fetch the full content of a stored entry now."""
    settings = ctx.obj['settings']
    service = ContentService(_db(settings), settings=settings)

    try:
        entry = service.refresh_entry(entry_id)
    except FullFeedError as e:
        _fail(e)

    console.print(f"[bold green]✅ Refreshed entry {entry_id}[/bold green]")
    _print_preview(entry.url, entry.content)


def _db(settings):
    return get_db_manager(settings.database.path, pool_size=settings.database.pool_size)


def _fail(error: FullFeedError) -> None:
    logger.debug(f"Command failed: {error}", exc_info=True)
    console.print(f"[bold red]❌ {get_user_friendly_message(error)}[/bold red]")
    console.print(f"[dim]{error}[/dim]")
    sys.exit(1)


def _show_content(url: str, content: str, raw: bool) -> None:
    if not content:
        console.print("[yellow]⚠️ No content found[/yellow]")
        return

    if not raw:
        content = ContentRewriter().rewrite(url, content, "")
        content = HTMLSanitizer().sanitize(url, content)

    _print_preview(url, content)


def _print_preview(url: str, content: str) -> None:
    preview = content if len(content) <= PREVIEW_CHARS else content[:PREVIEW_CHARS] + "…"
    console.print(Panel(Text(preview), title=url, subtitle=f"{len(content)} chars", expand=False))


def _check_database_config(settings) -> tuple[bool, str]:
    """Check database configuration."""
    db_path = Path(settings.database.path)
    if not db_path.parent.exists():
        return False, f"Directory {db_path.parent} does not exist"
    return True, f"Path: {db_path}, pool: {settings.database.pool_size}"


def _check_logging_config(settings) -> tuple[bool, str]:
    """Check logging configuration."""
    if settings.logging.file_path and not Path(settings.logging.file_path).parent.exists():
        return False, f"Log directory for {settings.logging.file_path} does not exist"
    return True, f"Level: {settings.get_effective_log_level()}, file: {settings.logging.file_path or 'none'}"


def _check_scraper_config(settings) -> tuple[bool, str]:
    """Check scraper configuration."""
    return True, (
        f"Timeout: {settings.limits.request_timeout}s, "
        f"max body: {settings.scraper.max_body_size // 1024} KB"
    )


def _check_remote_content_config(settings) -> tuple[bool, str]:
    """Check remote content configuration."""
    return True, f"URL parameter: {settings.remote_content.url_parameter}"


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
