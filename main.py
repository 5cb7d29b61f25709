#!/usr/bin/env python3
"""
FeedScribe - Release Notes to Scripts
=====================================

Main application entry point with CLI interface for operating the pipeline.

Usage:
    python main.py --help                         # Show all commands
    python main.py check-config                   # Validate configuration
    python main.py init-db                        # Initialize database
    python main.py set-secret GEMINI_API_KEY xyz  # Store the AI credential
    python main.py run --feed-type gws            # Run the pipeline for one feed
    python main.py run --feed-type all            # Run every feed type
    python main.py show-pending --feed-type gcp   # List pending rows
    python main.py archive --feed-type gcp        # Move pending rows to the archive
"""

import sys
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from feedscribe.config.feed_types import FeedType, get_feed_profile
from feedscribe.config.settings import get_settings
from feedscribe.database.connection import DatabaseConnection
from feedscribe.database.schema import DatabaseSchema
from feedscribe.delivery.document_sink import MarkdownDocumentSink
from feedscribe.processing.pipeline import ProcessingPipeline
from feedscribe.storage import PropertyStore, TabularStore
from feedscribe.utils.logging import configure_application_logging
from feedscribe.utils.exceptions import FeedScribeError, get_user_friendly_message

console = Console()
logger = logging.getLogger(__name__)

FEED_TYPE_CHOICES = [feed_type.value for feed_type in FeedType]


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """FeedScribe - release-note classification and script generation."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def _load(ctx):
    """Load settings and configure logging, exiting on configuration errors."""
    try:
        settings = get_settings()
    except FeedScribeError as e:
        console.print(f"[bold red]❌ Configuration error: {escape(str(e))}[/bold red]")
        sys.exit(1)

    if ctx.obj.get('debug'):
        settings.debug = True

    configure_application_logging(
        log_level=settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )
    return settings


def _open_database(settings) -> DatabaseConnection:
    db = DatabaseConnection(settings.storage.path)
    DatabaseSchema(db).create_tables()
    return db


def _build_pipeline(settings, db: DatabaseConnection) -> ProcessingPipeline:
    return ProcessingPipeline(
        settings=settings,
        store=TabularStore(db),
        documents=MarkdownDocumentSink(settings.documents.output_dir),
        secrets=PropertyStore(db, settings=settings),
    )


@cli.command()
@click.pass_context
def check_config(ctx):
    """Validate configuration and environment variables."""
    console.print("[bold blue]🔧 Checking FeedScribe Configuration[/bold blue]")

    settings = _load(ctx)

    table = Table(title="Configuration Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    checks = [
        ("Storage", _check_storage_config),
        ("Logging", _check_logging_config),
        ("Documents", _check_documents_config),
        ("Feeds", _check_feeds_config),
        ("AI Credential", _check_ai_config),
    ]

    all_passed = True
    for name, check_func in checks:
        try:
            status, details = check_func(settings)
        except FeedScribeError as e:
            status, details = False, escape(str(e))
        table.add_row(name, "✅ Valid" if status else "❌ Invalid", details)
        if not status:
            all_passed = False

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
    console.print("[bold blue]🗄️ Initializing FeedScribe Database[/bold blue]")

    settings = _load(ctx)
    try:
        db = DatabaseConnection(settings.storage.path)
        schema = DatabaseSchema(db)
        schema.create_tables()

        if not schema.verify_schema():
            console.print("[bold red]❌ Database schema verification failed[/bold red]")
            sys.exit(1)

        console.print("[bold green]✅ Database initialized successfully![/bold green]")
        console.print(f"Database path: [cyan]{settings.storage.path}[/cyan]")
        db.close()

    except FeedScribeError as e:
        console.print(f"[bold red]❌ Database initialization error: {escape(str(e))}[/bold red]")
        sys.exit(1)


@cli.command()
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_secret(ctx, key, value):
    """Store a secret (e.g. the AI credential) in the property store."""
    settings = _load(ctx)
    db = _open_database(settings)
    try:
        PropertyStore(db, settings=settings).set_secret(key, value)
        console.print(f"[bold green]✅ Secret '{key}' stored[/bold green]")
    except FeedScribeError as e:
        console.print(f"[bold red]❌ Failed to store secret: {escape(str(e))}[/bold red]")
        sys.exit(1)
    finally:
        db.close()


@cli.command()
@click.option('--feed-type', type=click.Choice(FEED_TYPE_CHOICES + ['all']), default='all',
              show_default=True, help='Feed to process')
@click.pass_context
def run(ctx, feed_type):
    """Fetch, classify, persist and generate scripts for new feed items."""
    settings = _load(ctx)
    db = _open_database(settings)
    pipeline = _build_pipeline(settings, db)

    try:
        if feed_type == 'all':
            results = pipeline.run_all()
        else:
            results = [pipeline.run(FeedType(feed_type))]
    except FeedScribeError as e:
        logger.error(f"Pipeline run failed: {e}", extra=e.to_dict())
        console.print(f"[bold red]❌ {escape(get_user_friendly_message(e))}[/bold red]")
        console.print(f"[dim]{escape(str(e))}[/dim]")
        sys.exit(1)
    finally:
        db.close()

    for result in results:
        table = Table(title=f"Run Summary: {result.feed_type.value.upper()}")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Final Stage", result.stage.value)
        table.add_row("Items Parsed", str(result.items_parsed))
        table.add_row("Entries Skipped", str(result.items_skipped))
        table.add_row("Stale / Duplicate", f"{result.items_stale} / {result.items_duplicate}")
        table.add_row("Rows Persisted", str(result.rows_persisted))
        table.add_row("Fallback Classifications", str(result.fallback_classifications))
        table.add_row("Documents", str(result.documents_created))
        table.add_row("Time", f"{result.processing_time_seconds:.2f}s")

        metrics = result.efficiency_metrics
        table.add_row("Filter Reduction", f"{metrics['filter_reduction']:.1f}%")
        table.add_row("Classification Success", f"{metrics['classification_success_rate']:.1f}%")
        table.add_row("Items per Document", f"{metrics['items_per_document']:.1f}")
        console.print(table)

        for url in result.document_urls:
            console.print(f"  📄 {url}")

        if result.error:
            console.print(f"[bold red]❌ {result.feed_type.value} run aborted: {escape(result.error)}[/bold red]")
        elif result.items_classified == 0:
            console.print("[yellow]⚠️ No new items[/yellow]")

    if any(not result.success for result in results):
        sys.exit(1)


@cli.command()
@click.option('--feed-type', type=click.Choice(FEED_TYPE_CHOICES), required=True,
              help='Feed whose pending rows are archived')
@click.pass_context
def archive(ctx, feed_type):
    """Move all pending rows of a feed to its archive table."""
    settings = _load(ctx)
    db = _open_database(settings)
    try:
        pipeline = _build_pipeline(settings, db)
        moved = pipeline.archive_pending(FeedType(feed_type))
        console.print(f"[bold green]✅ Archived {moved} rows[/bold green]")
    except FeedScribeError as e:
        console.print(f"[bold red]❌ Archive failed: {escape(str(e))}[/bold red]")
        sys.exit(1)
    finally:
        db.close()


@cli.command()
@click.option('--feed-type', type=click.Choice(FEED_TYPE_CHOICES), required=True,
              help='Feed whose pending rows are listed')
@click.pass_context
def show_pending(ctx, feed_type):
    """Show pending rows for a feed."""
    settings = _load(ctx)
    profile = get_feed_profile(FeedType(feed_type), settings)
    db = _open_database(settings)
    try:
        store = TabularStore(db)
        rows = store.read_rows(profile.pending_table)
    finally:
        db.close()

    if not rows:
        console.print(f"[yellow]⚠️ No pending rows in '{profile.pending_table}'[/yellow]")
        return

    table = Table(title=profile.pending_table)
    table.add_column("Date", style="green")
    table.add_column("Title", style="cyan")
    table.add_column("Section", style="yellow")
    table.add_column("Sub-section")
    table.add_column("Link", style="blue")

    for row in rows:
        date, title, link, section, sub_section = (row + [""] * 5)[:5]
        table.add_row(
            date[:10],
            title[:50] + "..." if len(title) > 50 else title,
            section,
            sub_section,
            link,
        )

    console.print(table)


# Helper functions for configuration checks
def _check_storage_config(settings) -> tuple[bool, str]:
    db_path = Path(settings.storage.path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return True, f"Path: {settings.storage.path}"


def _check_logging_config(settings) -> tuple[bool, str]:
    return True, f"Level: {settings.get_effective_log_level()}, Console: {settings.logging.console_logging}"


def _check_documents_config(settings) -> tuple[bool, str]:
    settings.validate_configuration()
    return True, f"Output: {settings.documents.output_dir}"


def _check_feeds_config(settings) -> tuple[bool, str]:
    urls = [get_feed_profile(feed_type, settings).feed_url for feed_type in FeedType]
    return True, ", ".join(urls)


def _check_ai_config(settings) -> tuple[bool, str]:
    db = _open_database(settings)
    try:
        key = settings.ai.credential_key
        if not PropertyStore(db, settings=settings).get_secret(key):
            return False, f"Secret '{key}' not set"
        return True, f"Model: {settings.ai.gemini_model}"
    finally:
        db.close()


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 FeedScribe interrupted by user[/yellow]")
        sys.exit(130)
