"""CLI interface for the CheckStep relay."""

import asyncio
import logging
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import settings
from .models.content import ContentType
from .models.queue import QueueStatus
from .relay import get_relay
from .services.checkstep_client import SIGNATURE_HEADER, compute_signature
from .workers.sweeper import run_sweeper

logging.basicConfig(
    level=settings.logging_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = typer.Typer(help="CheckStep moderation relay CLI")
console = Console()

STATUS_COLORS = {
    QueueStatus.PENDING: "yellow",
    QueueStatus.PROCESSING: "blue",
    QueueStatus.COMPLETED: "green",
    QueueStatus.FAILED: "red",
}


@app.command()
def init():
    """Initialize the queue database."""
    get_relay()
    console.print(f"[green]Initialized queue database at {settings.db_path}[/green]")


@app.command()
def enqueue(content_type: str, content_id: str):
    """Queue a piece of content for review."""
    try:
        parsed_type = ContentType(content_type)
    except ValueError:
        console.print(f"[red]Invalid content type: {content_type}[/red]")
        console.print(f"Valid types: {[t.value for t in ContentType]}")
        raise typer.Exit(1)

    entry = get_relay().queue.enqueue(parsed_type, content_id)
    console.print(f"[green]Queued {entry.ref} as entry {entry.id}[/green]")


@app.command("list")
def list_entries(
    status: str = typer.Option(None, "--status", "-s", help="Filter by status"),
    limit: int = typer.Option(20, "--limit", "-l", help="Number of results"),
):
    """List queue entries, newest first."""
    queue_status = None
    if status:
        try:
            queue_status = QueueStatus(status)
        except ValueError:
            console.print(f"[red]Invalid status: {status}[/red]")
            console.print(f"Valid statuses: {[s.value for s in QueueStatus]}")
            raise typer.Exit(1)

    entries = get_relay().queue.list_entries(status=queue_status, limit=limit)

    if not entries:
        console.print("[yellow]No queue entries found[/yellow]")
        return

    table = Table(title="Moderation Queue")
    table.add_column("ID", style="cyan")
    table.add_column("Content")
    table.add_column("Status")
    table.add_column("Retries")
    table.add_column("Created")
    table.add_column("Last error")

    for entry in entries:
        color = STATUS_COLORS.get(entry.status, "white")
        table.add_row(
            str(entry.id),
            str(entry.ref),
            f"[{color}]{entry.status.value}[/{color}]",
            str(entry.retries),
            entry.created_at.strftime("%Y-%m-%d %H:%M"),
            (entry.last_error or "-")[:40],
        )

    console.print(table)


@app.command()
def stats():
    """Show queue counts by status."""
    queue_stats = get_relay().queue.get_stats()

    console.print("\n[bold]Queue[/bold]")
    console.print(f"  Pending: [yellow]{queue_stats.pending}[/yellow]")
    console.print(f"  Processing: [blue]{queue_stats.processing}[/blue]")
    console.print(f"  Completed: [green]{queue_stats.completed}[/green]")
    console.print(f"  Failed: [red]{queue_stats.failed}[/red]")
    console.print(f"  Total: {queue_stats.total}")
    console.print(f"  Last sweep: {queue_stats.last_processed_at or 'never'}")


@app.command()
def show(entry_id: int):
    """Show details of a queue entry."""
    entry = get_relay().queue.get_entry(entry_id)

    if not entry:
        console.print(f"[red]Queue entry not found: {entry_id}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]Entry {entry.id}[/bold]")
    console.print(f"  Content: {entry.ref}")
    console.print(f"  Status: {entry.status.value}")
    console.print(f"  Retries: {entry.retries}")
    console.print(f"  Created: {entry.created_at}")
    if entry.claimed_at:
        console.print(f"  Claimed: {entry.claimed_at}")
    if entry.processed_at:
        console.print(f"  Processed: {entry.processed_at}")
    if entry.last_error:
        console.print(f"  Error: {entry.last_error}")


@app.command()
def recover(
    older_than: int = typer.Option(None, "--older-than", help="Claim age in seconds (default: stale timeout)"),
):
    """Return abandoned processing entries to pending."""
    count = get_relay().queue.recover_stale_claims(older_than)
    console.print(f"[green]Recovered {count} stale claims[/green]")


@app.command()
def sweep():
    """Run a single queue sweep."""
    result = asyncio.run(get_relay().processor.run_sweep())

    if result.claimed == 0:
        console.print("[yellow]No pending entries[/yellow]")
        return

    console.print(
        f"Claimed {result.claimed}: [green]{result.completed} completed[/green], "
        f"[yellow]{result.retrying} retrying[/yellow], [red]{result.failed} failed[/red]"
    )


@app.command()
def worker(
    interval: int = typer.Option(None, "--interval", "-i", help="Seconds between sweeps"),
):
    """Sweep the queue continuously until interrupted."""
    relay = get_relay()
    seconds = interval or settings.sweep_interval_seconds

    async def _run() -> int:
        stop_event = asyncio.Event()

        def _handle_signal(signum, frame):
            logger.info(f"Received signal {signum}, shutting down gracefully...")
            stop_event.set()

        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)

        relay.queue.recover_stale_claims()
        return await run_sweeper(relay.processor, seconds, stop_event)

    sweeps = asyncio.run(_run())
    console.print(f"[green]Worker stopped after {sweeps} sweeps[/green]")


@app.command()
def sign(path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Webhook body file")):
    """Print the webhook signature header for a request body."""
    if not settings.webhook_secret:
        console.print("[red]CHECKSTEP_WEBHOOK_SECRET is not set[/red]")
        raise typer.Exit(1)

    signature = compute_signature(path.read_bytes(), settings.webhook_secret)
    console.print(f"{SIGNATURE_HEADER}: {signature}", soft_wrap=True)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
):
    """Run the API server with uvicorn."""
    import uvicorn

    uvicorn.run("checkstep_relay.main:app", host=host, port=port, log_level=settings.log_level)


@app.command()
def config():
    """Show current configuration."""
    console.print("\n[bold]Configuration[/bold]")
    console.print(f"  Environment: {settings.environment}")
    console.print(f"  API URL: {settings.api_url}")
    console.print(f"  API key: {'set' if settings.api_key else '[red]missing[/red]'}")
    console.print(f"  Webhook secret: {'set' if settings.webhook_secret else '[red]missing[/red]'}")
    console.print(f"  DB path: {settings.db_path}")
    console.print(f"  Batch size: {settings.batch_size}")
    console.print(f"  Sweep interval: {settings.sweep_interval_seconds}s")
    console.print(f"  Notification level: {settings.notification_level.value}")
    console.print(f"  Auto moderation: {settings.auto_moderation}")
    console.print(f"  Content file: {settings.content_file or 'N/A'}")


if __name__ == "__main__":
    app()
