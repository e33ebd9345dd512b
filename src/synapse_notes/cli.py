"""CLI interface for Synapse Notes."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from synapse_notes import __version__
from synapse_notes.app import SynapseApp, build_app
from synapse_notes.config import Settings, get_settings
from synapse_notes.errors import SynapseError
from synapse_notes.logger import configure_logging

app = typer.Typer(
    name="synapse",
    help="Voice notes turned into searchable, auto-linked knowledge.",
    no_args_is_help=True,
)
console = Console()


def load_settings() -> Settings:
    """Load settings and logging, exiting cleanly on configuration errors."""
    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        console.print("\nMake sure you have a .env file with SYNAPSE_* settings.")
        raise typer.Exit(1)
    configure_logging(settings.log_level, settings.log_json)
    return settings


def get_app() -> SynapseApp:
    return build_app(load_settings())


@app.command()
def ingest(
    audio_files: list[Path] = typer.Argument(..., help="Recordings to ingest"),
    owner: str = typer.Option("local", "--owner", "-o", help="Owner id for the new notes"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Title for the notes"),
    timeout: float = typer.Option(
        600.0, "--timeout", help="Seconds to wait for the pipeline to finish"
    ),
):
    """
    Ingest recordings and run them through the pipeline.

    Each file is validated, stored, transcribed, illustrated and embedded.
    Jobs are processed in the order given.
    """
    synapse = get_app()
    notes = []

    for audio_file in audio_files:
        if not audio_file.is_file():
            console.print(f"  [red]✗[/red] {audio_file}: file not found")
            continue
        try:
            note = synapse.ingest(owner, audio_file, title=title)
        except SynapseError as e:
            console.print(f"  [red]✗[/red] {audio_file}: {e}")
            continue
        notes.append(note)
        console.print(
            f"  [green]✓[/green] {audio_file.name} queued as [cyan]{note.id}[/cyan] "
            f"(~{note.duration}s)"
        )

    if not notes:
        console.print("[yellow]Nothing to process.[/yellow]")
        raise typer.Exit(1)

    with console.status("[yellow]Processing notes...[/yellow]"):
        finished = synapse.pipeline.wait_until_idle(timeout)
    synapse.close(wait=finished)

    if not finished:
        console.print("[red]Timed out waiting for the pipeline.[/red]")

    _print_notes(synapse, [n.id for n in notes])
    if not finished:
        raise typer.Exit(1)


@app.command()
def reembed(
    note_ids: list[str] = typer.Argument(..., help="Notes to embed again"),
):
    """Regenerate embeddings for notes (e.g. after a failure or an edit)."""
    synapse = get_app()
    failures = 0

    with console.status("[yellow]Generating embeddings...[/yellow]"):
        for note_id in note_ids:
            if synapse.pipeline.embed_note(note_id):
                console.print(f"  [green]✓[/green] {note_id}")
            else:
                failures += 1
                console.print(f"  [red]✗[/red] {note_id}")

    synapse.close()
    if failures:
        raise typer.Exit(1)


@app.command()
def similar(
    note_id: str = typer.Argument(..., help="Note to find related notes for"),
    threshold: float = typer.Option(0.7, "--threshold", "-t", help="Minimum similarity (0-1)"),
    limit: int = typer.Option(5, "--limit", "-l", help="Maximum results (1-100)"),
):
    """Show notes auto-linked to a note by semantic similarity."""
    synapse = get_app()
    try:
        related = synapse.find_similar(note_id, threshold=threshold, limit=limit)
        links = synapse.repository.get_manual_links(note_id)
    except SynapseError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not related and not links:
        console.print("[yellow]No related notes found.[/yellow]")
        return

    table = Table(title=f"Related to {note_id}")
    table.add_column("Note", style="cyan")
    table.add_column("Title")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Reason", style="dim")

    for item in related:
        table.add_row(item.note.id, item.note.title, f"{item.similarity_score:.3f}", item.reason)
    for link in links:
        other = link.target_note_id if link.source_note_id == note_id else link.source_note_id
        table.add_row(other, "", "-", "manually linked")

    console.print(table)


@app.command()
def search(
    query: str = typer.Argument(..., help="Free-text query"),
    threshold: float = typer.Option(0.7, "--threshold", "-t", help="Minimum similarity (0-1)"),
    limit: int = typer.Option(10, "--limit", "-l", help="Maximum results (1-100)"),
    owner: Optional[str] = typer.Option(None, "--owner", "-o", help="Only this owner's notes"),
):
    """Semantic search over transcribed notes."""
    synapse = get_app()
    try:
        results = synapse.ranker.search(query, threshold=threshold, limit=limit, owner_id=owner)
    except SynapseError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not results:
        console.print("[yellow]No matching notes.[/yellow]")
        return

    for item in results:
        transcript = item.note.transcript or ""
        snippet = transcript[:200] + ("..." if len(transcript) > 200 else "")
        console.print(
            f"[green]{item.similarity_score:.3f}[/green] [cyan]{item.note.id}[/cyan] "
            f"[bold]{item.note.title}[/bold]"
        )
        if snippet:
            console.print(f"  [dim]{snippet}[/dim]")


@app.command()
def graph(
    threshold: float = typer.Option(0.7, "--threshold", "-t", help="Minimum similarity (0-1)"),
    owner: Optional[str] = typer.Option(None, "--owner", "-o", help="Only this owner's notes"),
):
    """List every auto-link edge above a threshold."""
    synapse = get_app()
    try:
        edges = synapse.ranker.similarity_graph(threshold=threshold, owner_id=owner)
    except SynapseError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not edges:
        console.print("[yellow]No edges above threshold.[/yellow]")
        return

    table = Table(title=f"Similarity graph (>= {threshold})")
    table.add_column("Note", style="cyan")
    table.add_column("Related", style="cyan")
    table.add_column("Score", justify="right", style="green")
    for edge in edges:
        table.add_row(edge.note_id, edge.related_note_id, f"{edge.similarity_score:.3f}")
    console.print(table)


@app.command()
def link(
    source: str = typer.Argument(..., help="Source note id"),
    target: str = typer.Argument(..., help="Target note id"),
):
    """Manually link two notes."""
    synapse = get_app()
    try:
        created = synapse.repository.add_manual_link(source, target)
    except SynapseError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Linked {created.source_note_id} -> {created.target_note_id}")


@app.command()
def delete(
    note_id: str = typer.Argument(..., help="Note to delete"),
):
    """Delete a note with its recording and illustration."""
    synapse = get_app()
    try:
        synapse.delete_note(note_id)
    except SynapseError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Deleted {note_id}")


@app.command()
def notes(
    owner: Optional[str] = typer.Option(None, "--owner", "-o", help="Only this owner's notes"),
):
    """List notes and their pipeline status."""
    synapse = get_app()
    all_notes = synapse.repository.get_all_notes(owner_id=owner)
    if not all_notes:
        console.print("[yellow]No notes yet.[/yellow]")
        return
    _print_notes(synapse, [n.id for n in all_notes])


@app.command()
def stats():
    """Show database statistics."""
    synapse = get_app()
    db_stats = synapse.repository.get_stats()

    table = Table(title="Synapse Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="green")

    table.add_row("Total Notes", str(db_stats["total_notes"]))
    table.add_row("Pending", str(db_stats["pending_notes"]))
    table.add_row("Processing", str(db_stats["processing_notes"]))
    table.add_row("Completed", str(db_stats["completed_notes"]))
    table.add_row("Failed", str(db_stats["failed_notes"]))
    table.add_row("Illustrated", str(db_stats["illustrated_notes"]))
    table.add_row("Manual Links", str(db_stats["manual_links"]))

    console.print(table)


@app.command()
def config():
    """Show current configuration."""
    settings = load_settings()

    table = Table(title="Synapse Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    key_masked = (
        settings.google_api_key[:6] + "..." if len(settings.google_api_key) > 6 else "***"
    ) if settings.google_api_key else "(not set)"

    table.add_row("Google API Key", key_masked)
    table.add_row("Transcription Model", settings.transcription_model)
    table.add_row("Embedding Backend", settings.embedding_backend)
    table.add_row("Embedding Model", settings.embedding_model)
    table.add_row("Embedding Dimension", str(settings.embedding_dimension))
    table.add_row("Embedding Cache Size", str(settings.embedding_cache_size))
    table.add_row(
        "Retries / Base Delay",
        f"{settings.embedding_max_retries} / {settings.embedding_base_delay}s",
    )
    table.add_row("Request Timeout", f"{settings.request_timeout}s")
    table.add_row("Storage Path", str(settings.storage_path))
    table.add_row("Database Path", str(settings.database_path))

    console.print(table)


@app.command()
def version():
    """Show version information."""
    console.print(f"Synapse Notes v{__version__}")


def _print_notes(synapse: SynapseApp, note_ids: list[str]) -> None:
    table = Table(title="Notes")
    table.add_column("Note", style="cyan")
    table.add_column("Title")
    table.add_column("Embedding")
    table.add_column("Image", style="dim")
    table.add_column("Transcript", style="dim")

    status_styles = {
        "completed": "green",
        "failed": "red",
        "processing": "yellow",
        "pending": "yellow",
    }

    for note_id in note_ids:
        note = synapse.repository.get_note(note_id)
        if note is None:
            continue
        status = note.embedding_status.value
        style = status_styles.get(status, "white")
        transcript = note.transcript or ""
        table.add_row(
            note.id,
            note.title,
            f"[{style}]{status}[/{style}]",
            note.image_reference or "-",
            transcript[:60] + ("..." if len(transcript) > 60 else ""),
        )

    console.print(table)


@app.callback()
def main():
    """
    Synapse Notes - voice notes pipeline.

    Transcribes recordings, illustrates them, embeds them and
    links related notes by semantic similarity.
    """
    pass


if __name__ == "__main__":
    app()
