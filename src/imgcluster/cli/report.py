"""imgcluster info and report commands."""

from __future__ import annotations

import re
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from imgcluster.models.fingerprint import Cluster
from imgcluster.utils import escape_html

console = Console()

_JPG_SUFFIX = re.compile(r"\.jpg", re.IGNORECASE)


def post_url(img_url: str) -> str:
    """Page URL for an image link (imgur style: the image URL without ``.jpg``)."""
    return _JPG_SUFFIX.sub("", img_url)


def _image_tile(img_url: str) -> str:
    esc = escape_html
    return f"<a href='{esc(post_url(img_url))}'><img src='{esc(img_url)}'/></a>"


def render_report(clusters: list[Cluster]) -> str:
    """One bordered block per cluster: the head image first, then its members."""
    blocks = "".join(
        "<div style='border: double'>"
        + _image_tile(c.head)
        + " ".join(_image_tile(m) for m in c.members)
        + "<br/></div>"
        for c in clusters
    )
    return f"<html><body>{blocks}</body></html>"


def write_report(clusters: list[Cluster], output: str | Path) -> None:
    Path(output).write_text(render_report(clusters), encoding="utf-8")


def report(
    result: str = typer.Option("./result.json", "-r", "--result", help="Cluster result JSON"),
    output: str = typer.Option("./report.html", "-o", "--output", help="Output HTML path"),
) -> None:
    """Render a cluster result as an HTML page of image tiles."""
    from imgcluster.io.result_io import load_clusters

    if not Path(result).exists():
        console.print(f"[red]Error: {result} does not exist[/red]")
        raise typer.Exit(1)

    clusters = load_clusters(result)
    write_report(clusters, output)
    console.print(f"[bold green]Report saved to {output}[/bold green] ({len(clusters):,} clusters)")


def info(
    cache: str = typer.Option("./hashes.jsonl", "-c", "--cache", help="Fingerprint cache path"),
) -> None:
    """Show a quick summary of a fingerprint cache."""
    from imgcluster.io.cache_io import CacheError, load_cache

    try:
        meta, table = load_cache(cache)
    except CacheError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)

    hashed = sum(1 for fp in table.values() if fp is not None)

    summary = Table(title="Fingerprint Cache", show_header=False, border_style="blue")
    summary.add_column("Key", style="bold")
    summary.add_column("Value")
    summary.add_row("Links", f"{len(table):,}")
    summary.add_row("Hashed", f"{hashed:,}")
    summary.add_row("Absent", f"{len(table) - hashed:,}")
    summary.add_row("Hash size", str(meta.hash_size))
    summary.add_row("Schema", str(meta.schema_version))
    summary.add_row("Created", meta.created_at)

    console.print(summary)
