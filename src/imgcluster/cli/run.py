"""imgcluster run command."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from imgcluster.models.config import ClusterConfig, ClusterMode, HashMode

console = Console()


def run(
    links_file: str = typer.Argument(..., help="JSON array or one-per-line list of image links"),
    cache: str = typer.Option("./hashes.jsonl", "-c", "--cache", help="Fingerprint cache path"),
    output: str = typer.Option("./result.json", "-o", "--output", help="Cluster result path"),
    report_path: Optional[str] = typer.Option(
        "./report.html", "--report", help="HTML report path (empty to skip)"
    ),
    rebuild: Optional[bool] = typer.Option(
        None,
        "--rebuild/--reuse-cache",
        help="Rebuild the fingerprint cache or reuse it (asks when omitted)",
    ),
    hash_mode: HashMode = typer.Option(
        HashMode.SEQUENTIAL, "--hash-mode", help="Join and hash one at a time, or all at once"
    ),
    cluster_mode: ClusterMode = typer.Option(
        ClusterMode.GREEDY, "--cluster-mode", help="Greedy scan-order partition or transitive"
    ),
    threshold: float = typer.Option(
        0.90,
        "--threshold",
        min=0.0,
        max=1.0,
        help="Override the 0.90 cut-off (similarity must be strictly above it). "
        "Non-default values change which links are grouped.",
    ),
    attempts: int = typer.Option(5, "--attempts", min=1, help="Fetch attempts per link"),
    timeout: float = typer.Option(3.0, "--timeout", help="Connect and read timeout (seconds)"),
    max_fetch_workers: Optional[int] = typer.Option(
        None, "--max-fetch-workers", min=1, help="Cap concurrent fetches (default: all at once)"
    ),
    hash_workers: Optional[int] = typer.Option(
        None, "--hash-workers", min=1, help="Cap concurrent hashing in parallel mode"
    ),
    hash_size: int = typer.Option(8, "--hash-size", min=2, help="pHash size (bits = size^2)"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging"),
) -> None:
    """Fetch, fingerprint and cluster a list of image links."""
    from imgcluster.cli.prompt import y_or_n
    from imgcluster.cli.report import write_report
    from imgcluster.io.cache_io import CacheError
    from imgcluster.io.links_io import LinksError, read_links
    from imgcluster.log import setup_logging
    from imgcluster.pipeline.runner import run_pipeline

    setup_logging(verbose)

    try:
        links = read_links(links_file)
    except LinksError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)
    console.print(f"Loaded [bold]{len(links):,}[/bold] links from {links_file}")

    config = ClusterConfig(
        connect_timeout=timeout,
        read_timeout=timeout,
        max_attempts=attempts,
        max_fetch_workers=max_fetch_workers,
        hash_mode=hash_mode,
        hash_workers=hash_workers,
        hash_size=hash_size,
        cluster_mode=cluster_mode,
        similarity_threshold=threshold,
        cache_path=cache,
        result_path=output,
        report_path=report_path or None,
    )

    if threshold != ClusterConfig().similarity_threshold:
        console.print(
            f"[yellow]Using non-default similarity threshold {threshold:.2f} (default 0.90)[/yellow]"
        )

    if rebuild is None:
        rebuild = y_or_n(f"Build new {cache}")
    if not rebuild:
        console.print(f"Ok, using old {cache} file.")

    try:
        result = run_pipeline(links, config, rebuild=rebuild)
    except CacheError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)

    console.print()
    console.print("[bold green]Clustering complete![/bold green]")
    console.print(f"  Links: [bold]{result.total_links:,}[/bold]")
    console.print(f"  Hashed: [bold]{result.hashed:,}[/bold]")
    if result.absent:
        console.print(f"  Not processed: [red]{result.absent:,}[/red]")
    console.print(
        f"  Clusters: [bold]{len(result.clusters):,}[/bold] "
        f"covering {result.clustered_links:,} links"
    )
    console.print(f"  Result: {config.result_path}")

    if config.report_path:
        write_report(result.clusters, config.report_path)
        console.print(f"  Report: {config.report_path}")
