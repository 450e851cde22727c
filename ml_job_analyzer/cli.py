# cli.py
import argparse
import json
import sys
from pathlib import Path

import urllib3
from requests.exceptions import RequestException
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ml_job_analyzer.api import build_service_map
from ml_job_analyzer.api import estimate_model_memory_limit
from ml_job_analyzer.config.settings import Settings
from ml_job_analyzer.estimator_service import ModelMemoryLimitError
from ml_job_analyzer.utils.conversions import convert_dt_to_ms
from ml_job_analyzer.utils.logging import configure_logging

urllib3.disable_warnings()

console = Console()


def _read_json(path: str):
    with Path(path).open(encoding="utf-8") as fh:
        return json.load(fh)


def _estimate(args: argparse.Namespace, settings: Settings) -> None:
    job = _read_json(args.job_config)
    # Accept a full job config as well as a bare analysis_config
    analysis_config = job.get("analysis_config", job)
    job_id = args.job_id or job.get("job_id")
    query = _read_json(args.query) if args.query else None

    console.rule(f"[bold magenta]Estimating model memory limit: {job_id or args.index}[/]")
    with console.status("[bold green]Querying cardinalities and estimate..."):
        result = estimate_model_memory_limit(
            analysis_config=analysis_config,
            index_pattern=args.index,
            time_field_name=args.time_field,
            earliest_ms=convert_dt_to_ms(args.earliest),
            latest_ms=convert_dt_to_ms(args.latest),
            query=query,
            allow_mml_greater_than_max=args.allow_greater_than_max,
            base_url=args.base_url,
            domain_name=args.domain_name,
            sink_path=args.sink_path,
            log_path=args.log_path,
            job_id=job_id,
            settings=settings,
        )

    if args.json:
        console.print_json(json.dumps(result.to_dict()))
        return

    table = Table(title="Model Memory Limit", show_header=False, box=None)
    table.add_column("Metric", style="cyan bold")
    table.add_column("Value", style="green")
    table.add_row("Model Memory Limit", result.model_memory_limit)
    table.add_row("Estimated Model Memory Limit", f"[yellow]{result.estimated_model_memory_limit}[/]")
    table.add_row("Max Model Memory Limit", result.max_model_memory_limit or "[dim]not set[/]")
    console.print(Panel(table, expand=False, border_style="green"))

    if result.model_memory_limit != result.estimated_model_memory_limit:
        console.print("[bold yellow]The estimate was capped at the cluster's max_model_memory_limit.[/]")


def _service_map(args: argparse.Namespace, settings: Settings) -> None:
    elements = _read_json(args.elements)
    if isinstance(elements, dict):
        elements = elements.get("elements", [])

    result = build_service_map(
        elements, width=args.width, height=args.height, service_name=args.service_name
    )
    output = json.dumps(result, indent=2)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        console.print(f"[blue]Wrote service map to {args.output}[/]")
    else:
        console.print_json(output)

    nodes = [e for e in result["elements"] if e["group"] == "nodes"]
    console.print(
        f"[bold cyan]{len(nodes)} nodes, {len(result['elements']) - len(nodes)} edges, "
        f"roots: {', '.join(result['layout']['roots'] or []) or '-'}[/]"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ML job memory estimation and service map CLI")
    parser.add_argument("--config", type=str, help="Path to a YAML configuration file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    estimate = subparsers.add_parser(
        "estimate", help="Estimate the model memory limit of an anomaly detection job"
    )
    estimate.add_argument(
        "--job-config", type=str, required=True, help="JSON file with the job or its analysis_config"
    )
    estimate.add_argument("--index", type=str, required=True, help="Index pattern of the source data")
    estimate.add_argument("--time-field", type=str, required=True, help="Time field of the source data")
    estimate.add_argument(
        "--earliest", type=str, required=True, help="Start of the time range (ISO 8601 or epoch ms)"
    )
    estimate.add_argument(
        "--latest", type=str, required=True, help="End of the time range (ISO 8601 or epoch ms)"
    )
    estimate.add_argument("--query", type=str, help="JSON file with the datafeed query")
    estimate.add_argument("--job-id", type=str, help="Job id stored with the saved estimate")
    estimate.add_argument("--base-url", type=str, help="Elasticsearch base URL")
    estimate.add_argument(
        "--domain-name", type=str, help="AWS OpenSearch domain name (to fetch the endpoint)"
    )
    estimate.add_argument(
        "--allow-greater-than-max",
        action="store_true",
        help="Do not cap the estimate at the cluster's max_model_memory_limit",
    )
    estimate.add_argument(
        "--sink-path",
        type=str,
        help="Path to save estimation parquet file (e.g., s3://bucket/path)",
    )
    estimate.add_argument(
        "--log-path",
        type=str,
        help="Path to save estimation logs (e.g., s3://bucket/path)",
    )
    estimate.add_argument("--json", action="store_true", help="Print the result as JSON")
    estimate.set_defaults(func=_estimate)

    service_map = subparsers.add_parser(
        "service-map", help="Lay out service map elements for a Cytoscape front end"
    )
    service_map.add_argument(
        "--elements", type=str, required=True, help="JSON file with Cytoscape element definitions"
    )
    service_map.add_argument("--width", type=float, required=True, help="Container width in pixels")
    service_map.add_argument("--height", type=float, required=True, help="Container height in pixels")
    service_map.add_argument("--service-name", type=str, help="Service to highlight and center on")
    service_map.add_argument("--output", type=str, help="File to write the Cytoscape JSON to")
    service_map.set_defaults(func=_service_map)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        settings = Settings.load(args.config)
    except (OSError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", style="red")
        sys.exit(1)
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        args.func(args, settings)
    except (ModelMemoryLimitError, RequestException, ValueError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", style="red")
        sys.exit(1)


if __name__ == "__main__":
    main()
