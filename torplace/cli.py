"""CLI entry point for the placefile service."""

import argparse
import asyncio
import logging
import sys

from torplace.config.loader import load_config
from torplace.ingest import range_parser
from torplace.ingest.archive_client import UpstreamError
from torplace.ingest.range_parser import InvalidRangeError
from torplace.models.reporting import PipelineStats
from torplace.pipeline.placefile_pipeline import PlacefilePipeline
from torplace.reporting.formatters import format_stats_json

DEFAULT_CONFIG = "torplace.yaml"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="torplace",
        description="Archived tornado warnings as placefiles",
    )
    parser.add_argument(
        "--config", default=DEFAULT_CONFIG, help="Config YAML path"
    )

    sub = parser.add_subparsers(dest="command")

    # serve
    serve_p = sub.add_parser("serve", help="Run the HTTP service")
    serve_p.add_argument("--host", help="Bind address (overrides config)")
    serve_p.add_argument("--port", type=int, help="Port (overrides config)")

    # render
    render_p = sub.add_parser("render", help="Write one placefile and exit")
    render_p.add_argument("--start", required=True, help="First day, YYYY-MM-DD")
    render_p.add_argument("--end", required=True, help="Last day, YYYY-MM-DD")
    render_p.add_argument("--output", "-o", help="Output path (default stdout)")
    render_p.add_argument(
        "--stats", action="store_true", help="Print run counters as JSON to stderr"
    )

    # config show
    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display current config")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)

    if args.command == "serve":
        return _cmd_serve(config, args)
    elif args.command == "render":
        return _cmd_render(config, args)
    elif args.command == "config":
        return _cmd_config(config, args)
    else:
        parser.print_help()
        return 1


def _cmd_serve(config, args) -> int:
    import uvicorn

    from torplace.server import create_app

    host = args.host or config.server.host
    port = args.port or config.server.port
    uvicorn.run(create_app(config), host=host, port=port)
    return 0


def _cmd_render(config, args) -> int:
    try:
        interval = range_parser.parse({"start": args.start, "end": args.end})
    except InvalidRangeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    stats = PipelineStats(start=str(interval.start), end=str(interval.end))
    out = open(args.output, "w") if args.output else sys.stdout
    try:
        asyncio.run(_write_placefile(PlacefilePipeline(config), interval, stats, out))
    except UpstreamError as e:
        print(f"Error: upstream {e.reason}: {e}", file=sys.stderr)
        return 1
    finally:
        if out is not sys.stdout:
            out.close()

    if args.stats:
        print(format_stats_json(stats), file=sys.stderr)
    return 0


async def _write_placefile(pipeline, interval, stats, out) -> None:
    async for chunk in pipeline.run(interval, stats):
        out.write(chunk)


def _cmd_config(config, args) -> int:
    if args.config_command == "show":
        print(config.model_dump_json(indent=2))
        return 0
    else:
        print("Use: config show")
        return 1
