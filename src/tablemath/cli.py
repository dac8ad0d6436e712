"""Command-line interface for tablemath."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import uvicorn

from .config import settings


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="tablemath - formulas for pipe-delimited tables in markdown documents"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Server command
    server_parser = subparsers.add_parser("serve", help="Start the web server")
    server_parser.add_argument(
        "--host", default=settings.host, help=f"Host to bind to (default: {settings.host})"
    )
    server_parser.add_argument(
        "--port", type=int, default=settings.port, help=f"Port to bind to (default: {settings.port})"
    )
    server_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    # Index command
    index_parser = subparsers.add_parser(
        "index", help="Recalculate every document in a vault and print the index"
    )
    index_parser.add_argument(
        "vault", nargs="?", type=Path, default=settings.vault_path, help="Vault directory"
    )

    # Recalc command
    recalc_parser = subparsers.add_parser(
        "recalc", help="Print a document with its tables computed"
    )
    recalc_parser.add_argument("file", type=Path, help="Markdown file to recalculate")

    # Eval command
    eval_parser = subparsers.add_parser("eval", help="Evaluate a single formula")
    eval_parser.add_argument("formula", help='Formula, e.g. "=2+3*4" or \'=NOTE("Budget").total\'')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or settings.debug) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        run_server(args.host, args.port, args.reload)
    elif args.command == "index":
        asyncio.run(run_index(args.vault))
    elif args.command == "recalc":
        asyncio.run(run_recalc(args.file))
    elif args.command == "eval":
        sys.exit(asyncio.run(run_eval(args.formula)))
    else:
        parser.print_help()
        sys.exit(1)


def run_server(host: str, port: int, reload: bool):
    """Run the web server."""
    uvicorn.run(
        "tablemath.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


def _make_service(vault: Path):
    from .documents import VaultDocumentSource
    from .engine import TableMathService

    return TableMathService(source=VaultDocumentSource(vault))


async def run_index(vault: Path):
    """Index a vault and print the resulting variables."""
    service = _make_service(vault)
    await service.initialize()
    try:
        count = await service.index_all()
        print(json.dumps(service.index.to_dict(), indent=2))
        print(f"Recalculated {count} documents", file=sys.stderr)
    finally:
        await service.shutdown()


async def run_recalc(path: Path):
    """Print a document with rendered tables; the file itself is not modified."""
    service = _make_service(path.parent)
    await service.initialize()
    try:
        text = path.read_text(encoding="utf-8")
        result = await service.recalculate_text(path.stem, text)
        print("\n".join(result.render(text.split("\n"))))
    finally:
        await service.shutdown()


async def run_eval(formula: str) -> int:
    """Evaluate a formula against the persisted index."""
    service = _make_service(settings.vault_path)
    await service.initialize()
    try:
        value, display = service.evaluate(formula)
    finally:
        await service.shutdown()

    if value is None:
        print(f"{formula}: no value", file=sys.stderr)
        return 1
    print(display)
    return 0


if __name__ == "__main__":
    main()
