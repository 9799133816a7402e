"""CLI entry point for study-companion.

Usage:
  python -m study_companion serve [--port PORT] [--host HOST]
  python -m study_companion checkpoint --page N --total N
  python -m study_companion generate PDF --page N [--chapter-end]
  python -m study_companion outline PDF
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "checkpoint":
        _checkpoint(args[1:])
    elif command == "generate":
        _generate(args[1:])
    elif command == "outline":
        _outline(args[1:])
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, checkpoint, generate, outline")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _positional(args: list[str]) -> str | None:
    """First argument that is neither a flag nor a flag's value."""
    skip = False
    for a in args:
        if skip:
            skip = False
            continue
        if a.startswith("--"):
            skip = a not in ("--chapter-end",)
            continue
        return a
    return None


def _serve(args: list[str]):
    import uvicorn

    port = int(_parse_flag(args, "--port", "8766"))
    host = _parse_flag(args, "--host", "127.0.0.1")
    print(f"Starting Study Companion on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    uvicorn.run(
        "study_companion.app:app",
        host=host,
        port=port,
        reload=False,
        timeout_graceful_shutdown=5,
    )


def _checkpoint(args: list[str]):
    from study_companion.config import load_settings
    from study_companion.scheduler import decide, should_display

    page = int(_parse_flag(args, "--page", "0"))
    total = int(_parse_flag(args, "--total", "0"))
    state = decide(page, total)
    kind = state.kind.value if state.kind else "-"
    shown = should_display(state, load_settings())
    print(f"Page {page}/{total}: show={state.show} kind={kind} display={shown}")


def _generate(args: list[str]):
    logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

    from study_companion.chain import CATALOG
    from study_companion.config import load_settings
    from study_companion.documents import PdfDocument
    from study_companion.extractor import is_scan_like
    from study_companion.models import TriggerKind
    from study_companion.pipeline import GENERIC_FAILURE, run_checkpoint
    from study_companion.providers.registry import create_providers

    path = _positional(args)
    if path is None:
        print("Usage: generate PDF --page N [--chapter-end]")
        sys.exit(1)

    settings = load_settings()
    document = PdfDocument(path)
    page = min(int(_parse_flag(args, "--page", "1")), document.page_count)
    kind = TriggerKind.SECTION_END if "--chapter-end" in args else TriggerKind.PERIODIC
    providers = create_providers(list(CATALOG), settings)

    async def _run():
        scanned = await is_scan_like(document, min_chars=settings.scan_char_threshold)
        return await run_checkpoint(document, page, kind, settings, providers, is_scan_like=scanned)

    result = asyncio.run(_run())
    if result is None:
        print(GENERIC_FAILURE)
        sys.exit(1)
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))


def _outline(args: list[str]):
    from study_companion.documents import PdfDocument

    path = _positional(args)
    if path is None:
        print("Usage: outline PDF")
        sys.exit(1)
    document = PdfDocument(path)
    chapters = document.outline()
    if not chapters:
        print(f"No outline ({document.page_count} pages).")
        return
    for title, page in chapters:
        print(f"  p.{page:<5d} {title}")
    print(f"\nContent starts on page {document.content_start_page()}")


if __name__ == "__main__":
    main()
