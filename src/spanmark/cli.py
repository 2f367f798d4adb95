"""Command-line interface for highlighting, restoring and backing up pages.

Usage:
    spanmark highlight page.html --url https://example.com/a --text "brown fox"
    spanmark restore page.html --url https://example.com/a -o annotated.html
    spanmark export page.html --url https://example.com/a -o backups/
    spanmark import page.html backup.json --url https://example.com/a
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from spanmark import setup_logging
from spanmark.anchoring.text_index import build_text_index
from spanmark.config import get_settings
from spanmark.document import HtmlDocument
from spanmark.errors import DecorationAttachFailed, ExportRejected
from spanmark.persistence import FileRepository
from spanmark.session import AnnotationSession

if TYPE_CHECKING:
    from collections.abc import Sequence

    from spanmark.config import Settings

console = Console()
logger = logging.getLogger(__name__)


def _open_session(
    args: argparse.Namespace, settings: Settings
) -> AnnotationSession:
    """Load the page, attach its repository and run the load pass."""
    data_dir = args.data_dir or settings.storage.data_dir
    document = HtmlDocument.from_file(args.page, url=args.url)
    session = AnnotationSession(
        document, repository=FileRepository(data_dir), settings=settings
    )
    summary = asyncio.run(session.load_when_ready())
    if summary.restored or summary.skipped:
        message = f"Restored [bold]{summary.restored}[/] saved highlight(s)"
        if summary.skipped:
            message += f", [yellow]{summary.skipped} no longer found[/]"
        console.print(message)
    return session


def _write_output(session: AnnotationSession, output: Path | None) -> None:
    if output is None:
        return
    output.write_text(session.document.html, encoding="utf-8")
    console.print(f"Wrote annotated page to [cyan]{output}[/]")


def _print_annotations(session: AnnotationSession) -> None:
    table = Table(title=f"Highlights on {session.document.url}")
    table.add_column("id", style="dim")
    table.add_column("color")
    table.add_column("text")
    table.add_column("comment")
    for annotation in session.manager:
        table.add_row(
            annotation.id,
            annotation.color,
            annotation.text[:60],
            annotation.comment[:40],
        )
    console.print(table)


def _cmd_highlight(args: argparse.Namespace, settings: Settings) -> int:
    session = _open_session(args, settings)
    index = build_text_index(session.document.root)
    text_range = index.range_of(args.text, occurrence=args.occurrence - 1)
    if text_range is None:
        console.print(f"[red]Text not found:[/] {args.text!r}")
        return 1
    try:
        annotation_id = session.manager.create(
            text_range, color=args.color, comment=args.comment
        )
    except DecorationAttachFailed as exc:
        console.print(f"[red]Could not highlight:[/] {exc}")
        return 1
    console.print(f"[green]Highlighted[/] {args.text!r} as [bold]{annotation_id}[/]")
    _write_output(session, args.output)
    return 0


def _cmd_restore(args: argparse.Namespace, settings: Settings) -> int:
    session = _open_session(args, settings)
    _print_annotations(session)
    _write_output(session, args.output)
    return 0


def _cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    session = _open_session(args, settings)
    try:
        artifact = session.export_artifact()
    except ExportRejected as exc:
        console.print(f"[yellow]{exc}[/]")
        return 1
    out_dir = args.output or Path.cwd()
    out_dir.mkdir(parents=True, exist_ok=True)
    target = out_dir / artifact.filename
    target.write_bytes(artifact.payload)
    console.print(
        f"Exported [bold]{artifact.count}[/] highlight(s) to [cyan]{target}[/]"
    )
    return 0


def _cmd_import(args: argparse.Namespace, settings: Settings) -> int:
    try:
        payload = args.file.read_bytes()
    except OSError as exc:
        console.print(f"[red]Could not read {args.file}:[/] {exc.strerror}")
        return 1
    session = _open_session(args, settings)
    result = session.import_artifact(payload)
    if not result.success:
        console.print(f"[red]{result.message}[/]")
        return 1
    console.print(f"[green]{result.message}[/]")
    _write_output(session, args.output)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spanmark",
        description="Durable text highlights and comments for HTML pages.",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("page", type=Path, help="HTML file to annotate")
    common.add_argument(
        "--url",
        default=None,
        help="Page address used to key saved highlights (default: file URI)",
    )
    common.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding saved highlights (default from settings)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    hl = sub.add_parser("highlight", parents=[common], help="Highlight text")
    hl.add_argument("--text", required=True, help="Exact text to highlight")
    hl.add_argument(
        "--occurrence", type=int, default=1, help="Which match to use (1-based)"
    )
    hl.add_argument("--color", default=None, help="Background color, e.g. #e3f2fd")
    hl.add_argument("--comment", default="", help="Comment to attach")
    hl.add_argument("-o", "--output", type=Path, default=None)
    hl.set_defaults(handler=_cmd_highlight)

    rs = sub.add_parser(
        "restore", parents=[common], help="Re-apply saved highlights"
    )
    rs.add_argument("-o", "--output", type=Path, default=None)
    rs.set_defaults(handler=_cmd_restore)

    ex = sub.add_parser("export", parents=[common], help="Write a backup file")
    ex.add_argument("-o", "--output", type=Path, default=None, help="Directory")
    ex.set_defaults(handler=_cmd_export)

    im = sub.add_parser("import", parents=[common], help="Restore from a backup")
    im.add_argument("file", type=Path, help="Backup file to import")
    im.add_argument("-o", "--output", type=Path, default=None)
    im.set_defaults(handler=_cmd_import)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the ``spanmark`` command."""
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.app.log_dir)
    if args.command == "highlight" and args.occurrence < 1:
        console.print("[red]--occurrence must be 1 or more[/]")
        return 2
    logger.info("Running %s on %s", args.command, args.page)
    return args.handler(args, settings)
