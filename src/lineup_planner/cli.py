"""Command-line interface for lineup-planner."""

import argparse
import logging
import os
import sys
from datetime import date
from pathlib import Path

from schemas.draft import DraftDocument
from schemas.issue import Issue

from lineup_planner.clients import ClientError, LineupClient
from lineup_planner.coordinator import SaveCoordinator
from lineup_planner.drafts import (
    draft_from_session,
    dump_draft,
    load_draft,
    new_draft,
    open_session,
    store_from_draft,
)
from lineup_planner.errors import LineupError
from lineup_planner.filters import content_type_label
from lineup_planner.flatplan import FlatplanRenderer
from lineup_planner.pages import format_range, parse_range
from lineup_planner.picker import PagePicker
from lineup_planner.store import AllocationStore
from lineup_planner.swap import drop, swap

DEFAULT_DRAFT_PATH = Path("./lineup-draft.json")
DEFAULT_FLATPLAN_PATH = Path("./flatplan.html")
DEFAULT_API_URL = os.environ.get("LINEUP_API_URL")
DEFAULT_API_KEY = os.environ.get("LINEUP_API_KEY")

# Failures reported as exit code 1 instead of a traceback
COMMAND_ERRORS = (LineupError, ClientError, ValueError, OSError)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def build_client(args: argparse.Namespace) -> LineupClient:
    if not args.api_url:
        raise ValueError("No backend URL: pass --api-url or set LINEUP_API_URL")
    config = {
        "base_url": args.api_url,
        "headers": {"User-Agent": "lineup-planner/1.0"},
    }
    if args.api_key:
        config["api_key"] = args.api_key
    return LineupClient(config)


def _read_draft(path: Path) -> DraftDocument:
    if not path.exists():
        raise FileNotFoundError(f"Draft not found: {path}")
    return load_draft(path)


def _write_store(draft: DraftDocument, store: AllocationStore, path: Path) -> None:
    draft.rows, draft.inserts = store.snapshot()
    dump_draft(draft, path)


def new_draft_command(args: argparse.Namespace) -> int:
    """Execute the new-draft command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    if args.draft.exists() and not args.force:
        logger.error(f"Draft already exists: {args.draft} (use --force to replace it)")
        return 1

    try:
        issue = Issue(
            magazine_id=args.magazine,
            issue_number=args.issue_number,
            template_pages=args.pages,
            theme=args.theme,
            distribution_month=args.distribution_month,
            design_start_date=args.design_start,
            sketch_close_date=args.sketch_close,
            print_date=args.print_date,
        )
        dump_draft(new_draft(issue, args.editor), args.draft)
    except COMMAND_ERRORS as e:
        logger.error(f"Failed to create draft: {e}")
        return 1

    logger.info(f"Created draft for issue {issue.issue_number} ({issue.template_pages} pages)")
    logger.info(f"  Output: {args.draft}")
    return 0


def open_command(args: argparse.Namespace) -> int:
    """Execute the open command."""
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    if args.draft.exists() and not args.force:
        logger.error(f"Draft already exists: {args.draft} (use --force to replace it)")
        return 1

    try:
        with build_client(args) as client:
            coordinator = SaveCoordinator.load(client, args.issue_id)
        dump_draft(draft_from_session(coordinator), args.draft)
    except COMMAND_ERRORS as e:
        logger.error(f"Failed to open issue {args.issue_id}: {e}")
        return 1

    logger.info(f"Opened issue {args.issue_id} into {args.draft}")
    return 0


def add_row_command(args: argparse.Namespace) -> int:
    """Execute the add-row command."""
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        draft = _read_draft(args.draft)
        store = store_from_draft(draft)
        row_id = store.add_row()
        store.update_row(
            row_id,
            content=args.content,
            content_type=args.type,
            notes=args.notes,
            source=args.source,
            supplier_ids=list(args.supplier),
            responsible_editor_id=args.responsible,
        )
        if args.pages:
            requested = parse_range(args.pages)
            accepted = store.assign_pages(row_id, requested)
            if accepted != requested:
                logger.warning(
                    f"Pages not assigned: {format_range(requested - accepted)}"
                )
        _write_store(draft, store, args.draft)
    except COMMAND_ERRORS as e:
        logger.error(f"Failed to add row: {e}")
        return 1

    logger.info(f"Added row {row_id}: {format_range(store.get_row(row_id).pages)}")
    return 0


def delete_row_command(args: argparse.Namespace) -> int:
    """Execute the delete-row command."""
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        draft = _read_draft(args.draft)
        store = store_from_draft(draft)
        store.delete_row(args.row_id)
        _write_store(draft, store, args.draft)
    except COMMAND_ERRORS as e:
        logger.error(f"Failed to delete row: {e}")
        return 1

    logger.info(f"Deleted row {args.row_id}")
    return 0


def assign_command(args: argparse.Namespace) -> int:
    """Execute the assign command.

    Pages are chosen through the page picker, so occupied pages are refused
    and the selection must be contiguous to be confirmed. With --drag the
    given range is toggled the way a drag across the picker grid would.
    """
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    if (args.pages is None) == (args.drag is None):
        logger.error("Specify either PAGES or --drag START END")
        return 1

    try:
        draft = _read_draft(args.draft)
        store = store_from_draft(draft)
        picker = PagePicker(store)
        picker.open(args.row_id)

        if args.drag is not None:
            start, end = args.drag
            picker.drag_start(start)
            picker.drag_end(end)
        else:
            wanted = parse_range(args.pages)
            for page in sorted(picker.selection ^ wanted):
                if not picker.click(page):
                    logger.warning(f"Page {page} is not available")

        if not picker.confirm():
            logger.error(picker.last_error or "Selection was not applied")
            return 1
        _write_store(draft, store, args.draft)
    except COMMAND_ERRORS as e:
        logger.error(f"Failed to assign pages: {e}")
        return 1

    logger.info(f"Row {args.row_id}: {format_range(store.get_row(args.row_id).pages)}")
    return 0


def swap_command(args: argparse.Namespace) -> int:
    """Execute the swap command."""
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        draft = _read_draft(args.draft)
        store = store_from_draft(draft)
        result = swap(store, args.row_a, args.row_b)
        if not result:
            logger.error(f"Swap rejected: {result.reason}")
            return 1
        _write_store(draft, store, args.draft)
    except COMMAND_ERRORS as e:
        logger.error(f"Failed to swap rows: {e}")
        return 1

    logger.info(f"Swapped pages of {args.row_a} and {args.row_b}")
    return 0


def drop_command(args: argparse.Namespace) -> int:
    """Execute the drop command."""
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        draft = _read_draft(args.draft)
        store = store_from_draft(draft)
        result = drop(store, args.row_id, args.page)
        if not result:
            logger.error(f"Drop rejected: {result.reason}")
            return 1
        _write_store(draft, store, args.draft)
    except COMMAND_ERRORS as e:
        logger.error(f"Failed to move row: {e}")
        return 1

    logger.info(f"Row {args.row_id}: {format_range(store.get_row(args.row_id).pages)}")
    return 0


def move_command(args: argparse.Namespace) -> int:
    """Execute the move command."""
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        draft = _read_draft(args.draft)
        store = store_from_draft(draft)
        store.move_row(store.index_of(args.row_id), args.index)
        _write_store(draft, store, args.draft)
    except (IndexError, *COMMAND_ERRORS) as e:
        logger.error(f"Failed to move row: {e}")
        return 1

    logger.info(f"Moved row {args.row_id} to position {args.index}")
    return 0


def show_command(args: argparse.Namespace) -> int:
    """Execute the show command."""
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        draft = _read_draft(args.draft)
        store = store_from_draft(draft)
    except COMMAND_ERRORS as e:
        logger.error(f"Failed to read draft: {e}")
        return 1

    issue = draft.issue
    logger.info(
        f"Issue {issue.issue_number} ({issue.id or 'not created'}, {issue.status}): "
        f"{store.total_defined_pages}/{store.template_pages} pages assigned"
    )
    for index, row in enumerate(store.rows):
        logger.info(
            f"  {index:>3}  {row.id:<12} {format_range(row.pages):<10} "
            f"{content_type_label(row.content_type):<14} {row.content}"
        )
    for insert in store.inserts:
        logger.info(f"  ins  {insert.id:<12} {content_type_label(insert.content_type):<14} {insert.content}")
    if store.free_pages:
        logger.info(f"  Free: {format_range(store.free_pages)}")
    return 0


def plan_command(args: argparse.Namespace) -> int:
    """Execute the plan command."""
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        draft = _read_draft(args.draft)
        with build_client(args) as client:
            coordinator = open_session(client, draft)
            lineup_plan, insert_plan = coordinator.plan()
            to_add, to_remove = coordinator.editor_changes()
    except COMMAND_ERRORS as e:
        logger.error(f"Failed to plan save: {e}")
        return 1

    if not coordinator.issue.is_created:
        logger.info("Issue will be created")
    logger.info(
        f"Lineup: {len(lineup_plan.to_create)} to create, "
        f"{len(lineup_plan.to_update)} to update, {len(lineup_plan.to_delete)} to delete"
    )
    logger.info(
        f"Inserts: {len(insert_plan.to_create)} to create, "
        f"{len(insert_plan.to_update)} to update, {len(insert_plan.to_delete)} to delete"
    )
    logger.info(f"Editors: {len(to_add)} to add, {len(to_remove)} to remove")
    for row_id in lineup_plan.skipped:
        logger.warning(f"  Row {row_id} is incomplete and will not be saved")
    return 0


def save_command(args: argparse.Namespace) -> int:
    """Execute the save command.

    The draft is rewritten even when the save fails part way, so that ids
    assigned by the backend are kept and a retry does not duplicate rows.
    """
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        draft = _read_draft(args.draft)
        with build_client(args) as client:
            coordinator = open_session(client, draft)
            try:
                report = coordinator.save(publish=args.publish)
            finally:
                dump_draft(draft_from_session(coordinator), args.draft)
    except COMMAND_ERRORS as e:
        logger.error(f"Failed to save lineup: {e}")
        return 1

    logger.info(f"Saved issue {report.issue_id} ({coordinator.issue.status})")
    logger.info(
        f"  Rows: {report.rows_created} created, {report.rows_updated} updated, "
        f"{report.rows_deleted} deleted, {report.rows_skipped} skipped"
    )
    if report.inserts_created or report.inserts_updated or report.inserts_deleted:
        logger.info(
            f"  Inserts: {report.inserts_created} created, "
            f"{report.inserts_updated} updated, {report.inserts_deleted} deleted"
        )
    return 0


def copy_lineup_command(args: argparse.Namespace) -> int:
    """Execute the copy-lineup command."""
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        draft = _read_draft(args.draft)
        store = store_from_draft(draft)
        with build_client(args) as client:
            added = store.copy_from(client.fetch_lineup(args.source_issue_id))
        _write_store(draft, store, args.draft)
    except COMMAND_ERRORS as e:
        logger.error(f"Failed to copy lineup: {e}")
        return 1

    logger.info(f"Copied {len(added)} rows from issue {args.source_issue_id}")
    return 0


def export_flatplan_command(args: argparse.Namespace) -> int:
    """Execute the export-flatplan command."""
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        draft = _read_draft(args.draft)
        store = store_from_draft(draft)
        FlatplanRenderer().export(draft.issue, store, args.output)
    except COMMAND_ERRORS as e:
        logger.error(f"Failed to export flatplan: {e}")
        return 1

    logger.info(f"  Output: {args.output}")
    return 0


def _add_backend_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--api-url",
        type=str,
        default=DEFAULT_API_URL,
        help="Backend base URL (default: $LINEUP_API_URL)",
    )
    parser.add_argument(
        "--api-key",
        type=str,
        default=DEFAULT_API_KEY,
        help="Backend API key (default: $LINEUP_API_KEY)",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        prog="lineup-planner",
        description="Plan and save magazine issue lineups",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--draft",
        type=Path,
        default=DEFAULT_DRAFT_PATH,
        help=f"Local draft file (default: {DEFAULT_DRAFT_PATH})",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
    )

    new_parser = subparsers.add_parser(
        "new-draft",
        help="Start a lineup for a new issue",
    )
    new_parser.add_argument(
        "--pages",
        type=int,
        required=True,
        help="Template page count (e.g. 52 or 68)",
    )
    new_parser.add_argument("--issue-number", type=int, default=1, help="Issue number (default: 1)")
    new_parser.add_argument("--magazine", type=str, default=None, help="Magazine id")
    new_parser.add_argument("--theme", type=str, default="", help="Issue theme")
    new_parser.add_argument(
        "--distribution-month",
        type=date.fromisoformat,
        help="First day of the distribution month (YYYY-MM-DD)",
    )
    new_parser.add_argument("--design-start", type=date.fromisoformat, help="Design start date")
    new_parser.add_argument("--sketch-close", type=date.fromisoformat, help="Sketch close date")
    new_parser.add_argument("--print-date", type=date.fromisoformat, help="Print date")
    new_parser.add_argument(
        "--editor",
        action="append",
        default=[],
        help="Editor id to associate with the issue (repeatable)",
    )
    new_parser.add_argument("--force", action="store_true", help="Replace an existing draft")
    new_parser.set_defaults(func=new_draft_command)

    open_parser = subparsers.add_parser(
        "open",
        help="Start a draft from an issue on the backend",
    )
    open_parser.add_argument("issue_id", help="Backend issue id")
    open_parser.add_argument("--force", action="store_true", help="Replace an existing draft")
    _add_backend_arguments(open_parser)
    open_parser.set_defaults(func=open_command)

    add_parser = subparsers.add_parser(
        "add-row",
        help="Append a row to the lineup",
    )
    add_parser.add_argument("--content", type=str, default="", help="Content title")
    add_parser.add_argument("--type", type=str, default=None, help="Content type")
    add_parser.add_argument("--pages", type=str, default=None, help="Pages, e.g. '6-10'")
    add_parser.add_argument("--notes", type=str, default="", help="Notes")
    add_parser.add_argument("--source", type=str, default="", help="Content source")
    add_parser.add_argument(
        "--supplier",
        action="append",
        default=[],
        help="Supplier id (repeatable, first is primary)",
    )
    add_parser.add_argument("--responsible", type=str, default=None, help="Responsible editor id")
    add_parser.set_defaults(func=add_row_command)

    delete_parser = subparsers.add_parser("delete-row", help="Remove a row from the lineup")
    delete_parser.add_argument("row_id", help="Row id")
    delete_parser.set_defaults(func=delete_row_command)

    assign_parser = subparsers.add_parser(
        "assign",
        help="Pick the pages of a row",
    )
    assign_parser.add_argument("row_id", help="Row id")
    assign_parser.add_argument("pages", nargs="?", default=None, help="Pages, e.g. '3-5'")
    assign_parser.add_argument(
        "--drag",
        type=int,
        nargs=2,
        metavar=("START", "END"),
        default=None,
        help="Toggle the range START..END as a drag would",
    )
    assign_parser.set_defaults(func=assign_command)

    swap_parser = subparsers.add_parser("swap", help="Exchange the pages of two rows")
    swap_parser.add_argument("row_a", help="First row id")
    swap_parser.add_argument("row_b", help="Second row id")
    swap_parser.set_defaults(func=swap_command)

    drop_parser = subparsers.add_parser(
        "drop",
        help="Drop a row onto a flatplan page",
        description="Move a row to a free page, or swap it with the row on that page.",
    )
    drop_parser.add_argument("row_id", help="Row id")
    drop_parser.add_argument("page", type=int, help="Target page")
    drop_parser.set_defaults(func=drop_command)

    move_parser = subparsers.add_parser("move", help="Move a row to a new lineup position")
    move_parser.add_argument("row_id", help="Row id")
    move_parser.add_argument("index", type=int, help="New zero-based position")
    move_parser.set_defaults(func=move_command)

    show_parser = subparsers.add_parser("show", help="Show the lineup")
    show_parser.set_defaults(func=show_command)

    plan_parser = subparsers.add_parser(
        "plan",
        help="Show what saving would change on the backend",
    )
    _add_backend_arguments(plan_parser)
    plan_parser.set_defaults(func=plan_command)

    save_parser = subparsers.add_parser("save", help="Save the lineup to the backend")
    save_parser.add_argument(
        "--publish",
        action="store_true",
        help="Mark the issue in progress instead of saving it as a draft",
    )
    _add_backend_arguments(save_parser)
    save_parser.set_defaults(func=save_command)

    copy_parser = subparsers.add_parser(
        "copy-lineup",
        help="Append another issue's lineup as new rows",
    )
    copy_parser.add_argument("source_issue_id", help="Issue to copy from")
    _add_backend_arguments(copy_parser)
    copy_parser.set_defaults(func=copy_lineup_command)

    export_parser = subparsers.add_parser(
        "export-flatplan",
        help="Render the flatplan as printable HTML",
    )
    export_parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_FLATPLAN_PATH,
        help=f"Output HTML file (default: {DEFAULT_FLATPLAN_PATH})",
    )
    export_parser.set_defaults(func=export_flatplan_command)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
