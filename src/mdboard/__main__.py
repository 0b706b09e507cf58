"""CLI entry point for mdboard."""

import argparse
from pathlib import Path

from .config import Settings
from .logging import setup_logging
from .models.config import SyncPolicy


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--project",
        default=None,
        metavar="ID_OR_URL",
        help="Project node id (PVT_...) or URL, overriding mdboard.yml",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: <project-root>/mdboard.yml)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without changing anything",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="mdboard",
        description="Sync markdown stories with a GitHub Projects board",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=None,
        help="Path to project root containing mdboard.yml (default: current directory)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    push = subparsers.add_parser("push", help="Create or update board items from markdown")
    push.add_argument(
        "source",
        nargs="?",
        type=Path,
        default=None,
        help="Story file or directory (default: sync.stories_dir)",
    )
    push.add_argument(
        "--policy",
        type=SyncPolicy,
        choices=list(SyncPolicy),
        default=None,
        help="create-only (default) or full-sync",
    )
    _add_common_arguments(push)

    pull = subparsers.add_parser("pull", help="Export board items to story files")
    pull.add_argument(
        "target",
        nargs="?",
        type=Path,
        default=None,
        help="Output directory (default: sync.stories_dir)",
    )
    pull.add_argument("--story-id", default=None, help="Only export the story with this id")
    pull.add_argument(
        "--status",
        action="append",
        default=None,
        dest="statuses",
        help="Only export items in this status (repeatable; 'todo' means 'ready')",
    )
    pull.add_argument(
        "--single-file",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write the whole board as one story list document",
    )
    _add_common_arguments(pull)

    ids = subparsers.add_parser("ids", help="Suggest ids for stories written without one")
    ids.add_argument(
        "source",
        nargs="?",
        type=Path,
        default=None,
        help="Story file or directory (default: sync.stories_dir)",
    )
    ids.add_argument(
        "--check-board",
        action="store_true",
        help="Also avoid ids already used on the project board",
    )
    ids.add_argument(
        "--project",
        default=None,
        metavar="ID_OR_URL",
        help="Project node id (PVT_...) or URL, overriding mdboard.yml",
    )
    ids.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: <project-root>/mdboard.yml)",
    )

    init = subparsers.add_parser("init", help="Generate a default mdboard.yml")
    init.add_argument("project_url", nargs="?", default=None, help="Project URL to configure")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    settings_kwargs: dict = {}
    if args.project_root:
        settings_kwargs["project_root"] = args.project_root
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file
    if getattr(args, "config", None):
        settings_kwargs["config_file"] = args.config

    settings = Settings(**settings_kwargs)
    setup_logging(settings.verbose, settings.log_file)

    if args.command == "init":
        from .cli.generate import run_generate

        raise SystemExit(run_generate(settings.project_root, args.project_url))

    if args.command == "ids":
        from .cli.ids import run_ids

        exit_code = run_ids(
            settings.project_root,
            source=args.source,
            config_path=settings.config_file,
            project=args.project,
            check_board=args.check_board,
        )
        raise SystemExit(exit_code)

    if args.command == "push":
        from .cli.push import run_push

        exit_code = run_push(
            settings.project_root,
            source=args.source,
            config_path=settings.config_file,
            project=args.project,
            policy=args.policy,
            dry_run=args.dry_run,
            verbose=settings.verbose,
        )
        raise SystemExit(exit_code)

    from .cli.pull import run_pull

    exit_code = run_pull(
        settings.project_root,
        target=args.target,
        config_path=settings.config_file,
        project=args.project,
        story_id=args.story_id,
        statuses=args.statuses,
        single_file=args.single_file,
        dry_run=args.dry_run,
        verbose=settings.verbose,
    )
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
