"""
Command-line interface for the TargetProcess to GitHub migration tool.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from . import github_utils as ghu
from .assignees import AssigneeResolver, load_assignee_mapping
from .attachments import AttachmentMigrator
from .config import Settings
from .exceptions import ConfigError, MigrationError
from .issue_builder import EntityNormalizer, MarkdownifyConverter
from .issue_repository import DestinationIssueRepository
from .models import ISSUE_LEVELS, EntityType
from .orchestrator import MigrationOrchestrator
from .project_board import DestinationProjectBoard
from .target_process import TargetProcessClient
from .utils import setup_logging

if TYPE_CHECKING:
    from .orchestrator import MigrationResult

logger: logging.Logger = logging.getLogger(__name__)


def parse_types(value: str) -> list[EntityType]:
    """Parse a comma separated list of entity levels, e.g. ``Epic,UserStory``."""
    valid = {t.value.lower(): t for t in ISSUE_LEVELS}
    types: list[EntityType] = []
    for part in value.split(","):
        name = part.strip().lower()
        if not name:
            continue
        if name not in valid:
            msg = f"Unknown entity type {part.strip()!r}, expected one of: {', '.join(t.value for t in ISSUE_LEVELS)}"
            raise argparse.ArgumentTypeError(msg)
        types.append(valid[name])
    if not types:
        msg = "At least one entity type is required"
        raise argparse.ArgumentTypeError(msg)
    return types


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Import TargetProcess work items into GitHub issues")

    _ = parser.add_argument("--team-id", help="TargetProcess team id (default: $TP_TEAM_ID)")
    _ = parser.add_argument("--repo", help="GitHub repository path owner/repo (default: $GITHUB_REPO)")
    _ = parser.add_argument("--org", help="GitHub organization owning the project board (default: repository owner)")
    _ = parser.add_argument("--assignee-map", help="File of 'tp_email=github_username' lines")
    _ = parser.add_argument("--project-board", help="Exact title of the GitHub project to add issues to")
    _ = parser.add_argument("--estimate-field", help="Number field of the project board receiving the TP effort")
    _ = parser.add_argument("--branch", help="Branch receiving attachments (default: repository default branch)")
    _ = parser.add_argument(
        "--types",
        type=parse_types,
        default=list(ISSUE_LEVELS),
        help="Comma separated entity levels to migrate (default: Project,Epic,Feature,UserStory)",
    )
    _ = parser.add_argument(
        "--dry-run", action="store_true", help="Print the issues that would be created without writing to GitHub"
    )
    _ = parser.add_argument("--tp-pass-password", help="Path for the TargetProcess password in pass utility")
    _ = parser.add_argument(
        "--github-pass-token", help="Path for GitHub token in pass utility (default: github/cli/token)"
    )
    _ = parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    return parser.parse_args(argv)


def build_orchestrator(settings: Settings) -> MigrationOrchestrator:
    """Wire the clients of a run together."""
    tp_client = TargetProcessClient(settings.tp_base_url, settings.tp_username, settings.tp_password)
    github_client = ghu.get_client(settings.github_token)
    github_repo = ghu.get_repo(github_client, settings.github_repo)

    mapping = load_assignee_mapping(settings.assignee_map_path)
    resolver = AssigneeResolver(mapping) if settings.assignee_map_path else None
    board = DestinationProjectBoard(github_client, settings.org) if settings.board_name else None

    return MigrationOrchestrator(
        tp_client,
        EntityNormalizer(MarkdownifyConverter(), base_url=settings.tp_base_url),
        AttachmentMigrator(tp_client, github_repo, branch=settings.attachment_branch),
        DestinationIssueRepository(github_client, github_repo),
        resolver,
        team_id=settings.team_id,
        board=board,
        board_name=settings.board_name,
        estimate_field=settings.estimate_field,
    )


def _print_report(result: MigrationResult) -> None:
    report = result.report()
    print("\n" + "=" * 50)
    print("MIGRATION REPORT")
    print("=" * 50)
    print(f"Status: {'PASSED' if report['success'] else 'FAILED'}")
    for key, value in report["statistics"].items():
        print(f"  {key.replace('_', ' ').capitalize()}: {value}")
    if report["errors"]:
        print("Errors:")
        for error in report["errors"]:
            print(f"  - {error}")


def _print_previews(result: MigrationResult) -> None:
    previews: list[dict[str, Any]] = [asdict(preview) for preview in result.previews]
    print(json.dumps(previews, indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    verbose: bool = getattr(args, "verbose", False)
    setup_logging(verbose=verbose)

    try:
        settings = Settings.load(
            team_id=args.team_id,
            github_repo=args.repo,
            github_org=args.org,
            assignee_map_path=args.assignee_map,
            board_name=args.project_board,
            estimate_field=args.estimate_field,
            attachment_branch=args.branch,
            tp_password_pass_path=args.tp_pass_password,
            github_token_pass_path=args.github_pass_token,
        )
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")  # noqa: TRY400
        sys.exit(2)

    try:
        orchestrator = build_orchestrator(settings)
        result = orchestrator.run(dry_run=args.dry_run, types=args.types)
    except MigrationError:
        logger.exception("Migration failed")
        sys.exit(1)
    except Exception:
        logger.exception("Unexpected error during migration")
        sys.exit(1)

    if args.dry_run:
        _print_previews(result)
    else:
        _print_report(result)

    sys.exit(0 if result.success else 1)
