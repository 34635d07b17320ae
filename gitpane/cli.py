#!/usr/bin/env python3
"""gitpane CLI entrypoint."""

import sys
import json
import logging
import argparse
from pathlib import Path

from gitpane import git
from gitpane.git import GitPaneError, NotARepositoryError, RepositoryLocator
from gitpane.dispatcher import Dispatcher
from gitpane.lib.config import (
    GitPaneConfig,
    load_config,
    get_saved_repository,
    save_repository,
    clear_saved_repository,
)

logger = logging.getLogger(__name__)


def build_locator(args, config: GitPaneConfig) -> RepositoryLocator:
    """Create the locator, seeded from --repo or the saved repository."""
    locator = RepositoryLocator(git_binary=config.git_binary, timeout=config.timeout)

    if args.repo:
        # Explicit choice must be valid; let the error surface
        locator.set_root(args.repo)
        return locator

    saved = get_saved_repository(config.state_dir)
    if saved:
        try:
            locator.set_root(saved)
        except NotARepositoryError as e:
            logger.warning(f"Saved repository is no longer usable, forgetting it: {e}")
            clear_saved_repository(config.state_dir)
    return locator


def cmd_status(args, locator: RepositoryLocator, config: GitPaneConfig) -> int:
    entries = git.get_status(locator)

    if args.json:
        print(json.dumps({"files": [e.to_payload() for e in entries]}, indent=2))
        return 0

    if not entries:
        print("Nothing to commit, working tree clean")
        return 0

    working, staged = git.split_by_stage(entries)
    for title, group in (("Staged changes", staged), ("Changes", working)):
        if not group:
            continue
        print(f"{title}:")
        for entry in group:
            print(f"  [{entry.status_code}] {entry.kind.value:<10} {entry.display_path}")
        print()
    return 0


def cmd_diff(args, locator: RepositoryLocator, config: GitPaneConfig) -> int:
    result = git.get_diff(locator, args.path, staged=args.staged, is_untracked=args.untracked)
    if result.diff_text:
        print(result.diff_text, end="" if result.diff_text.endswith("\n") else "\n")
    else:
        print("No differences")
    return 0


def cmd_stage(args, locator: RepositoryLocator, config: GitPaneConfig) -> int:
    if args.all:
        git.stage_all(locator)
    elif args.paths:
        git.stage_files(locator, args.paths)
    else:
        print("ERROR: Give paths to stage or --all")
        return 2
    return 0


def cmd_unstage(args, locator: RepositoryLocator, config: GitPaneConfig) -> int:
    if args.all:
        git.unstage_all(locator)
    elif args.paths:
        git.unstage_files(locator, args.paths)
    else:
        print("ERROR: Give paths to unstage or --all")
        return 2
    return 0


def cmd_discard(args, locator: RepositoryLocator, config: GitPaneConfig) -> int:
    git.discard_changes(locator, args.path, is_untracked=args.untracked)
    print(f"Discarded changes to {args.path}")
    return 0


def cmd_commit(args, locator: RepositoryLocator, config: GitPaneConfig) -> int:
    result = git.commit(locator, args.message)
    print(result.message)
    return 0


def cmd_repo(args, locator: RepositoryLocator, config: GitPaneConfig) -> int:
    """Show, select, or forget the repository."""
    if args.clear:
        clear_saved_repository(config.state_dir)
        print("Forgot saved repository.")
        return 0

    if args.path:
        root = locator.set_root(args.path)
        save_repository(config.state_dir, root)
        print(f"Now using repository: {root}")
        return 0

    root = locator.current()
    if root:
        print(f"Current repository: {root}")
    else:
        print("No repository. Use 'gitpane repo <path>' to select one.")
    return 0


def remember_repository(state_dir: Path, root: Path) -> None:
    """Persist a selection; the selection itself stands even if this fails."""
    try:
        save_repository(state_dir, root)
    except OSError as e:
        logger.warning(f"Could not save selected repository {root}: {e}")


def cmd_serve(args, locator: RepositoryLocator, config: GitPaneConfig) -> int:
    dispatcher = Dispatcher(
        locator,
        on_repository_selected=lambda root: remember_repository(config.state_dir, root),
    )
    logger.info("Serving requests on stdin")
    dispatcher.serve(sys.stdin, sys.stdout)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='gitpane', description='Git status, diff, stage and commit')
    parser.add_argument('--config', '-c', type=Path, help='KEY=value config file')
    parser.add_argument('--repo', '-r', help='Repository directory (default: saved or current)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # gitpane status
    p_status = subparsers.add_parser('status', help='Show staged and unstaged files')
    p_status.add_argument('--json', action='store_true', help='Print status entries as JSON')
    p_status.set_defaults(func=cmd_status)

    # gitpane diff
    p_diff = subparsers.add_parser('diff', help='Show diff for a file')
    p_diff.add_argument('path', help='Repository-relative path')
    p_diff.add_argument('--staged', action='store_true', help='Diff the index against HEAD')
    p_diff.add_argument('--untracked', action='store_true', help='File is untracked (show as all-new)')
    p_diff.set_defaults(func=cmd_diff)

    # gitpane stage
    p_stage = subparsers.add_parser('stage', help='Stage files')
    p_stage.add_argument('paths', nargs='*', help='Paths to stage')
    p_stage.add_argument('--all', '-a', action='store_true', help='Stage everything')
    p_stage.set_defaults(func=cmd_stage)

    # gitpane unstage
    p_unstage = subparsers.add_parser('unstage', help='Unstage files (worktree untouched)')
    p_unstage.add_argument('paths', nargs='*', help='Paths to unstage')
    p_unstage.add_argument('--all', '-a', action='store_true', help='Unstage everything')
    p_unstage.set_defaults(func=cmd_unstage)

    # gitpane discard
    p_discard = subparsers.add_parser('discard', help='Discard worktree changes (irreversible)')
    p_discard.add_argument('path', help='Path to discard')
    p_discard.add_argument('--untracked', action='store_true', help='Delete an untracked path')
    p_discard.set_defaults(func=cmd_discard)

    # gitpane commit
    p_commit = subparsers.add_parser('commit', help='Commit staged changes')
    p_commit.add_argument('--message', '-m', required=True, help='Commit message')
    p_commit.set_defaults(func=cmd_commit)

    # gitpane repo
    p_repo = subparsers.add_parser('repo', help='Show/select the repository')
    p_repo.add_argument('path', nargs='?', help='Directory inside the repository to use')
    p_repo.add_argument('--clear', action='store_true', help='Forget the saved repository')
    p_repo.set_defaults(func=cmd_repo)

    # gitpane serve
    p_serve = subparsers.add_parser('serve', help='Answer JSON-line requests on stdin/stdout')
    p_serve.set_defaults(func=cmd_serve)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        return 2

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        locator = build_locator(args, config)
        return args.func(args, locator, config)
    except GitPaneError as e:
        print(f"ERROR: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
