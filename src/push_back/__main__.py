"""CLI entry point for push-back."""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__, actions
from .core.config import ConfigManager, parse_files
from .core.exceptions import PushBackError, format_error_for_user
from .workflow import PushBackWorkflow


def setup_argparser() -> argparse.ArgumentParser:
    """Setup command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="push-back",
        description="Commit files changed by a workflow and push them back to the repository",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Inputs are normally provided by the Actions runner as INPUT_* variables;
flags given here take precedence.

Examples:
  push-back --message "Update generated docs" --files docs/
  push-back --message "Bump version" --target-branch release --force-push
        """,
    )
    parser.add_argument("--message", "-m", type=str, help="Commit message")
    parser.add_argument(
        "--files",
        "-f",
        action="append",
        help="File or directory to commit; repeat for more (default: all changes)",
    )
    parser.add_argument("--committer-name", type=str, help="Committer name")
    parser.add_argument("--committer-email", type=str, help="Committer email")
    parser.add_argument(
        "--force-push",
        action="store_true",
        default=None,
        help="Overwrite the remote branch even if it has new commits",
    )
    parser.add_argument("--target-branch", "-b", type=str, help="Branch to push to")
    parser.add_argument(
        "--repo-path", type=str, help="Working tree to commit from (default: GITHUB_WORKSPACE)"
    )
    parser.add_argument("--config", "-c", type=str, help="Settings file (YAML or JSON)")
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log every git command that is run"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _overrides_from_args(args: argparse.Namespace) -> dict:
    files = None
    if args.files:
        files = [pattern for value in args.files for pattern in parse_files(value)]
    return {
        "inputs": {
            "message": args.message,
            "files": files,
            "committer_name": args.committer_name,
            "committer_email": args.committer_email,
            "force_push": args.force_push,
            "target_branch": args.target_branch,
        },
        "environment": {"workspace": args.repo_path},
    }


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run push-back and report the result to the runner.

    Returns:
        Process exit code: 0 for every outcome, 1 on failure
    """
    parser = setup_argparser()
    args = parser.parse_args(argv)

    workflow_commands = actions.is_running_in_actions()
    actions.setup_logging(debug=args.verbose or actions.is_debug(), workflow_commands=workflow_commands)
    logger = logging.getLogger("push_back")

    try:
        manager = ConfigManager(config_path=args.config)
        manager.apply_overrides(_overrides_from_args(args))
        config = manager.validate()
        actions.set_secret(config.inputs.github_token)

        debug = args.verbose or config.environment.debug or config.settings.log_level == "DEBUG"
        handler = actions.setup_logging(debug=debug, workflow_commands=workflow_commands)
        if not debug:
            logging.getLogger().setLevel(config.settings.log_level)
            handler.setLevel(config.settings.log_level)
        logger.debug(f"Configuration: {manager.get_config_summary()}")

        result = PushBackWorkflow(config).run()
    except PushBackError as e:
        partial = getattr(e, "result", None)
        if partial is not None and partial.outcome is not None:
            actions.set_output("result", partial.outcome.value)
        actions.error(format_error_for_user(e))
        logger.debug("Failure details", exc_info=True)
        return 1
    except Exception as e:
        actions.error(format_error_for_user(e))
        logger.exception("Unexpected failure")
        return 1

    actions.set_output("result", result.outcome.value)
    logger.info(f"Result: {result.outcome.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
