#!/usr/bin/env python3
"""Main entry point for generating the GitHub issues report."""

import argparse
import logging
import sys
from pathlib import Path

import yaml

from fetcher import fetch_all_issues
from renderer import render_json, render_markdown
from report import build_report

# Resolve paths relative to repo root
REPO_ROOT = Path(__file__).parent.parent
DEFAULT_CONFIG = REPO_ROOT / "config.yml"
DEFAULT_TEMPLATE = REPO_ROOT / "templates" / "report.md.j2"

log = logging.getLogger(__name__)

SECTION_KEYS = ["api", "issues", "output"]


def setup_logging(verbose: bool = False):
    """Configure logging for all modules."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        # stdout carries the report
        handlers=[logging.StreamHandler(sys.stderr)]
    )


def load_config(config_path: Path, required: bool = True) -> dict:
    """Load and validate config file.

    A missing file is only an error when it was asked for explicitly.
    """
    if not config_path.exists() and not required:
        config = {}
    else:
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError("Config must be a mapping")
    for key in SECTION_KEYS:
        if not isinstance(config.get(key) or {}, dict):
            raise ValueError(f"Config section '{key}' must be a mapping")
    if not isinstance(config.get("repositories") or [], list):
        raise ValueError("Config key 'repositories' must be a list")

    # Set defaults for optional sections
    for key in SECTION_KEYS:
        if config.get(key) is None:
            config[key] = {}
    if config.get("repositories") is None:
        config["repositories"] = []

    return config


def get_repositories(cli_repos: list[str], config: dict) -> list[str]:
    """Merge command line and configured repositories, dropping duplicates."""
    repos = [r.strip() for r in list(cli_repos) + list(config["repositories"])]
    return list(dict.fromkeys(r for r in repos if r))


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Report GitHub issues ordered by creation time and the day with most issues"
    )
    parser.add_argument(
        "repositories",
        nargs="*",
        metavar="OWNER/REPOSITORY",
        help="Repositories to report on (added to those in the config)",
    )
    parser.add_argument(
        "--config",
        help=f"Config file path (default: {DEFAULT_CONFIG.name} if present)",
    )
    parser.add_argument(
        "--format",
        choices=["json", "markdown"],
        help="Output format (default: json)",
    )
    parser.add_argument(
        "--template",
        default=str(DEFAULT_TEMPLATE),
        help="Template file path for markdown output",
    )
    parser.add_argument("--output", "-o", help="Write the report to this file instead of stdout")
    parser.add_argument(
        "--state",
        choices=["open", "closed", "all"],
        help="Issue state to fetch (default: open)",
    )
    parser.add_argument(
        "--include-pull-requests",
        action="store_true",
        help="Count pull requests as issues",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.verbose)

    # Load config
    config_path = Path(args.config) if args.config else DEFAULT_CONFIG
    try:
        config = load_config(config_path, required=bool(args.config))
    except (OSError, ValueError, yaml.YAMLError) as e:
        log.error(f"Config error: {e}")
        return 1

    if args.state:
        config["issues"]["state"] = args.state
    if args.include_pull_requests:
        config["issues"]["include_pull_requests"] = True

    repositories = get_repositories(args.repositories, config)
    if not repositories:
        log.warning("No repositories requested")
    log.info(f"Repositories: {', '.join(repositories)}")

    # Fetch issues
    log.info("Fetching issues...")
    raw_by_repo, failed = fetch_all_issues(repositories, config)
    if repositories and len(failed) == len(repositories):
        log.error("Could not fetch any of the requested repositories")
        return 1

    # Build report
    report = build_report(raw_by_repo, repositories)
    if report.skipped:
        log.warning(f"{len(report.skipped)} malformed issues were left out of the report")

    output_format = args.format or config["output"].get("format", "json")
    if output_format == "markdown":
        output = render_markdown(report, Path(args.template), repositories)
    else:
        output = render_json(report)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(output + "\n")
        log.info(f"Output written to: {output_path}")
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
