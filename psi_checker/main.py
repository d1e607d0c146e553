#!/usr/bin/env python3
"""
PageSpeed Insights checker.

Usage examples:
  psi-checker analyze example.com --slugs slugs.txt --strategy desktop --export data markdown
  psi-checker interactive
  psi-checker sessions list
  psi-checker sessions run 1 --export markdown
  psi-checker init

Exit code 0 on success, 1 on any input, validation or runtime error.
"""
import argparse
import asyncio
import logging
import sys
import webbrowser
from pathlib import Path
from typing import List, Optional, Sequence

from . import __version__
from .config import Settings, find_rc_file, get_settings, load_rc_file
from .display import ProgressTracker, show_failure, show_results, show_sessions, show_threshold_alerts
from .errors import ConfigError, PageSpeedError, SessionNotFoundError
from .interactive import ask_to_open_report, get_analysis_config, get_export_preferences
from .schemas import AnalysisResult, BatchOutcome, Session, Strategy
from .services.batch import analyze_urls
from .services.psi import PageSpeedClient
from .services.report import ExportService
from .services.session import SessionStore, find_session
from .validator import (
    EXPORT_FORMATS,
    STRATEGIES,
    create_config_template,
    create_slug_template,
    normalize_url,
    resolve_slugs,
    validate_export_formats,
)

logger = logging.getLogger("psi_checker")


def configure_logging(settings: Settings, verbose: bool = False):
    level = logging.DEBUG if verbose else getattr(logging, settings.LOG_LEVEL.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def require_api_key(settings: Settings) -> str:
    if not settings.PAGESPEED_API_KEY:
        raise ConfigError("Missing API key in .env (PAGESPEED_API_KEY)")
    return settings.PAGESPEED_API_KEY


async def run_batch(settings: Settings, base_url: str, slugs: Sequence[str], strategy: Strategy, show_progress: bool = True) -> BatchOutcome:
    progress = ProgressTracker() if show_progress else None
    async with PageSpeedClient(require_api_key(settings), timeout=settings.REQUEST_TIMEOUT) as client:
        return await analyze_urls(base_url, slugs, strategy, client, progress=progress, on_failure=show_failure)


def open_report(path: Path):
    webbrowser.open(path.resolve().as_uri())


def handle_exports(exporter: ExportService, results: List[AnalysisResult], formats: Sequence[str], file_name: Optional[str] = None, open_after: bool = False):
    if "data" in formats:
        json_out, csv_out = exporter.export_data(results)
        print("\n📁 Results exported:")
        print(f"    {json_out}")
        print(f"    {csv_out}")

    if "markdown" in formats:
        report_path = exporter.generate_markdown_report(results, file_name)
        print("\n📝 Markdown report generated:")
        print(f"    {report_path}")
        if open_after:
            open_report(report_path)
        else:
            print(f"📄 Markdown report saved to: {report_path}")


def cmd_analyze(args, settings: Settings) -> int:
    rc = None
    rc_path = find_rc_file(args.config)
    if rc_path:
        rc = load_rc_file(rc_path)
        logger.debug("Loaded config file %s", rc_path)

    url = args.url or (rc.base_url if rc else None)
    slug_file = args.slugs or (rc.slugs if rc else None)
    strategy = args.strategy or (rc.strategy if rc else None) or "mobile"
    formats = validate_export_formats(args.export or (rc.export if rc else None) or [])
    results_dir = rc.output if rc and rc.output else None

    if not url:
        raise ConfigError("Base URL is required. Use --help for usage information.")

    base_url = normalize_url(url)
    slugs = resolve_slugs(slug_file)
    require_api_key(settings)

    if not args.silent:
        print("\n🚀 Enhanced PageSpeed Insights Checker\n")
        print(f"📊 Testing {len(slugs)} URL(s) with {strategy} strategy...\n")

    outcome = asyncio.run(run_batch(settings, base_url, slugs, strategy, show_progress=not args.silent))

    if not args.silent:
        show_results(outcome.results, strategy, settings)
        show_threshold_alerts(outcome.results, settings)

    handle_exports(ExportService(settings, results_dir), outcome.results, formats, args.filename, args.open)

    if not args.silent:
        print("\n✨ Analysis complete!\n")
    return 0


def cmd_interactive(args, settings: Settings) -> int:
    print("\n🚀 Enhanced PageSpeed Insights Checker (Interactive Mode)\n")
    require_api_key(settings)
    store = SessionStore(settings.SESSIONS_FILE, settings.MAX_SESSIONS)

    config = get_analysis_config(store.load())
    if config.is_new_session:
        store.save(Session(base_url=config.base_url, slugs=config.slugs, strategy=config.strategy))

    print(f"\n📊 Testing {len(config.slugs)} URL(s) with {config.strategy} strategy...\n")
    outcome = asyncio.run(run_batch(settings, config.base_url, config.slugs, config.strategy))

    show_results(outcome.results, config.strategy, settings)
    show_threshold_alerts(outcome.results, settings)

    formats = get_export_preferences()
    exporter = ExportService(settings)
    if "data" in formats:
        handle_exports(exporter, outcome.results, ["data"])
    if "markdown" in formats:
        report_path = exporter.generate_markdown_report(outcome.results)
        print("\n📝 Markdown report generated:")
        print(f"    {report_path}")
        if ask_to_open_report():
            open_report(report_path)

    print("\n✨ Analysis complete!\n")
    return 0


def cmd_sessions_list(args, settings: Settings) -> int:
    show_sessions(SessionStore(settings.SESSIONS_FILE, settings.MAX_SESSIONS).load())
    return 0


def cmd_sessions_run(args, settings: Settings) -> int:
    sessions = SessionStore(settings.SESSIONS_FILE, settings.MAX_SESSIONS).load()
    session = find_session(sessions, args.name)
    if session is None:
        raise SessionNotFoundError('Session not found. Use "psi-checker sessions list" to see available sessions.')

    print("\n🚀 Running Saved Session\n")
    print(f"Base URL: {session.base_url}")
    print(f"Strategy: {session.strategy}")
    print(f"Testing {len(session.slugs)} URL(s)...\n")

    outcome = asyncio.run(run_batch(settings, session.base_url, session.slugs, session.strategy))

    show_results(outcome.results, session.strategy, settings)
    show_threshold_alerts(outcome.results, settings)
    handle_exports(ExportService(settings), outcome.results, validate_export_formats(args.export or []))

    print("\n✨ Session analysis complete!\n")
    return 0


def cmd_init(args, settings: Settings) -> int:
    print(f"✓ Slug template created at: {create_slug_template(args.slugs)}")
    print(f"✓ Config template created at: {create_config_template(args.config)}")
    return 0


class CliParser(argparse.ArgumentParser):
    """Usage errors exit with 1 like every other input error."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"✘ {message}\n")


def build_parser() -> argparse.ArgumentParser:
    p = CliParser(prog="psi-checker", description="Enhanced PageSpeed Insights Checker")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    analyze = sub.add_parser("analyze", help="Analyze PageSpeed for given URL(s)")
    analyze.add_argument("url", nargs="?", help="Base URL to analyze")
    analyze.add_argument("-s", "--slugs", help="Path to file containing URL slugs")
    analyze.add_argument("-t", "--strategy", choices=STRATEGIES, help="Testing strategy (default mobile)")
    analyze.add_argument("-e", "--export", nargs="+", action="extend", choices=EXPORT_FORMATS, help="Export formats")
    analyze.add_argument("-f", "--filename", help="Custom markdown report name (written flat under the results directory)")
    analyze.add_argument("--open", action="store_true", help="Open markdown report after generation")
    analyze.add_argument("--silent", action="store_true", help="Suppress progress output")
    analyze.add_argument("-c", "--config", help="Path to a .pagespeedrc.json config file")
    analyze.set_defaults(func=cmd_analyze)

    interactive = sub.add_parser("interactive", aliases=["i"], help="Run in interactive mode")
    interactive.set_defaults(func=cmd_interactive)

    sessions = sub.add_parser("sessions", help="Manage saved sessions")
    sessions_sub = sessions.add_subparsers(dest="sessions_command", metavar="<action>")
    sessions_sub.required = True
    sessions_list = sessions_sub.add_parser("list", help="List all saved sessions")
    sessions_list.set_defaults(func=cmd_sessions_list)
    sessions_run = sessions_sub.add_parser("run", help="Run a saved session")
    sessions_run.add_argument("name", help="Session number from `sessions list` or part of its base URL")
    sessions_run.add_argument("-e", "--export", nargs="+", action="extend", choices=EXPORT_FORMATS, help="Export formats")
    sessions_run.set_defaults(func=cmd_sessions_run)

    init = sub.add_parser("init", help="Write slug and config templates")
    init.add_argument("--slugs", default="./slugs-template.txt", help="Slug template path")
    init.add_argument("--config", default="./.pagespeedrc.json", help="Config template path")
    init.set_defaults(func=cmd_init)

    return p


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()
    configure_logging(settings, args.verbose)

    try:
        return args.func(args, settings)
    except PageSpeedError as e:
        print(f"✘ {e}", file=sys.stderr)
    except OSError as e:
        print(f"✘ File error: {e}", file=sys.stderr)
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        print(f"✘ An error occurred: {e}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
