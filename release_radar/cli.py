"""
Command-line interface for release-radar.

This module implements the CLI using Click, running one synchronization
cycle of the configured playlist per invocation.
rich-click is used for the output colors.

Commands:
    release-radar                       Run one sync cycle
    release-radar --dry-run             Read and scan, but do not modify the playlist
    release-radar --days 14             Evict tracks older than 14 days this run
    release-radar auth                  Log in interactively, print a refresh token

Usage:
    # First time: obtain a refresh token and store it in config.yaml or .env
    release-radar auth

    # Daily, e.g. from cron shortly after midnight UTC
    release-radar --no-progress

Configuration:
    The CLI reads config.yaml from the current directory (or --config) with:
    - Spotify API credentials (client_id, client_secret, refresh_token)
    - Target playlist and eviction threshold
    Environment variables and a .env file override the file values.

Exit Codes:
    0    Cycle completed (per-artist or per-batch errors are logged only)
    1    Configuration error, or unexpected error
    3    Spotify error, including failed authentication
    4    Other release-radar error
    130  Interrupted by user
"""

import dataclasses
import sys
from pathlib import Path
from typing import Optional

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "cli": [
        {
            "name": "Sync Options",
            "options": ["--config", "--dry-run", "--days"],
        },
        {
            "name": "Output",
            "options": ["--no-progress", "--verbose"],
        },
        {
            "name": "Info",
            "options": ["--version", "--help"],
        },
    ],
}

from release_radar import __version__
from release_radar.core import (
    Config,
    ConfigError,
    RateLimiter,
    ReleaseRadarError,
    SpotifyError,
    get_logger,
    load_config,
    load_spotify_config,
    setup_logging,
    shutdown_logging,
)
from release_radar.spotify import Credentials, authenticate, authorize_interactively, build_oauth, create_client
from release_radar.sync import PlaylistSynchronizer, SyncReport

logger = get_logger(__name__)


@click.group(invoke_without_command=True)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Scan and report, but do not add or remove tracks"
)
@click.option(
    "--days",
    type=click.IntRange(min=0),
    default=None,
    metavar="<days>",
    help="Override playlist.date_added_threshold for this run"
)
@click.option(
    "--no-progress",
    is_flag=True,
    help="Disable the progress bar"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Log debug messages (pacing waits, page counts)"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    dry_run: bool,
    days: Optional[int],
    no_progress: bool,
    verbose: bool,
    version: bool
) -> None:
    """
    release-radar: keep a Spotify playlist filled with today's releases.

    Removes old tracks from the playlist, then adds every track of the
    albums and singles your followed artists released today.

    \b
    BASIC USAGE:
        release-radar auth                     # Obtain a refresh token (once)
        release-radar                          # Run one sync cycle
        release-radar --dry-run                # Show what would change
    """
    if version:
        click.echo(f"release-radar {__version__}")
        ctx.exit(0)

    # Subcommands handle their own options
    if ctx.invoked_subcommand is not None:
        return

    _run_sync({
        "config_path": config_path,
        "dry_run": dry_run,
        "days": days,
        "show_progress": not no_progress and sys.stderr.isatty(),
        "verbose": verbose,
    })


@cli.command()
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
def auth(config_path: Optional[Path]) -> None:
    """
    Log in to Spotify and print a refresh token.

    Store the printed token as spotify.refresh_token in config.yaml (or as
    SPOTIFY_REFRESH_TOKEN in .env) so that scheduled runs can log in
    without interaction.
    """
    try:
        setup_logging()
        spotify_config = load_spotify_config(config_path)
        credentials = authorize_interactively(build_oauth(spotify_config), _prompt_for_code)
        _print_refresh_token(credentials)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except SpotifyError as e:
        click.echo(f"Spotify error: {e.message}", err=True)
        click.echo("Check your client_id, client_secret and redirect_uri in config.yaml", err=True)
        sys.exit(3)

    except (KeyboardInterrupt, click.Abort):
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    finally:
        shutdown_logging()


def _run_sync(options: dict) -> None:
    """
    Execute one synchronization cycle.

    1. Loads configuration
    2. Sets up logging
    3. Authenticates and creates the Spotify session
    4. Runs the cycle and reports results

    Args:
        options: Dictionary with CLI options.

    Raises:
        SystemExit: On fatal errors (with appropriate exit code).
    """
    try:
        config = _load_configuration(options["config_path"], options["days"])

        level = "DEBUG" if options["verbose"] else config.logging.level
        setup_logging(config.logging.directory, level)
        logger.info(f"release-radar {__version__} starting")

        # Scheduled runs have no terminal: a failed refresh must not block on input
        prompt = _prompt_for_code if sys.stdin.isatty() else None
        oauth, credentials = authenticate(config.spotify, prompt=prompt)
        if credentials.interactive:
            _print_refresh_token(credentials)

        client = create_client(oauth)
        rate_limiter = RateLimiter(requests_per_window=config.pacing.requests_per_second)

        synchronizer = PlaylistSynchronizer(
            client,
            config.playlist,
            config.pacing,
            rate_limiter,
            dry_run=options["dry_run"],
            show_progress=options["show_progress"]
        )
        report = synchronizer.run()

        _print_final_stats(report)

        if report.success:
            logger.info("release-radar completed successfully")
        else:
            logger.warning(f"release-radar completed with {len(report.errors)} error(s), see log above")

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except SpotifyError as e:
        click.echo(f"Spotify error: {e.message}", err=True)
        if e.is_auth_error:
            click.echo("Run 'release-radar auth' to obtain a new refresh token", err=True)
        logger.error(f"Spotify error: {e.message}", exc_info=True)
        sys.exit(3)

    except ReleaseRadarError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(4)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        shutdown_logging()


def _load_configuration(config_path: Optional[Path], days: Optional[int]) -> Config:
    """
    Load configuration and apply command-line overrides.

    Raises:
        ConfigError: If configuration is invalid or missing.
    """
    config = load_config(config_path)
    if days is not None:
        playlist = dataclasses.replace(config.playlist, date_added_threshold=days)
        config = dataclasses.replace(config, playlist=playlist)
    return config


def _prompt_for_code(authorize_url: str) -> str:
    click.echo(f"[AUTH] Please navigate to {authorize_url} and log in.")
    return click.prompt("[AUTH] Enter the code (or the full URL) from the redirect URI")


def _print_refresh_token(credentials: Credentials) -> None:
    if not credentials.refresh_token:
        click.echo("[AUTH] Spotify returned no refresh token", err=True)
        return
    click.echo(f"[AUTH] Refresh Token: {credentials.refresh_token}")
    click.echo("[AUTH] Store it as spotify.refresh_token in config.yaml for unattended runs")


def _print_final_stats(report: SyncReport) -> None:
    """
    Print final sync statistics.

    Output:
        Prints a summary table with:
        - Playlist rows before and after
        - Artists scanned and tracks discovered
        - Tracks removed and added
        - Errors
    """
    dry = " (dry run)" if report.dry_run else ""

    logger.info("=" * 60)
    logger.info(f"FINAL STATISTICS{dry}")
    logger.info("=" * 60)
    logger.info(f"Playlist rows:     {len(report.initial_playlist.items)}")
    logger.info(f"Removed:           {report.removed_count}")
    logger.info(f"Artists scanned:   {len(report.scan.artists)}")
    logger.info(f"Discovered:        {len(report.scan.candidates)}")
    logger.info(f"Already present:   {len(report.addition.already_present)}")
    logger.info(f"Added:             {report.added_count}")
    if report.addition.aborted:
        logger.info(f"Not attempted:     {len(report.addition.aborted)}")
    logger.info(f"Errors:            {len(report.errors)}")
    logger.info(f"Duration:          {report.duration:.1f}s")
    logger.info("=" * 60)


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `release-radar` from the command
    line. It invokes the Click CLI group.
    """
    cli()


if __name__ == "__main__":
    main()
