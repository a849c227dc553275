"""CLI for catlog.

Usage:
    tail -f access.log | catlog
    catlog --follow /var/log/nginx/access.log --status 502,503
    catlog --exec "npm run dev" --all
"""

from dataclasses import replace
from pathlib import Path

import click

from catlog import __version__
from catlog.config import Config, FilterConfig, parse_status_codes
from catlog.errors import ConfigError, SourceIOError
from catlog.logging import configure_logging, get_logger
from catlog.metrics import start_metrics_server
from catlog.monitor import (
    CatNotifier,
    DiscordClient,
    DiscordNotifier,
    Dispatcher,
    HttpCatClient,
    Notifier,
    ProcessTailer,
    RateLimiter,
    open_source,
)

log = get_logger(__name__)

EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def build_config(
    config_path: Path,
    size: int | None,
    no_image: bool,
    errors_only: bool,
    all_codes: bool,
    status: str | None,
    poll_interval: float | None,
    discord_webhook: str | None,
    cooldown: float | None,
    metrics_port: int | None,
) -> Config:
    """Load file/env configuration and apply command-line overrides."""
    config = Config.from_file(config_path)

    flt = replace(config.filter, errors_only=errors_only)
    if status is not None:
        flt = replace(flt, explicit_codes=parse_status_codes(status))
    if all_codes:
        flt = replace(flt, match_all=True)
    config.filter = flt

    if size is not None:
        config.image_size = size
    if no_image:
        config.show_images = False
    if poll_interval is not None:
        if poll_interval <= 0:
            raise ConfigError("--poll-interval must be positive")
        config.poll_interval = poll_interval
    if discord_webhook is not None:
        config.discord_webhook_url = discord_webhook
    if cooldown is not None:
        config.cooldown_seconds = cooldown
    if metrics_port is not None:
        config.metrics_port = metrics_port
    return config


def build_notifiers(config: Config) -> list[Notifier]:
    """Terminal cat always; Discord when a webhook is configured."""
    notifiers: list[Notifier] = [
        CatNotifier(
            client=HttpCatClient(config.cat_base_url, timeout=config.fetch_timeout),
            show_images=config.show_images,
            size=config.image_size,
        )
    ]
    if config.discord_webhook_url:
        notifiers.append(
            DiscordNotifier(DiscordClient(config.discord_webhook_url), config.cat_base_url)
        )
    return notifiers


@click.command()
@click.option("--follow", "-f", "follow", help="Follow a file (like tail -f)")
@click.option("--exec", "-e", "command", help="Execute a command and monitor its output")
@click.option("--size", type=int, help="Image size in characters  [default: 60]")
@click.option("--no-image", is_flag=True, help="Don't display images")
@click.option(
    "--errors-only",
    is_flag=True,
    default=True,
    help="Only show cats for errors (4xx, 5xx); the default policy",
)
@click.option("--all", "all_codes", is_flag=True, help="Show cats for all status codes")
@click.option("--status", help="Comma-separated list of specific status codes to match")
@click.option("--poll-interval", type=float, help="Seconds between checks in follow mode")
@click.option("--discord-webhook", help="Also post detections to this Discord webhook")
@click.option("--cooldown", type=float, help="Minimum seconds between cats for one code")
@click.option("--metrics-port", type=int, help="Serve Prometheus metrics on this port")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=Path.home() / ".catlog" / "config.yaml",
    help="Config file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="catlog")
def main(
    follow: str | None,
    command: str | None,
    size: int | None,
    no_image: bool,
    errors_only: bool,
    all_codes: bool,
    status: str | None,
    poll_interval: float | None,
    discord_webhook: str | None,
    cooldown: float | None,
    metrics_port: int | None,
    config_path: Path,
    verbose: bool,
) -> None:
    """Monitor logs and display cat images on HTTP errors.

    Reads stdin unless --follow or --exec is given.
    """
    configure_logging("DEBUG" if verbose else "WARNING")

    if follow is not None and command is not None:
        raise click.UsageError("--follow and --exec cannot be used together")

    try:
        config = build_config(
            config_path,
            size=size,
            no_image=no_image,
            errors_only=errors_only,
            all_codes=all_codes,
            status=status,
            poll_interval=poll_interval,
            discord_webhook=discord_webhook,
            cooldown=cooldown,
            metrics_port=metrics_port,
        )
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(EXIT_ERROR) from e

    source = open_source(follow=follow, command=command, poll_interval=config.poll_interval)
    dispatcher = Dispatcher(
        source,
        filter_config=config.filter,
        notifiers=build_notifiers(config),
        rate_limiter=RateLimiter(config.cooldown_seconds),
    )

    if config.metrics_port is not None:
        start_metrics_server(port=config.metrics_port, health=lambda: dispatcher.state.value)

    log.debug("Starting", mode=type(source).__name__, filter=describe_filter(config.filter))

    try:
        dispatcher.run()
    except KeyboardInterrupt:
        log.info("Received shutdown signal")
        raise SystemExit(EXIT_INTERRUPTED)
    except SourceIOError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(EXIT_ERROR) from e

    if isinstance(source, ProcessTailer) and source.returncode:
        # Pass the command's failure through, like a wrapper should
        raise SystemExit(source.returncode if source.returncode > 0 else EXIT_ERROR)


def describe_filter(config: FilterConfig) -> str:
    """Human-readable summary of the active filter policy."""
    if config.explicit_codes:
        return "codes " + ",".join(str(c) for c in sorted(config.explicit_codes))
    if config.match_all:
        return "all codes"
    return "errors only (4xx, 5xx)"


if __name__ == "__main__":
    main()
