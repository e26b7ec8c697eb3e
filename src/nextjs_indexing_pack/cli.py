"""CLI interface for nextjs-indexing-pack.

Command-line tool for submitting Next.js routes to IndexNow and the Google
Indexing API.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn, cast

import click
import httpx

from nextjs_indexing_pack.config import CONFIG_FILENAME, Config
from nextjs_indexing_pack.google import (
    NOTIFICATION_TYPES,
    NotificationType,
    submit_to_google_indexing,
)
from nextjs_indexing_pack.indexnow import DEFAULT_ENDPOINTS, submit_to_indexnow
from nextjs_indexing_pack.keys import ENV_VAR, append_env_local, generate_indexnow_key, write_key_file
from nextjs_indexing_pack.oauth import TokenRequestError
from nextjs_indexing_pack.routes import parse_base_url


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _plural(count: int) -> str:
    return f"{count} URL{'' if count == 1 else 's'}"


def _echo_response(target: str, ok: bool, status: int, body: str | None) -> None:
    outcome = click.style("ok", fg="green") if ok else click.style("failed", fg="red")
    details = f"status {status}"
    if body:
        details += f", body: {body}"
    click.echo(f"- {target}: {outcome} ({details})")


def _fail(message: str) -> NoReturn:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


@click.group()
def cli() -> None:
    """Notify search engines about the routes of a Next.js build."""


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help=f"Path to configuration file (default: auto-discover {CONFIG_FILENAME})",
)
@click.option(
    "--base-url",
    default=None,
    help="Fully qualified origin of the deployed site (overrides config)",
)
@click.option(
    "--key",
    envvar=ENV_VAR,
    default=None,
    help=f"IndexNow key value (default: {ENV_VAR} env var, then config)",
)
@click.option(
    "--build-dir",
    "--next-build-dir",
    "build_dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Location of the Next.js build output (default: .next)",
)
@click.option(
    "--urls",
    "-u",
    default=None,
    help="Comma-separated list of fully qualified URLs to submit instead of discovered routes",
)
@click.option("--google", "-g", is_flag=True, help="Submit only to the Google Indexing API")
@click.option("--indexnow", "-i", is_flag=True, help="Submit only to IndexNow-compatible endpoints")
@click.option(
    "--google-service-account",
    envvar="GOOGLE_APPLICATION_CREDENTIALS",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Path to Google service account JSON credentials",
)
@click.option(
    "--google-notification-type",
    type=click.Choice(NOTIFICATION_TYPES),
    default=None,
    help="Notification type for Google Indexing (default: URL_UPDATED)",
)
@click.option("--dry-run", is_flag=True, help="Collect URLs without submitting them")
@click.option("--json", "output_json", is_flag=True, help="Print results as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def submit(
    config_path: Path | None,
    base_url: str | None,
    key: str | None,
    build_dir: Path | None,
    urls: str | None,
    google: bool,
    indexnow: bool,
    google_service_account: Path | None,
    google_notification_type: str | None,
    dry_run: bool,
    output_json: bool,
    verbose: bool,
) -> None:
    """Submit URLs to IndexNow and the Google Indexing API.

    With neither --google nor --indexnow both targets are used.
    """
    _configure_logging(verbose)
    try:
        config = Config.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    base_url = base_url or config.site.base_url
    if not base_url:
        _fail(
            "Missing base URL. Pass --base-url <url> or run "
            f'"nextjs-indexing-pack init" to create {CONFIG_FILENAME}.'
        )

    submit_indexnow = indexnow or not google
    submit_google = google or not indexnow

    key = key or config.indexnow.key
    if submit_indexnow and not key:
        _fail(f"Missing IndexNow key. Pass --key <value> or set {ENV_VAR} in your environment.")

    url_list = None
    if urls:
        url_list = [value.strip() for value in urls.split(",") if value.strip()]

    try:
        asyncio.run(
            _submit(
                config=config,
                base_url=base_url,
                key=key,
                build_dir=build_dir or config.site.build_dir,
                urls=url_list,
                submit_indexnow=submit_indexnow,
                submit_google=submit_google,
                google_required=google and not indexnow,
                service_account=google_service_account or config.google.service_account,
                notification_type=cast(
                    NotificationType,
                    google_notification_type or config.google.notification_type or "URL_UPDATED",
                ),
                dry_run=dry_run,
                output_json=output_json,
            )
        )
    except (ValueError, OSError, TokenRequestError, httpx.HTTPError) as e:
        _fail(str(e))


async def _submit(
    config: Config,
    base_url: str,
    key: str | None,
    build_dir: Path,
    urls: list[str] | None,
    submit_indexnow: bool,
    submit_google: bool,
    google_required: bool,
    service_account: Path | None,
    notification_type: NotificationType,
    dry_run: bool,
    output_json: bool,
) -> None:
    """Run the requested submissions and print their results."""
    report: dict[str, Any] = {}

    if submit_indexnow and key:
        result = await submit_to_indexnow(
            base_url,
            key,
            build_dir=build_dir,
            key_location=config.indexnow.key_location,
            endpoints=config.indexnow.endpoints or DEFAULT_ENDPOINTS,
            urls=urls,
            dry_run=dry_run,
        )
        report["indexnow"] = {
            "urls": result.urls,
            "responses": {endpoint: r.to_dict() for endpoint, r in result.responses.items()},
        }
        if not output_json:
            if dry_run:
                click.echo(f"Dry run: discovered {_plural(len(result.urls))}.")
            else:
                click.echo(f"Submitted {_plural(len(result.urls))} to IndexNow-compatible endpoints.")
                for endpoint, response in result.responses.items():
                    _echo_response(endpoint, response.ok, response.status, response.body)

    if submit_google and service_account is None:
        if google_required:
            raise ValueError(
                "Missing Google service account. Pass --google-service-account <path> "
                "or set GOOGLE_APPLICATION_CREDENTIALS."
            )
        if not output_json:
            click.echo("Skipped Google Indexing submission (no service account credentials configured).")
    elif submit_google and service_account is not None:
        try:
            google_result = await submit_to_google_indexing(
                base_url,
                service_account,
                build_dir=build_dir,
                dry_run=dry_run,
                notification_type=notification_type,
                urls=urls,
            )
        except (ValueError, OSError, TokenRequestError, httpx.HTTPError) as e:
            if google_required:
                raise
            click.echo(
                click.style(f"Skipped Google Indexing submission ({e}).", fg="yellow"), err=True
            )
        else:
            report["google"] = {
                "urls": google_result.urls,
                "responses": [r.to_dict() for r in google_result.responses],
            }
            if not output_json:
                if dry_run:
                    click.echo(
                        f"Google Indexing dry run: discovered {_plural(len(google_result.urls))}."
                    )
                else:
                    click.echo(
                        f"Submitted {_plural(len(google_result.urls))} to the Google Indexing API."
                    )
                    for response in google_result.responses:
                        _echo_response(response.url, response.ok, response.status, response.body)

    if output_json:
        click.echo(json.dumps(report, indent=2))


def _normalize_base_url(value: str) -> str:
    try:
        return parse_base_url(value).base
    except ValueError as e:
        raise click.BadParameter(
            "That does not look like a valid URL. Include the protocol, "
            "for example https://www.example.com."
        ) from e


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=CONFIG_FILENAME,
    help="Configuration file to create or update",
)
@click.option(
    "--public-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default="public",
    help="Directory served at the site root (default: public)",
)
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=".env.local",
    help="Env file to store the key in (default: .env.local)",
)
def init(config_path: Path, public_dir: Path, env_file: Path) -> None:
    """Generate an IndexNow key and prepare the project."""
    click.echo(click.style("nextjs-indexing-pack init", bold=True))
    click.echo("This wizard will help you generate an IndexNow key and prepare your project.\n")

    base_url: str = click.prompt(
        "What is the base URL of your deployed Next.js site?",
        value_proc=_normalize_base_url,
    )

    key = generate_indexnow_key()
    key_file = write_key_file(public_dir, key)

    store_key = click.confirm(f"Would you like to store the key in {env_file}?", default=True)
    env_status = append_env_local(env_file, key) if store_key else None

    try:
        config = Config.load(config_path) if config_path.exists() else Config()
    except ValueError as e:
        _fail(str(e))
    config.site.base_url = base_url
    config_status = config.save(config_path)

    click.echo(click.style("\nAll set!", fg="green", bold=True))
    click.echo(f"- Base URL: {base_url}")
    click.echo(f"- Generated IndexNow key: {key}")
    click.echo(f"- Key file created at: {key_file}")
    click.echo(f"- {config_status.capitalize()} {config_path}")
    if env_status == "created":
        click.echo(f"- Created {env_file} with {ENV_VAR}.")
    elif env_status == "updated":
        click.echo(f"- Updated {env_file} with {ENV_VAR}.")
    elif env_status == "skipped":
        click.echo(f"- {env_file} already contained {ENV_VAR}, no changes made.")
    else:
        click.echo(f"- Skipped updating {env_file}.")

    click.echo("\nNext steps:")
    click.echo(f"1. Expose {ENV_VAR}={key} to your CI/deployment environment.")
    click.echo('2. After "next build", run: nextjs-indexing-pack submit')
    click.echo(f"3. Deploy {key_file} so it is publicly accessible at {base_url}/{key}.txt.")


if __name__ == "__main__":
    cli()
