#!/usr/bin/env python3
"""
Storyblok Asset Clone CLI

Copies the assets and asset folders of a source space into a target space
and updates the target space's stories to use the new asset URLs.
"""

from pathlib import Path
from typing import Optional

import click

from config import (
    DEFAULT_REGION,
    ENV_OAUTH_TOKEN,
    ENV_REGION,
    ENV_SIMULTANEOUS_UPLOADS,
    ENV_SOURCE_SPACE,
    ENV_TARGET_SPACE,
    REGIONS,
    RETRY_DELAY,
    SIMULTANEOUS_UPLOADS,
    STAGING_DIR,
)
from logging_config import logger
from migration import AssetCloneMigration, CloneSettings, MigrationError
from migration.config import ORPHANS_REATTACH, ORPHANS_SKIP, REWRITE_STRUCTURAL, REWRITE_TEXT
from migration.orchestrator import TOTAL_STEPS
from storyblok_rest import get_version


def step_message(index: int, text: str):
    """Print the message of the current step"""
    click.echo(click.style(f" {index}/{TOTAL_STEPS} ", fg="white", bg="blue") + f" {text}")


def step_message_end(index: int, text: str):
    """Print the message of a completed step"""
    click.echo(click.style(f" {index}/{TOTAL_STEPS} ", fg="black", bg="green") + f" {text}")


def progress_message(index: int, current: int, total: int, label: str):
    """Overwrite the current line with a step counter"""
    click.echo(f"\r   {current} of {total} {label}", nl=current >= total)


@click.group()
@click.version_option(version=get_version(), prog_name="storyblok-clone-assets")
def main():
    """Storyblok Asset Clone - copy assets between Storyblok spaces"""
    pass


@main.command()
@click.option("--oauth-token", envvar=ENV_OAUTH_TOKEN, prompt="Personal access token", hide_input=True, help="Storyblok OAuth token")
@click.option("--source-space", envvar=ENV_SOURCE_SPACE, prompt="Source space id", help="Space to copy assets from")
@click.option("--target-space", envvar=ENV_TARGET_SPACE, prompt="Target space id", help="Space to copy assets to")
@click.option(
    "--simultaneous-uploads",
    envvar=ENV_SIMULTANEOUS_UPLOADS,
    type=click.IntRange(min=1),
    default=SIMULTANEOUS_UPLOADS,
    show_default=True,
    help="Number of assets transferred at the same time",
)
@click.option(
    "--region",
    envvar=ENV_REGION,
    type=click.Choice(REGIONS),
    default=DEFAULT_REGION,
    show_default=True,
    help="Region of both spaces",
)
@click.option(
    "--structural-urls",
    is_flag=True,
    help="Only replace string values that are exactly an asset URL",
)
@click.option(
    "--skip-orphan-folders",
    is_flag=True,
    help="Leave out folders whose parent is missing instead of creating them at the root",
)
@click.option("--retry-delay", type=float, default=RETRY_DELAY, show_default=True, help="Seconds between upload retries")
@click.option(
    "--staging-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=STAGING_DIR,
    show_default=True,
    help="Temporary download directory (wiped on start)",
)
def clone(
    oauth_token: str,
    source_space: str,
    target_space: str,
    simultaneous_uploads: int,
    region: str,
    structural_urls: bool,
    skip_orphan_folders: bool,
    retry_delay: float,
    staging_dir: Optional[Path],
):
    """Clone assets from the source space into the target space"""
    settings = CloneSettings(
        oauth_token=oauth_token,
        source_space_id=source_space,
        target_space_id=target_space,
        simultaneous_uploads=simultaneous_uploads,
        region=region,
        retry_delay=retry_delay,
        staging_dir=staging_dir,
        rewrite_mode=REWRITE_STRUCTURAL if structural_urls else REWRITE_TEXT,
        orphan_policy=ORPHANS_SKIP if skip_orphan_folders else ORPHANS_REATTACH,
    )

    migration = AssetCloneMigration(
        settings,
        on_step=step_message,
        on_step_end=step_message_end,
        on_progress=progress_message,
    )

    try:
        summary = migration.run()
    except MigrationError as e:
        logger.log_error(e, {"operation": "clone"})
        click.echo(
            click.style(" ⚠ Migration Error ", fg="white", bg="red")
            + " "
            + click.style(str(e), fg="red")
        )
        raise SystemExit(1)

    updated = summary["stories"]["updated"]
    click.echo(
        click.style(" ✓ Completed ", fg="black", bg="green")
        + f" {updated} {'story' if updated == 1 else 'stories'} updated."
    )
    if summary["assets"]["failed"]:
        click.echo(f"⚠️  {summary['assets']['failed']} asset(s) could not be transferred; their URLs were removed.")
    if summary["stories"]["failed"]:
        click.echo(f"⚠️  {summary['stories']['failed']} story update(s) failed. See the log for details.")


if __name__ == "__main__":
    main()
