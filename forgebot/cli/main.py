"""forgebot CLI - Main Entry Point"""

from datetime import UTC, datetime
from pathlib import Path

import typer

from forgebot.config.settings import settings
from forgebot.core.registries import JobRegistry
from forgebot.infra.jobs.registry_init import register_jobs
from forgebot.webhooks.signature import sign as sign_payload

from .formatting import console, create_jobs_table, print_error, print_success

app = typer.Typer(
    name="forgebot",
    help="forgebot - GitHub/Zulip webhook bot and job scheduler",
    rich_markup_mode="rich",
)


@app.command()
def serve():
    """Run the web server (webhooks and the job scheduler)"""
    from forgebot.main import run

    run()


@app.command()
def jobs(
    upcoming: int = typer.Option(3, "--upcoming", "-n", min=1, help="Runs to show per job"),
):
    """List the scheduled job catalog with its next run times"""
    registry = JobRegistry()
    try:
        register_jobs(registry)
    except ValueError as e:
        print_error(f"Job catalog is invalid: {e}")
        raise typer.Exit(1) from None

    console.print(create_jobs_table(registry.definitions(), datetime.now(UTC), upcoming))


@app.command()
def sign(
    payload_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Webhook payload file"
    ),
    secret: str | None = typer.Option(
        None, "--secret", "-s", help="Webhook secret (defaults to GITHUB_WEBHOOK_SECRET)"
    ),
    algorithm: str = typer.Option("sha1", "--algorithm", "-a", help="sha1 or sha256"),
):
    """Print the X-Hub-Signature value for a payload file"""
    if algorithm not in ("sha1", "sha256"):
        print_error(f"Unsupported algorithm: {algorithm}")
        raise typer.Exit(1)

    key = secret if secret is not None else settings.github_webhook_secret
    if not key:
        print_error("No secret given and GITHUB_WEBHOOK_SECRET is not set")
        raise typer.Exit(1)

    signature = sign_payload(payload_file.read_bytes(), key, algorithm)
    print_success("Payload signed")
    typer.echo(signature)


if __name__ == "__main__":
    app()
