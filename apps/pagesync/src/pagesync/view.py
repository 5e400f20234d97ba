"""View collaborators notified by the engine."""

import json
from typing import Protocol

import click

from .models import DeploymentCollection, PublicationState


class PagesView(Protocol):
    """Receives the outcome of every reconciliation pass."""

    def render_loading(self) -> None: ...

    def render(self, collection: DeploymentCollection) -> None: ...

    def render_failure(self, reason: str) -> None: ...


class NullView:
    """View that ignores every notification."""

    def render_loading(self) -> None:
        pass

    def render(self, collection: DeploymentCollection) -> None:
        pass

    def render_failure(self, reason: str) -> None:
        pass


STATUS_LABELS = {
    PublicationState.PRESENT: "active",
    PublicationState.ABSENT: "not configured",
    PublicationState.UNKNOWN: "check failed",
}


class ConsoleView:
    """Prints collections to the terminal with click."""

    def __init__(self, as_json: bool = False, quiet: bool = False):
        self.as_json = as_json
        self.quiet = quiet

    def render_loading(self) -> None:
        if not self.quiet and not self.as_json:
            click.echo("Fetching your repositories...", err=True)

    def render(self, collection: DeploymentCollection) -> None:
        if self.quiet:
            return
        if self.as_json:
            data = [item.model_dump(mode="json") for item in collection.items]
            click.echo(json.dumps(data, ensure_ascii=False, indent=2))
            return

        if not collection.items:
            click.echo("No repositories found")
            return

        for item in collection.items:
            repo = item.repository
            pub = item.publication
            visibility = "private" if repo.private else "public"
            click.echo(f"{repo.full_name} [{visibility}] Pages: {STATUS_LABELS[pub.state]}")
            if pub.present:
                if pub.public_url:
                    click.echo(f"    url:    {pub.public_url}")
                if pub.source_branch:
                    click.echo(f"    source: {pub.source_branch} {pub.source_path or '/'}")
                if pub.build_mode:
                    click.echo(f"    build:  {pub.build_mode.value}")
            elif pub.state is PublicationState.UNKNOWN:
                click.echo(f"    error:  {pub.error}")

        click.echo(
            f"\nDisplaying {len(collection.items)} repositories "
            f"({collection.count(PublicationState.PRESENT)} with Pages)"
        )

    def render_failure(self, reason: str) -> None:
        click.secho(f"Failed: {reason}", fg="red", err=True)
