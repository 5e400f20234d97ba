"""CLI for managing GitHub Pages across your repositories."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import click
from dotenv import load_dotenv
from gh import AuthFailure, GitHubClient, GitHubError, Session, get_token

from .engine import PagesEngine
from .errors import MutationFailure, PreconditionError, describe_failure
from .models import BuildConfig, BuildMode, DeploymentCollection, RepositoryDeployment
from .store import FileCredentialStore
from .view import STATUS_LABELS, ConsoleView
from .walker import RepositoryQuery

logger = logging.getLogger(__name__)

SOURCE_PATHS = ["/", "/docs"]


def setup_logging(verbose: int) -> None:
    """Setup logging."""
    level = logging.DEBUG if verbose >= 2 else logging.INFO if verbose == 1 else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@asynccontextmanager
async def open_engine(
    ctx: click.Context, view: ConsoleView, query: RepositoryQuery | None = None
) -> AsyncIterator[PagesEngine]:
    """Build a session and engine; the credential is dropped on exit."""
    obj = ctx.obj
    token = get_token(obj["token"], use_gh_cli=obj["use_gh_cli"], stored=obj["store"].load())
    if not token:
        raise click.ClickException(
            "No GitHub token. Run `pagesync login`, set GITHUB_TOKEN or pass --use-gh-cli."
        )
    session = Session(credential=token)
    async with GitHubClient(base_url=obj["api_url"], transport=obj.get("transport")) as client:
        engine = PagesEngine(
            client, session, view=view, query=query, max_concurrency=obj["concurrency"]
        )
        try:
            yield engine
        finally:
            session.clear()


async def connect(engine: PagesEngine) -> DeploymentCollection:
    """Authenticate and load the initial collection, mapping failures to exits."""
    try:
        await engine.authenticate()
    except AuthFailure as e:
        raise click.ClickException(
            f"Authentication failed: {e}. Run `pagesync login` to store a new token."
        ) from e
    except GitHubError as e:
        raise click.ClickException(f"Could not reach GitHub: {e}") from e
    try:
        return await engine.reconcile()
    except GitHubError as e:
        # already reported through the view
        raise click.exceptions.Exit(1) from e


def resolve(engine: PagesEngine, name: str) -> RepositoryDeployment:
    """Find `owner/name`, or `name` under the authenticated user."""
    full_name = name if "/" in name else f"{engine.session.identity}/{name}"
    item = engine.resolve(full_name)
    if item is None:
        raise click.ClickException(f"Repository not found: {full_name}")
    return item


def describe_item(item: RepositoryDeployment) -> str:
    pub = item.publication
    line = f"{item.repository.full_name}: Pages {STATUS_LABELS[pub.state]}"
    if pub.public_url:
        line += f" ({pub.public_url})"
    return line


def run_mutation(coro) -> None:
    try:
        asyncio.run(coro)
    except MutationFailure as e:
        raise click.ClickException(describe_failure(e)) from e


async def refreshed(write, done: str) -> DeploymentCollection:
    """Await a write; a failed refresh after it still reports the write."""
    try:
        return await write
    except GitHubError as e:
        raise click.ClickException(f"{done}, but refreshing failed: {describe_failure(e)}") from e


# ============ CLI Group ============

@click.group()
@click.option("--token", envvar="GITHUB_TOKEN", help="GitHub token")
@click.option("--use-gh-cli", is_flag=True, help="Use gh cli credentials")
@click.option("--api-url", envvar="PAGESYNC_API_URL", help="GitHub API base URL")
@click.option("-j", "--concurrency", type=int, default=None, help="Max concurrent Pages lookups")
@click.option("-v", "--verbose", count=True, help="Verbosity (-v, -vv)")
@click.pass_context
def cli(
    ctx: click.Context,
    token: str | None,
    use_gh_cli: bool,
    api_url: str | None,
    concurrency: int | None,
    verbose: int,
) -> None:
    """Inspect and manage GitHub Pages for your repositories."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj.setdefault("store", FileCredentialStore())
    ctx.obj.update(
        token=token, use_gh_cli=use_gh_cli, api_url=api_url, concurrency=concurrency
    )


# ============ Session Commands ============

@cli.command()
@click.pass_context
def login(ctx):
    """Verify a token and store it for later runs."""
    obj = ctx.obj
    token = obj["token"] or click.prompt("GitHub token", hide_input=True)

    async def verify() -> str:
        session = Session(credential=token.strip())
        async with GitHubClient(base_url=obj["api_url"], transport=obj.get("transport")) as client:
            engine = PagesEngine(client, session)
            try:
                user = await engine.authenticate()
            finally:
                session.clear()
        return user.login

    try:
        login_name = asyncio.run(verify())
    except GitHubError as e:
        raise click.ClickException(f"Authentication failed: {e}") from e

    obj["store"].save(token.strip())
    click.echo(f"Connected as {login_name}")


@cli.command()
@click.pass_context
def logout(ctx):
    """Forget the stored token."""
    ctx.obj["store"].clear()
    click.echo("Stored token removed")


@cli.command()
@click.pass_context
def whoami(ctx):
    """Show the user the token belongs to."""

    async def main() -> str:
        async with open_engine(ctx, ConsoleView(quiet=True)) as engine:
            try:
                user = await engine.authenticate()
            except GitHubError as e:
                raise click.ClickException(f"Authentication failed: {e}") from e
            return user.login

    click.echo(asyncio.run(main()))


# ============ Read Commands ============

@cli.command(name="list")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.option("--affiliation", help="owner, collaborator, organization_member (comma separated)")
@click.option("--visibility", type=click.Choice(["all", "public", "private"]))
@click.pass_context
def list_cmd(ctx, as_json, affiliation, visibility):
    """List repositories and their Pages status."""
    query = RepositoryQuery(affiliation=affiliation, visibility=visibility)

    async def main() -> None:
        async with open_engine(ctx, ConsoleView(as_json=as_json), query) as engine:
            await connect(engine)

    asyncio.run(main())


@cli.command()
@click.argument("repo")
@click.pass_context
def branches(ctx, repo):
    """List branches of REPO (owner/name)."""

    async def main() -> None:
        async with open_engine(ctx, ConsoleView(quiet=True)) as engine:
            await connect(engine)
            item = resolve(engine, repo)
            try:
                found = await engine.list_branches(item.key)
            except GitHubError as e:
                raise click.ClickException(f"repository {item.repository.full_name}: {e}") from e
            for branch in found:
                marker = "*" if branch.name == item.repository.default_branch else " "
                click.echo(f"{marker} {branch.name}")

    asyncio.run(main())


# ============ Write Commands ============

def build_options(fn):
    fn = click.option("--path", type=click.Choice(SOURCE_PATHS), help="Source directory")(fn)
    fn = click.option("--branch", help="Source branch (defaults to the current or default branch)")(fn)
    fn = click.option(
        "--build-type",
        type=click.Choice([m.value for m in BuildMode]),
        help="workflow (GitHub Actions) or legacy (deploy from branch)",
    )(fn)
    return fn


def check_build_options(build_type: str | None, branch: str | None, path: str | None) -> None:
    if build_type == BuildMode.WORKFLOW.value and (branch or path):
        raise click.UsageError("--branch and --path only apply to --build-type legacy")


def select_config(
    item: RepositoryDeployment,
    build_type: str | None,
    branch: str | None,
    path: str | None,
) -> BuildConfig:
    """Fill unspecified options from the current site or the repository defaults."""
    pub = item.publication
    if build_type:
        mode = BuildMode(build_type)
    elif branch or path:
        mode = BuildMode.LEGACY
    else:
        mode = pub.build_mode or BuildMode.LEGACY
    if mode is BuildMode.WORKFLOW:
        return BuildConfig(build_mode=mode)
    return BuildConfig(
        build_mode=mode,
        branch=branch or pub.source_branch or item.repository.default_branch or "main",
        path=path or pub.source_path or "/",
    )


@cli.command()
@click.argument("repo")
@build_options
@click.pass_context
def enable(ctx, repo, build_type, branch, path):
    """Enable Pages for REPO."""
    check_build_options(build_type, branch, path)

    async def main() -> None:
        async with open_engine(ctx, ConsoleView(quiet=True)) as engine:
            await connect(engine)
            item = resolve(engine, repo)
            config = select_config(item, build_type, branch, path)
            done = f"Pages enabled for {item.repository.full_name}"
            collection = await refreshed(engine.enable(item.key, config), done)
            click.echo(done)
            updated = collection.get(item.key)
            if updated:
                click.echo(describe_item(updated))

    run_mutation(main())


@cli.command()
@click.argument("repo")
@build_options
@click.pass_context
def update(ctx, repo, build_type, branch, path):
    """Change the build configuration of REPO."""
    check_build_options(build_type, branch, path)

    async def main() -> None:
        async with open_engine(ctx, ConsoleView(quiet=True)) as engine:
            await connect(engine)
            item = resolve(engine, repo)
            config = select_config(item, build_type, branch, path)
            done = f"Pages updated for {item.repository.full_name}"
            collection = await refreshed(engine.update(item.key, config), done)
            click.echo(done)
            updated = collection.get(item.key)
            if updated:
                click.echo(describe_item(updated))

    run_mutation(main())


@cli.command()
@click.argument("repo")
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def disable(ctx, repo, yes):
    """Disable Pages for REPO."""

    async def main() -> None:
        async with open_engine(ctx, ConsoleView(quiet=True)) as engine:
            await connect(engine)
            item = resolve(engine, repo)
            if not item.publication.present:
                raise click.ClickException(
                    f"repository {item.repository.full_name}: {PreconditionError.not_enabled()}"
                )
            if not yes and not click.confirm(
                f"Are you sure you want to disable GitHub Pages for {item.repository.full_name}?"
            ):
                click.echo("Aborted")
                return
            done = f"Pages disabled for {item.repository.full_name}"
            await refreshed(engine.disable(item.key), done)
            click.echo(done)

    run_mutation(main())


def main() -> None:
    load_dotenv()
    cli()


if __name__ == "__main__":
    main()
