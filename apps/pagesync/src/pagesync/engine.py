"""Pages deployment state synchronization engine."""

import logging
from typing import Any

from gh import (
    AuthFailure,
    Branch,
    GitHubClient,
    GitHubError,
    RemoteFailure,
    Repository,
    Session,
    User,
    authenticate,
    repo_path,
)
from pydantic import ValidationError

from .enrich import enrich
from .errors import MutationFailure, PreconditionError, describe_failure
from .models import (
    BuildConfig,
    DeploymentCollection,
    PublicationState,
    RepositoryDeployment,
)
from .view import NullView, PagesView
from .walker import RepositoryQuery, list_all

logger = logging.getLogger(__name__)

METHODS = {"enable": "POST", "update": "PUT", "disable": "DELETE"}


class PagesEngine:
    """
    Keeps an up-to-date view of every repository's Pages configuration.

    State only changes through `reconcile()`: a pass lists all repositories,
    looks up Pages for each of them and publishes a fresh
    `DeploymentCollection`. Writes never patch the collection; a successful
    write is followed by one full pass.

    Passes are numbered when they start. A pass that finishes after a newer
    one has been published is discarded, so `current` never goes backwards.
    """

    def __init__(
        self,
        client: GitHubClient,
        session: Session,
        view: PagesView | None = None,
        query: RepositoryQuery | None = None,
        max_concurrency: int | None = None,
    ):
        """
        Initialize engine.

        Args:
            client: GitHub client used for every request
            session: Session holding the credential
            view: Notified at pass start, success and failure
            query: Repository listing parameters
            max_concurrency: Bound on concurrent Pages lookups (None = unbounded)
        """
        self.client = client
        self.session = session
        self.view: PagesView = view or NullView()
        self.query = query or RepositoryQuery()
        self.max_concurrency = max_concurrency
        self.current: DeploymentCollection | None = None
        self._started = 0
        self._published = 0

    async def connect(self) -> DeploymentCollection:
        """Authenticate, then run the initial pass."""
        await self.authenticate()
        return await self.reconcile()

    async def authenticate(self) -> User:
        return await authenticate(self.client, self.session)

    async def reconcile(self) -> DeploymentCollection:
        """
        Run one reconciliation pass and publish its result.

        Returns:
            The collection built by this pass

        Raises:
            GitHubError: Listing repositories failed; `current` is left untouched
        """
        self._started += 1
        pass_number = self._started
        logger.info("Reconciliation pass %d started", pass_number)
        self.view.render_loading()

        try:
            repositories = await self._list_repositories()
        except GitHubError as e:
            if isinstance(e, AuthFailure):
                self.session.clear()
            logger.error("Reconciliation pass %d failed: %s", pass_number, e)
            if pass_number > self._published:
                self.view.render_failure(describe_failure(e))
            raise

        logger.info(
            "Found %d repositories, checking Pages status", len(repositories)
        )
        items = await enrich(
            self.client, self.session, repositories, self.max_concurrency
        )
        collection = DeploymentCollection(items=tuple(items), pass_number=pass_number)

        if pass_number < self._published:
            logger.info(
                "Discarding pass %d, pass %d already published",
                pass_number,
                self._published,
            )
            return collection

        self._published = pass_number
        self.current = collection
        logger.info(
            "Published pass %d: %d repositories, %d with Pages, %d unknown",
            pass_number,
            len(items),
            collection.count(PublicationState.PRESENT),
            collection.count(PublicationState.UNKNOWN),
        )
        self.view.render(collection)
        return collection

    async def _list_repositories(self) -> list[Repository]:
        raw = await list_all(self.client, self.session, self.query)
        try:
            return [Repository(**item) for item in raw]
        except (TypeError, ValidationError) as e:
            raise RemoteFailure(None, f"unexpected repository data: {e}") from e

    def resolve(self, full_name: str) -> RepositoryDeployment | None:
        """Look up `owner/name` in the current collection."""
        if self.current is None:
            return None
        return self.current.find(full_name)

    async def enable(
        self, key: int, config: BuildConfig | dict[str, Any]
    ) -> DeploymentCollection:
        """Create a Pages site for a repository that has none."""
        return await self._mutate("enable", key, config)

    async def update(
        self, key: int, config: BuildConfig | dict[str, Any]
    ) -> DeploymentCollection:
        """Replace the build configuration of an existing Pages site."""
        return await self._mutate("update", key, config)

    async def disable(self, key: int) -> DeploymentCollection:
        """Delete the Pages site of a repository."""
        return await self._mutate("disable", key, None)

    def _target(self, op: str, key: int) -> RepositoryDeployment:
        item = self.current.get(key) if self.current else None
        if item is None:
            raise PreconditionError.unknown_item(key)
        if op == "enable" and item.publication.present:
            raise PreconditionError.already_enabled()
        if op in ("update", "disable") and not item.publication.present:
            raise PreconditionError.not_enabled()
        return item

    async def _mutate(
        self, op: str, key: int, config: BuildConfig | dict[str, Any] | None
    ) -> DeploymentCollection:
        known = self.current.get(key) if self.current else None
        name = known.repository.full_name if known else None
        try:
            item = self._target(op, key)
            body = None
            if op != "disable":
                body = BuildConfig.model_validate(config).to_payload()
        except (PreconditionError, ValidationError) as e:
            logger.warning("Rejected %s for %s: %s", op, name or key, e)
            raise MutationFailure(op, key, e, name) from e

        repo = item.repository
        path = repo_path(repo.owner.login, repo.name, "pages")
        logger.info("%s Pages for %s", op.capitalize(), repo.full_name)
        try:
            await self.client.call(self.session, path, method=METHODS[op], body=body)
        except GitHubError as e:
            if isinstance(e, AuthFailure):
                self.session.clear()
            logger.error("Failed to %s Pages for %s: %s", op, repo.full_name, e)
            raise MutationFailure(op, key, e, repo.full_name) from e

        logger.info("Pages %sd for %s", op, repo.full_name)
        return await self.reconcile()

    async def list_branches(self, key: int) -> list[Branch]:
        """Branches of a repository, for choosing a deployment source."""
        item = self.current.get(key) if self.current else None
        if item is None:
            raise PreconditionError.unknown_item(key)
        repo = item.repository
        query = RepositoryQuery(
            path=repo_path(repo.owner.login, repo.name, "branches"), sort=None
        )
        raw = await list_all(self.client, self.session, query)
        return [Branch(**b) for b in raw]
