"""Concurrent Pages lookup for a list of repositories."""

import asyncio
import logging
from typing import Sequence

from gh import GitHubClient, GitHubError, NotFound, PagesSite, Repository, Session, repo_path

from .models import PublicationRecord, RepositoryDeployment

logger = logging.getLogger(__name__)


async def lookup_publication(
    client: GitHubClient, session: Session, repository: Repository
) -> PublicationRecord:
    """Fetch one repository's Pages site; failures become absent/unknown records."""
    path = repo_path(repository.owner.login, repository.name, "pages")
    try:
        data = await client.call(session, path)
        site = PagesSite(**data)
    except NotFound:
        return PublicationRecord.absent()
    except GitHubError as e:
        logger.warning("Pages lookup failed for %s: %s", repository.full_name, e)
        return PublicationRecord.unknown(str(e))
    except (TypeError, ValueError) as e:
        logger.warning("Unexpected Pages response for %s: %s", repository.full_name, e)
        return PublicationRecord.unknown(f"unexpected response: {e}")
    return PublicationRecord.from_site(site)


async def enrich(
    client: GitHubClient,
    session: Session,
    repositories: Sequence[Repository],
    max_concurrency: int | None = None,
) -> list[RepositoryDeployment]:
    """
    Join every repository with its Pages lookup.

    All lookups run concurrently and the call waits for every one of them.
    The result keeps the input order regardless of completion order.

    Args:
        client: GitHub client
        session: Session used for the lookups
        repositories: Repositories in discovery order
        max_concurrency: Upper bound on in-flight lookups (None = unbounded)
    """
    sem = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def enrich_one(repository: Repository) -> RepositoryDeployment:
        if sem is None:
            record = await lookup_publication(client, session, repository)
        else:
            async with sem:
                record = await lookup_publication(client, session, repository)
        return RepositoryDeployment(repository=repository, publication=record)

    results = await asyncio.gather(*(enrich_one(r) for r in repositories))
    logger.debug("Enriched %d repositories", len(results))
    return list(results)
