"""Page-numbered collection walker."""

import logging
from typing import Any

from gh import GitHubClient, RemoteFailure, Session
from pydantic import BaseModel

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class RepositoryQuery(BaseModel):
    """Paginated collection endpoint and its fixed query parameters."""

    path: str = "/user/repos"
    sort: str | None = "updated"
    per_page: int = PAGE_SIZE
    affiliation: str | None = None
    visibility: str | None = None

    def params(self, page: int) -> dict[str, Any]:
        params: dict[str, Any] = {"per_page": self.per_page, "page": page}
        if self.sort:
            params["sort"] = self.sort
        if self.affiliation:
            params["affiliation"] = self.affiliation
        if self.visibility:
            params["visibility"] = self.visibility
        return params


async def list_all(
    client: GitHubClient,
    session: Session,
    query: RepositoryQuery | None = None,
) -> list[dict[str, Any]]:
    """
    Drain a paginated endpoint into one ordered list.

    Pages are requested until one comes back empty. A short page is not
    treated as the last one, so a collection whose size is a multiple of
    the page size still costs one trailing empty request.

    Args:
        client: GitHub client
        session: Session used for every page request
        query: Endpoint and parameters (defaults to the user's repositories)

    Returns:
        All items in the order the API returned them

    Raises:
        GitHubError: The first failing page request; nothing partial is returned
    """
    query = query or RepositoryQuery()
    items: list[dict[str, Any]] = []
    page = 1
    while True:
        data = await client.call(session, query.path, params=query.params(page))
        if not isinstance(data, list):
            raise RemoteFailure(None, f"expected a list from {query.path} page {page}")
        if not data:
            break
        items.extend(data)
        logger.debug("Page %d of %s: %d items", page, query.path, len(data))
        page += 1

    logger.info("Listed %d items from %s in %d requests", len(items), query.path, page)
    return items
