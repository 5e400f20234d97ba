"""Shared fixtures: an in-memory fake of the GitHub REST API."""
import json
import re

import httpx
import pytest
import pytest_asyncio

from gh import GitHubClient, Session

TOKEN = "ghp_test"
API_URL = "https://api.github.test"

PAGES_RE = re.compile(r"^/repos/([^/]+)/([^/]+)/pages$")
BRANCHES_RE = re.compile(r"^/repos/([^/]+)/([^/]+)/branches$")


def make_repo(index: int, owner: str = "octocat") -> dict:
    """Repository payload shaped like `/user/repos` items."""
    name = f"repo-{index}"
    return {
        "id": 1000 + index,
        "name": name,
        "full_name": f"{owner}/{name}",
        "owner": {"login": owner, "id": 1},
        "default_branch": "main",
        "private": index % 2 == 1,
        "html_url": f"https://github.com/{owner}/{name}",
        "stargazers_count": 0,
    }


def make_site(full_name: str, branch: str = "gh-pages", path: str = "/", build_type: str = "legacy") -> dict:
    owner, name = full_name.split("/")
    return {
        "url": f"{API_URL}/repos/{full_name}/pages",
        "html_url": f"https://{owner}.github.io/{name}/",
        "status": "built",
        "build_type": build_type,
        "source": {"branch": branch, "path": path},
        "cname": None,
        "https_enforced": True,
        "public": True,
    }


class FakeGitHub:
    """Routes requests to in-memory repositories and Pages sites.

    `pages` maps full names to a site payload, or to an int status code
    the lookup should fail with. Writes update `pages` so a following
    reconciliation sees them.
    `bodies` serves a raw 200 text body for a (method, path), and
    `refresh_failure` fails every listing once a write was received.
    """

    def __init__(self, repos=None, pages=None, login="octocat"):
        self.repos = list(repos or [])
        self.pages = dict(pages or {})
        self.branches: dict[str, list[str]] = {}
        self.login = login
        self.token = TOKEN
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], int] = {}
        self.page_failures: dict[int, int] = {}
        self.bodies: dict[tuple[str, str], str] = {}
        self.refresh_failure: int | None = None

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_to(self, path: str, method: str = "GET") -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path and r.method == method]

    def writes(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method != "GET"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"message": "Bad credentials"})

        status = self.failures.get((request.method, path))
        if status is not None:
            return httpx.Response(status, json={"message": f"failure {status}"})

        text = self.bodies.get((request.method, path))
        if text is not None:
            return httpx.Response(200, text=text)

        if path == "/user":
            return httpx.Response(200, json={"login": self.login})
        if path == "/user/repos":
            page_status = self.page_failures.get(int(request.url.params.get("page", "1")))
            if page_status is not None:
                return httpx.Response(page_status, json={"message": f"failure {page_status}"})
            if self.refresh_failure and self.writes():
                return httpx.Response(self.refresh_failure, json={"message": f"failure {self.refresh_failure}"})
            return httpx.Response(200, json=self._page(self.repos, request))

        match = PAGES_RE.match(path)
        if match:
            return self._pages(request, f"{match.group(1)}/{match.group(2)}")

        match = BRANCHES_RE.match(path)
        if match:
            names = self.branches.get(f"{match.group(1)}/{match.group(2)}", [])
            return httpx.Response(200, json=self._page([{"name": n, "protected": False} for n in names], request))

        return httpx.Response(404, json={"message": "Not Found"})

    def _page(self, items: list, request: httpx.Request) -> list:
        per_page = int(request.url.params.get("per_page", "30"))
        page = int(request.url.params.get("page", "1"))
        start = (page - 1) * per_page
        return items[start:start + per_page]

    def _pages(self, request: httpx.Request, full_name: str) -> httpx.Response:
        current = self.pages.get(full_name)
        if request.method == "GET":
            if current is None:
                return httpx.Response(404, json={"message": "Not Found"})
            if isinstance(current, int):
                return httpx.Response(current, json={"message": f"failure {current}"})
            return httpx.Response(200, json=current)

        body = json.loads(request.content) if request.content else {}
        if request.method == "POST":
            if isinstance(current, dict):
                return httpx.Response(409, json={"message": "GitHub Pages is already enabled."})
            source = body.get("source") or {}
            self.pages[full_name] = make_site(
                full_name,
                branch=source.get("branch", "main"),
                path=source.get("path", "/"),
                build_type=body.get("build_type", "legacy"),
            )
            return httpx.Response(201, json=self.pages[full_name])
        if request.method == "PUT":
            source = body.get("source") or {}
            self.pages[full_name] = make_site(
                full_name,
                branch=source.get("branch", "main"),
                path=source.get("path", "/"),
                build_type=body.get("build_type", "legacy"),
            )
            return httpx.Response(204)
        if request.method == "DELETE":
            self.pages.pop(full_name, None)
            return httpx.Response(204)
        return httpx.Response(405, json={"message": "Method Not Allowed"})


class RecordingView:
    """View that remembers every notification."""

    def __init__(self):
        self.calls: list[tuple] = []

    def render_loading(self) -> None:
        self.calls.append(("loading",))

    def render(self, collection) -> None:
        self.calls.append(("render", collection))

    def render_failure(self, reason: str) -> None:
        self.calls.append(("failure", reason))

    def rendered(self) -> list:
        return [c[1] for c in self.calls if c[0] == "render"]

    def failures(self) -> list[str]:
        return [c[1] for c in self.calls if c[0] == "failure"]


@pytest.fixture
def fake():
    return FakeGitHub(repos=[make_repo(i) for i in range(1, 4)])


@pytest.fixture
def session():
    return Session(credential=TOKEN)


@pytest_asyncio.fixture
async def client(fake):
    async with GitHubClient(base_url=API_URL, transport=fake.transport()) as c:
        yield c


@pytest.fixture
def view():
    return RecordingView()
