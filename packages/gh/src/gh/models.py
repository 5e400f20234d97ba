"""GitHub API data models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict


class Owner(BaseModel):
    """Repository owner (user or organization)."""

    model_config = ConfigDict(frozen=True)

    login: str


class Repository(BaseModel):
    """Repository snapshot as returned by `/user/repos`."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    full_name: str
    owner: Owner
    default_branch: str | None = None
    private: bool = False
    html_url: str


class PagesSource(BaseModel):
    """Branch and directory a Pages site is built from."""

    model_config = ConfigDict(frozen=True)

    branch: str
    path: str = "/"


class PagesSite(BaseModel):
    """Pages configuration of a repository (`/repos/{owner}/{repo}/pages`)."""

    model_config = ConfigDict(frozen=True)

    url: str | None = None
    html_url: str | None = None
    status: str | None = None
    build_type: Literal["workflow", "legacy"] | None = None
    source: PagesSource | None = None
    cname: str | None = None
    https_enforced: bool | None = None
    public: bool | None = None


class Branch(BaseModel):
    """Repository branch."""

    name: str
    protected: bool = False


class User(BaseModel):
    """Authenticated user."""

    login: str
    name: str | None = None
    html_url: str | None = None
