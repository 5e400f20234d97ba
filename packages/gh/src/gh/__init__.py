"""GitHub API client utilities."""

from .client import GitHubClient, Session, authenticate, get_token, repo_path
from .errors import AuthFailure, GitHubError, NotFound, RemoteFailure
from .models import Branch, Owner, PagesSite, PagesSource, Repository, User

__all__ = [
    "GitHubClient",
    "Session",
    "authenticate",
    "get_token",
    "repo_path",
    "GitHubError",
    "AuthFailure",
    "NotFound",
    "RemoteFailure",
    "Branch",
    "Owner",
    "PagesSite",
    "PagesSource",
    "Repository",
    "User",
]
