"""GitHub Pages deployment manager."""

from .engine import PagesEngine
from .enrich import enrich, lookup_publication
from .errors import MutationFailure, PreconditionError, describe_failure
from .models import (
    BuildConfig,
    BuildMode,
    DeploymentCollection,
    PublicationRecord,
    PublicationState,
    RepositoryDeployment,
)
from .store import CredentialStore, FileCredentialStore
from .view import ConsoleView, NullView, PagesView
from .walker import PAGE_SIZE, RepositoryQuery, list_all

__all__ = [
    "PagesEngine",
    "enrich",
    "lookup_publication",
    "list_all",
    "RepositoryQuery",
    "PAGE_SIZE",
    "BuildConfig",
    "BuildMode",
    "DeploymentCollection",
    "PublicationRecord",
    "PublicationState",
    "RepositoryDeployment",
    "MutationFailure",
    "PreconditionError",
    "describe_failure",
    "CredentialStore",
    "FileCredentialStore",
    "ConsoleView",
    "NullView",
    "PagesView",
]
