"""Pages engine errors."""

from gh import AuthFailure, GitHubError, NotFound


class PreconditionError(ValueError):
    """Mutation rejected before any request was sent."""

    @classmethod
    def unknown_item(cls, key: int) -> "PreconditionError":
        return cls(f"no repository with id {key} in the current view")

    @classmethod
    def already_enabled(cls) -> "PreconditionError":
        return cls("Pages is already enabled")

    @classmethod
    def not_enabled(cls) -> "PreconditionError":
        return cls("Pages is not enabled")


class MutationFailure(RuntimeError):
    """A write (enable/update/disable) did not go through."""

    def __init__(
        self,
        op: str,
        item_key: int,
        cause: Exception,
        repository: str | None = None,
    ):
        self.op = op
        self.item_key = item_key
        self.cause = cause
        self.repository = repository
        target = repository or f"#{item_key}"
        super().__init__(f"repository {target}: {op} failed: {cause}")


def describe_failure(error: Exception) -> str:
    """Human-readable message distinguishing collection and per-repository failures."""
    if isinstance(error, MutationFailure):
        return str(error)
    if isinstance(error, AuthFailure):
        return f"could not load repositories: authentication failed ({error})"
    if isinstance(error, NotFound):
        return f"could not load repositories: {error.path} does not exist"
    if isinstance(error, GitHubError):
        return f"could not load repositories: {error}"
    return str(error)
