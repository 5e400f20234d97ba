"""GitHub API errors."""


class GitHubError(RuntimeError):
    """Base class for failures raised by the GitHub client."""


class AuthFailure(GitHubError):
    """Credential is missing or was rejected (401/403)."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)

    @classmethod
    def missing_token(cls) -> "AuthFailure":
        return cls("No GitHub token available")

    @classmethod
    def rejected(cls, status: int, reason: str) -> "AuthFailure":
        return cls(f"GitHub rejected the token: {status} {reason}", status=status)


class NotFound(GitHubError):
    """Target resource does not exist (404)."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Not found: {path}")


class RemoteFailure(GitHubError):
    """Any other unsuccessful response, or no response at all."""

    def __init__(self, status: int | None, reason: str):
        self.status = status
        self.reason = reason
        if status is None:
            super().__init__(f"Request failed: {reason}")
        else:
            super().__init__(f"{status} {reason}")
