"""Pages deployment data models."""

from datetime import datetime
from enum import Enum
from typing import Any

from gh import PagesSite, Repository
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BuildMode(str, Enum):
    """How GitHub builds the site."""

    WORKFLOW = "workflow"  # GitHub Actions
    LEGACY = "legacy"  # deploy from branch

    @classmethod
    def _missing_(cls, value: object) -> "BuildMode | None":
        if value == "legacy-branch":
            return cls.LEGACY
        return None


class PublicationState(str, Enum):
    """Outcome of the Pages lookup for one repository."""

    PRESENT = "present"
    ABSENT = "absent"
    UNKNOWN = "unknown"  # lookup failed for a reason other than 404


class PublicationRecord(BaseModel):
    """Pages configuration of a repository, or why there is none."""

    model_config = ConfigDict(frozen=True)

    state: PublicationState
    public_url: str | None = None
    source_branch: str | None = None
    source_path: str | None = None
    build_mode: BuildMode | None = None
    error: str | None = None

    @property
    def present(self) -> bool:
        return self.state is PublicationState.PRESENT

    @classmethod
    def from_site(cls, site: PagesSite) -> "PublicationRecord":
        return cls(
            state=PublicationState.PRESENT,
            public_url=site.html_url,
            source_branch=site.source.branch if site.source else None,
            source_path=site.source.path if site.source else None,
            build_mode=BuildMode(site.build_type) if site.build_type else None,
        )

    @classmethod
    def absent(cls) -> "PublicationRecord":
        return cls(state=PublicationState.ABSENT)

    @classmethod
    def unknown(cls, error: str) -> "PublicationRecord":
        return cls(state=PublicationState.UNKNOWN, error=error)


class RepositoryDeployment(BaseModel):
    """A repository joined with its Pages lookup result."""

    model_config = ConfigDict(frozen=True)

    repository: Repository
    publication: PublicationRecord

    @property
    def key(self) -> int:
        return self.repository.id


class DeploymentCollection(BaseModel):
    """Result of one reconciliation pass, in discovery order."""

    model_config = ConfigDict(frozen=True)

    items: tuple[RepositoryDeployment, ...] = ()
    pass_number: int = 0
    fetched_at: datetime = Field(default_factory=datetime.now)

    def get(self, key: int) -> RepositoryDeployment | None:
        """Find an item by repository id."""
        for item in self.items:
            if item.key == key:
                return item
        return None

    def find(self, full_name: str) -> RepositoryDeployment | None:
        """Find an item by `owner/name` (case-insensitive, as on GitHub)."""
        wanted = full_name.lower()
        for item in self.items:
            if item.repository.full_name.lower() == wanted:
                return item
        return None

    def count(self, state: PublicationState) -> int:
        return sum(1 for item in self.items if item.publication.state is state)


class BuildConfig(BaseModel):
    """Build configuration used to create or replace a Pages site."""

    model_config = ConfigDict(frozen=True)

    build_mode: BuildMode = BuildMode.LEGACY
    branch: str | None = None
    path: str | None = None

    @field_validator("build_mode", mode="before")
    @classmethod
    def parse_build_mode(cls, value: Any) -> Any:
        return BuildMode(value) if isinstance(value, str) else value

    @model_validator(mode="after")
    def check_source(self) -> "BuildConfig":
        if self.build_mode is BuildMode.LEGACY and not (self.branch and self.path):
            raise ValueError("branch and path are required to deploy from a branch")
        return self

    def to_payload(self) -> dict[str, Any]:
        """Request body for POST/PUT `/repos/{owner}/{repo}/pages`."""
        if self.build_mode is BuildMode.WORKFLOW:
            return {"build_type": BuildMode.WORKFLOW.value}
        return {
            "build_type": BuildMode.LEGACY.value,
            "source": {"branch": self.branch, "path": self.path},
        }
