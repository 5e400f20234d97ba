"""Tests for deployment models."""
import pytest
from pydantic import ValidationError

from gh import AuthFailure, NotFound, PagesSite, RemoteFailure, Repository
from pagesync import (
    BuildConfig,
    BuildMode,
    DeploymentCollection,
    PublicationRecord,
    PublicationState,
    RepositoryDeployment,
    describe_failure,
)
from pagesync.errors import MutationFailure

from .conftest import make_repo, make_site


class TestBuildConfig:
    """Tests for BuildConfig."""

    def test_workflow_payload_has_no_source(self):
        config = BuildConfig(build_mode=BuildMode.WORKFLOW, branch="ignored", path="/")
        assert config.to_payload() == {"build_type": "workflow"}

    def test_branch_payload(self):
        config = BuildConfig(build_mode="legacy", branch="gh-pages", path="/docs")
        assert config.to_payload() == {
            "build_type": "legacy",
            "source": {"branch": "gh-pages", "path": "/docs"},
        }

    @pytest.mark.parametrize("fields", [{"branch": "main"}, {"path": "/"}, {}])
    def test_branch_mode_requires_branch_and_path(self, fields):
        with pytest.raises(ValidationError):
            BuildConfig(build_mode=BuildMode.LEGACY, **fields)

    def test_unknown_mode_is_rejected(self):
        with pytest.raises(ValidationError):
            BuildConfig(build_mode="jekyll")

    def test_legacy_branch_alias(self):
        config = BuildConfig(build_mode="legacy-branch", branch="main", path="/")

        assert config.build_mode is BuildMode.LEGACY
        assert config.to_payload()["build_type"] == "legacy"
        assert BuildMode("legacy-branch") is BuildMode.LEGACY


class TestPublicationRecord:
    """Tests for PublicationRecord."""

    def test_from_site(self):
        site = PagesSite(**make_site("octocat/repo-1", branch="main", path="/docs", build_type="workflow"))
        record = PublicationRecord.from_site(site)

        assert record.present
        assert record.public_url == "https://octocat.github.io/repo-1/"
        assert record.build_mode is BuildMode.WORKFLOW
        assert (record.source_branch, record.source_path) == ("main", "/docs")

    def test_site_without_source(self):
        record = PublicationRecord.from_site(PagesSite(html_url="https://x.github.io/", build_type="workflow"))
        assert record.source_branch is None
        assert record.present

    def test_absent_and_unknown_are_not_present(self):
        assert not PublicationRecord.absent().present
        unknown = PublicationRecord.unknown("502 Bad Gateway")
        assert not unknown.present
        assert unknown.state is PublicationState.UNKNOWN
        assert unknown.error == "502 Bad Gateway"


class TestDeploymentCollection:
    """Tests for DeploymentCollection lookups."""

    def make_collection(self) -> DeploymentCollection:
        items = tuple(
            RepositoryDeployment(
                repository=Repository(**make_repo(i)),
                publication=PublicationRecord.absent() if i % 2 else PublicationRecord.unknown("x"),
            )
            for i in range(1, 4)
        )
        return DeploymentCollection(items=items, pass_number=3)

    def test_get_by_key(self):
        collection = self.make_collection()
        assert collection.get(1002).repository.name == "repo-2"
        assert collection.get(42) is None

    def test_find_by_full_name_ignores_case(self):
        collection = self.make_collection()
        assert collection.find("OctoCat/Repo-3").key == 1003
        assert collection.find("octocat/missing") is None

    def test_count(self):
        collection = self.make_collection()
        assert collection.count(PublicationState.ABSENT) == 2
        assert collection.count(PublicationState.UNKNOWN) == 1

    def test_is_immutable(self):
        collection = self.make_collection()
        with pytest.raises(ValidationError):
            collection.pass_number = 4

    def test_repository_ignores_extra_fields(self):
        repo = Repository(**make_repo(1))
        assert not hasattr(repo, "stargazers_count")


class TestDescribeFailure:
    """Tests for user-facing failure messages."""

    def test_collection_failures(self):
        assert describe_failure(RemoteFailure(500, "Server Error")) == (
            "could not load repositories: 500 Server Error"
        )
        assert describe_failure(NotFound("/user/repos")) == (
            "could not load repositories: /user/repos does not exist"
        )
        assert describe_failure(AuthFailure.missing_token()).startswith(
            "could not load repositories: authentication failed"
        )

    def test_repository_failures(self):
        failure = MutationFailure("disable", 1001, RemoteFailure(409, "Conflict"), "octocat/repo-1")
        assert describe_failure(failure) == "repository octocat/repo-1: disable failed: 409 Conflict"

    def test_network_failure_without_status(self):
        assert str(RemoteFailure(None, "timed out")) == "Request failed: timed out"
