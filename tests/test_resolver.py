"""
Tests for requirement resolution across the default, installed and remote sources.
"""

import pytest

from runtime_manager.core.errors import NoDefaultSet, NoSatisfyingVersion, NoVersionsForTrain
from runtime_manager.domain.models import Settings
from runtime_manager.domain.versioning import ReleaseTrain, VersionRequirement


def req(text):
    return VersionRequirement.parse(text)


@pytest.fixture
def populated(bucket, install_dir):
    """Default 1.0.0, installed [0.9.0, 1.0.0], catalog [0.9.0, 1.0.0, 1.1.0]."""
    for version in ["0.9.0", "1.0.0", "1.1.0"]:
        bucket.add_version(version)
    install_dir("0.9.0")
    install_dir("1.0.0")
    return Settings(default_runtime="1.0.0")


class TestResolve:
    @pytest.mark.asyncio
    async def test_default_wins_without_touching_catalog(self, resolver, bucket, populated):
        runtime_version = await resolver.resolve(req("^1.0.0"), populated)

        assert str(runtime_version.version) == "1.0.0"
        assert runtime_version.builds == []
        assert bucket.requests == []

    @pytest.mark.asyncio
    async def test_unsatisfiable_requirement_consults_every_source(self, resolver, bucket, populated):
        with pytest.raises(NoSatisfyingVersion) as exc_info:
            await resolver.resolve(req("^2.0.0"), populated)

        assert str(exc_info.value.requirement) == "^2.0.0"
        assert "^2.0.0" in str(exc_info.value)
        assert len(bucket.listing_requests) == 1

    @pytest.mark.asyncio
    async def test_installed_version_used_when_default_does_not_match(self, resolver, bucket, populated):
        runtime_version = await resolver.resolve(req("<1.0.0"), populated)

        assert str(runtime_version.version) == "0.9.0"
        assert bucket.requests == []

    @pytest.mark.asyncio
    async def test_catalog_used_last(self, resolver, bucket, populated):
        runtime_version = await resolver.resolve(req(">=1.1.0"), populated)

        assert str(runtime_version.version) == "1.1.0"
        assert len(runtime_version.builds) == 3
        assert len(bucket.listing_requests) == 1

    @pytest.mark.asyncio
    async def test_catalog_returns_lowest_satisfying_version(self, resolver, bucket):
        for version in ["1.3.0", "1.1.0", "1.2.0", "2.0.0"]:
            bucket.add_build(version)

        runtime_version = await resolver.resolve(req("^1.1.0"), Settings())

        assert str(runtime_version.version) == "1.1.0"

    @pytest.mark.asyncio
    async def test_catalog_includes_private_and_nightly_versions(self, resolver, bucket):
        bucket.add_build("0.3.0-nightly-2023-01-01")
        bucket.add_build("0.3.0-internal-x")

        nightly = await resolver.resolve(req("=0.3.0-nightly-2023-01-01"), Settings())
        internal = await resolver.resolve(req("=0.3.0-internal-x"), Settings())

        assert str(nightly.version) == "0.3.0-nightly-2023-01-01"
        assert str(internal.version) == "0.3.0-internal-x"

    @pytest.mark.asyncio
    async def test_nightly_default_does_not_satisfy_plain_range(self, resolver, bucket, install_dir):
        bucket.add_build("1.1.0")
        settings = Settings(default_runtime="1.2.0-nightly-2023-09-01")

        runtime_version = await resolver.resolve(req(">=1.0.0"), settings)

        assert str(runtime_version.version) == "1.1.0"

    @pytest.mark.asyncio
    async def test_pinned_nightly_ignores_other_dates(self, resolver, bucket, install_dir):
        install_dir("0.3.0-nightly-2023-01-01")
        bucket.add_build("0.3.0-nightly-2023-02-01")

        runtime_version = await resolver.resolve(req("=0.3.0-nightly-2023-02-01"), Settings())

        assert str(runtime_version.version) == "0.3.0-nightly-2023-02-01"

    @pytest.mark.asyncio
    async def test_unparseable_runtime_directories_are_ignored(self, resolver, bucket, install_dir):
        install_dir("not-a-version")
        install_dir("1.0.0")

        runtime_version = await resolver.resolve(req("^1.0.0"), Settings())

        assert str(runtime_version.version) == "1.0.0"
        assert bucket.requests == []


class TestResolveCurrent:
    @pytest.mark.asyncio
    async def test_project_requirement_takes_precedence(self, resolver, populated):
        runtime_version = await resolver.resolve_current(req("<1.0.0"), populated)

        assert str(runtime_version.version) == "0.9.0"

    @pytest.mark.asyncio
    async def test_falls_back_to_default(self, resolver, bucket):
        runtime_version = await resolver.resolve_current(None, Settings(default_runtime="1.0.0"))

        assert str(runtime_version.version) == "1.0.0"
        assert bucket.requests == []

    @pytest.mark.asyncio
    async def test_no_default_set(self, resolver):
        with pytest.raises(NoDefaultSet):
            await resolver.resolve_current(None, Settings())


class TestResolveLatestForTrain:
    @pytest.mark.asyncio
    async def test_latest_nightly_uses_semantic_order(self, resolver, bucket):
        for version in ["0.3.0-nightly-2023-02-01", "0.4.0", "0.3.0-nightly-2023-01-01"]:
            bucket.add_build(version)

        runtime_version = await resolver.resolve_latest_for_train(ReleaseTrain.NIGHTLY, False)

        assert str(runtime_version.version) == "0.3.0-nightly-2023-02-01"

    @pytest.mark.asyncio
    async def test_latest_stable_with_multi_digit_components(self, resolver, bucket):
        for version in ["0.10.0", "0.9.0", "0.11.0-nightly-2023-01-01"]:
            bucket.add_build(version)

        runtime_version = await resolver.resolve_latest_for_train(ReleaseTrain.STABLE, True)

        assert str(runtime_version.version) == "0.10.0"

    @pytest.mark.asyncio
    async def test_latest_internal(self, resolver, bucket):
        for version in ["0.2.0-internal-a", "0.2.0-internal-b", "0.3.0"]:
            bucket.add_build(version)

        runtime_version = await resolver.resolve_latest_for_train(ReleaseTrain.INTERNAL)

        assert str(runtime_version.version) == "0.2.0-internal-b"

    @pytest.mark.asyncio
    async def test_falls_back_to_nightly_when_allowed(self, resolver, bucket):
        bucket.add_build("0.1.0-nightly-2023-01-01")
        bucket.add_build("0.1.0-nightly-2023-03-01")

        runtime_version = await resolver.resolve_latest_for_train(ReleaseTrain.STABLE, True)

        assert str(runtime_version.version) == "0.1.0-nightly-2023-03-01"

    @pytest.mark.asyncio
    async def test_no_versions_for_train(self, resolver, bucket):
        bucket.add_build("0.1.0-nightly-2023-01-01")

        with pytest.raises(NoVersionsForTrain) as exc_info:
            await resolver.resolve_latest_for_train(ReleaseTrain.STABLE, False)
        assert exc_info.value.train is ReleaseTrain.STABLE
        assert "stable" in str(exc_info.value)
