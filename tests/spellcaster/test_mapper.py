"""Tests for the source <-> output correspondence mapper."""

from pathlib import Path

import pytest

from spellcaster.config import SpellConfig
from spellcaster.mapper import (
    CorrespondenceMapper,
    RegistryCache,
    output_extensions,
    source_names,
    split_name,
)
from spellcaster.models import ResolvedTarget, SourceFile, TargetKind


def _source(project, rel):
    return SourceFile(absolute_path=project.root / rel, relative_path=rel, line_count=1)


def _plain(project, name="dist-npm"):
    kind = TargetKind.PLAIN_NPM if name == "dist-npm" else TargetKind.PLAIN_JSR
    return ResolvedTarget(kind=kind, root=project.root / name)


def _library(project, lib):
    return ResolvedTarget(kind=TargetKind.MULTI_LIBRARY, root=project.root / "dist-libs", sub_name=lib)


@pytest.fixture
def mapper(project):
    return CorrespondenceMapper(SpellConfig(project_root=project.root))


class TestNameHelpers:
    """Tests for extension handling."""

    def test_split_name(self):
        assert split_name("a.d.ts") == ("a", ".d.ts")
        assert split_name("a.ts") == ("a", ".ts")
        assert split_name("Makefile") == ("Makefile", "")

    def test_output_extensions(self):
        assert output_extensions("a.ts") == [".js", ".ts"]
        assert output_extensions("a.d.ts") == [".d.ts"]
        assert output_extensions("a.json") == [".json"]

    def test_source_names(self):
        assert source_names("a.js") == ["a.ts", "a.js"]
        assert source_names("a.d.ts") == ["a.d.ts"]


class TestPlainTargets:
    """Tests for dist-npm / dist-jsr layouts."""

    @pytest.mark.asyncio
    async def test_ts_source_maps_to_js_and_ts(self, project, mapper):
        project.write("src/utils/x.ts", "")
        project.write("dist-npm/bin/utils/x.js", "")
        project.write("dist-npm/bin/utils/x.ts", "")

        outputs = await mapper.find_outputs(_source(project, "src/utils/x.ts"), _plain(project))

        assert outputs == [
            project.root / "dist-npm/bin/utils/x.js",
            project.root / "dist-npm/bin/utils/x.ts",
        ]

    @pytest.mark.asyncio
    async def test_missing_candidates_are_omitted(self, project, mapper):
        project.write("src/x.ts", "")
        project.write("dist-npm/bin/x.js", "")

        outputs = await mapper.find_outputs(_source(project, "src/x.ts"), _plain(project))

        assert outputs == [project.root / "dist-npm/bin/x.js"]

    @pytest.mark.asyncio
    async def test_declaration_file(self, project, mapper):
        project.write("src/types.d.ts", "")
        project.write("dist-npm/bin/types.d.ts", "")
        project.write("dist-npm/bin/types.js", "")

        outputs = await mapper.find_outputs(_source(project, "src/types.d.ts"), _plain(project))

        assert outputs == [project.root / "dist-npm/bin/types.d.ts"]

    @pytest.mark.asyncio
    async def test_missing_root(self, project, mapper):
        project.write("src/x.ts", "")
        assert await mapper.find_outputs(_source(project, "src/x.ts"), _plain(project)) == []

    @pytest.mark.asyncio
    async def test_js_shadowed_by_ts_sibling(self, project, mapper):
        project.write("src/x.ts", "")
        project.write("src/x.js", "")
        project.write("dist-npm/bin/x.js", "")
        target = _plain(project)

        from_ts = await mapper.find_outputs(_source(project, "src/x.ts"), target)
        from_js = await mapper.find_outputs(_source(project, "src/x.js"), target)

        assert from_ts == [project.root / "dist-npm/bin/x.js"]
        assert from_js == []

    @pytest.mark.asyncio
    async def test_correspondence_sets_are_disjoint(self, project, mapper):
        sources = []
        for rel in ("src/a.ts", "src/a.js", "src/b.ts", "src/types.d.ts", "src/c.json"):
            project.write(rel, "")
            sources.append(_source(project, rel))
        for rel in ("a.js", "a.ts", "b.js", "types.d.ts", "c.json"):
            project.write(f"dist-npm/bin/{rel}", "")
        target = _plain(project)

        seen = set()
        for source in sources:
            outputs = set(await mapper.find_outputs(source, target))
            assert not (outputs & seen)
            seen |= outputs

        assert len(seen) == 5


class TestMultiLibraryTargets:
    """Tests for dist-libs/<lib>/<registry>/bin layouts."""

    @pytest.mark.asyncio
    async def test_registries_per_library(self, project, mapper):
        project.write("src/libs/sdk/index.ts", "")
        project.write("src/libs/cli/index.ts", "")
        project.write("dist-libs/sdk/npm/bin/index.js", "")
        project.write("dist-libs/sdk/jsr/bin/index.ts", "")
        project.write("dist-libs/cli/npm/bin/index.js", "")

        sdk = await mapper.find_outputs(_source(project, "src/libs/sdk/index.ts"), _library(project, "sdk"))
        cli = await mapper.find_outputs(_source(project, "src/libs/cli/index.ts"), _library(project, "cli"))

        assert set(sdk) == {
            project.root / "dist-libs/sdk/npm/bin/index.js",
            project.root / "dist-libs/sdk/jsr/bin/index.ts",
        }
        assert len(sdk) == 2
        assert cli == [project.root / "dist-libs/cli/npm/bin/index.js"]

    @pytest.mark.asyncio
    async def test_source_outside_library(self, project, mapper):
        project.write("src/other.ts", "")
        project.write("dist-libs/sdk/npm/bin/other.js", "")

        outputs = await mapper.find_outputs(_source(project, "src/other.ts"), _library(project, "sdk"))

        assert outputs == []

    @pytest.mark.asyncio
    async def test_bare_library_target_maps_nothing(self, project, mapper):
        project.write("src/libs/sdk/index.ts", "")
        bare = ResolvedTarget(kind=TargetKind.MULTI_LIBRARY, root=project.root / "dist-libs")

        assert await mapper.find_outputs(_source(project, "src/libs/sdk/index.ts"), bare) == []


class TestRegistryCache:
    """Tests for the per-run registry cache."""

    @pytest.mark.asyncio
    async def test_only_known_registries(self, project):
        project.mkdir("dist-libs/sdk/npm")
        project.mkdir("dist-libs/sdk/docs")
        cache = RegistryCache()

        assert await cache.get(project.root / "dist-libs", "sdk") == ["npm"]
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_all_registries(self, project):
        project.mkdir("dist-libs/sdk/npm")
        project.mkdir("dist-libs/sdk/jsr")
        project.mkdir("dist-libs/cli/npm")

        found = await RegistryCache().all_registries(project.root / "dist-libs")

        assert sorted(found) == ["jsr", "npm"]

    @pytest.mark.asyncio
    async def test_caches_are_independent(self, project):
        project.mkdir("dist-libs/sdk/npm")
        first = RegistryCache()
        await first.get(project.root / "dist-libs", "sdk")

        project.mkdir("dist-libs/sdk/jsr")
        second = RegistryCache()

        assert await first.get(project.root / "dist-libs", "sdk") == ["npm"]
        assert sorted(await second.get(project.root / "dist-libs", "sdk")) == ["jsr", "npm"]


class TestFindSource:
    """Tests for the output -> source lookup used by the refresh phase."""

    @pytest.mark.asyncio
    async def test_prefers_ts_source(self, project, mapper):
        project.write("src/a/x.ts", "")
        project.write("src/a/x.js", "")

        source = await mapper.find_source(project.root / "dist-npm/bin/a/x.js", _plain(project))

        assert source == project.root / "src/a/x.ts"

    @pytest.mark.asyncio
    async def test_library_output(self, project, mapper):
        project.write("src/libs/sdk/x.ts", "")

        source = await mapper.find_source(
            project.root / "dist-libs/sdk/jsr/bin/x.ts", _library(project, "sdk")
        )

        assert source == project.root / "src/libs/sdk/x.ts"

    @pytest.mark.asyncio
    async def test_no_source(self, project, mapper):
        assert await mapper.find_source(project.root / "dist-npm/bin/gone.js", _plain(project)) is None

    @pytest.mark.asyncio
    async def test_custom_target(self, project, mapper):
        custom = ResolvedTarget(kind=TargetKind.CUSTOM, root=project.root / "out")
        assert await mapper.find_source(Path(project.root / "out/x.js"), custom) is None
