"""Tests for target validation and resolution."""

import pytest

from spellcaster.config import SpellConfig
from spellcaster.errors import ConflictError, NotFoundError
from spellcaster.models import TargetKind, TargetSpec
from spellcaster.targets import TargetValidator, library_root


@pytest.fixture
def validator(project):
    return TargetValidator(SpellConfig(project_root=project.root))


class TestTargetSpecParse:
    """Tests for TargetSpec.parse."""

    def test_plain(self):
        spec = TargetSpec.parse("dist-npm")
        assert spec.kind is TargetKind.PLAIN_NPM
        assert spec.sub_name is None

    def test_library(self):
        spec = TargetSpec.parse("dist-libs/sdk")
        assert spec.kind is TargetKind.MULTI_LIBRARY
        assert spec.sub_name == "sdk"
        assert spec.label == "dist-libs/sdk"

    def test_backslashes_normalised(self):
        assert TargetSpec.parse("dist-libs\\sdk").sub_name == "sdk"

    def test_custom_keeps_whole_path(self):
        spec = TargetSpec.parse("build/out/")
        assert spec.kind is TargetKind.CUSTOM
        assert spec.name == "build/out"


class TestValidate:
    """Tests for the conflict rules."""

    def test_valid_list_in_order(self, validator):
        specs = validator.validate(["dist-npm", "dist-jsr", "dist-libs"])
        assert [s.name for s in specs] == ["dist-npm", "dist-jsr", "dist-libs"]

    def test_specific_libraries(self, validator):
        specs = validator.validate(["dist-libs/sdk", "dist-libs/cli"])
        assert [s.sub_name for s in specs] == ["sdk", "cli"]

    @pytest.mark.parametrize("targets", [
        ["dist-libs", "dist-libs/sdk"],
        ["dist-libs/sdk", "dist-libs"],
        ["dist-libs/sdk", "dist-libs/sdk"],
        ["dist-libs", "dist-libs"],
        ["dist-npm", "dist-npm"],
        ["dist-npm/extra"],
        [""],
        ["   "],
    ])
    def test_conflicts(self, validator, targets):
        with pytest.raises(ConflictError):
            validator.validate(targets)

    def test_conflict_carries_target(self, validator):
        with pytest.raises(ConflictError) as exc_info:
            validator.validate(["dist-npm", "dist-npm"])
        assert exc_info.value.target == "dist-npm"

    def test_missing_builtin_root_is_not_an_error(self, validator):
        assert len(validator.validate(["dist-jsr"])) == 1

    def test_custom_must_exist(self, validator, project):
        with pytest.raises(NotFoundError) as exc_info:
            validator.validate(["build/out"])
        assert exc_info.value.path == project.root / "build" / "out"

    def test_custom_existing(self, validator, project):
        project.mkdir("build/out")
        specs = validator.validate(["build/out"])
        assert specs[0].kind is TargetKind.CUSTOM

    def test_custom_duplicate(self, validator, project):
        project.mkdir("out")
        with pytest.raises(ConflictError):
            validator.validate(["out", "out/"])

    @pytest.mark.parametrize("second", ["./out", "out/.", "sub/../out"])
    def test_custom_duplicate_by_directory(self, validator, project, second):
        project.mkdir("out")
        project.mkdir("sub")
        with pytest.raises(ConflictError):
            validator.validate(["out", second])

    def test_custom_duplicate_absolute_path(self, validator, project):
        project.mkdir("out")
        with pytest.raises(ConflictError):
            validator.validate(["out", str(project.root / "out")])

    def test_validation_touches_nothing(self, validator, project):
        project.write("dist-npm/bin/a.js", "a // <dler-remove-line>")
        with pytest.raises(ConflictError):
            validator.validate(["dist-npm", "dist-npm"])
        assert project.read("dist-npm/bin/a.js") == "a // <dler-remove-line>"


class TestResolve:
    """Tests for spec -> concrete output trees."""

    @pytest.mark.asyncio
    async def test_bare_libs_expands_per_library(self, validator, project):
        project.mkdir("dist-libs/sdk")
        project.mkdir("dist-libs/cli")

        resolved = await validator.resolve(TargetSpec.parse("dist-libs"))

        assert [t.sub_name for t in resolved] == ["cli", "sdk"]
        assert library_root(resolved[1]) == project.root / "dist-libs" / "sdk"

    @pytest.mark.asyncio
    async def test_bare_libs_missing_root(self, validator):
        assert await validator.resolve(TargetSpec.parse("dist-libs")) == []

    @pytest.mark.asyncio
    async def test_plain(self, validator, project):
        resolved = await validator.resolve(TargetSpec.parse("dist-npm"))

        assert len(resolved) == 1
        assert resolved[0].root == project.root / "dist-npm"
        assert resolved[0].label == "dist-npm"

    @pytest.mark.asyncio
    async def test_custom_override(self, project):
        config = SpellConfig(project_root=project.root, custom_output_paths={"dist-npm": "out/npm"})

        resolved = await TargetValidator(config).resolve(TargetSpec.parse("dist-npm"))

        assert resolved[0].root == project.root / "out" / "npm"
