"""Unit tests for depatlas.models.package.

Covers the lookup-result invariant of InstalledPackage, scope matching,
and the JSON shapes of the result types.
"""

from __future__ import annotations

import pytest
import dataclasses

from depatlas.models.package import (
    ChangeKind,
    DependencyType,
    Ecosystem,
    FolderScope,
    InstalledPackage,
    ManifestChangeEvent,
    ManifestInfo,
    ManifestScope,
    OperationResult,
)
from depatlas.models.spec import SpecKind


@pytest.fixture
def package() -> InstalledPackage:
    """A resolvable npm dependency of one manifest."""
    return InstalledPackage(
        name="react",
        current_version="18.2.0",
        type=DependencyType.DEPENDENCIES,
        manifest_path="/ws/apps/web/package.json",
        workspace_folder_path="/ws",
        manifest_name="web",
        resolved_version="18.2.0",
        version_specifier="^18.2.0",
    )


@pytest.mark.unit
class TestInstalledPackage:
    """Tests for InstalledPackage."""

    def test_defaults(self, package: InstalledPackage) -> None:
        assert package.ecosystem is Ecosystem.NPM
        assert package.spec_kind is SpecKind.SEMVER
        assert package.has_update is False
        assert package.latest_version is None

    def test_is_immutable(self, package: InstalledPackage) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            package.name = "vue"  # type: ignore[misc]

    def test_with_latest_sets_has_update(self, package: InstalledPackage) -> None:
        updated = package.with_latest("19.0.0", "major")

        assert updated.latest_version == "19.0.0"
        assert updated.update_type == "major"
        assert updated.has_update is True
        assert package.has_update is False

    def test_with_latest_without_update(self, package: InstalledPackage) -> None:
        current = package.with_latest("18.2.0", None)

        assert current.latest_version == "18.2.0"
        assert current.has_update is False

    def test_unresolvable_never_has_update(self) -> None:
        local = InstalledPackage(
            name="shared",
            current_version="workspace local (workspace:*)",
            type=DependencyType.DEPENDENCIES,
            manifest_path="/ws/package.json",
            spec_kind=SpecKind.WORKSPACE,
            is_registry_resolvable=False,
        )

        updated = local.with_latest("2.0.0", "major")

        assert updated.update_type is None
        assert updated.has_update is False

    def test_to_json_omits_unset_optionals(self, package: InstalledPackage) -> None:
        data = package.to_json()

        assert data["type"] == "dependencies"
        assert data["ecosystem"] == "npm"
        assert data["spec_kind"] == "semver"
        assert data["version_specifier"] == "^18.2.0"
        assert "latest_version" not in data
        assert "update_type" not in data

    def test_dependency_type_values(self) -> None:
        assert DependencyType("devDependencies") is DependencyType.DEV
        assert DependencyType.OPTIONAL.value == "optionalDependencies"


@pytest.mark.unit
class TestScopes:
    """Tests for ManifestScope and FolderScope."""

    def test_manifest_scope(self, package: InstalledPackage) -> None:
        assert ManifestScope("/ws/apps/web/package.json").matches(package)
        assert not ManifestScope("/ws/package.json").matches(package)

    def test_folder_scope(self, package: InstalledPackage) -> None:
        assert FolderScope("/ws").matches(package)
        assert not FolderScope("/other").matches(package)

    def test_scopes_are_hashable(self) -> None:
        scopes = {ManifestScope("/a"), ManifestScope("/a"), FolderScope("/a")}
        assert len(scopes) == 2


@pytest.mark.unit
class TestResultTypes:
    def test_operation_result_failure(self) -> None:
        result = OperationResult.failure("nope")

        assert result == OperationResult(success=False, message="nope", updated=0)

    def test_change_event_defaults(self) -> None:
        event = ManifestChangeEvent(ChangeKind.FOLDERS_CHANGED)

        assert event.path is None
        assert ChangeKind("deleted") is ChangeKind.DELETED

    def test_manifest_info_to_json(self) -> None:
        info = ManifestInfo(path="/ws/package.json", name="root", workspace_folder_path="/ws")

        assert info.to_json() == {
            "path": "/ws/package.json",
            "name": "root",
            "workspace_folder_path": "/ws",
        }
