"""Unit tests for depatlas.utils.version_utils.

Covers component extraction for npm and Maven style versions, the total
ordering used for comparisons, and update-type classification.
"""

from __future__ import annotations

import pytest

from depatlas.utils.version_utils import (
    VersionComponents,
    compare_versions,
    get_update_type,
    is_newer_version,
    parse_version_components,
    sort_versions,
)


@pytest.mark.unit
class TestParseVersionComponents:
    """Tests for parse_version_components."""

    def test_plain_semver(self) -> None:
        assert parse_version_components("1.2.3") == VersionComponents(1, 2, 3)

    def test_missing_components_default_to_zero(self) -> None:
        parts = parse_version_components("4")
        assert (parts.major, parts.minor, parts.patch) == (4, 0, 0)
        assert parts.build is None

    def test_fourth_segment_is_build(self) -> None:
        assert parse_version_components("1.2.3.4").build == 4

    def test_release_qualifier_stripped(self) -> None:
        """Maven ``.RELEASE`` and ``.FINAL`` mean a plain release."""
        assert parse_version_components("5.3.20.RELEASE") == VersionComponents(5, 3, 20)
        assert parse_version_components("3.6.0.Final") == VersionComponents(3, 6, 0)

    @pytest.mark.parametrize(
        "version, token",
        [
            ("2.0.0-SNAPSHOT", "SNAPSHOT"),
            ("2.0.0-M1", "M1"),
            ("2.0.0.RC2", "RC2"),
            ("1.0.0-alpha", "ALPHA"),
            ("1.0.0_beta", "BETA"),
            ("1.0.0-a1", "A1"),
            ("1.0.0-b3", "B3"),
        ],
    )
    def test_prerelease_tokens(self, version: str, token: str) -> None:
        parts = parse_version_components(version)
        assert parts.prerelease == token
        assert (parts.major, parts.minor, parts.patch) == (int(version[0]), 0, 0)

    def test_non_numeric_segments_count_as_zero(self) -> None:
        parts = parse_version_components("1.x.3")
        assert (parts.major, parts.minor, parts.patch) == (1, 0, 3)

    def test_leading_digits_of_segment_used(self) -> None:
        assert parse_version_components("1.2.3beta").patch == 3


@pytest.mark.unit
class TestCompareVersions:
    """Tests for compare_versions."""

    @pytest.mark.parametrize("version", ["1.2.3", "2.0.0-SNAPSHOT", "1.0.0-rc1", "5.3.20.RELEASE", "1.2.3.4"])
    def test_reflexive(self, version: str) -> None:
        assert compare_versions(version, version) == 0

    @pytest.mark.parametrize(
        "lower, higher",
        [
            ("1.2.3", "1.2.4"),
            ("1.2.3", "1.3.0"),
            ("1.9.9", "2.0.0"),
            ("2.0.0-SNAPSHOT", "2.0.0"),
            ("1.0.0-alpha", "1.0.0-beta"),
            ("1.0.0-rc1", "1.0.0-rc2"),
            ("1.0.0-SNAPSHOT", "1.0.0-alpha"),
            ("1.0.0-beta", "1.0.0-M1"),
            ("1.0.0-M9", "1.0.0-RC1"),
            ("1.0.0-M1", "1.0.0-M2"),
            ("1.2.3", "1.2.3.1"),
            ("1.2.3.1", "1.2.3.2"),
        ],
    )
    def test_ordering_and_antisymmetry(self, lower: str, higher: str) -> None:
        assert compare_versions(lower, higher) == -1
        assert compare_versions(higher, lower) == 1

    def test_release_qualifier_equals_plain(self) -> None:
        assert compare_versions("5.3.20.RELEASE", "5.3.20") == 0

    def test_missing_build_counts_as_zero(self) -> None:
        assert compare_versions("1.2.3", "1.2.3.0") == 0

    def test_is_newer_version(self) -> None:
        assert is_newer_version("1.0.0", "1.0.1")
        assert not is_newer_version("1.0.1", "1.0.0")
        assert not is_newer_version("1.0.0", "1.0.0")

    def test_sort_versions(self) -> None:
        versions = ["1.10.0", "1.2.0", "2.0.0-RC1", "2.0.0", "1.2.0-SNAPSHOT"]
        assert sort_versions(versions) == ["1.2.0-SNAPSHOT", "1.2.0", "1.10.0", "2.0.0-RC1", "2.0.0"]
        assert sort_versions(versions, reverse=True)[0] == "2.0.0"


@pytest.mark.unit
class TestGetUpdateType:
    """Tests for get_update_type."""

    @pytest.mark.parametrize(
        "current, latest, expected",
        [
            ("1.2.3", "1.2.4", "patch"),
            ("1.2.3", "1.3.0", "minor"),
            ("1.2.3", "2.0.0", "major"),
            ("2.0.0-SNAPSHOT", "2.0.0", "prerelease"),
            ("1.0.0-rc1", "1.0.0-rc2", "prerelease"),
            ("1.0.0-rc1", "1.0.1", "patch"),
            ("1.2.3.1", "1.2.3.2", "patch"),
        ],
    )
    def test_classification(self, current: str, latest: str, expected: str) -> None:
        assert get_update_type(current, latest) == expected

    def test_same_version_is_none(self) -> None:
        assert get_update_type("1.2.3", "1.2.3") is None

    def test_older_latest_is_none(self) -> None:
        assert get_update_type("2.0.0", "1.9.9") is None

    def test_build_only_on_one_side_is_not_classified(self) -> None:
        """The newer build is ordered higher but only classified when both sides have one."""
        assert compare_versions("1.2.3", "1.2.3.1") < 0
        assert get_update_type("1.2.3", "1.2.3.1") is None
