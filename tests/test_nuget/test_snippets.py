from __future__ import annotations

import pytest

from depatlas.nuget.snippets import (
    FORMAT_RUN_TYPE,
    STYLE_TO_COPY_FORMAT,
    NuGetCopyFormat,
    NuGetRunType,
    get_copy_snippet,
)
from depatlas.nuget.style import NuGetManagementStyle


@pytest.mark.unit
class TestGetCopySnippet:
    """Tests for get_copy_snippet."""

    @pytest.mark.parametrize(
        "copy_format, expected",
        [
            (NuGetCopyFormat.PACKAGE_REFERENCE, '    <PackageReference Include="Serilog" Version="3.1.1" />'),
            (NuGetCopyFormat.DOTNET_CLI, "dotnet add package Serilog --version 3.1.1"),
            (NuGetCopyFormat.CPM, '    <PackageVersion Include="Serilog" Version="3.1.1" />'),
            (NuGetCopyFormat.CPM_PROJECT, '    <PackageReference Include="Serilog" />'),
            (NuGetCopyFormat.PAKET, "paket add Serilog --version 3.1.1"),
            (NuGetCopyFormat.PAKET_DEPS, "nuget Serilog 3.1.1"),
            (NuGetCopyFormat.CAKE, "#addin nuget:?package=Serilog&version=3.1.1"),
            (NuGetCopyFormat.CAKE_TOOL, "#tool nuget:?package=Serilog&version=3.1.1"),
            (NuGetCopyFormat.PMC, "Install-Package Serilog -Version 3.1.1"),
            (NuGetCopyFormat.SCRIPT, '#r "nuget: Serilog, 3.1.1"'),
            (NuGetCopyFormat.FILE_BASED, "#:package Serilog@3.1.1"),
        ],
    )
    def test_pinned(self, copy_format: NuGetCopyFormat, expected: str) -> None:
        assert get_copy_snippet("Serilog", "3.1.1", copy_format) == expected

    @pytest.mark.parametrize(
        "copy_format, expected",
        [
            (NuGetCopyFormat.DOTNET_CLI, "dotnet add package Serilog"),
            (NuGetCopyFormat.PMC, "Install-Package Serilog"),
            (NuGetCopyFormat.CAKE, "#addin nuget:?package=Serilog"),
            (NuGetCopyFormat.SCRIPT, '#r "nuget: Serilog"'),
            (NuGetCopyFormat.PACKAGE_REFERENCE, '    <PackageReference Include="Serilog" Version="*" />'),
            (NuGetCopyFormat.PAKET_DEPS, "nuget Serilog *"),
        ],
    )
    def test_unpinned(self, copy_format: NuGetCopyFormat, expected: str) -> None:
        assert get_copy_snippet("Serilog", None, copy_format) == expected
        assert get_copy_snippet("Serilog", "*", copy_format) == expected

    def test_format_by_value(self) -> None:
        assert get_copy_snippet("Serilog", "3.1.1", "dotnet-cli") == "dotnet add package Serilog --version 3.1.1"

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError):
            get_copy_snippet("Serilog", "3.1.1", "npm")


@pytest.mark.unit
class TestMappings:
    """Every style and format has a mapping."""

    def test_every_style_has_format(self) -> None:
        assert set(STYLE_TO_COPY_FORMAT) == set(NuGetManagementStyle)
        assert STYLE_TO_COPY_FORMAT[NuGetManagementStyle.PACKAGES_CONFIG] is NuGetCopyFormat.PMC

    def test_every_format_has_run_type(self) -> None:
        assert set(FORMAT_RUN_TYPE) == set(NuGetCopyFormat)
        assert FORMAT_RUN_TYPE[NuGetCopyFormat.DOTNET_CLI] is NuGetRunType.TERMINAL
