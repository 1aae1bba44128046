"""
Copy/run snippets for adding a NuGet package in each management style.

A version of ``*`` means "no version pin": command-line formats drop their
version flag, while the XML and paket formats keep ``*`` literally.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Mapping, Optional

from depatlas.nuget.style import NuGetManagementStyle


class NuGetCopyFormat(str, Enum):
    PACKAGE_REFERENCE = "packagereference"
    DOTNET_CLI = "dotnet-cli"
    CPM = "cpm"
    CPM_PROJECT = "cpm-project"
    PAKET = "paket"
    PAKET_DEPS = "paket-deps"
    CAKE = "cake"
    CAKE_TOOL = "cake-tool"
    PMC = "pmc"
    SCRIPT = "script"
    FILE_BASED = "file-based"


class NuGetRunType(str, Enum):
    TERMINAL = "terminal"
    PMC = "pmc"
    COPY = "copy"


STYLE_TO_COPY_FORMAT: Mapping[NuGetManagementStyle, NuGetCopyFormat] = {
    NuGetManagementStyle.PACKAGE_REFERENCE: NuGetCopyFormat.PACKAGE_REFERENCE,
    NuGetManagementStyle.CPM: NuGetCopyFormat.CPM,
    NuGetManagementStyle.PAKET: NuGetCopyFormat.PAKET,
    NuGetManagementStyle.PACKAGES_CONFIG: NuGetCopyFormat.PMC,
    NuGetManagementStyle.CAKE: NuGetCopyFormat.CAKE,
}

FORMAT_RUN_TYPE: Mapping[NuGetCopyFormat, NuGetRunType] = {
    NuGetCopyFormat.PACKAGE_REFERENCE: NuGetRunType.COPY,
    NuGetCopyFormat.DOTNET_CLI: NuGetRunType.TERMINAL,
    NuGetCopyFormat.CPM: NuGetRunType.COPY,
    NuGetCopyFormat.CPM_PROJECT: NuGetRunType.COPY,
    NuGetCopyFormat.PAKET: NuGetRunType.TERMINAL,
    NuGetCopyFormat.PAKET_DEPS: NuGetRunType.COPY,
    NuGetCopyFormat.CAKE: NuGetRunType.COPY,
    NuGetCopyFormat.CAKE_TOOL: NuGetRunType.COPY,
    NuGetCopyFormat.PMC: NuGetRunType.PMC,
    NuGetCopyFormat.SCRIPT: NuGetRunType.COPY,
    NuGetCopyFormat.FILE_BASED: NuGetRunType.COPY,
}


def _pinned(version: str, template: str) -> str:
    return "" if version == "*" else template.format(version=version)


_SNIPPETS: Dict[NuGetCopyFormat, Callable[[str, str], str]] = {
    NuGetCopyFormat.PACKAGE_REFERENCE: lambda pid, v: f'    <PackageReference Include="{pid}" Version="{v}" />',
    NuGetCopyFormat.DOTNET_CLI: lambda pid, v: f"dotnet add package {pid}" + _pinned(v, " --version {version}"),
    NuGetCopyFormat.CPM: lambda pid, v: f'    <PackageVersion Include="{pid}" Version="{v}" />',
    NuGetCopyFormat.CPM_PROJECT: lambda pid, v: f'    <PackageReference Include="{pid}" />',
    NuGetCopyFormat.PAKET: lambda pid, v: f"paket add {pid}" + _pinned(v, " --version {version}"),
    NuGetCopyFormat.PAKET_DEPS: lambda pid, v: f"nuget {pid} {v}",
    NuGetCopyFormat.CAKE: lambda pid, v: f"#addin nuget:?package={pid}" + _pinned(v, "&version={version}"),
    NuGetCopyFormat.CAKE_TOOL: lambda pid, v: f"#tool nuget:?package={pid}" + _pinned(v, "&version={version}"),
    NuGetCopyFormat.PMC: lambda pid, v: f"Install-Package {pid}" + _pinned(v, " -Version {version}"),
    NuGetCopyFormat.SCRIPT: lambda pid, v: f'#r "nuget: {pid}' + _pinned(v, ", {version}") + '"',
    NuGetCopyFormat.FILE_BASED: lambda pid, v: f"#:package {pid}" + _pinned(v, "@{version}"),
}


def get_copy_snippet(
    package_id: str,
    version: Optional[str] = None,
    copy_format: NuGetCopyFormat = NuGetCopyFormat.PACKAGE_REFERENCE,
) -> str:
    """Return the text that adds ``package_id`` in ``copy_format``.

    Examples:
        >>> get_copy_snippet("Serilog", "3.1.1", NuGetCopyFormat.DOTNET_CLI)
        'dotnet add package Serilog --version 3.1.1'
        >>> get_copy_snippet("Serilog", None, NuGetCopyFormat.PMC)
        'Install-Package Serilog'
    """
    return _SNIPPETS[NuGetCopyFormat(copy_format)](package_id, version or "*")
