"""
NuGet target framework moniker (TFM) normalization and compatibility.

NuGet reports frameworks in catalog form (``.NETFramework4.6.1``,
``.NETStandard1.3``) while packages ship in short folder form (``net461``,
``netstandard1.3``). This module folds both into the short form and
expands a package's declared frameworks into every framework that can
consume it.

The compatibility relation is a closed lookup table (:data:`DERIVED_MAP`)
mirroring NuGet's published framework mappings; nothing is derived from
version arithmetic except the net5+ platform variants.

Typical usage::

    >>> normalize_tfm_for_lookup(".NETFramework4.6.1")
    'net461'
    >>> statuses = compute_all_tfms_with_status(["netstandard2.0"])
    >>> statuses["netstandard2.0"], statuses["net8.0"]
    (<TfmStatus.COMPATIBLE: 'compatible'>, <TfmStatus.COMPUTED: 'computed'>)
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, Iterable, Mapping, Tuple

__all__ = [
    "TfmStatus",
    "DERIVED_MAP",
    "NET_PLATFORM_SUFFIXES",
    "normalize_tfm_for_lookup",
    "normalized_tfm_to_display",
    "compute_all_tfms_with_status",
]

#: Net 5 era: NetCoreApp/NetPlatform from this major version on use ``net``.
NET5_ERA_MAJOR = 5


class TfmStatus(str, Enum):
    """How a framework relates to a package."""

    #: Declared by the package itself.
    COMPATIBLE = "compatible"
    #: Implied by a declared framework through the compatibility table.
    COMPUTED = "computed"


_NET_FRAMEWORKS_46 = ("net46", "net461", "net462", "net47", "net471", "net472", "net48", "net481")
_NETCOREAPP_10_31 = (
    "netcoreapp1.0",
    "netcoreapp1.1",
    "netcoreapp2.0",
    "netcoreapp2.1",
    "netcoreapp3.0",
    "netcoreapp3.1",
)
_NET5_PLUS = ("net5.0", "net6.0", "net7.0", "net8.0", "net9.0", "net10.0")

#: Declared TFM -> frameworks that implicitly consume it.
DERIVED_MAP: Mapping[str, Tuple[str, ...]] = {
    "netstandard1.0": ("net45", "netcoreapp1.0", "netcoreapp1.1", "uap10.0", "win8", "wp8", "wpa81"),
    "netstandard1.1": (
        "net45",
        "netcoreapp1.0",
        "netcoreapp1.1",
        "netcoreapp2.0",
        "netcoreapp2.1",
        "netcoreapp3.1",
        "uap10.0",
    ),
    "netstandard1.2": (
        "net45",
        "net46",
        "netcoreapp1.0",
        "netcoreapp1.1",
        "netcoreapp2.0",
        "netcoreapp2.1",
        "netcoreapp3.1",
        "uap10.0",
    ),
    "netstandard1.3": (
        "net46", "net461", "net462", "net463", "net47", "net471", "net472", "net48", "net481",
        *_NETCOREAPP_10_31,
        *_NET5_PLUS,
        "uap10.0", "monoandroid10", "monotouch10", "xamarinios10", "xamarinmac20",
        "xamarintvos10", "xamarinwatchos10",
    ),
    "netstandard1.4": (*_NET_FRAMEWORKS_46, *_NETCOREAPP_10_31, *_NET5_PLUS, "uap10.0"),
    "netstandard1.5": (*_NET_FRAMEWORKS_46, *_NETCOREAPP_10_31, *_NET5_PLUS, "uap10.0"),
    "netstandard1.6": (*_NET_FRAMEWORKS_46, *_NETCOREAPP_10_31, *_NET5_PLUS, "uap10.0", "tizen30"),
    "netstandard1.7": (*_NETCOREAPP_10_31[1:], *_NET5_PLUS),
    "netstandard2.0": (
        "net461", "net462", "net463", "net47", "net471", "net472", "net48", "net481",
        "netcoreapp2.0", "netcoreapp2.1", "netcoreapp2.2", "netcoreapp3.0", "netcoreapp3.1",
        *_NET5_PLUS,
        "uap10.0", "tizen40",
    ),
    "netstandard2.1": (
        "net461", "net462", "net47", "net471", "net472", "net48", "net481",
        "netcoreapp2.1", "netcoreapp3.0", "netcoreapp3.1",
        *_NET5_PLUS,
        "tizen60",
    ),
    "net45": ("net451", "net452", *_NET_FRAMEWORKS_46),
    "net46": ("net461", "net462", "net463", "net47", "net471", "net472", "net48", "net481"),
    "net461": ("net462", "net463", "net47", "net471", "net472", "net48", "net481"),
    "net462": ("net463", "net47", "net471", "net472", "net48", "net481"),
    "net463": ("net47", "net471", "net472", "net48", "net481"),
    "net47": ("net471", "net472", "net48", "net481"),
    "net471": ("net472", "net48", "net481"),
    "net472": ("net48", "net481"),
    "net48": ("net481",),
    "netcoreapp1.0": ("netcoreapp1.1", "netcoreapp2.0", "netcoreapp2.1", "netcoreapp2.2", "netcoreapp3.0", "netcoreapp3.1", *_NET5_PLUS),
    "netcoreapp1.1": ("netcoreapp2.0", "netcoreapp2.1", "netcoreapp2.2", "netcoreapp3.0", "netcoreapp3.1", *_NET5_PLUS),
    "netcoreapp2.0": ("netcoreapp2.1", "netcoreapp2.2", "netcoreapp3.0", "netcoreapp3.1", *_NET5_PLUS),
    "netcoreapp2.1": ("netcoreapp2.2", "netcoreapp3.0", "netcoreapp3.1", *_NET5_PLUS),
    "netcoreapp2.2": ("netcoreapp3.0", "netcoreapp3.1", *_NET5_PLUS),
    "netcoreapp3.0": ("netcoreapp3.1", *_NET5_PLUS),
    "netcoreapp3.1": _NET5_PLUS,
    "net5.0": _NET5_PLUS[1:],
    "net6.0": _NET5_PLUS[2:],
    "net7.0": _NET5_PLUS[3:],
    "net8.0": _NET5_PLUS[4:],
    "net9.0": _NET5_PLUS[5:],
}

#: Platform variants synthesized for every declared net5+ TFM.
NET_PLATFORM_SUFFIXES: Tuple[str, ...] = (
    "windows",
    "android",
    "ios",
    "maccatalyst",
    "macos",
    "tvos",
    "browser",
)

_XAMARIN_IDENTIFIERS = (
    (re.compile(r"xamarin\.mac", re.IGNORECASE), "xamarinmac"),
    (re.compile(r"xamarin\.ios", re.IGNORECASE), "xamarinios"),
    (re.compile(r"xamarin\.tvos", re.IGNORECASE), "xamarintvos"),
    (re.compile(r"xamarin\.watchos", re.IGNORECASE), "xamarinwatchos"),
)

_NET_FRAMEWORK_RE = re.compile(r"^netframework(\d+)\.(\d+)(?:\.(\d+))?(?:\.(\d+))?$")
_LEADING_VERSION_RE = re.compile(r"^(\d+)\.(\d+)")
_SHORT_NET_RE = re.compile(r"^net\d+\.\d+")
_COMPACT_VERSION_RE = re.compile(
    r"^(monoandroid|monotouch|monomac|xamarinios|xamarinmac|xamarintvos|xamarinwatchos"
    r"|uap|tizen|win)(\d+)\.(\d+)$"
)
_SHORT_NET_FRAMEWORK_RE = re.compile(r"^net(4)(\d+)$")
_SHORT_MONO_RE = re.compile(
    r"^(monoandroid|monotouch|monomac|xamarinios|xamarinmac|xamarintvos|xamarinwatchos)(\d)(\d)$"
)
_UNIFIED_NET_RE = re.compile(r"^net(\d+)\.(\d+)$")

_DISPLAY_PREFIXES: Mapping[str, str] = {
    "monoandroid": "MonoAndroid",
    "monotouch": "MonoTouch",
    "monomac": "MonoMac",
    "xamarinios": "Xamarin.iOS",
    "xamarinmac": "Xamarin.Mac",
    "xamarintvos": "Xamarin.TVOS",
    "xamarinwatchos": "Xamarin.WatchOS",
}


def _fold_net5_era(rest: str, legacy_prefix: str) -> str:
    version = _LEADING_VERSION_RE.match(rest)
    if version and int(version.group(1)) >= NET5_ERA_MAJOR:
        return f"net{version.group(1)}.{version.group(2)}"
    return legacy_prefix + rest


def normalize_tfm_for_lookup(tfm: str) -> str:
    """Return the lower-case short folder form of a TFM.

    Examples:
        >>> normalize_tfm_for_lookup(".NETFramework4.6")
        'net46'
        >>> normalize_tfm_for_lookup(".NETCoreApp5.0")
        'net5.0'
        >>> normalize_tfm_for_lookup("Xamarin.iOS1.0")
        'xamarinios10'
    """
    value = tfm.strip().lower()
    if value.startswith("."):
        value = value[1:]
    for pattern, replacement in _XAMARIN_IDENTIFIERS:
        value = pattern.sub(replacement, value)
    if not value:
        return ""

    framework = _NET_FRAMEWORK_RE.match(value)
    if framework:
        major, minor = framework.group(1), framework.group(2)
        build = int(framework.group(3)) if framework.group(3) else 0
        # .NET Framework folders drop the dots: 4.6 -> 46, 4.6.1 -> 461.
        return f"net{int(major)}{int(minor)}" + (str(build) if build > 0 else "")

    if value.startswith("netstandard"):
        return value

    if value.startswith("netcoreapp"):
        return _fold_net5_era(value[len("netcoreapp"):], "netcoreapp")

    if value.startswith("netplatform"):
        return _fold_net5_era(value[len("netplatform"):], "dotnet")

    if _SHORT_NET_RE.match(value):
        return value

    compact = _COMPACT_VERSION_RE.match(value)
    if compact:
        return compact.group(1) + compact.group(2) + compact.group(3)

    return value


def normalized_tfm_to_display(normalized: str) -> str:
    """Render a short .NET Framework or Mono/Xamarin TFM in catalog form.

    Other monikers, including ``net5.0`` and later, are returned unchanged.

    Examples:
        >>> normalized_tfm_to_display("net461")
        '.NETFramework4.6.1'
        >>> normalized_tfm_to_display("xamarinmac20")
        'Xamarin.Mac2.0'
    """
    value = normalized.strip().lower()
    if not value:
        return ""

    framework = _SHORT_NET_FRAMEWORK_RE.match(value)
    if framework:
        digits = framework.group(2)
        minor = int(digits[0])
        build = int(digits[1:]) if len(digits) > 1 else 0
        version = f"4.{minor}.{build}" if build > 0 else f"4.{minor}"
        return f".NETFramework{version}"

    mono = _SHORT_MONO_RE.match(value)
    if mono:
        prefix = _DISPLAY_PREFIXES.get(mono.group(1), mono.group(1))
        return f"{prefix}{mono.group(2)}.{mono.group(3)}"

    return normalized


def compute_all_tfms_with_status(declared_tfms: Iterable[str]) -> Dict[str, TfmStatus]:
    """Expand declared TFMs into every framework that can consume them.

    Declared frameworks are :attr:`TfmStatus.COMPATIBLE`; frameworks reached
    through :data:`DERIVED_MAP` or net5+ platform variants are
    :attr:`TfmStatus.COMPUTED`. A compatible entry is never downgraded.
    Insertion order is preserved: declared first, then derivations.
    """
    declared = [normalize_tfm_for_lookup(tfm) for tfm in declared_tfms]
    declared_set = {tfm for tfm in declared if tfm}
    result: Dict[str, TfmStatus] = {}

    def add(tfm: str, status: TfmStatus) -> None:
        if tfm and result.get(tfm) is not TfmStatus.COMPATIBLE:
            result[tfm] = status

    for tfm in declared:
        add(tfm, TfmStatus.COMPATIBLE)

    for tfm in dict.fromkeys(t for t in declared if t):
        for derived in DERIVED_MAP.get(tfm, ()):
            if derived not in declared_set:
                add(derived, TfmStatus.COMPUTED)

        unified = _UNIFIED_NET_RE.match(tfm)
        if unified and int(unified.group(1)) >= NET5_ERA_MAJOR:
            version = f"{unified.group(1)}.{unified.group(2)}"
            for suffix in NET_PLATFORM_SUFFIXES:
                variant = f"net{version}-{suffix}"
                if variant not in declared_set:
                    add(variant, TfmStatus.COMPUTED)

    return result
