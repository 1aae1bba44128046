"""NuGet-specific helpers: TFM compatibility, management styles, snippets."""

from __future__ import annotations

from depatlas.nuget.snippets import NuGetCopyFormat, STYLE_TO_COPY_FORMAT, get_copy_snippet
from depatlas.nuget.style import NuGetManagementStyle, detect_management_style
from depatlas.nuget.tfm import (
    TfmStatus,
    compute_all_tfms_with_status,
    normalize_tfm_for_lookup,
    normalized_tfm_to_display,
)

__all__ = [
    "NuGetCopyFormat",
    "NuGetManagementStyle",
    "STYLE_TO_COPY_FORMAT",
    "TfmStatus",
    "compute_all_tfms_with_status",
    "detect_management_style",
    "get_copy_snippet",
    "normalize_tfm_for_lookup",
    "normalized_tfm_to_display",
]
