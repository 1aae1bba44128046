"""
Per-format manifest extraction and in-place editing.

Parsing is deliberately pattern based rather than a full XML/YAML parse:
the editors must rewrite a single version token and leave every other byte
of the document untouched, and the readers accept exactly the syntax the
editors can rewrite. Accepted shapes::

    package.json               {"dependencies": {"x": "^1.0.0"}, ...}
    pom.xml                    <dependency><groupId/><artifactId/><version/>...
    Directory.Packages.props   <PackageVersion Include="X" Version="1.0" />
    *.csproj/*.vbproj/*.fsproj <PackageReference Include="X" Version="1.0" />
    packages.config            <package id="X" version="1.0" />
    paket.dependencies         nuget X 1.0   |   nuget X >= 1.0
    *.cake                     #addin nuget:?package=X&version=1.0
"""

from __future__ import annotations

import re
import json
from enum import Enum
from pathlib import PurePath
from dataclasses import dataclass
from urllib.parse import parse_qsl
from typing import Any, Callable, Dict, List, Optional, Tuple

from depatlas.constants import DEPENDENCY_TYPES
from depatlas.exceptions import DepAtlasError, ParseError
from depatlas.models.package import DependencyType
from depatlas.utils.filesystem import ManifestFileSystem
from depatlas.utils.logger import get_logger
from depatlas.utils.sorting import locale_key

logger = get_logger("manifests")


class ManifestKind(str, Enum):
    """File formats the aggregator reads."""

    PACKAGE_JSON = "package.json"
    POM_XML = "pom.xml"
    CPM = "cpm"
    PAKET = "paket"
    PACKAGES_CONFIG = "packages.config"
    PROJECT = "project"
    CAKE = "cake"


_PROJECT_SUFFIXES = (".csproj", ".vbproj", ".fsproj")


def manifest_kind(path: str) -> Optional[ManifestKind]:
    """Return the manifest format of ``path`` from its file name."""
    name = PurePath(path.replace("\\", "/")).name
    lower = name.lower()

    if name == "package.json":
        return ManifestKind.PACKAGE_JSON
    if name == "pom.xml":
        return ManifestKind.POM_XML
    if lower == "directory.packages.props":
        return ManifestKind.CPM
    if lower == "paket.dependencies":
        return ManifestKind.PAKET
    if lower == "packages.config":
        return ManifestKind.PACKAGES_CONFIG
    if lower.endswith(_PROJECT_SUFFIXES):
        return ManifestKind.PROJECT
    if lower.endswith(".cake"):
        return ManifestKind.CAKE
    return None


@dataclass(frozen=True)
class ManifestEntry:
    """One dependency declaration read from a manifest."""

    name: str
    version: str
    type: DependencyType = DependencyType.DEPENDENCIES


# ---------------------------------------------------------------------------
# package.json
# ---------------------------------------------------------------------------


def load_package_json(text: str, path: Optional[str] = None) -> Dict[str, Any]:
    """Decode a package.json document.

    Raises:
        ParseError: Malformed JSON or a non-object document.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(
            f"Invalid JSON: {exc.msg}",
            line_number=exc.lineno,
            file_path=path,
        ) from exc

    if not isinstance(data, dict):
        raise ParseError("package.json must contain a JSON object", file_path=path)
    return data


def dump_package_json(data: Dict[str, Any]) -> str:
    """Serialize like ``JSON.stringify(data, null, 2)`` plus a newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def package_json_name(data: Any) -> Optional[str]:
    if isinstance(data, dict) and isinstance(data.get("name"), str):
        return data["name"]
    return None


def iter_package_json_dependencies(data: Dict[str, Any]) -> List[ManifestEntry]:
    """Declared dependencies of every bucket, in bucket then file order.

    Non-object buckets and non-string specifiers are ignored.
    """
    entries: List[ManifestEntry] = []
    for bucket in DEPENDENCY_TYPES:
        deps = data.get(bucket)
        if not isinstance(deps, dict):
            continue
        for name, spec in deps.items():
            if isinstance(spec, str):
                entries.append(ManifestEntry(name, spec, DependencyType(bucket)))
    return entries


# ---------------------------------------------------------------------------
# pom.xml
# ---------------------------------------------------------------------------

_POM_DEPENDENCIES_RE = re.compile(r"<dependencies>(.*?)</dependencies>", re.DOTALL)
_POM_DEPENDENCY_RE = re.compile(r"<dependency>(.*?)</dependency>", re.DOTALL)


def _extract_tag(tag: str, content: str) -> Optional[str]:
    match = re.search(rf"<{tag}>(.*?)</{tag}>", content, re.DOTALL)
    return match.group(1).strip() if match else None


def _maven_dependency_type(scope: str, optional: Optional[str]) -> DependencyType:
    if optional == "true":
        return DependencyType.OPTIONAL
    if scope == "test":
        return DependencyType.DEV
    if scope == "provided":
        return DependencyType.PEER
    return DependencyType.DEPENDENCIES


def parse_pom_xml(xml: str) -> Tuple[Optional[str], List[ManifestEntry]]:
    """Extract ``(project artifactId, dependencies)`` from a pom.xml.

    Only the first ``<dependencies>`` block is read. Dependencies without
    a groupId or artifactId are skipped; a missing version becomes ``""``.
    The project name is the first ``<artifactId>`` of the document.
    """
    entries: List[ManifestEntry] = []
    block = _POM_DEPENDENCIES_RE.search(xml)

    if block:
        for dependency in _POM_DEPENDENCY_RE.finditer(block.group(1)):
            content = dependency.group(1)
            group_id = _extract_tag("groupId", content)
            artifact_id = _extract_tag("artifactId", content)
            if not group_id or not artifact_id:
                continue

            entries.append(
                ManifestEntry(
                    name=f"{group_id}:{artifact_id}",
                    version=_extract_tag("version", content) or "",
                    type=_maven_dependency_type(
                        _extract_tag("scope", content) or "compile",
                        _extract_tag("optional", content),
                    ),
                )
            )

    return _extract_tag("artifactId", xml), entries


# ---------------------------------------------------------------------------
# NuGet XML manifests
# ---------------------------------------------------------------------------

_ATTRIBUTE_RE = re.compile(r"""([\w.:-]+)\s*=\s*(["'])(.*?)\2""", re.DOTALL)
_PACKAGE_VERSION_TAG_RE = re.compile(r"<PackageVersion\b([^>]*?)/?>", re.DOTALL)
_PACKAGE_REFERENCE_TAG_RE = re.compile(r"<PackageReference\b([^>]*?)/?>", re.DOTALL)
_PACKAGES_CONFIG_TAG_RE = re.compile(r"<package\b([^>]*?)/?>", re.DOTALL)


def _attributes(text: str) -> Dict[str, str]:
    return {match.group(1).lower(): match.group(3) for match in _ATTRIBUTE_RE.finditer(text)}


def _entries_from_tags(
    pattern: "re.Pattern[str]",
    text: str,
    id_attr: str,
    version_attr: str,
) -> List[ManifestEntry]:
    entries: List[ManifestEntry] = []
    for tag in pattern.finditer(text):
        attrs = _attributes(tag.group(1))
        package_id = attrs.get(id_attr)
        version = attrs.get(version_attr)
        if package_id and version:
            entries.append(ManifestEntry(package_id, version))
    return entries


def parse_cpm_props(text: str) -> List[ManifestEntry]:
    """``<PackageVersion Include=... Version=...>`` pins, any attribute order."""
    return _entries_from_tags(_PACKAGE_VERSION_TAG_RE, text, "include", "version")


def parse_package_references(text: str) -> List[ManifestEntry]:
    """Versioned ``<PackageReference>`` items of a project file.

    References without a ``Version`` attribute (CPM-managed) are skipped.
    """
    return _entries_from_tags(_PACKAGE_REFERENCE_TAG_RE, text, "include", "version")


def parse_packages_config(text: str) -> List[ManifestEntry]:
    return _entries_from_tags(_PACKAGES_CONFIG_TAG_RE, text, "id", "version")


# ---------------------------------------------------------------------------
# paket.dependencies
# ---------------------------------------------------------------------------

_PAKET_LINE_RE = re.compile(
    r"^(?P<prefix>[ \t]*nuget[ \t]+(?P<id>\S+)[ \t]+(?:(?:~>|>=|<=|==|>|<|=)[ \t]*)?)"
    r"(?P<version>[^\s~]\S*)",
    re.MULTILINE,
)


def parse_paket_dependencies(text: str) -> List[ManifestEntry]:
    """``nuget <id> <version>`` lines; a leading range operator is skipped."""
    return [
        ManifestEntry(match.group("id"), match.group("version"))
        for match in _PAKET_LINE_RE.finditer(text)
    ]


# ---------------------------------------------------------------------------
# .cake
# ---------------------------------------------------------------------------

_CAKE_DIRECTIVE_RE = re.compile(
    r"""^(?P<prefix>[ \t]*\#(?:addin|tool)[ \t]+["']?nuget:[^?\s"']*\?)(?P<query>[^\s"']+)""",
    re.MULTILINE,
)


def _cake_query(query: str) -> Dict[str, str]:
    return {key.lower(): value for key, value in parse_qsl(query, keep_blank_values=True)}


def parse_cake_file(text: str) -> List[ManifestEntry]:
    """``#addin``/``#tool`` NuGet directives that pin a version."""
    entries: List[ManifestEntry] = []
    for match in _CAKE_DIRECTIVE_RE.finditer(text):
        query = _cake_query(match.group("query"))
        package_id = query.get("package")
        version = query.get("version")
        if package_id and version:
            entries.append(ManifestEntry(package_id, version))
    return entries


def parse_manifest(kind: ManifestKind, text: str) -> Tuple[Optional[str], List[ManifestEntry]]:
    """Dispatch to the reader for a non-package.json ``kind``.

    Returns ``(manifest name, entries)``; only pom.xml declares a name.
    """
    if kind is ManifestKind.POM_XML:
        return parse_pom_xml(text)
    readers: Dict[ManifestKind, Callable[[str], List[ManifestEntry]]] = {
        ManifestKind.CPM: parse_cpm_props,
        ManifestKind.PAKET: parse_paket_dependencies,
        ManifestKind.PACKAGES_CONFIG: parse_packages_config,
        ManifestKind.PROJECT: parse_package_references,
        ManifestKind.CAKE: parse_cake_file,
    }
    reader = readers.get(kind)
    if reader is None:
        raise ParseError(f"Unsupported manifest kind: {kind.value}")
    return None, reader(text)


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------


def set_package_json_dependency(
    data: Dict[str, Any],
    name: str,
    version: str,
    dep_type: DependencyType,
) -> None:
    """Set ``name`` in one bucket and re-sort that bucket by name."""
    bucket = data.get(dep_type.value)
    if not isinstance(bucket, dict):
        bucket = {}
    bucket[name] = version
    data[dep_type.value] = dict(sorted(bucket.items(), key=lambda item: locale_key(item[0])))


def align_package_json_dependency(
    data: Dict[str, Any],
    name: str,
    target: str,
    is_resolvable: Callable[[str], bool],
) -> bool:
    """Rewrite ``name`` to ``target`` in every bucket where it differs.

    Entries whose current specifier is not registry resolvable are left
    alone. Returns whether anything changed.
    """
    changed = False
    for bucket in DEPENDENCY_TYPES:
        deps = data.get(bucket)
        if not isinstance(deps, dict):
            continue
        current = deps.get(name)
        if not isinstance(current, str) or not is_resolvable(current):
            continue
        if current != target:
            deps[name] = target
            changed = True
    return changed


def replace_maven_version(xml: str, group_id: str, artifact_id: str, version: str) -> str:
    pattern = re.compile(
        r"(<dependency>\s*<groupId>"
        + re.escape(group_id)
        + r"</groupId>\s*<artifactId>"
        + re.escape(artifact_id)
        + r"</artifactId>\s*<version>)([^<]+)(</version>)",
        re.DOTALL,
    )
    return pattern.sub(lambda m: m.group(1) + version + m.group(3), xml, count=1)


def _replace_tag_attribute(
    pattern: "re.Pattern[str]",
    text: str,
    package_id: str,
    id_attr: str,
    version_attr: str,
    version: str,
) -> str:
    def rewrite(tag: "re.Match[str]") -> str:
        body = tag.group(0)
        attrs = _attributes(tag.group(1))
        if attrs.get(id_attr, "").lower() != package_id.lower() or version_attr not in attrs:
            return body
        return re.sub(
            rf"""(\b{version_attr}\s*=\s*(["']))(.*?)(\2)""",
            lambda m: m.group(1) + version + m.group(4),
            body,
            count=1,
            flags=re.IGNORECASE | re.DOTALL,
        )

    return pattern.sub(rewrite, text)


def replace_cpm_version(text: str, package_id: str, version: str) -> str:
    return _replace_tag_attribute(
        _PACKAGE_VERSION_TAG_RE, text, package_id, "include", "version", version
    )


def replace_paket_version(text: str, package_id: str, version: str) -> str:
    def rewrite(match: "re.Match[str]") -> str:
        if match.group("id").lower() != package_id.lower():
            return match.group(0)
        return match.group("prefix") + version

    return _PAKET_LINE_RE.sub(rewrite, text)


def replace_cake_version(text: str, package_id: str, version: str) -> str:
    def rewrite(match: "re.Match[str]") -> str:
        query_text = match.group("query")
        query = _cake_query(query_text)
        if query.get("package", "").lower() != package_id.lower() or "version" not in query:
            return match.group(0)
        new_query = re.sub(
            r"(?i)(\bversion=)[^&]*",
            lambda m: m.group(1) + version,
            query_text,
            count=1,
        )
        return match.group("prefix") + new_query

    return _CAKE_DIRECTIVE_RE.sub(rewrite, text)


class ManifestEditor:
    """Apply single-version edits to manifests on disk.

    Every method returns ``True`` only if the file was rewritten; no-ops
    and failures return ``False`` and are logged.
    """

    def __init__(self, fs: ManifestFileSystem) -> None:
        self.fs = fs

    def _rewrite(self, path: str, transform: Callable[[str], str]) -> bool:
        text = self.fs.read_text(path)
        if text is None:
            logger.warning("Cannot edit %s: file is not readable", path)
            return False

        try:
            updated = transform(text)
        except DepAtlasError as exc:
            logger.warning("Cannot edit %s: %s", path, exc)
            return False

        if updated == text:
            return False

        try:
            self.fs.write_text(path, updated)
        except DepAtlasError as exc:
            logger.error("Failed to write %s: %s", path, exc)
            return False

        logger.info("Updated %s", path)
        return True

    def update_package_json(
        self,
        path: str,
        name: str,
        version: str,
        dep_type: DependencyType = DependencyType.DEPENDENCIES,
    ) -> bool:
        """Set ``name`` to ``version`` in ``dep_type``, creating the bucket."""

        def transform(text: str) -> str:
            data = load_package_json(text, path)
            set_package_json_dependency(data, name, version, dep_type)
            return dump_package_json(data)

        return self._rewrite(path, transform)

    def update_maven_dependency(
        self,
        pom_path: str,
        group_id: str,
        artifact_id: str,
        version: str,
    ) -> bool:
        return self._rewrite(
            pom_path,
            lambda xml: replace_maven_version(xml, group_id, artifact_id, version),
        )

    def update_cpm_package_version(self, props_path: str, package_id: str, version: str) -> bool:
        return self._rewrite(
            props_path, lambda text: replace_cpm_version(text, package_id, version)
        )

    def update_paket_dependency(self, path: str, package_id: str, version: str) -> bool:
        return self._rewrite(path, lambda text: replace_paket_version(text, package_id, version))

    def update_cake_reference(self, path: str, package_id: str, version: str) -> bool:
        return self._rewrite(path, lambda text: replace_cake_version(text, package_id, version))

    def align_package_json(
        self,
        path: str,
        name: str,
        target: str,
        is_resolvable: Callable[[str], bool],
    ) -> bool:
        """Rewrite ``name`` to ``target`` in one package.json.

        The document is re-serialized only when an entry changed.
        """

        def transform(text: str) -> str:
            data = load_package_json(text, path)
            if not align_package_json_dependency(data, name, target, is_resolvable):
                return text
            return dump_package_json(data)

        return self._rewrite(path, transform)

