"""
Workspace project graph.

:class:`WorkspaceGraphBuilder` reads every package.json of the workspace
and produces a :class:`~depatlas.models.WorkspaceProjectGraph`:

1. one node per readable manifest, tagged with the monorepo tool of its
   workspace folder;
2. dependencies are linked to other projects by package name, or for
   ``file:``/path specs by resolving the path to a project manifest;
3. inverse ``local_dependents`` edges are derived from those links;
4. registry dependencies declared with different specs by different
   projects are reported as alignment issues.

Edges only ever point at nodes of the same graph, and every list in the
result is sorted so repeated builds compare equal.
"""

from __future__ import annotations

import os
import asyncio
from pathlib import Path
from typing import Dict, List, Optional

from depatlas.core.discovery import ManifestDiscovery
from depatlas.core.manifests import iter_package_json_dependencies
from depatlas.core.spec_parser import parse_dependency_spec, strip_local_spec_prefix
from depatlas.models.spec import SpecKind
from depatlas.models.workspace import (
    MonorepoTool,
    WorkspaceAlignmentIssue,
    WorkspaceDependencyConsumer,
    WorkspaceProjectDependency,
    WorkspaceProjectGraph,
    WorkspaceProjectNode,
)
from depatlas.utils.filesystem import ManifestFileSystem
from depatlas.utils.logger import get_logger
from depatlas.utils.sorting import locale_key

logger = get_logger("graph")


def extract_project_dependencies(package_json: Dict) -> List[WorkspaceProjectDependency]:
    """Dependencies of one package.json, sorted by name."""
    dependencies = []
    for entry in iter_package_json_dependencies(package_json):
        spec = parse_dependency_spec(entry.version)
        dependencies.append(
            WorkspaceProjectDependency(
                name=entry.name,
                spec=entry.version,
                type=entry.type,
                spec_kind=spec.kind,
            )
        )
    return sorted(dependencies, key=lambda dep: locale_key(dep.name))


def compute_alignment_issues(
    projects: List[WorkspaceProjectNode],
) -> List[WorkspaceAlignmentIssue]:
    """Group registry declarations by name and report divergent specs.

    Dependencies linked to a workspace project, and workspace, file, path
    or git specs, never take part.
    """
    consumers_by_name: Dict[str, List[WorkspaceDependencyConsumer]] = {}

    for project in projects:
        for dependency in project.dependencies:
            if dependency.local_project_path or dependency.spec_kind.is_local:
                continue
            consumers_by_name.setdefault(dependency.name, []).append(
                WorkspaceDependencyConsumer(
                    manifest_path=project.manifest_path,
                    manifest_name=project.name,
                    relative_path=project.relative_path,
                    type=dependency.type,
                    spec=dependency.spec,
                )
            )

    issues = []
    for name, consumers in consumers_by_name.items():
        specs = list(dict.fromkeys(consumer.spec for consumer in consumers))
        if len(specs) < 2:
            continue
        issues.append(
            WorkspaceAlignmentIssue(
                package_name=name,
                specs=sorted(specs, key=locale_key),
                consumers=sorted(consumers, key=lambda c: locale_key(c.relative_path)),
            )
        )

    return sorted(issues, key=lambda issue: locale_key(issue.package_name))


class WorkspaceGraphBuilder:
    """Build the project graph of the package.json projects of a workspace."""

    def __init__(self, fs: ManifestFileSystem, discovery: ManifestDiscovery) -> None:
        self.fs = fs
        self.discovery = discovery

    def detect_monorepo_tool(self, manifest_path: str) -> MonorepoTool:
        """Tool of the workspace folder owning ``manifest_path``.

        Checked in order: nx.json, lerna.json, pnpm-workspace.yaml, a
        ``workspaces`` field in the root package.json.
        """
        folder = self.discovery.workspace_folder_for(manifest_path)
        if folder is None:
            return MonorepoTool.PLAIN

        if self.fs.exists(os.path.join(folder, "nx.json")):
            return MonorepoTool.NX
        if self.fs.exists(os.path.join(folder, "lerna.json")):
            return MonorepoTool.LERNA
        if self.fs.exists(os.path.join(folder, "pnpm-workspace.yaml")):
            return MonorepoTool.PNPM_WORKSPACE

        root = self.fs.read_json(os.path.join(folder, "package.json"))
        if isinstance(root, dict) and root.get("workspaces"):
            return MonorepoTool.NPM_WORKSPACES
        return MonorepoTool.PLAIN

    def resolve_local_manifest_path(self, source_manifest: str, raw_spec: str) -> Optional[str]:
        """package.json a ``file:``/path spec points at, if it exists."""
        target = Path(os.path.dirname(source_manifest), strip_local_spec_prefix(raw_spec), "package.json")
        if not self.fs.exists(target):
            return None
        return str(target.resolve())

    def _build_node(self, manifest_path: str) -> Optional[WorkspaceProjectNode]:
        package_json = self.fs.read_json(manifest_path)
        if not isinstance(package_json, dict):
            logger.debug("Skipping unreadable project manifest %s", manifest_path)
            return None

        name = package_json.get("name")
        name = name.strip() if isinstance(name, str) else ""
        return WorkspaceProjectNode(
            name=name or self.discovery.fallback_manifest_name(manifest_path),
            manifest_path=manifest_path,
            relative_path=self.discovery.relative_path(manifest_path),
            tool=self.detect_monorepo_tool(manifest_path),
            workspace_folder_path=self.discovery.workspace_folder_for(manifest_path),
            dependencies=extract_project_dependencies(package_json),
        )

    def _link(self, projects: List[WorkspaceProjectNode]) -> None:
        by_name = {project.name: project for project in projects}
        by_path = {project.manifest_path: project for project in projects}

        for project in projects:
            for dependency in project.dependencies:
                if dependency.local_project_path:
                    continue
                target = by_name.get(dependency.name)
                if target is not None:
                    dependency.local_project_path = target.manifest_path
                elif dependency.spec_kind in (SpecKind.FILE, SpecKind.PATH):
                    resolved = self.resolve_local_manifest_path(project.manifest_path, dependency.spec)
                    if resolved in by_path:
                        dependency.local_project_path = resolved

        dependents: Dict[str, Dict[str, None]] = {}
        for project in projects:
            linked = [d.local_project_path for d in project.dependencies if d.local_project_path]
            project.local_dependencies = list(dict.fromkeys(linked))
            for target_path in project.local_dependencies:
                dependents.setdefault(target_path, {})[project.manifest_path] = None

        for project in projects:
            project.local_dependents = list(dependents.get(project.manifest_path, {}))

    def build_sync(self) -> WorkspaceProjectGraph:
        manifests = self.discovery.get_package_json_files()
        projects = [node for node in map(self._build_node, manifests) if node is not None]
        self._link(projects)

        tools = list(dict.fromkeys(project.tool for project in projects))
        graph = WorkspaceProjectGraph(
            tools=tools,
            projects=sorted(projects, key=lambda p: locale_key(p.relative_path)),
            alignment_issues=compute_alignment_issues(projects),
        )
        logger.info(
            "Built workspace graph: %d projects, %d alignment issues",
            len(graph.projects),
            len(graph.alignment_issues),
        )
        return graph

    async def build(self) -> WorkspaceProjectGraph:
        """Build the graph without blocking the event loop."""
        return await asyncio.to_thread(self.build_sync)
