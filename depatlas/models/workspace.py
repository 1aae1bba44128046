"""
Workspace project graph models for depatlas.

The graph is a snapshot: nodes are keyed by ``manifest_path`` and every
local edge (``local_dependencies`` / ``local_dependents``) refers to a node
of the same snapshot.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from depatlas.models.package import DependencyType
from depatlas.models.spec import SpecKind


class MonorepoTool(str, Enum):
    """Workspace orchestration convention owning a project."""

    PLAIN = "plain"
    NPM_WORKSPACES = "npm-workspaces"
    PNPM_WORKSPACE = "pnpm-workspace"
    LERNA = "lerna"
    NX = "nx"


@dataclass
class WorkspaceProjectDependency:
    """A dependency declared by a workspace project.

    ``local_project_path`` is set once the dependency is known to be another
    project of the same workspace.
    """

    name: str
    spec: str
    type: DependencyType
    spec_kind: SpecKind
    local_project_path: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "name": self.name,
            "spec": self.spec,
            "type": self.type.value,
            "spec_kind": self.spec_kind.value,
        }
        if self.local_project_path:
            entry["local_project_path"] = self.local_project_path
        return entry


@dataclass
class WorkspaceProjectNode:
    """One package.json project of the workspace."""

    name: str
    manifest_path: str
    relative_path: str
    tool: MonorepoTool
    workspace_folder_path: Optional[str] = None
    dependencies: List[WorkspaceProjectDependency] = field(default_factory=list)
    local_dependencies: List[str] = field(default_factory=list)
    local_dependents: List[str] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "manifest_path": self.manifest_path,
            "workspace_folder_path": self.workspace_folder_path,
            "relative_path": self.relative_path,
            "tool": self.tool.value,
            "dependencies": [dep.to_json() for dep in self.dependencies],
            "local_dependencies": list(self.local_dependencies),
            "local_dependents": list(self.local_dependents),
        }


@dataclass(frozen=True)
class WorkspaceDependencyConsumer:
    """A project declaring a package that has an alignment issue."""

    manifest_path: str
    manifest_name: str
    relative_path: str
    type: DependencyType
    spec: str

    def to_json(self) -> Dict[str, Any]:
        return {
            "manifest_path": self.manifest_path,
            "manifest_name": self.manifest_name,
            "relative_path": self.relative_path,
            "type": self.type.value,
            "spec": self.spec,
        }


@dataclass
class WorkspaceAlignmentIssue:
    """Two or more distinct registry specs declared for one package."""

    package_name: str
    specs: List[str]
    consumers: List[WorkspaceDependencyConsumer]

    def to_json(self) -> Dict[str, Any]:
        return {
            "package_name": self.package_name,
            "specs": list(self.specs),
            "consumers": [c.to_json() for c in self.consumers],
        }


@dataclass
class WorkspaceProjectGraph:
    """Result of :meth:`WorkspaceGraphBuilder.build`."""

    tools: List[MonorepoTool] = field(default_factory=list)
    projects: List[WorkspaceProjectNode] = field(default_factory=list)
    alignment_issues: List[WorkspaceAlignmentIssue] = field(default_factory=list)

    def get_project(self, manifest_path: str) -> Optional[WorkspaceProjectNode]:
        """Return the node keyed by ``manifest_path``, if present."""
        for project in self.projects:
            if project.manifest_path == manifest_path:
                return project
        return None

    def to_json(self) -> Dict[str, Any]:
        return {
            "tools": [tool.value for tool in self.tools],
            "projects": [p.to_json() for p in self.projects],
            "alignment_issues": [i.to_json() for i in self.alignment_issues],
        }
