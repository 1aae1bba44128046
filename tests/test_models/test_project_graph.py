from __future__ import annotations

import pytest

from depatlas.models.package import DependencyType
from depatlas.models.spec import SpecKind
from depatlas.models.workspace import (
    MonorepoTool,
    WorkspaceAlignmentIssue,
    WorkspaceDependencyConsumer,
    WorkspaceProjectDependency,
    WorkspaceProjectGraph,
    WorkspaceProjectNode,
)


@pytest.fixture
def graph() -> WorkspaceProjectGraph:
    """Two projects, ``web`` depending on ``ui``."""
    ui = WorkspaceProjectNode(
        name="ui",
        manifest_path="/ws/packages/ui/package.json",
        relative_path="packages/ui/package.json",
        tool=MonorepoTool.NPM_WORKSPACES,
        workspace_folder_path="/ws",
        local_dependents=["/ws/apps/web/package.json"],
    )
    web = WorkspaceProjectNode(
        name="web",
        manifest_path="/ws/apps/web/package.json",
        relative_path="apps/web/package.json",
        tool=MonorepoTool.NPM_WORKSPACES,
        workspace_folder_path="/ws",
        dependencies=[
            WorkspaceProjectDependency(
                name="ui",
                spec="workspace:*",
                type=DependencyType.DEPENDENCIES,
                spec_kind=SpecKind.WORKSPACE,
                local_project_path="/ws/packages/ui/package.json",
            ),
            WorkspaceProjectDependency(
                name="react",
                spec="^18.0.0",
                type=DependencyType.DEPENDENCIES,
                spec_kind=SpecKind.SEMVER,
            ),
        ],
        local_dependencies=["/ws/packages/ui/package.json"],
    )
    return WorkspaceProjectGraph(tools=[MonorepoTool.NPM_WORKSPACES], projects=[web, ui])


@pytest.mark.unit
class TestWorkspaceProjectGraph:
    """Tests for the graph snapshot models."""

    def test_get_project(self, graph: WorkspaceProjectGraph) -> None:
        assert graph.get_project("/ws/packages/ui/package.json").name == "ui"
        assert graph.get_project("/ws/missing/package.json") is None

    def test_to_json(self, graph: WorkspaceProjectGraph) -> None:
        data = graph.to_json()

        assert data["tools"] == ["npm-workspaces"]
        assert data["alignment_issues"] == []
        web = data["projects"][0]
        assert web["tool"] == "npm-workspaces"
        assert web["local_dependencies"] == ["/ws/packages/ui/package.json"]
        assert web["dependencies"][0]["local_project_path"] == "/ws/packages/ui/package.json"
        assert "local_project_path" not in web["dependencies"][1]

    def test_edges_reference_nodes(self, graph: WorkspaceProjectGraph) -> None:
        paths = {project.manifest_path for project in graph.projects}
        for project in graph.projects:
            assert set(project.local_dependencies) <= paths
            assert set(project.local_dependents) <= paths

    def test_alignment_issue_to_json(self) -> None:
        consumer = WorkspaceDependencyConsumer(
            manifest_path="/ws/a/package.json",
            manifest_name="a",
            relative_path="a/package.json",
            type=DependencyType.DEV,
            spec="^1.0.0",
        )
        issue = WorkspaceAlignmentIssue("lodash", ["^1.0.0", "^2.0.0"], [consumer])

        assert issue.to_json()["consumers"][0]["type"] == "devDependencies"
        assert issue.to_json()["specs"] == ["^1.0.0", "^2.0.0"]
