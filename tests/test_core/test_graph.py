from __future__ import annotations

import json
import pytest
from pathlib import Path
from typing import Any, Dict

from depatlas.core.discovery import ManifestDiscovery
from depatlas.core.graph import (
    WorkspaceGraphBuilder,
    compute_alignment_issues,
    extract_project_dependencies,
)
from depatlas.models.package import DependencyType
from depatlas.models.spec import SpecKind
from depatlas.models.workspace import (
    MonorepoTool,
    WorkspaceProjectDependency,
    WorkspaceProjectGraph,
    WorkspaceProjectNode,
)
from depatlas.utils.filesystem import ManifestFileSystem


def write_json(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def builder_for(*folders: Path) -> WorkspaceGraphBuilder:
    fs = ManifestFileSystem()
    return WorkspaceGraphBuilder(fs, ManifestDiscovery(fs, [str(f) for f in folders]))


def node(relative: str, *deps: WorkspaceProjectDependency) -> WorkspaceProjectNode:
    return WorkspaceProjectNode(
        name=relative.split("/")[0],
        manifest_path=f"/ws/{relative}",
        relative_path=relative,
        tool=MonorepoTool.PLAIN,
        dependencies=list(deps),
    )


def dep(name: str, spec: str, kind: SpecKind = SpecKind.SEMVER) -> WorkspaceProjectDependency:
    return WorkspaceProjectDependency(name=name, spec=spec, type=DependencyType.DEPENDENCIES, spec_kind=kind)


@pytest.fixture
def monorepo(tmp_path: Path) -> Path:
    ws = tmp_path.resolve() / "ws"
    write_json(ws / "package.json", {"name": "root", "workspaces": ["packages/*", "tools/*"]})
    write_json(
        ws / "packages" / "web" / "package.json",
        {
            "name": "web",
            "dependencies": {"ui": "workspace:*", "react": "^18.2.0", "lodash": "^4.17.21"},
            "devDependencies": {"helpers": "file:../../tools/helpers"},
        },
    )
    write_json(
        ws / "packages" / "ui" / "package.json",
        {"name": "ui", "dependencies": {"react": "^17.0.2"}, "peerDependencies": {"lodash": "^4.17.21"}},
    )
    write_json(ws / "tools" / "helpers" / "package.json", {"name": "@acme/helpers"})
    return ws


# ============================================================================
# Pure helpers
# ============================================================================


@pytest.mark.unit
class TestHelpers:
    """Tests for dependency extraction and alignment issues."""

    def test_extract_sorted_by_name(self) -> None:
        deps = extract_project_dependencies(
            {"dependencies": {"zod": "^3.0.0", "Axios": "1.6.0"}, "devDependencies": {"jest": "^29.0.0"}}
        )

        assert [(d.name, d.type, d.spec_kind) for d in deps] == [
            ("Axios", DependencyType.DEPENDENCIES, SpecKind.SEMVER),
            ("jest", DependencyType.DEV, SpecKind.SEMVER),
            ("zod", DependencyType.DEPENDENCIES, SpecKind.SEMVER),
        ]

    def test_divergent_specs_reported(self) -> None:
        issues = compute_alignment_issues(
            [
                node("b/package.json", dep("react", "^2.0.0")),
                node("a/package.json", dep("react", "^1.0.0")),
            ]
        )

        assert len(issues) == 1
        assert issues[0].package_name == "react"
        assert issues[0].specs == ["^1.0.0", "^2.0.0"]
        assert [c.relative_path for c in issues[0].consumers] == ["a/package.json", "b/package.json"]

    def test_identical_specs_are_aligned(self) -> None:
        assert compute_alignment_issues(
            [node("a/package.json", dep("react", "^1.0.0")), node("b/package.json", dep("react", "^1.0.0"))]
        ) == []

    def test_local_specs_never_count(self) -> None:
        linked = dep("ui", "^1.0.0")
        linked.local_project_path = "/ws/ui/package.json"

        issues = compute_alignment_issues(
            [
                node("a/package.json", dep("shared", "workspace:*", SpecKind.WORKSPACE), linked),
                node("b/package.json", dep("shared", "file:../shared", SpecKind.FILE), dep("ui", "^2.0.0")),
            ]
        )

        assert issues == []


# ============================================================================
# Builder
# ============================================================================


@pytest.mark.unit
class TestWorkspaceGraphBuilder:
    """Tests for building the graph from disk."""

    def test_nodes_sorted_by_relative_path(self, monorepo: Path) -> None:
        graph = builder_for(monorepo).build_sync()

        assert [p.relative_path for p in graph.projects] == [
            "package.json",
            "packages/ui/package.json",
            "packages/web/package.json",
            "tools/helpers/package.json",
        ]
        assert graph.tools == [MonorepoTool.NPM_WORKSPACES]

    def test_links_by_name_and_path(self, monorepo: Path) -> None:
        graph = builder_for(monorepo).build_sync()
        web = graph.get_project(str(monorepo / "packages" / "web" / "package.json"))
        ui_path = str(monorepo / "packages" / "ui" / "package.json")
        helpers_path = str(monorepo / "tools" / "helpers" / "package.json")

        assert web is not None
        links = {d.name: d.local_project_path for d in web.dependencies}
        assert links == {"helpers": helpers_path, "lodash": None, "react": None, "ui": ui_path}
        assert sorted(web.local_dependencies) == sorted([ui_path, helpers_path])

        ui = graph.get_project(ui_path)
        assert ui is not None
        assert ui.local_dependents == [web.manifest_path]

    def test_alignment_across_projects(self, monorepo: Path) -> None:
        graph = builder_for(monorepo).build_sync()

        assert [(i.package_name, i.specs) for i in graph.alignment_issues] == [
            ("react", ["^17.0.2", "^18.2.0"])
        ]

    def test_edges_reference_nodes(self, monorepo: Path) -> None:
        graph = builder_for(monorepo).build_sync()
        paths = {p.manifest_path for p in graph.projects}

        for project in graph.projects:
            assert set(project.local_dependencies) <= paths
            assert set(project.local_dependents) <= paths

    def test_path_outside_workspace_not_linked(self, tmp_path: Path) -> None:
        ws = tmp_path.resolve() / "ws"
        write_json(ws / "package.json", {"name": "solo", "dependencies": {"ext": "file:../external"}})
        write_json(tmp_path.resolve() / "external" / "package.json", {"name": "ext"})

        graph = builder_for(ws).build_sync()

        assert graph.projects[0].local_dependencies == []

    def test_unnamed_manifest_uses_fallback_name(self, tmp_path: Path) -> None:
        ws = tmp_path.resolve() / "ws"
        write_json(ws / "package.json", {"name": "  ", "dependencies": {}})

        graph = builder_for(ws).build_sync()

        assert graph.projects[0].name == builder_for(ws).discovery.fallback_manifest_name(str(ws / "package.json"))

    def test_unreadable_manifest_skipped(self, monorepo: Path) -> None:
        (monorepo / "packages" / "ui" / "package.json").write_text("{", encoding="utf-8")

        graph = builder_for(monorepo).build_sync()

        assert len(graph.projects) == 3

    @pytest.mark.asyncio
    async def test_build_async(self, monorepo: Path) -> None:
        graph = await builder_for(monorepo).build()

        assert isinstance(graph, WorkspaceProjectGraph)
        assert len(graph.projects) == 4


@pytest.mark.unit
class TestDetectMonorepoTool:
    """Tests for tool detection order."""

    @pytest.mark.parametrize(
        "markers, expected",
        [
            (["nx.json", "lerna.json", "pnpm-workspace.yaml"], MonorepoTool.NX),
            (["lerna.json", "pnpm-workspace.yaml"], MonorepoTool.LERNA),
            (["pnpm-workspace.yaml"], MonorepoTool.PNPM_WORKSPACE),
            ([], MonorepoTool.PLAIN),
        ],
    )
    def test_marker_files(self, tmp_path: Path, markers: list, expected: MonorepoTool) -> None:
        ws = tmp_path.resolve()
        write_json(ws / "package.json", {"name": "root"})
        for marker in markers:
            (ws / marker).write_text("{}", encoding="utf-8")

        assert builder_for(ws).detect_monorepo_tool(str(ws / "package.json")) is expected

    def test_workspaces_field(self, monorepo: Path) -> None:
        manifest = str(monorepo / "packages" / "ui" / "package.json")

        assert builder_for(monorepo).detect_monorepo_tool(manifest) is MonorepoTool.NPM_WORKSPACES

    def test_outside_any_folder(self, tmp_path: Path) -> None:
        ws = tmp_path.resolve() / "ws"
        ws.mkdir()

        assert builder_for(ws).detect_monorepo_tool("/elsewhere/package.json") is MonorepoTool.PLAIN
