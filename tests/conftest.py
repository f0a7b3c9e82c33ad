"""Shared fixtures: an in-memory GitLab stand-in and a sample hierarchy."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from gitlab_nodes.lib.config import GitlabConfigItem
from gitlab_nodes.lib.errors import RemoteFetchError
from gitlab_nodes.lib.models import Group, Project


class FakeGitlabClient:
    """Serves canned payloads keyed by id or path; ``fail`` ids raise.

    ``delays`` holds per-target sleeps; ``settled`` records calls that
    returned, and ``settled_at_close`` snapshots it when ``close`` runs.
    """

    def __init__(
        self,
        *,
        groups: dict[Any, dict[str, Any]] | None = None,
        subgroups: dict[Any, list[dict[str, Any]]] | None = None,
        projects: dict[Any, list[dict[str, Any]]] | None = None,
        project_details: dict[Any, dict[str, Any]] | None = None,
        fail: set[Any] | None = None,
        delays: dict[Any, float] | None = None,
    ) -> None:
        self.groups = groups or {}
        self.subgroups = subgroups or {}
        self.projects = projects or {}
        self.project_payloads = project_details or {}
        self.fail = fail or set()
        self.delays = delays or {}
        self.settled: list[tuple[str, Any]] = []
        self.settled_at_close: list[tuple[str, Any]] | None = None
        self.calls: list[tuple[str, Any]] = []
        self.closed = False

    def _target(self, action: str, config: GitlabConfigItem, id_or_path: Any) -> Any:
        target = config.id_or_path if id_or_path is None else id_or_path
        self.calls.append((action, target))
        if target in self.fail:
            raise RemoteFetchError(target, f"failed to {action} '{target}'")
        return target

    async def _settle(self, action: str, target: Any) -> None:
        await asyncio.sleep(self.delays.get(target, 0))
        self.settled.append((action, target))

    async def group_details(
        self, config: GitlabConfigItem, id_or_path: Any = None
    ) -> Group:
        target = self._target("details", config, id_or_path)
        await self._settle("details", target)
        return Group.from_api(self.groups[target], config)

    async def group_subgroups(
        self, config: GitlabConfigItem, id_or_path: Any = None
    ) -> list[Group]:
        target = self._target("subgroups", config, id_or_path)
        await self._settle("subgroups", target)
        return [Group.from_api(raw, config) for raw in self.subgroups.get(target, [])]

    async def group_projects(
        self, config: GitlabConfigItem, id_or_path: Any = None
    ) -> list[Project]:
        target = self._target("projects", config, id_or_path)
        await self._settle("projects", target)
        return [Project.from_api(raw, config) for raw in self.projects.get(target, [])]

    async def project_details(
        self, config: GitlabConfigItem, id_or_path: Any = None
    ) -> Project:
        target = self._target("project", config, id_or_path)
        await self._settle("project", target)
        return Project.from_api(self.project_payloads[target], config)

    def close(self) -> None:
        self.closed = True
        self.settled_at_close = list(self.settled)


def project_payload(project_id: int, path: str, **extra: Any) -> dict[str, Any]:
    return {
        "id": project_id,
        "name": path.rsplit("/", 1)[-1],
        "path_with_namespace": path,
        "ssh_url_to_repo": f"git@gitlab.com:{path}.git",
        "default_branch": "main",
        "shared_with_groups": [],
        **extra,
    }


@pytest.fixture()
def acme_client() -> FakeGitlabClient:
    """acme(1) → platform(2) → [api(10)], tools(3) → [cli(11)] → infra(4)."""
    return FakeGitlabClient(
        groups={
            "acme": {
                "id": 1,
                "name": "Acme",
                "path": "acme",
                "full_path": "acme",
                "parent_id": None,
                "projects": [project_payload(9, "acme/website")],
            }
        },
        subgroups={
            "acme": [
                {
                    "id": 2,
                    "path": "platform",
                    "full_path": "acme/platform",
                    "parent_id": 1,
                },
                {
                    "id": 3,
                    "path": "tools",
                    "full_path": "acme/tools",
                    "parent_id": 1,
                },
            ],
            "acme/tools": [
                {
                    "id": 4,
                    "path": "infra",
                    "full_path": "acme/tools/infra",
                    "parent_id": 3,
                },
            ],
        },
        projects={
            "acme/platform": [project_payload(10, "acme/platform/api")],
            "acme/tools": [project_payload(11, "acme/tools/cli")],
        },
        project_details={
            "acme/standalone": project_payload(
                20, "acme/standalone", shared_with_groups=[{"group_id": 7}]
            ),
        },
    )
