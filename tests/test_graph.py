"""Tests for gitlab_nodes.lib.graph."""

from __future__ import annotations

from gitlab_nodes.lib.graph import (
    GL_PROJECT_TYPE,
    GroupNode,
    ProjectNode,
    content_digest,
    create_node_id,
    group_node_id,
    project_node_id,
)


def test_content_digest_ignores_key_order() -> None:
    first = content_digest({"a": 1, "b": [1, 2]})
    assert first == content_digest({"b": [1, 2], "a": 1})


def test_content_digest_detects_changes() -> None:
    assert content_digest({"a": 1}) != content_digest({"a": 2})


def test_node_ids_are_distinct_across_types() -> None:
    assert group_node_id(7) == "GitlabGroup-7"
    assert project_node_id(7) == "GitlabProject-7"
    assert group_node_id(7) != project_node_id(7)
    assert group_node_id(7) != group_node_id(8)


def test_create_node_id_is_deterministic() -> None:
    assert create_node_id("seed") == create_node_id("seed")
    assert create_node_id("seed") != create_node_id("other")


def test_to_dict_layers_bookkeeping_over_fields() -> None:
    node = GroupNode(
        id="GitlabGroup-1",
        parent="GitlabGroup-root",
        fields={"id": 1, "name": "acme"},
        content_digest="abc",
        children=("GitlabGroup-2",),
    )
    assert node.to_dict() == {
        "id": "GitlabGroup-1",
        "name": "acme",
        "parent": "GitlabGroup-root",
        "children": ["GitlabGroup-2"],
        "internal": {"type": "GitlabGroup", "content_digest": "abc"},
    }


def test_project_node_accessors() -> None:
    node = ProjectNode(
        id="GitlabProject-3",
        parent="GitlabGroup-1",
        fields={
            "path_with_namespace": "acme/api",
            "ssh_url_to_repo": "git@gitlab.com:acme/api.git",
            "default_branch": None,
        },
        content_digest="d",
    )
    assert node.type == GL_PROJECT_TYPE
    assert node.path_with_namespace == "acme/api"
    assert node.ssh_url_to_repo == "git@gitlab.com:acme/api.git"
    assert node.default_branch is None
    assert node.config is None
