"""Tests for gitlab_nodes.lib.host."""

from __future__ import annotations

import io
import json
from pathlib import Path

from gitlab_nodes.lib.graph import FILE_TYPE, GroupNode
from gitlab_nodes.lib.host import JsonLinesNodeSink, MemoryNodeSink, create_file_record


def _node(node_id: str, digest: str = "d") -> GroupNode:
    return GroupNode(id=node_id, parent=None, fields={}, content_digest=digest)


class TestMemoryNodeSink:
    def test_replaces_duplicate_ids(self) -> None:
        sink = MemoryNodeSink()
        sink.create_node(_node("GitlabGroup-1", "a"))
        sink.create_node(_node("GitlabGroup-1", "b"), "other")
        assert len(sink.nodes) == 1
        assert sink.nodes["GitlabGroup-1"].content_digest == "b"
        assert sink.sources["GitlabGroup-1"] == "other"

    def test_links_are_deduplicated(self) -> None:
        sink = MemoryNodeSink()
        sink.create_parent_child_link("p", "c")
        sink.create_parent_child_link("p", "c")
        sink.create_parent_child_link("q", "c")
        assert sink.links == [("p", "c"), ("q", "c")]
        assert sink.linked_children("p") == ["c"]


class TestJsonLinesNodeSink:
    def test_writes_one_record_per_line(self) -> None:
        stream = io.StringIO()
        sink = JsonLinesNodeSink(stream)
        sink.create_node(_node("GitlabGroup-1"))
        sink.create_parent_child_link("GitlabGroup-1", "GitlabProject-2")

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert sink.count == 1
        assert lines[0]["kind"] == "node"
        assert lines[0]["node"]["id"] == "GitlabGroup-1"
        assert lines[1] == {
            "kind": "link",
            "parent": "GitlabGroup-1",
            "child": "GitlabProject-2",
        }


class TestCreateFileRecord:
    def test_fields(self, tmp_path: Path) -> None:
        path = tmp_path / "acme" / "api" / "docs" / "intro.md"
        path.parent.mkdir(parents=True)
        path.write_text("hello")

        record = create_file_record(
            path, root=tmp_path, parent="GitlabProject-1", source_name="src"
        )
        assert record.type == FILE_TYPE
        assert record.parent == "GitlabProject-1"
        assert record.absolute_path == str(path)
        assert record.fields["relative_path"] == "acme/api/docs/intro.md"
        assert record.fields["relative_directory"] == "acme/api/docs"
        assert record.fields["name"] == "intro"
        assert record.fields["extension"] == "md"
        assert record.fields["size"] == 5
        assert record.fields["source_instance_name"] == "src"

    def test_digest_tracks_content_only(self, tmp_path: Path) -> None:
        path = tmp_path / "f.txt"
        path.write_text("one")
        first = create_file_record(path, root=tmp_path, parent="p", source_name="s")
        path.write_text("one")
        again = create_file_record(path, root=tmp_path, parent="p", source_name="s")
        path.write_text("two")
        changed = create_file_record(path, root=tmp_path, parent="p", source_name="s")

        assert first.id == again.id == changed.id
        assert first.content_digest == again.content_digest
        assert first.content_digest != changed.content_digest
