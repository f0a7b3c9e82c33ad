"""Host-side collaborators: node sinks and the file-record primitive.

A sink receives every emitted node and every parent/child link. Deduplication
across runs is the sink's concern, not the builder's.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import IO, Any, Protocol

from gitlab_nodes.lib.graph import FileRecord, GraphNode, create_node_id

logger = logging.getLogger(__name__)

__all__ = [
    "JsonLinesNodeSink",
    "MemoryNodeSink",
    "NodeSink",
    "create_file_record",
]


class NodeSink(Protocol):
    """Receiver for emitted nodes and edges."""

    def create_node(self, node: GraphNode, source: str | None = None) -> None: ...

    def create_parent_child_link(self, parent_id: str, child_id: str) -> None: ...


class MemoryNodeSink:
    """In-memory sink keyed by node id.

    Re-emitting an id replaces the stored node, so a project reached through
    two configured roots is stored once.
    """

    def __init__(self) -> None:
        self.nodes: dict[str, GraphNode] = {}
        self.sources: dict[str, str | None] = {}
        self.links: list[tuple[str, str]] = []

    def create_node(self, node: GraphNode, source: str | None = None) -> None:
        previous = self.nodes.get(node.id)
        if previous is not None and previous.content_digest != node.content_digest:
            logger.debug("Replacing node %s with new content", node.id)
        self.nodes[node.id] = node
        self.sources[node.id] = source

    def create_parent_child_link(self, parent_id: str, child_id: str) -> None:
        if (parent_id, child_id) not in self.links:
            self.links.append((parent_id, child_id))

    def linked_children(self, parent_id: str) -> list[str]:
        """Child ids recorded via explicit links (not a group's subgroup list)."""
        return [child for parent, child in self.links if parent == parent_id]

    def of_type(self, node_type: str) -> list[GraphNode]:
        return [node for node in self.nodes.values() if node.type == node_type]


class JsonLinesNodeSink:
    """Stream nodes and links to a JSON Lines file, one record per line."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream
        self.count = 0

    def _write(self, record: dict[str, Any]) -> None:
        self._stream.write(json.dumps(record, sort_keys=True, default=str) + "\n")

    def create_node(self, node: GraphNode, source: str | None = None) -> None:
        self._write({"kind": "node", "source": source, "node": node.to_dict()})
        self.count += 1

    def create_parent_child_link(self, parent_id: str, child_id: str) -> None:
        self._write({"kind": "link", "parent": parent_id, "child": child_id})


def create_file_record(
    path: Path,
    *,
    root: Path,
    parent: str,
    source_name: str,
) -> FileRecord:
    """Turn one file on disk into a ``FileRecord`` parented under *parent*.

    The digest covers the file bytes and its path relative to *root*, so an
    untouched working copy yields the same digests on every run.
    """
    # Symlinks stay where they were found; only their contents are followed.
    absolute = Path(os.path.abspath(path))
    stat = absolute.stat()
    data = absolute.read_bytes()
    relative = absolute.relative_to(os.path.abspath(root)).as_posix()

    digest = hashlib.sha256()
    digest.update(relative.encode("utf-8"))
    digest.update(b"\0")
    digest.update(data)

    fields: dict[str, Any] = {
        "absolute_path": str(absolute),
        "relative_path": relative,
        "relative_directory": Path(relative).parent.as_posix(),
        "base": absolute.name,
        "name": absolute.stem,
        "extension": absolute.suffix.lstrip("."),
        "size": stat.st_size,
        "modified_time": datetime.fromtimestamp(stat.st_mtime, tz=UTC).isoformat(),
        "source_instance_name": source_name,
    }
    return FileRecord(
        id=create_node_id(f"{parent}:{absolute}"),
        parent=parent,
        fields=fields,
        content_digest=digest.hexdigest(),
    )
