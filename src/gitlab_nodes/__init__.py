"""gitlab-nodes: mirror GitLab group/project hierarchies into a node graph."""

__version__ = "0.1.0"
