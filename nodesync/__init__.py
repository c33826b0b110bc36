"""nodesync package initialization.

Exposes the entry points used to run a node synchronisation pass: the
:class:`NodeSyncApp` container and the :func:`source_nodes` shortcut.
"""

from .api import NodeSyncApp, source_nodes

__all__ = ["NodeSyncApp", "source_nodes"]
