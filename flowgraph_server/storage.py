"""In-memory graph schema store.

Holds validated schema graphs keyed by id for the lifetime of the process.
Execution state is never stored.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from flowgraph.schema import Graph


class GraphStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._graphs: Dict[str, Graph] = {}

    def upsert(self, graph: Graph) -> bool:
        """Store graph under its id. Returns True when it replaced an existing one."""
        with self._lock:
            existed = graph.id in self._graphs
            self._graphs[graph.id] = graph
        return existed

    def get(self, graph_id: str) -> Optional[Graph]:
        return self._graphs.get(graph_id)

    def list(self) -> List[Graph]:
        with self._lock:
            return list(self._graphs.values())
