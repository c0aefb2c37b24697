"""Graph analysis over IR graphs.

All functions are pure: they read an IRGraph and return new values. Every
traversal uses an explicit stack or queue so deep graphs cannot exhaust
the interpreter's recursion limit. Connections whose endpoints do not
resolve are ignored here; `validator.validate_graph` reports them.
"""

import heapq
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Iterable, Set

from .ir import IRGraph, IRConnection


@dataclass
class TopologicalSortResult:
    sorted: List[str]
    cycles: List[List[str]]
    is_acyclic: bool


@dataclass
class NodePath:
    nodes: List[str]
    connections: List[str]

    @property
    def length(self) -> int:
        """Number of hops."""
        return len(self.connections)

    @property
    def is_valid(self) -> bool:
        return len(self.nodes) > 0


@dataclass
class GraphStats:
    """Summary statistics of an IR graph."""
    node_count: int
    connection_count: int
    average_degree: float
    max_depth: int
    complexity: str
    cyclomatic_complexity: int
    node_types: Dict[str, int] = field(default_factory=dict)
    categories: Dict[str, int] = field(default_factory=dict)
    entry_points: List[str] = field(default_factory=list)
    exit_points: List[str] = field(default_factory=list)
    isolated_nodes: List[str] = field(default_factory=list)
    parallelizable_chains: List[List[str]] = field(default_factory=list)
    bottlenecks: List[str] = field(default_factory=list)
    critical_path: List[str] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


def _resolved(graph: IRGraph) -> List[IRConnection]:
    """Connections whose both endpoints exist."""
    return [c for c in graph.connections if graph.has_node(c.source) and graph.has_node(c.target)]


def _adjacency(graph: IRGraph) -> Dict[str, List[IRConnection]]:
    adjacency: Dict[str, List[IRConnection]] = {node_id: [] for node_id in graph.node_ids()}
    for conn in _resolved(graph):
        adjacency[conn.source].append(conn)
    return adjacency


def _reverse_adjacency(graph: IRGraph) -> Dict[str, List[IRConnection]]:
    reverse: Dict[str, List[IRConnection]] = {node_id: [] for node_id in graph.node_ids()}
    for conn in _resolved(graph):
        reverse[conn.target].append(conn)
    return reverse


def find_cycles(graph: IRGraph) -> List[List[str]]:
    """
    Find cycles with a depth-first search that tracks the current path.

    A back edge to a node on the current path yields the path from that
    node's first occurrence to the end, followed by the node again, e.g.
    `["A", "B", "C", "A"]`.

    Returns:
        Every cycle met by the traversal, in discovery order
    """
    adjacency = _adjacency(graph)
    visited: Set[str] = set()
    on_path: Set[str] = set()
    cycles: List[List[str]] = []

    for root in graph.node_ids():
        if root in visited:
            continue
        path = [root]
        visited.add(root)
        on_path.add(root)
        stack = [iter(adjacency[root])]
        while stack:
            conn = next(stack[-1], None)
            if conn is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            target = conn.target
            if target in on_path:
                cycles.append(path[path.index(target):] + [target])
            elif target not in visited:
                visited.add(target)
                on_path.add(target)
                path.append(target)
                stack.append(iter(adjacency[target]))
    return cycles


def topological_sort(graph: IRGraph) -> TopologicalSortResult:
    """
    Order nodes so every connection's source precedes its target (Kahn).

    Among nodes that are ready at the same time the one that appears first
    in the node list is taken first. If the graph is cyclic the order is
    empty and the detected cycles are returned instead.
    """
    cycles = find_cycles(graph)
    if cycles:
        return TopologicalSortResult(sorted=[], cycles=cycles, is_acyclic=False)

    node_ids = graph.node_ids()
    position = {node_id: i for i, node_id in enumerate(node_ids)}
    in_degree = {node_id: 0 for node_id in node_ids}
    adjacency = _adjacency(graph)
    for conns in adjacency.values():
        for conn in conns:
            in_degree[conn.target] += 1

    ready = [position[n] for n in node_ids if in_degree[n] == 0]
    heapq.heapify(ready)
    order: List[str] = []
    while ready:
        node_id = node_ids[heapq.heappop(ready)]
        order.append(node_id)
        for conn in adjacency[node_id]:
            in_degree[conn.target] -= 1
            if in_degree[conn.target] == 0:
                heapq.heappush(ready, position[conn.target])

    return TopologicalSortResult(sorted=order, cycles=[], is_acyclic=len(order) == len(node_ids))


def find_entry_points(graph: IRGraph) -> List[str]:
    """Nodes with no incoming connection."""
    targets = {c.target for c in _resolved(graph)}
    return [n for n in graph.node_ids() if n not in targets]


def find_exit_points(graph: IRGraph) -> List[str]:
    """Nodes with no outgoing connection."""
    sources = {c.source for c in _resolved(graph)}
    return [n for n in graph.node_ids() if n not in sources]


def find_isolated_nodes(graph: IRGraph) -> List[str]:
    """Nodes touched by no connection at all."""
    touched = set()
    for conn in _resolved(graph):
        touched.add(conn.source)
        touched.add(conn.target)
    return [n for n in graph.node_ids() if n not in touched]


def _bfs_parents(graph: IRGraph, start: str, adjacency: Dict[str, List[IRConnection]]) -> Dict[str, Optional[IRConnection]]:
    parents: Dict[str, Optional[IRConnection]] = {start: None}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for conn in adjacency[current]:
            if conn.target not in parents:
                parents[conn.target] = conn
                queue.append(conn.target)
    return parents


def _path_from_parents(parents: Dict[str, Optional[IRConnection]], end: str) -> Optional[NodePath]:
    if end not in parents:
        return None
    nodes, conns = [end], []
    conn = parents[end]
    while conn is not None:
        conns.append(conn.id)
        nodes.append(conn.source)
        conn = parents[conn.source]
    nodes.reverse()
    conns.reverse()
    return NodePath(nodes=nodes, connections=conns)


def find_path(graph: IRGraph, start: str, end: str) -> Optional[NodePath]:
    """Shortest path by hop count (BFS), or None when `end` is unreachable."""
    if not graph.has_node(start) or not graph.has_node(end):
        return None
    return _path_from_parents(_bfs_parents(graph, start, _adjacency(graph)), end)


def find_critical_path(graph: IRGraph) -> List[str]:
    """
    Longest of the shortest entry-to-exit paths.

    For each (entry, exit) pair the BFS shortest path is taken and the
    longest one kept. A later path replaces the current one only when it is
    strictly longer, so ties go to the first pair in (entry, exit) order.
    """
    adjacency = _adjacency(graph)
    exits = find_exit_points(graph)
    longest: List[str] = []
    for entry in find_entry_points(graph):
        parents = _bfs_parents(graph, entry, adjacency)
        for exit_id in exits:
            path = _path_from_parents(parents, exit_id)
            if path is not None and len(path.nodes) > len(longest):
                longest = path.nodes
    return longest


def find_upstream(graph: IRGraph, node_ids: Iterable[str]) -> Set[str]:
    """Every node from which one of `node_ids` is reachable, excluding the inputs."""
    reverse = _reverse_adjacency(graph)
    start = [n for n in node_ids if graph.has_node(n)]
    seen: Set[str] = set(start)
    stack = list(start)
    while stack:
        current = stack.pop()
        for conn in reverse[current]:
            if conn.source not in seen:
                seen.add(conn.source)
                stack.append(conn.source)
    return seen - set(start)


def extract_subgraph(graph: IRGraph, node_ids: Iterable[str], include_dependencies: bool = False) -> IRGraph:
    """
    Extract the subgraph induced by `node_ids`.

    Args:
        graph: Source graph
        node_ids: Nodes to keep
        include_dependencies: Also keep every upstream node of the selection

    Returns:
        A new IRGraph with the selected nodes (in source order) and the
        connections between them. Its metadata names the source graph and,
        when dependencies are included, the upstream ids that were added.
    """
    selected = {n for n in node_ids if graph.has_node(n)}
    added: Set[str] = set()
    if include_dependencies:
        added = find_upstream(graph, selected) - selected
        selected |= added

    nodes = [graph.get_node(n) for n in graph.node_ids() if n in selected]
    connections = [c for c in graph.connections if c.source in selected and c.target in selected]
    metadata = {
        "name": f"{graph.name} (subgraph)",
        "extracted_from": graph.name,
        "purpose": "subgraph",
        "dependencies": [n for n in graph.node_ids() if n in added],
    }
    return IRGraph(nodes, connections, metadata)


def find_parallelizable_chains(graph: IRGraph) -> List[List[str]]:
    """
    Linear chains that start at an entry point.

    A chain follows a node's single outgoing connection for as long as
    there is exactly one; chains of one node are dropped.
    """
    adjacency = _adjacency(graph)
    chains = []
    for entry in find_entry_points(graph):
        chain = [entry]
        seen = {entry}
        current = entry
        while len(adjacency[current]) == 1:
            nxt = adjacency[current][0].target
            if nxt in seen:
                break
            chain.append(nxt)
            seen.add(nxt)
            current = nxt
        if len(chain) > 1:
            chains.append(chain)
    return chains


def find_bottlenecks(graph: IRGraph) -> List[str]:
    """Nodes where flows fan in or fan out."""
    adjacency = _adjacency(graph)
    reverse = _reverse_adjacency(graph)
    return [n for n in graph.node_ids() if len(adjacency[n]) > 1 or len(reverse[n]) > 1]


def calculate_max_depth(graph: IRGraph) -> int:
    """
    Number of nodes on the longest entry-rooted path.

    Acyclic graphs use the longest path over the topological order. For
    cyclic graphs the breadth-first depth from the entry points is used.
    """
    if not graph.nodes:
        return 0
    adjacency = _adjacency(graph)
    result = topological_sort(graph)
    if result.is_acyclic:
        depth = {n: 1 for n in result.sorted}
        for node_id in result.sorted:
            for conn in adjacency[node_id]:
                depth[conn.target] = max(depth[conn.target], depth[node_id] + 1)
        return max(depth.values())

    best = 0
    roots = find_entry_points(graph) or graph.node_ids()[:1]
    for root in roots:
        level = {root: 1}
        queue = deque([root])
        while queue:
            current = queue.popleft()
            for conn in adjacency[current]:
                if conn.target not in level:
                    level[conn.target] = level[current] + 1
                    queue.append(conn.target)
        best = max(best, max(level.values()))
    return best


def cyclomatic_complexity(graph: IRGraph) -> int:
    return len(graph.connections) - len(graph.nodes) + 2


def calculate_complexity(graph: IRGraph) -> str:
    """Classify the graph as `simple`, `medium` or `complex`."""
    node_count = len(graph.nodes)
    cyclomatic = cyclomatic_complexity(graph)
    if node_count <= 5 and cyclomatic <= 3:
        return "simple"
    if node_count <= 20 and cyclomatic <= 10:
        return "medium"
    return "complex"


def weakly_connected_components(graph: IRGraph) -> List[List[str]]:
    """Groups of nodes connected when edge direction is ignored."""
    neighbours: Dict[str, List[str]] = {n: [] for n in graph.node_ids()}
    for conn in _resolved(graph):
        neighbours[conn.source].append(conn.target)
        neighbours[conn.target].append(conn.source)
    seen: Set[str] = set()
    components = []
    for root in graph.node_ids():
        if root in seen:
            continue
        seen.add(root)
        members = {root}
        stack = [root]
        while stack:
            for other in neighbours[stack.pop()]:
                if other not in seen:
                    seen.add(other)
                    members.add(other)
                    stack.append(other)
        components.append([n for n in graph.node_ids() if n in members])
    return components


def analyze_graph(graph: IRGraph) -> GraphStats:
    """Compute summary statistics for a graph."""
    node_types: Dict[str, int] = {}
    categories: Dict[str, int] = {}
    for node in graph.nodes:
        node_types[node.type] = node_types.get(node.type, 0) + 1
        if node.category:
            categories[node.category] = categories.get(node.category, 0) + 1

    node_count = len(graph.nodes)
    connection_count = len(graph.connections)
    return GraphStats(
        node_count=node_count,
        connection_count=connection_count,
        average_degree=round(2 * connection_count / max(node_count, 1), 2),
        max_depth=calculate_max_depth(graph),
        complexity=calculate_complexity(graph),
        cyclomatic_complexity=cyclomatic_complexity(graph),
        node_types=node_types,
        categories=categories,
        entry_points=find_entry_points(graph),
        exit_points=find_exit_points(graph),
        isolated_nodes=find_isolated_nodes(graph),
        parallelizable_chains=find_parallelizable_chains(graph),
        bottlenecks=find_bottlenecks(graph),
        critical_path=find_critical_path(graph),
        cycles=find_cycles(graph),
    )
