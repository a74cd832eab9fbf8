"""
Dependency graph of a set of Go modules.

The graph keeps a mapping from module name to node for fast lookups and a
name-sorted list of the same nodes, so rendering never depends on the
iteration order of the mapping.
"""
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from gomodgraph.core.model import NOT_AVAILABLE, DependencyEdge, ModuleNode
from gomodgraph.core.modfile import Module
from gomodgraph.errors import SubgraphOfSubgraphError


class DependencyGraph:

    def __init__(self, modules: Dict[str, ModuleNode], is_subgraph: bool = False) -> None:
        self._modules_map = modules
        self._modules_list = sorted(modules.values(), key=lambda m: m.name)

        # Only the root graph holds complete information. A subgraph's nodes
        # have pruned dependencies, so it must not be used to derive another one.
        self.is_subgraph = is_subgraph

    def __len__(self) -> int:
        return len(self._modules_list)

    def __contains__(self, name: str) -> bool:
        return name in self._modules_map

    def __iter__(self) -> Iterator[ModuleNode]:
        return iter(self._modules_list)

    @property
    def modules(self) -> List[ModuleNode]:
        return list(self._modules_list)

    def edges(self) -> Iterator[Tuple[ModuleNode, DependencyEdge]]:
        for module in self._modules_list:
            for edge in module.requires:
                yield module, edge

    def lookup(self, name: str) -> Optional[ModuleNode]:
        return self._modules_map.get(name)

    def subgraph_from(self, center: ModuleNode) -> 'DependencyGraph':
        """
        Derives the neighborhood of `center`: the center itself (highlighted),
        the modules it requires and the modules requiring it.

        Required modules lose all their own dependencies. Modules requiring
        the center keep only their edge to it. The source graph is left
        untouched, every node of the result is a fresh copy.
        """
        if self.is_subgraph:
            raise SubgraphOfSubgraphError("Deriving a subgraph from a subgraph is not supported")

        nodes: Dict[str, ModuleNode] = {}

        def copy_of(node: ModuleNode) -> ModuleNode:
            if node.name not in nodes:
                nodes[node.name] = node.clone()
            return nodes[node.name]

        center_copy = copy_of(center)
        center_copy.highlighted = True

        for dependency in center.requires:
            center_copy.add_dependency(copy_of(dependency.target), dependency.required_version)

        for dependent in center.required_by:
            if dependent.target is center:
                # Self requirement, already covered above
                continue
            copy_of(dependent.target).add_dependency(center_copy, dependent.required_version)

        return DependencyGraph(nodes, is_subgraph=True)


def build_dependency_graph(modules: Iterable[Module]) -> DependencyGraph:
    modules = list(modules)
    modules_map: Dict[str, ModuleNode] = {}
    # Record each node was built from, the last one wins for duplicate names
    origins: Dict[str, Module] = {}

    # First pass: nodes only, edges need every node to be known
    for module in modules:
        if not module.module_path:
            logging.error(f"{module.source or '<unknown>'!r} does not contain a module directive")
            continue

        modules_map[module.module_path] = ModuleNode(
            name=module.module_path,
            version=module.version,
            toolchain_version=module.go_version or NOT_AVAILABLE,
        )
        origins[module.module_path] = module

    # Second pass: edges
    for module in modules:
        if not module.module_path or origins[module.module_path] is not module:
            # Already logged above, or shadowed by a later duplicate
            continue

        node = modules_map[module.module_path]

        for requirement in module.requires:
            if requirement.indirect:
                continue

            required_node = modules_map.get(requirement.path)
            if required_node is None:
                # Not in our set of considered modules
                continue

            node.add_dependency(required_node, requirement.version)

    logging.info(f"Built dependency graph with {len(modules_map)} modules")

    return DependencyGraph(modules_map, is_subgraph=False)
