from dataclasses import dataclass, field
from typing import List

NOT_AVAILABLE = "n.a."


@dataclass(eq=False)
class DependencyEdge:
    target: 'ModuleNode'
    required_version: str


@dataclass(eq=False)
class ModuleNode:
    name: str
    # Latest release tag, empty if the module has no releases yet
    version: str = ""
    toolchain_version: str = NOT_AVAILABLE

    requires: List[DependencyEdge] = field(default_factory=list, repr=False)
    required_by: List[DependencyEdge] = field(default_factory=list, repr=False)

    # UI
    highlighted: bool = False

    def add_dependency(self, target: 'ModuleNode', version: str) -> None:
        """Adds the edge self -> target together with its mirror on target."""
        self.requires.append(DependencyEdge(target, version))
        target.required_by.append(DependencyEdge(self, version))

    def clone(self) -> 'ModuleNode':
        """Copy of the node's data. Edges are not copied."""
        return ModuleNode(
            name=self.name,
            version=self.version,
            toolchain_version=self.toolchain_version,
            highlighted=self.highlighted,
        )
