from gomodgraph.__version__ import __version__
from gomodgraph.core.graph import DependencyGraph, build_dependency_graph
from gomodgraph.core.render import OutputFormat, render

__all__ = [
    '__version__',
    'DependencyGraph',
    'build_dependency_graph',
    'OutputFormat',
    'render',
]
