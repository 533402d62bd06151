"""flowgraph: declarative workflow graphs with typed node inputs.

Subpackages:
- engine: value coercion, graph validation/resolution, named predicates, execution
- nodes: provider registry and built-in providers
"""

__version__ = "0.1.0"
