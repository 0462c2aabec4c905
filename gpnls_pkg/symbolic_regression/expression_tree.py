"""Expression tree backbone and structural utilities.

Trees are built from two node types:

    - TerminalNode: leaf holding a Const, Var or WeightedVar
    - InternalNode: a Func and exactly ``func.arity`` ordered children

The helpers in this module do not depend on what the nodes compute. Nodes
are addressed by their 1-based pre-order position (the root is position 1),
counting weighted variables as a single node.

Two node counts coexist and both are load-bearing:

    - number_of_nodes: a WeightedVar counts as 1 node (general inspection,
      pre-order positions)
    - true_number_of_nodes: a WeightedVar counts as 3 nodes (size limits
      enforced by initialization, crossover and mutation)
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field

import sympy as sp

from ..types import TreeStructureError
from .node_content import Const
from .node_content import Func
from .node_content import Var
from .node_content import WeightedVar


@dataclass(eq=False)
class TerminalNode:
    """Leaf of an expression tree."""

    terminal: Const | Var | WeightedVar

    def __post_init__(self):
        if not isinstance(self.terminal, (Const, Var, WeightedVar)):
            raise TreeStructureError(
                f"Terminal nodes hold Const, Var or WeightedVar, got {type(self.terminal).__name__}"
            )

    @property
    def is_terminal(self) -> bool:
        return True

    def __str__(self) -> str:
        return get_string(self)


@dataclass(eq=False)
class InternalNode:
    """Internal node of an expression tree.

    ``children`` may temporarily hold ``None`` placeholders while a tree is
    being grown by PTC2; every finished tree has all slots filled.
    """

    func: Func
    children: list[Node | None] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.func, Func):
            raise TreeStructureError(f"Internal nodes hold a Func, got {type(self.func).__name__}")
        if len(self.children) != self.func.arity:
            raise TreeStructureError(
                f"Function '{self.func.str_rep}' has arity {self.func.arity} "
                f"but received {len(self.children)} children"
            )

    @property
    def is_terminal(self) -> bool:
        return False

    def __str__(self) -> str:
        return get_string(self)


Node = TerminalNode | InternalNode


def get_string(node: Node) -> str:
    """Prefix notation of a tree, e.g. ``-(myprod(x1, 1.0), x2)``."""
    if isinstance(node, TerminalNode):
        return node.terminal.str_rep
    args = ", ".join(get_string(c) for c in node.children)
    return f"{node.func.str_rep}({args})"


def copy_tree(node: Node) -> Node:
    """Create a deep copy sharing no node with the original tree."""
    if isinstance(node, TerminalNode):
        t = node.terminal
        if isinstance(t, WeightedVar):
            return TerminalNode(WeightedVar(t.var_name, t.var_idx, t.weight))
        if isinstance(t, Var):
            return TerminalNode(Var(t.var_name, t.var_idx))
        return TerminalNode(Const(t.value))
    return InternalNode(node.func, [copy_tree(c) for c in node.children])


def depth(node: Node) -> int:
    """Depth of the tree; a weighted variable is one level."""
    if isinstance(node, TerminalNode):
        return 1
    return 1 + max(depth(c) for c in node.children)


def true_depth(node: Node) -> int:
    """Depth reported per generation; a weighted variable is one level, as in ``depth``."""
    if isinstance(node, TerminalNode):
        return 1
    return 1 + max(true_depth(c) for c in node.children)


def number_of_nodes(node: Node) -> int:
    """Number of nodes; a weighted variable counts as one node."""
    if isinstance(node, TerminalNode):
        return 1
    return 1 + sum(number_of_nodes(c) for c in node.children)


def true_number_of_nodes(node: Node) -> int:
    """Number of nodes; a weighted variable counts as three nodes.

    This is the count used to keep initialization, crossover and mutation
    within the configured maximum size.
    """
    if isinstance(node, TerminalNode):
        return 3 if isinstance(node.terminal, WeightedVar) else 1
    return 1 + sum(true_number_of_nodes(c) for c in node.children)


def which_children(p: int, children: list[Node]) -> tuple[int, Node]:
    """Find which sibling holds the ``p``-th node of a list of siblings.

    The siblings are traversed in pre-order as if they were one sequence.

    Args:
        p: 1-based position inside the concatenated siblings
        children: Sibling subtrees

    Returns:
        Tuple of (position of the node inside the returned child, child)

    Raises:
        IndexError: If ``p`` is past the last node of the siblings
    """
    for child in children:
        size = number_of_nodes(child)
        if p <= size:
            return p, child
        p -= size
    raise IndexError("Position is beyond the nodes of the given children")


def get_branch_at(p: int, node: Node) -> Node:
    """Return the subtree rooted at pre-order position ``p`` (root is 1)."""
    if p <= 1:
        return node
    if isinstance(node, TerminalNode):
        raise IndexError(f"Position {p} is beyond a terminal node")
    return get_branch_at(*which_children(p - 1, node.children))


def get_depth_at(p: int, node: Node) -> int:
    """Return the depth at which the node at position ``p`` sits (root is 1)."""
    if p <= 1:
        return 1
    if isinstance(node, TerminalNode):
        raise IndexError(f"Position {p} is beyond a terminal node")
    return 1 + get_depth_at(*which_children(p - 1, node.children))


def change_at(p: int, branch: Node, node: Node) -> Node:
    """Return a tree where the subtree at position ``p`` is replaced by ``branch``.

    The given tree is not modified: the internal nodes on the path from the
    root to ``p`` are rebuilt, and every untouched sibling is shared with the
    original tree.
    """
    if p <= 1:
        return branch
    if isinstance(node, TerminalNode):
        raise IndexError(f"Position {p} is beyond a terminal node")

    children = list(node.children)
    offset = p - 1
    for i, child in enumerate(children):
        size = number_of_nodes(child)
        if offset <= size:
            children[i] = change_at(offset, branch, child)
            return InternalNode(node.func, children)
        offset -= size
    raise IndexError(f"Position {p} is beyond the nodes of the tree")


def replace_at_inplace(p: int, branch: Node, node: Node) -> Node:
    """Put ``branch`` at position ``p`` by overwriting the parent's child slot.

    Modifies ``node``. Returns the root of the resulting tree, which is
    ``branch`` itself when ``p`` is the root position.
    """
    if p <= 1:
        return branch
    parent = node
    offset = p - 1
    while True:
        if isinstance(parent, TerminalNode):
            raise IndexError(f"Position {p} is beyond a terminal node")
        for i, child in enumerate(parent.children):
            size = number_of_nodes(child)
            if offset <= size:
                break
            offset -= size
        else:
            raise IndexError(f"Position {p} is beyond the nodes of the tree")
        if offset == 1:
            parent.children[i] = branch
            return node
        parent = child
        offset -= 1


def branches_in_limits(
    allowed_size: int, allowed_depth: int, node: Node, _point: int = 1
) -> tuple[list[int], int]:
    """Find every subtree within a true size and a depth limit.

    Args:
        allowed_size: Maximum true number of nodes of a candidate subtree
        allowed_depth: Maximum depth of a candidate subtree
        node: Tree to search
        _point: Position of ``node`` in the enclosing tree (recursive use)

    Returns:
        Tuple of (pre-order positions of the subtrees within both limits,
        position of the last visited node). For a whole tree the second
        element equals ``number_of_nodes(node)``.
    """
    found, last_point, _, _ = _branches_in_limits(allowed_size, allowed_depth, node, _point)
    return found, last_point


def _branches_in_limits(
    allowed_size: int, allowed_depth: int, node: Node, point: int
) -> tuple[list[int], int, int, int]:
    # Returns (found, last point, true size, depth) so that each subtree is
    # measured once on the way back up
    if isinstance(node, TerminalNode):
        size = 3 if isinstance(node.terminal, WeightedVar) else 1
        fits = size <= allowed_size and 1 <= allowed_depth
        return ([point] if fits else []), point, size, 1

    found: list[int] = []
    last_point = point
    size, sub_depth = 1, 0
    for child in node.children:
        child_found, last_point, child_size, child_depth = _branches_in_limits(
            allowed_size, allowed_depth, child, last_point + 1
        )
        found.extend(child_found)
        size += child_size
        sub_depth = max(sub_depth, child_depth)
    sub_depth += 1

    if size <= allowed_size and sub_depth <= allowed_depth:
        found.insert(0, point)
    return found, last_point, size, sub_depth


def to_sympy(node: Node) -> sp.Expr:
    """Convert a tree to a SymPy expression (no simplification).

    Functions without a ``sympy_func`` become undefined SymPy functions named
    after their display name.
    """
    if isinstance(node, TerminalNode):
        t = node.terminal
        if isinstance(t, WeightedVar):
            return sp.Float(t.weight) * sp.Symbol(t.var_name)
        if isinstance(t, Var):
            return sp.Symbol(t.var_name)
        return sp.Float(t.value)

    args = [to_sympy(c) for c in node.children]
    if node.func.sympy_func is not None:
        return node.func.sympy_func(*args)
    return sp.Function(node.func.str_rep)(*args)


def get_pretty_string(node: Node, digits: int = 6) -> str:
    """Get an infix representation of the tree, falling back to prefix notation."""
    try:
        return str(sp.N(to_sympy(node), digits))
    except (TypeError, ValueError, AttributeError, sp.SympifyError):
        return get_string(node)
