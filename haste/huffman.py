"""Huffman tree of field path operations, printed as a table, a dot graph or a depth."""

from __future__ import annotations

import heapq
import sys
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class FieldOpDescriptor:
    name: str
    weight: int


FIELDOP_DESCRIPTORS: Tuple[FieldOpDescriptor, ...] = (
    FieldOpDescriptor("PlusOne", 36271),
    FieldOpDescriptor("PlusTwo", 10334),
    FieldOpDescriptor("PlusThree", 1375),
    FieldOpDescriptor("PlusFour", 646),
    FieldOpDescriptor("PlusN", 4128),
    FieldOpDescriptor("PushOneLeftDeltaZeroRightZero", 35),
    FieldOpDescriptor("PushOneLeftDeltaZeroRightNonZero", 3),
    FieldOpDescriptor("PushOneLeftDeltaOneRightZero", 521),
    FieldOpDescriptor("PushOneLeftDeltaOneRightNonZero", 2942),
    FieldOpDescriptor("PushOneLeftDeltaNRightZero", 560),
    FieldOpDescriptor("PushOneLeftDeltaNRightNonZero", 471),
    FieldOpDescriptor("PushOneLeftDeltaNRightNonZeroPack6Bits", 10530),
    FieldOpDescriptor("PushOneLeftDeltaNRightNonZeroPack8Bits", 251),
    FieldOpDescriptor("PushTwoLeftDeltaZero", 1),
    FieldOpDescriptor("PushTwoPack5LeftDeltaZero", 1),
    FieldOpDescriptor("PushThreeLeftDeltaZero", 1),
    FieldOpDescriptor("PushThreePack5LeftDeltaZero", 1),
    FieldOpDescriptor("PushTwoLeftDeltaOne", 1),
    FieldOpDescriptor("PushTwoPack5LeftDeltaOne", 1),
    FieldOpDescriptor("PushThreeLeftDeltaOne", 1),
    FieldOpDescriptor("PushThreePack5LeftDeltaOne", 1),
    FieldOpDescriptor("PushTwoLeftDeltaN", 1),
    FieldOpDescriptor("PushTwoPack5LeftDeltaN", 1),
    FieldOpDescriptor("PushThreeLeftDeltaN", 1),
    FieldOpDescriptor("PushThreePack5LeftDeltaN", 1),
    FieldOpDescriptor("PushN", 1),
    FieldOpDescriptor("PushNAndNonTopological", 310),
    FieldOpDescriptor("PopOnePlusOne", 2),
    FieldOpDescriptor("PopOnePlusN", 1),
    FieldOpDescriptor("PopAllButOnePlusOne", 1837),
    FieldOpDescriptor("PopAllButOnePlusN", 149),
    FieldOpDescriptor("PopAllButOnePlusNPack3Bits", 300),
    FieldOpDescriptor("PopAllButOnePlusNPack6Bits", 634),
    FieldOpDescriptor("PopNPlusOne", 1),
    FieldOpDescriptor("PopNPlusN", 1),
    FieldOpDescriptor("PopNAndNonTopographical", 1),
    FieldOpDescriptor("NonTopoComplex", 76),
    FieldOpDescriptor("NonTopoPenultimatePlusOne", 271),
    FieldOpDescriptor("NonTopoComplexPack4Bits", 99),
    FieldOpDescriptor("FieldPathEncodeFinish", 25474),
)


@dataclass(frozen=True)
class Leaf:
    weight: int
    num: int
    value: FieldOpDescriptor


@dataclass(frozen=True)
class Branch:
    weight: int
    num: int
    left: "Node"
    right: "Node"


Node = Union[Leaf, Branch]


def build_fieldop_hierarchy() -> Node:
    """Build the tree; ties in weight go to the node created last.

    The node number taking part in ordering is what makes the tree match the
    one the game uses.
    """
    heap: List[Tuple[int, int, Node]] = []
    num = 0
    for op in FIELDOP_DESCRIPTORS:
        heapq.heappush(heap, (op.weight, -num, Leaf(op.weight, num, op)))
        num += 1

    while len(heap) > 1:
        _, _, left = heapq.heappop(heap)
        _, _, right = heapq.heappop(heap)
        weight = left.weight + right.weight
        heapq.heappush(heap, (weight, -num, Branch(weight, num, left, right)))
        num += 1

    return heap[0][2]


def _walk_leaves(node: Node, node_id: int = 0, depth: int = 0) -> Iterator[Tuple[Leaf, int, int]]:
    if isinstance(node, Leaf):
        yield node, node_id, depth
        return
    yield from _walk_leaves(node.right, (node_id << 1) | 1, depth + 1)
    yield from _walk_leaves(node.left, node_id << 1, depth + 1)


def format_table(hierarchy: Node) -> str:
    """Render every operation with its weight, code id and depth, ordered by id."""
    lines = [f"{'name':>38} | weight |      id (op bits) | depth"]
    for leaf, node_id, depth in sorted(_walk_leaves(hierarchy), key=lambda item: item[1]):
        op = leaf.value
        lines.append(f"{op.name:>38} | {op.weight:>6} | {node_id:017b} | {depth:>5}")
    return "\n".join(lines)


def format_dot(hierarchy: Node) -> str:
    """Render the tree as a Graphviz digraph."""
    lines = ["digraph Huffman {"]

    def walk(node: Node, node_id: int, depth: int) -> None:
        if isinstance(node, Leaf):
            lines.append(
                f'  {node_id} [label="{node.value.name}\\nweight {node.weight}, '
                f'id {node_id}, depth {depth}"];'
            )
            return
        right_id = (node_id << 1) | 1
        left_id = node_id << 1
        lines.append(f'  {node_id} [label=""];')
        lines.append(f"  {node_id} -> {right_id};")
        lines.append(f"  {node_id} -> {left_id};")
        walk(node.right, right_id, depth + 1)
        walk(node.left, left_id, depth + 1)

    walk(hierarchy, 0, 0)
    lines.append("}")
    return "\n".join(lines)


def tree_depth(hierarchy: Node) -> int:
    """Return the depth of the deepest leaf."""
    if isinstance(hierarchy, Leaf):
        return 0
    return 1 + max(tree_depth(hierarchy.left), tree_depth(hierarchy.right))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print the table, dot graph or depth of the tree; returns the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("usage: huffmanfieldpath <table|dot|depth>", file=sys.stderr)
        return 42

    hierarchy = build_fieldop_hierarchy()
    command = args[0]
    if command == "table":
        print(format_table(hierarchy))
    elif command == "dot":
        print(format_dot(hierarchy))
    elif command == "depth":
        print(tree_depth(hierarchy))
    else:
        print(f"invalid command: {command}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())