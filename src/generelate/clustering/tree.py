"""Binary merge tree produced by hierarchical clustering of enrichment terms."""

from collections.abc import Iterator
from dataclasses import dataclass, field

import numpy as np

from generelate.enrichment.models import EnrichmentRecord

_NEWICK_SPECIAL = set(" :;,()[]'")


@dataclass(eq=False)
class ClusterNode:
    """Leaf or internal node of a term dendrogram.

    Attributes:
        node_id: Leaf index for leaves (0..k-1); k + merge number for internal nodes
        height: Merge distance (0 for leaves)
        left: First merged child (internal nodes only)
        right: Second merged child (internal nodes only)
        record: Wrapped enrichment record (leaves only)
        size: Number of leaves below this node
    """

    node_id: int
    height: float = 0.0
    left: "ClusterNode | None" = None
    right: "ClusterNode | None" = None
    record: EnrichmentRecord | None = None
    size: int = 1

    @classmethod
    def leaf(cls, record: EnrichmentRecord, index: int) -> "ClusterNode":
        return cls(node_id=index, record=record)

    @classmethod
    def merge(
        cls,
        left: "ClusterNode",
        right: "ClusterNode",
        height: float,
        node_id: int,
    ) -> "ClusterNode":
        return cls(
            node_id=node_id,
            height=height,
            left=left,
            right=right,
            size=left.size + right.size,
        )

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def iter_nodes(self) -> Iterator["ClusterNode"]:
        """Pre-order traversal (node, left subtree, right subtree)."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            if not node.is_leaf:
                stack.append(node.right)
                stack.append(node.left)

    def leaves(self) -> list["ClusterNode"]:
        """Leaves in left-to-right order."""
        return [node for node in self.iter_nodes() if node.is_leaf]

    def __repr__(self) -> str:
        if self.is_leaf:
            return f"ClusterNode(leaf={self.node_id}, term={self.record.term!r})"
        return f"ClusterNode(id={self.node_id}, height={self.height:.4f}, size={self.size})"


def _newick_label(label: str) -> str:
    if any(ch in _NEWICK_SPECIAL for ch in label):
        return "'" + label.replace("'", "''") + "'"
    return label


@dataclass
class ClusterTree:
    """Dendrogram over the top-ranked enrichment records.

    Attributes:
        root: Root node
        records: Clustered records, indexed by leaf node_id
        merges: Internal nodes in merge order
    """

    root: ClusterNode
    records: list[EnrichmentRecord]
    merges: list[ClusterNode] = field(default_factory=list)

    @property
    def leaf_count(self) -> int:
        return len(self.records)

    @property
    def node_count(self) -> int:
        return sum(1 for _ in self.root.iter_nodes())

    @property
    def max_height(self) -> float:
        return max((node.height for node in self.merges), default=0.0)

    def leaf_order(self) -> list[EnrichmentRecord]:
        """Records in dendrogram (left-to-right) order."""
        return [leaf.record for leaf in self.root.leaves()]

    def to_linkage(self) -> np.ndarray:
        """
        SciPy-style linkage matrix of shape (k-1, 4).

        Row i holds [left id, right id, height, size] for the i-th merge; leaf ids
        are 0..k-1 and the node created by row i has id k + i, so the matrix
        can be passed to ``scipy.cluster.hierarchy.dendrogram``.
        """
        linkage = np.zeros((len(self.merges), 4), dtype=np.float64)
        for row, node in enumerate(self.merges):
            linkage[row] = [node.left.node_id, node.right.node_id, node.height, node.size]
        return linkage

    def to_newick(self, label_attr: str = "term") -> str:
        """Newick string; branch lengths are parent height minus child height."""

        def render(node: ClusterNode, parent_height: float) -> str:
            length = f":{parent_height - node.height:.6g}"
            if node.is_leaf:
                return _newick_label(str(getattr(node.record, label_attr))) + length
            inner = f"({render(node.left, node.height)},{render(node.right, node.height)})"
            return inner + length

        root = self.root
        if root.is_leaf:
            return _newick_label(str(getattr(root.record, label_attr))) + ";"
        return f"({render(root.left, root.height)},{render(root.right, root.height)});"
