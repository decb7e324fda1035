"""
Comment tree builder.

WHAT: Turns a flat, ticket-scoped comment list into the reply tree served
to clients, and back.

HOW: Three passes over the input:
1. Index every comment by id
2. Attach each comment to its parent, or make it a root when it has no
   parent or its parent is not in the input
3. Sort every level by (created_at, id) and assign depth top-down

Everything is iterative, so thread depth is bounded by memory only.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List


@dataclass
class NestedComment:
    """
    One tree node.

    Attributes:
        comment: The comment (ORM row or any object with id,
            parent_comment_id and created_at)
        replies: Direct replies, oldest first
        depth: 0 for roots, parent depth + 1 otherwise
    """

    comment: Any
    replies: List["NestedComment"] = field(default_factory=list)
    depth: int = 0

    @property
    def id(self) -> int:
        return self.comment.id


def _sort_key(node: NestedComment):
    return (node.comment.created_at, node.comment.id)


def build(comments: Iterable[Any]) -> List[NestedComment]:
    """
    Build the reply tree.

    Args:
        comments: Flat comments of one ticket, in any order

    Returns:
        Root nodes, oldest first
    """
    nodes: Dict[int, NestedComment] = {}
    for comment in comments:
        nodes[comment.id] = NestedComment(comment=comment)

    roots: List[NestedComment] = []
    for node in nodes.values():
        parent_id = node.comment.parent_comment_id
        parent = nodes.get(parent_id) if parent_id is not None else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent.replies.append(node)

    roots.sort(key=_sort_key)
    stack = list(roots)
    while stack:
        node = stack.pop()
        node.replies.sort(key=_sort_key)
        for reply in node.replies:
            reply.depth = node.depth + 1
        stack.extend(node.replies)

    # Nodes never reached from a root sit on a parent cycle (corrupt data).
    # Promote them so no comment is dropped.
    reached = {node.id for node in flatten_nodes(roots)}
    orphans = sorted(
        (node for node in nodes.values() if node.id not in reached), key=_sort_key
    )
    for orphan in orphans:
        if orphan.id in reached:
            continue
        orphan.depth = 0
        roots.append(orphan)
        stack = [orphan]
        while stack:
            node = stack.pop()
            reached.add(node.id)
            node.replies = [reply for reply in node.replies if reply.id not in reached]
            node.replies.sort(key=_sort_key)
            for reply in node.replies:
                reply.depth = node.depth + 1
            stack.extend(node.replies)

    if orphans:
        roots.sort(key=_sort_key)
    return roots


def flatten_nodes(tree: List[NestedComment]) -> List[NestedComment]:
    """Tree nodes in pre-order (each node before its replies)."""
    ordered: List[NestedComment] = []
    stack = list(reversed(tree))
    while stack:
        node = stack.pop()
        ordered.append(node)
        stack.extend(reversed(node.replies))
    return ordered


def flatten(tree: List[NestedComment]) -> List[Any]:
    """Comments of a tree in pre-order."""
    return [node.comment for node in flatten_nodes(tree)]
