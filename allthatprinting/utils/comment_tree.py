"""
Comment tree assembly for community posts.

build_comment_tree(comments) nests replies under their parents. Roots and every
reply list are ordered oldest first; a comment whose parent is not in the list is
promoted to a root.
"""

from typing import Dict, List


def build_comment_tree(comments) -> List[Dict]:
    ordered = sorted(comments, key=lambda c: (c.created_at, c.id))
    nodes = {}
    for comment in ordered:
        node = comment.to_dict()
        node['replies'] = []
        nodes[comment.id] = node

    roots = []
    for comment in ordered:
        node = nodes[comment.id]
        parent = nodes.get(comment.parent_id) if comment.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent['replies'].append(node)
    return roots
