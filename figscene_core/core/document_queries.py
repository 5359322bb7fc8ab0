from __future__ import annotations

from typing import Mapping

from .document import DesignDocument, DesignNode, FlowStartingPoint


def build_node_lookup(document: DesignDocument) -> dict[str, DesignNode]:
    return {node.node_id: node for node in document.document.iter_tree()}


def build_parent_lookup(document: DesignDocument) -> dict[str, DesignNode]:
    parents: dict[str, DesignNode] = {}
    for node in document.document.iter_tree():
        for child in node.child_nodes:
            parents[child.node_id] = node
    return parents


def full_path_for_node(node: DesignNode, parents: Mapping[str, DesignNode]) -> str:
    parts = [node.name]
    current = parents.get(node.node_id)
    while current is not None and current.node_type != "DOCUMENT":
        parts.append(current.name)
        current = parents.get(current.node_id)
    return "/".join(reversed(parts))


def find_missing_component_definitions(
    document: DesignDocument,
    lookup: Mapping[str, DesignNode] | None = None,
) -> tuple[str, ...]:
    """Components listed in the side table whose definition node is not in the tree.

    These come from external libraries; their instances are built as plain
    sub-trees instead of being deduplicated.
    """

    nodes = lookup if lookup is not None else build_node_lookup(document)
    return tuple(sorted(component_id for component_id in document.components if component_id not in nodes))


def is_screen_node(node: DesignNode, parent: DesignNode | None) -> bool:
    return node.node_type == "FRAME" and parent is not None and parent.node_type in ("CANVAS", "SECTION")


def component_display_name(node: DesignNode, parent: DesignNode | None) -> str:
    if parent is not None and parent.node_type == "COMPONENT_SET":
        return f"{parent.name}-{node.name}"
    return node.name


def flow_starting_points(document: DesignDocument) -> tuple[FlowStartingPoint, ...]:
    points: list[FlowStartingPoint] = []
    for page in document.pages:
        points.extend(page.flow_starting_points)
    return tuple(points)


def initial_screen_id(document: DesignDocument, built_screen_ids: set[str] | frozenset[str]) -> str | None:
    for point in flow_starting_points(document):
        if point.node_id in built_screen_ids:
            return point.node_id
    for page in document.pages:
        if page.prototype_start_node_id in built_screen_ids:
            return page.prototype_start_node_id
    return None


def collect_image_refs(document: DesignDocument) -> tuple[str, ...]:
    refs: set[str] = set()
    for node in document.document.iter_tree():
        for paint in node.fills + node.strokes:
            if paint.paint_type == "IMAGE" and paint.image_ref:
                refs.add(paint.image_ref)
    return tuple(sorted(refs))
