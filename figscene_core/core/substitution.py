from __future__ import annotations

from typing import Collection, Literal, Mapping

from .document import DesignDocument, DesignNode


ServerRenderType = Literal["export", "substitution"]
SERVER_RENDER_TYPES = ("export", "substitution")

_VECTOR_RENDER_TYPES = ("VECTOR", "GROUP", "FRAME", "COMPONENT", "INSTANCE")


def find_server_render_nodes(
    document: DesignDocument,
    missing_component_ids: Collection[str] = (),
    selected_page_ids: Collection[str] | None = None,
) -> dict[str, ServerRenderType]:
    """Nodes to draw as flat bitmaps instead of live sub-trees.

    `selected_page_ids=None` treats every page as selected. Component
    definitions are scanned on every page so their instances render the same
    wherever they are placed.
    """

    found: dict[str, ServerRenderType] = {}
    for page in document.pages:
        selected = selected_page_ids is None or page.node_id in selected_page_ids
        _scan(page, found, 0, frozenset(missing_component_ids), selected, False)
    return found


def substitution_status(node: DesignNode, depth: int) -> bool:
    if node.node_type == "CANVAS":
        return False
    if depth <= 1 and node.node_type == "FRAME":
        return False
    if "render" in node.name.lower():
        return True
    if node.node_type in ("VECTOR", "BOOLEAN_OPERATION"):
        return True
    counts = {"VECTOR": 0}
    return _only_vector_types(node, counts) and counts["VECTOR"] > 0


def node_is_substitution(
    node: DesignNode,
    server_render: Mapping[str, ServerRenderType],
    lookup: Mapping[str, DesignNode],
) -> bool:
    """True when the node, or the definition an instance points at, renders as a substitution."""

    if node.node_type == "INSTANCE" and node.component_id is not None:
        definition = lookup.get(node.component_id)
        if definition is not None and server_render.get(definition.node_id) == "substitution":
            return True
    if node.node_type in ("INSTANCE", "COMPONENT"):
        return server_render.get(node.node_id) == "substitution"
    return False


def _scan(
    node: DesignNode,
    found: dict[str, ServerRenderType],
    depth: int,
    missing_component_ids: frozenset[str],
    selected: bool,
    within_component: bool,
) -> None:
    # Known instances are reproduced from their template, which is scanned on its own.
    if node.node_type == "INSTANCE" and node.component_id not in missing_component_ids:
        return
    if not node.visible:
        return
    eligible = selected or within_component or node.node_type == "COMPONENT"
    if eligible and depth == 1 and node.export_settings:
        found[node.node_id] = "export"
        return
    if eligible and substitution_status(node, depth):
        found[node.node_id] = "substitution"
        return
    if node.node_type == "COMPONENT":
        within_component = True
    for child in node.child_nodes:
        _scan(child, found, depth + 1, missing_component_ids, selected, within_component)


def _only_vector_types(node: DesignNode, counts: dict[str, int]) -> bool:
    if node.node_type not in _VECTOR_RENDER_TYPES:
        return False
    if node.node_type == "VECTOR":
        counts["VECTOR"] += 1
    return all(_only_vector_types(child, counts) for child in node.child_nodes)
