from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from .document import DesignDocument, DesignNode
from .document_queries import build_node_lookup, build_parent_lookup, find_missing_component_definitions
from .fonts import FontMap, MaterialVariantRegistry
from .settings import DEFAULT_SETTINGS, BridgeSettings
from .substitution import ServerRenderType, find_server_render_nodes, node_is_substitution


@dataclass
class BuildContext:
    """Read-only inputs of one build plus the per-build material variant cache."""

    document: DesignDocument
    settings: BridgeSettings
    lookup: Mapping[str, DesignNode]
    parents: Mapping[str, DesignNode]
    server_render: Mapping[str, ServerRenderType]
    missing_component_ids: frozenset[str]
    font_map: FontMap
    material_variants: MaterialVariantRegistry = field(default_factory=MaterialVariantRegistry)

    @classmethod
    def create(
        cls,
        document: DesignDocument,
        settings: BridgeSettings = DEFAULT_SETTINGS,
        *,
        server_render: Mapping[str, ServerRenderType] | None = None,
        font_map: FontMap | None = None,
    ) -> BuildContext:
        lookup = build_node_lookup(document)
        missing = frozenset(find_missing_component_definitions(document, lookup))
        if server_render is None:
            server_render = find_server_render_nodes(document, missing, settings.page_filter)
        return cls(
            document=document,
            settings=settings,
            lookup=lookup,
            parents=build_parent_lookup(document),
            server_render=dict(server_render),
            missing_component_ids=missing,
            font_map=font_map if font_map is not None else FontMap(),
        )

    def is_server_rendered(self, node: DesignNode) -> bool:
        return node.node_id in self.server_render

    def is_substitution(self, node: DesignNode) -> bool:
        return node_is_substitution(node, self.server_render, self.lookup)

    def has_known_definition(self, node: DesignNode) -> bool:
        """Instances whose definition is an external library component are built inline."""
        return node.component_id is not None and node.component_id not in self.missing_component_ids
