from .behaviour_binding import BehaviourRegistry, BehaviourSpec, BoundBehaviour, bind_behaviours
from .components import (
    ComponentRegistry,
    OrphanRecord,
    TemplateEntry,
    instantiate_all_components,
    remove_temporary_node_tags,
)
from .context import BuildContext
from .document import (
    NODE_TYPES,
    DesignDocument,
    DesignNode,
    LayoutConstraint,
    document_from_dict,
    load_document,
    node_from_dict,
)
from .document_queries import (
    build_node_lookup,
    build_parent_lookup,
    find_missing_component_definitions,
    flow_starting_points,
    initial_screen_id,
)
from .effects import apply_effects
from .fonts import DEFAULT_FONT, FontHandle, FontMap, MaterialVariantRegistry, generate_font_map
from .generator import BuildPhase, BuildPhaseError, BuildResult, BuildSession, build_document
from .layout import apply_layout, fit_scroll_content
from .properties import NODE_PROPERTY_HANDLERS, apply_properties
from .prototype_flow import FlowRegistration, apply_prototype_functionality
from .settings import DEFAULT_SETTINGS, BridgeSettings, load_font_catalog, load_settings, validate_settings
from .substitution import SERVER_RENDER_TYPES, find_server_render_nodes
from .transforms import (
    ResolvedTransform,
    rebase_rect,
    relative_bounds_for_children,
    resolve_absolute_transform,
    resolve_transform,
    set_pivot,
)
from .validation import DocumentValidationError, ValidationReport, require_valid_document, validate_document

__all__ = [
    "BehaviourRegistry",
    "BehaviourSpec",
    "BoundBehaviour",
    "BridgeSettings",
    "BuildContext",
    "BuildPhase",
    "BuildPhaseError",
    "BuildResult",
    "BuildSession",
    "ComponentRegistry",
    "DEFAULT_FONT",
    "DEFAULT_SETTINGS",
    "DesignDocument",
    "DesignNode",
    "DocumentValidationError",
    "FlowRegistration",
    "FontHandle",
    "FontMap",
    "LayoutConstraint",
    "MaterialVariantRegistry",
    "NODE_PROPERTY_HANDLERS",
    "NODE_TYPES",
    "OrphanRecord",
    "ResolvedTransform",
    "SERVER_RENDER_TYPES",
    "TemplateEntry",
    "ValidationReport",
    "apply_effects",
    "apply_layout",
    "apply_properties",
    "apply_prototype_functionality",
    "bind_behaviours",
    "build_document",
    "build_node_lookup",
    "build_parent_lookup",
    "document_from_dict",
    "find_missing_component_definitions",
    "find_server_render_nodes",
    "fit_scroll_content",
    "flow_starting_points",
    "generate_font_map",
    "initial_screen_id",
    "instantiate_all_components",
    "load_document",
    "load_font_catalog",
    "load_settings",
    "node_from_dict",
    "rebase_rect",
    "relative_bounds_for_children",
    "remove_temporary_node_tags",
    "require_valid_document",
    "resolve_absolute_transform",
    "resolve_transform",
    "set_pivot",
    "validate_document",
    "validate_settings",
]
