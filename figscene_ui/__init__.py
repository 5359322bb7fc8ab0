"""Scene-graph IR emitted by the figscene bridge, plus its exporters."""

from .export import TemplateExportBundle, TemplateExporter, build_manifest, render_scene_outline, safe_file_name
from .scene_ir import (
    SCENE_IR_VERSION,
    AnchoredRect,
    BitmapRef,
    ButtonBinding,
    ContentSizeFitter,
    ImageFill,
    InstanceSwapMarker,
    LayoutElement,
    LayoutGroup,
    PlaceholderMarker,
    PrototypeLink,
    SceneNode,
    ScrollContainer,
    Shadow,
    ShapeFill,
    TextMaterialVariant,
    TextStyle,
    scene_node_from_dict,
)

__all__ = [
    "AnchoredRect",
    "BitmapRef",
    "ButtonBinding",
    "ContentSizeFitter",
    "ImageFill",
    "InstanceSwapMarker",
    "LayoutElement",
    "LayoutGroup",
    "PlaceholderMarker",
    "PrototypeLink",
    "SCENE_IR_VERSION",
    "SceneNode",
    "ScrollContainer",
    "Shadow",
    "ShapeFill",
    "TemplateExportBundle",
    "TemplateExporter",
    "TextMaterialVariant",
    "TextStyle",
    "build_manifest",
    "render_scene_outline",
    "safe_file_name",
    "scene_node_from_dict",
]
