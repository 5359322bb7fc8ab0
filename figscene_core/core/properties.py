from __future__ import annotations

from typing import Callable

from figscene_ui.scene_ir import (
    ArcData,
    Color,
    ContentSizeFitter,
    GradientStop,
    ImageFill,
    SceneNode,
    ShapeFill,
    TextStyle,
    TRANSPARENT,
    WHITE,
)

from .context import BuildContext
from .document import DesignNode, Paint, TypeStyle


PropertyHandler = Callable[[SceneNode, DesignNode, BuildContext], None]

NINE_SLICE_SUFFIX = "_9s"
TEXT_CHARACTER_SPACING = -0.7

_TEXT_ALIGN_HORIZONTAL = {"LEFT": "left", "CENTER": "center", "RIGHT": "right", "JUSTIFIED": "justified"}
_TEXT_ALIGN_VERTICAL = {"TOP": "top", "CENTER": "middle", "BOTTOM": "bottom"}
_TEXT_CASES = {"UPPER": "upper", "LOWER": "lower", "SMALL_CAPS": "small_caps", "SMALL_CAPS_FORCED": "small_caps"}
_AUTO_RESIZE = {"HEIGHT": "height", "WIDTH_AND_HEIGHT": "width_and_height"}
_AUTO_RESIZE_FIT = {
    "HEIGHT": ContentSizeFitter(horizontal="unconstrained", vertical="preferred"),
    "WIDTH_AND_HEIGHT": ContentSizeFitter(horizontal="preferred", vertical="preferred"),
    "TRUNCATE": ContentSizeFitter(),
}
_SCALE_MODES = {"FIT": "fit", "FILL": "fill", "TILE": "tile", "STRETCH": "stretch"}


def apply_properties(scene: SceneNode, node: DesignNode, context: BuildContext) -> None:
    """Map paints, text styling, opacity and visibility onto a scene node.

    Unsupported node kinds and paint types degrade silently.
    """

    NODE_PROPERTY_HANDLERS[node.node_type](scene, node, context)
    # A transparency group is never removed once present, so only add one when needed.
    if node.opacity < 1.0 or scene.group_alpha is not None:
        scene.group_alpha = node.opacity
    scene.active = node.visible


def paint_color(paint: Paint | None) -> Color:
    if paint is not None and not paint.visible:
        return (0.0, 0.0, 0.0, 0.0)
    if paint is None:
        return WHITE
    if paint.color is None:
        return (1.0, 1.0, 1.0, paint.opacity)
    return (paint.color.r, paint.color.g, paint.color.b, paint.color.a * paint.opacity)


def text_outline_width(stroke_weight: float, font_size: float) -> float:
    if font_size <= 0:
        return 0.0
    return min(max(4.0 * stroke_weight / font_size, 0.0), 0.5)


def is_nine_slice(node: DesignNode) -> bool:
    return node.name.endswith(NINE_SLICE_SUFFIX)


def nine_slice_borders(node: DesignNode) -> tuple[float, float, float, float]:
    """(left, bottom, right, top) borders taken from edge-pinned children."""

    bounds = node.absolute_bounding_box
    left = bottom = right = top = 0.0
    if bounds is None:
        return (left, bottom, right, top)
    for child in node.child_nodes:
        box = child.absolute_bounding_box
        if box is None or child.constraints is None:
            continue
        if child.constraints.horizontal == "LEFT":
            left = max(left, box.x_max - bounds.x)
        elif child.constraints.horizontal == "RIGHT":
            right = max(right, bounds.x_max - box.x)
        if child.constraints.vertical == "TOP":
            top = max(top, box.y_max - bounds.y)
        elif child.constraints.vertical == "BOTTOM":
            bottom = max(bottom, bounds.y_max - box.y)
    return (left, bottom, right, top)


def is_plain_image(node: DesignNode) -> bool:
    return (
        node.node_type not in ("ELLIPSE", "STAR")
        and node.rectangle_corner_radii is None
        and node.corner_radius == 0
        and not node.strokes
        and bool(node.fills)
        and node.fills[0].paint_type == "IMAGE"
        and node.fills[0].image_ref is not None
    )


def shape_fill_for(node: DesignNode) -> ShapeFill:
    shape = "rectangle"
    if node.node_type == "ELLIPSE":
        shape = "ellipse"
    elif node.node_type == "STAR":
        shape = "star"

    if node.rectangle_corner_radii is not None:
        radii = node.rectangle_corner_radii
    elif node.corner_radius > 0:
        radii = (node.corner_radius,) * 4
    else:
        radii = (0.0, 0.0, 0.0, 0.0)

    values: dict[str, object] = {
        "shape": shape,
        "corner_radii": radii,
        "fill_color": (0.0, 0.0, 0.0, 0.0),
    }
    if node.fills:
        first = node.fills[0]
        values.update(_fill_values(first))
        values["fill_enabled"] = first.visible
        values["fill_color"] = paint_color(first)
    if node.strokes:
        values["stroke_width"] = node.stroke_weight
        values["stroke_color"] = paint_color(node.strokes[0])
        if not node.fills:
            values["fill_color"] = TRANSPARENT
    if shape == "ellipse" and node.arc_data is not None:
        values["arc"] = ArcData(
            starting_angle=node.arc_data.starting_angle,
            ending_angle=node.arc_data.ending_angle,
            inner_radius=node.arc_data.inner_radius,
        )
    return ShapeFill(**values)  # type: ignore[arg-type]


def text_style_for(node: DesignNode, context: BuildContext) -> TextStyle:
    style = node.style or TypeStyle()
    font = context.font_map.get_font_mapping(style.font_family, style.font_weight)
    first_fill = node.fills[0] if node.fills else None

    gradient_top: Color | None = None
    gradient_bottom: Color | None = None
    if first_fill is not None and first_fill.paint_type == "GRADIENT_LINEAR":
        gradient_top, gradient_bottom = _vertical_text_gradient(first_fill)

    shadow = next((effect for effect in reversed(node.effects) if effect.effect_type == "DROP_SHADOW"), None)
    variant = None
    if shadow is not None or node.strokes:
        variant = context.material_variants.variant_for(
            font,
            shadow_color=(shadow.color.as_tuple() if shadow.color is not None else WHITE) if shadow else None,
            shadow_distance=(shadow.offset[0], -shadow.offset[1]) if shadow else None,
            outline_color=paint_color(node.strokes[0]) if node.strokes else None,
            outline_width=text_outline_width(node.stroke_weight, style.font_size) if node.strokes else 0.0,
        )

    return TextStyle(
        characters=node.characters or "",
        font=font.asset_name,
        font_size=max(style.font_size, 0.0),
        color=paint_color(first_fill),
        character_spacing=TEXT_CHARACTER_SPACING,
        align_horizontal=_TEXT_ALIGN_HORIZONTAL.get(style.text_align_horizontal, "left"),
        align_vertical=_TEXT_ALIGN_VERTICAL.get(style.text_align_vertical, "top"),
        text_case=_TEXT_CASES.get(style.text_case, "original"),
        underline=style.text_decoration == "UNDERLINE",
        strikethrough=style.text_decoration == "STRIKETHROUGH",
        italic=style.italic,
        auto_size=_AUTO_RESIZE.get(style.text_auto_resize, "none"),
        gradient_top=gradient_top,
        gradient_bottom=gradient_bottom,
        material_variant=variant,
    )


def _apply_shape(scene: SceneNode, node: DesignNode, context: BuildContext) -> None:
    if context.is_substitution(node):
        return
    if not node.fills and not node.strokes:
        # An instance override may clear paints the template still carries.
        scene.shape_fill = None
        scene.image = None
        return
    first = node.fills[0] if node.fills else None
    if is_nine_slice(node) and first is not None and first.paint_type == "IMAGE" and first.image_ref:
        scene.image = ImageFill(image_ref=first.image_ref, slice_borders=nine_slice_borders(node))
        scene.shape_fill = None
        return
    if is_plain_image(node):
        scene.image = ImageFill(image_ref=first.image_ref)  # type: ignore[union-attr,arg-type]
        scene.shape_fill = None
        return
    scene.shape_fill = shape_fill_for(node)


def _apply_text(scene: SceneNode, node: DesignNode, context: BuildContext) -> None:
    scene.text = text_style_for(node, context)
    style = node.style or TypeStyle()
    fitter = _AUTO_RESIZE_FIT.get(style.text_auto_resize)
    if fitter is not None:
        scene.content_size_fitter = fitter


def _no_properties(scene: SceneNode, node: DesignNode, context: BuildContext) -> None:
    return None


def _fill_values(paint: Paint) -> dict[str, object]:
    if paint.paint_type == "SOLID":
        return {"fill_kind": "solid"}
    if paint.paint_type == "IMAGE":
        values: dict[str, object] = {
            "fill_kind": "image",
            "image_ref": paint.image_ref,
            "image_scale_mode": _SCALE_MODES.get(paint.scale_mode, "fill"),
        }
        if paint.scale_mode == "TILE":
            values["image_scaling_factor"] = paint.scaling_factor
        if paint.scale_mode == "STRETCH":
            values["image_transform"] = paint.image_transform
        return values
    if paint.paint_type in ("GRADIENT_LINEAR", "GRADIENT_RADIAL"):
        handles = paint.gradient_handle_positions
        return {
            "fill_kind": "linear_gradient" if paint.paint_type == "GRADIENT_LINEAR" else "radial_gradient",
            "gradient_stops": tuple(
                GradientStop(position=min(max(stop.position, 0.0), 1.0), color=stop.color.as_tuple())
                for stop in paint.gradient_stops
            ),
            "gradient_handles": tuple(handles) if len(handles) == 3 else (),
        }
    # Angular, diamond and emoji paints have no scene equivalent.
    return {"fill_kind": "none"}


def _vertical_text_gradient(paint: Paint) -> tuple[Color | None, Color | None]:
    handles = paint.gradient_handle_positions
    if len(handles) < 2 or len(paint.gradient_stops) < 2:
        return None, None
    x_change = abs(handles[0][0] - handles[1][0])
    y_change = abs(handles[0][1] - handles[1][1])
    # Only vertical gradients map onto per-vertex text colours.
    if x_change >= y_change:
        return None, None
    top_index = 0 if handles[0][1] < handles[1][1] else 1
    top = paint.gradient_stops[top_index].color.as_tuple()
    bottom = paint.gradient_stops[1 - top_index].color.as_tuple()
    return top, bottom


NODE_PROPERTY_HANDLERS: dict[str, PropertyHandler] = {
    "DOCUMENT": _no_properties,
    "CANVAS": _no_properties,
    "FRAME": _apply_shape,
    "GROUP": _no_properties,
    "VECTOR": _no_properties,
    "BOOLEAN_OPERATION": _no_properties,
    "STAR": _apply_shape,
    "LINE": _no_properties,
    "ELLIPSE": _apply_shape,
    "REGULAR_POLYGON": _no_properties,
    "RECTANGLE": _apply_shape,
    "TEXT": _apply_text,
    "SLICE": _no_properties,
    "COMPONENT": _apply_shape,
    "COMPONENT_SET": _no_properties,
    "INSTANCE": _apply_shape,
    "STICKY": _no_properties,
    "SHAPE_WITH_TEXT": _no_properties,
    "CONNECTOR": _no_properties,
    "SECTION": _apply_shape,
    "TABLE": _no_properties,
    "TABLE_CELL": _no_properties,
    "WASHI_TAPE": _no_properties,
    "UNKNOWN": _no_properties,
}
