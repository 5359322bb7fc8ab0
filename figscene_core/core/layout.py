from __future__ import annotations

from dataclasses import replace

from figscene_ui.scene_ir import AnchoredRect, ContentSizeFitter, LayoutGroup, SceneNode, ScrollContainer

from .document import DesignNode
from .transforms import relative_bounds_for_children


SCROLL_CONTENT_SUFFIX = "_ScrollContent"

# (primary, counter) -> child alignment. SPACE_BETWEEN has no single-axis equivalent and packs like MIN.
_VERTICAL_ALIGNMENT = {
    ("MIN", "MIN"): "upper_left",
    ("MIN", "CENTER"): "upper_center",
    ("MIN", "MAX"): "upper_right",
    ("CENTER", "MIN"): "middle_left",
    ("CENTER", "CENTER"): "middle_center",
    ("CENTER", "MAX"): "middle_right",
    ("MAX", "MIN"): "lower_left",
    ("MAX", "CENTER"): "lower_center",
    ("MAX", "MAX"): "lower_right",
}
_HORIZONTAL_ALIGNMENT = {
    ("MIN", "MIN"): "upper_left",
    ("MIN", "CENTER"): "middle_left",
    ("MIN", "MAX"): "lower_left",
    ("CENTER", "MIN"): "upper_center",
    ("CENTER", "CENTER"): "middle_center",
    ("CENTER", "MAX"): "lower_center",
    ("MAX", "MIN"): "upper_right",
    ("MAX", "CENTER"): "middle_right",
    ("MAX", "MAX"): "lower_right",
}


def implements_scrolling(node: DesignNode) -> bool:
    return node.node_type == "FRAME" and node.overflow_direction != "NONE"


def scroll_axes(overflow_direction: str) -> tuple[bool, bool]:
    horizontal = overflow_direction in ("HORIZONTAL_SCROLLING", "HORIZONTAL_AND_VERTICAL_SCROLLING")
    vertical = overflow_direction in ("VERTICAL_SCROLLING", "HORIZONTAL_AND_VERTICAL_SCROLLING")
    return horizontal, vertical


def child_alignment(node: DesignNode) -> str:
    primary = "MIN" if node.primary_axis_align_items == "SPACE_BETWEEN" else node.primary_axis_align_items
    counter = "MIN" if node.counter_axis_align_items == "BASELINE" else node.counter_axis_align_items
    table = _VERTICAL_ALIGNMENT if node.layout_mode == "VERTICAL" else _HORIZONTAL_ALIGNMENT
    return table.get((primary, counter), "upper_left")


def apply_layout(scene: SceneNode, node: DesignNode, enable_auto_layout: bool = True) -> SceneNode | None:
    """Attach scroll and auto-layout behaviour; returns the scroll content node if any.

    Re-applying to a node reuses its existing scroll content and replaces any
    previous layout group.
    """

    target = scene
    content: SceneNode | None = None
    if implements_scrolling(node):
        content = scene.scroll_content()
        if content is None:
            size = node.size or (0.0, 0.0)
            content = SceneNode(
                name=f"{node.name}{SCROLL_CONTENT_SUFFIX}",
                rect=AnchoredRect(size_delta=(float(size[0]), float(size[1]))),
                role="scroll_content",
            )
            scene.add_child(content, 0)
        horizontal, vertical = scroll_axes(node.overflow_direction)
        scene.scroll = ScrollContainer(
            horizontal=horizontal,
            vertical=vertical,
            clip_content=node.clips_content,
            content_name=content.name,
        )
        if node.layout_mode != "NONE":
            content.content_size_fitter = ContentSizeFitter(horizontal="preferred", vertical="preferred")
        target = content

    if node.layout_mode == "NONE" or not enable_auto_layout:
        return content

    target.layout = LayoutGroup(
        axis="vertical" if node.layout_mode == "VERTICAL" else "horizontal",
        padding=(
            round(node.padding_left),
            round(node.padding_right),
            round(node.padding_top),
            round(node.padding_bottom),
        ),
        spacing=node.item_spacing,
        child_alignment=child_alignment(node),
    )
    return content


def fit_scroll_content(content: SceneNode, node: DesignNode) -> None:
    """Size free-layout scroll content to the far corner of its children."""

    bounds = relative_bounds_for_children(node)
    far_corner = (bounds.x_max, bounds.y_max) if bounds is not None else (0.0, 0.0)
    content.rect = replace(content.rect, size_delta=far_corner)
