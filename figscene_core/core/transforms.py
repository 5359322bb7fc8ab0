from __future__ import annotations

from dataclasses import dataclass, replace
import math
from typing import Sequence

import numpy as np

from figscene_ui.scene_ir import AnchoredRect, LayoutElement, Vec2

from .document import DesignNode, IDENTITY_TRANSFORM, LayoutConstraint, Rect


CENTER_PIVOT: Vec2 = (0.5, 0.5)
TOP_LEFT: Vec2 = (0.0, 1.0)

_HORIZONTAL_ANCHORS: dict[str, Vec2] = {
    "LEFT": (0.0, 0.0),
    "RIGHT": (1.0, 1.0),
    "CENTER": (0.5, 0.5),
    "LEFT_RIGHT": (0.0, 1.0),
    "SCALE": (0.0, 1.0),
}
_VERTICAL_ANCHORS: dict[str, Vec2] = {
    "TOP": (1.0, 1.0),
    "BOTTOM": (0.0, 0.0),
    "CENTER": (0.5, 0.5),
    "TOP_BOTTOM": (0.0, 1.0),
    "SCALE": (0.0, 1.0),
}
_HORIZONTAL_OFFSET = {"CENTER": -0.5, "RIGHT": -1.0}
_VERTICAL_OFFSET = {"CENTER": 0.5, "BOTTOM": 1.0}
# SCALE has no dedicated handling in the design format; it stretches like LEFT_RIGHT/TOP_BOTTOM.
_STRETCH_HORIZONTAL = ("LEFT_RIGHT", "SCALE")
_STRETCH_VERTICAL = ("TOP_BOTTOM", "SCALE")


@dataclass(frozen=True)
class ResolvedTransform:
    rect: AnchoredRect
    layout_element: LayoutElement


@dataclass(frozen=True)
class ChildBounds:
    """Union of child bounding boxes, relative to the parent's top-left (y down)."""

    x_min: float
    y_min: float
    x_max: float
    y_max: float


def parent_size_of(parent: DesignNode | None) -> Vec2:
    if parent is None or parent.size is None:
        return (0.0, 0.0)
    return (float(parent.size[0]), float(parent.size[1]))


def resolve_transform(
    node: DesignNode,
    parent: DesignNode | None,
    center_pivot: bool = False,
) -> ResolvedTransform:
    matrix = np.array(node.relative_transform or IDENTITY_TRANSFORM, dtype=float)
    rotation = math.degrees(math.atan2(-matrix[1, 0], matrix[0, 0]))
    scale = [1.0, 1.0]
    if matrix[0, 0] < 0:
        scale[0] = -scale[0]
        rotation -= 180.0
    if matrix[1, 1] < 0:
        scale[1] = -scale[1]

    size = node.size or (0.0, 0.0)
    bbox = node.absolute_bounding_box
    rect = AnchoredRect(
        anchored_position=(float(matrix[0, 2]), float(-matrix[1, 2])),
        size_delta=(float(size[0]), float(size[1])),
        rotation_deg=_normalize_degrees(rotation),
        scale=(scale[0], scale[1]),
    )
    layout_element = LayoutElement(
        preferred_size=(float(size[0]), float(size[1])),
        min_size=(bbox.width, bbox.height) if bbox is not None else (float(size[0]), float(size[1])),
    )

    # Groups carry no constraints of their own; the first child stands in for them.
    source = node
    if node.node_type == "GROUP" and node.children:
        source = node.children[0]
    parent_size = parent_size_of(parent)
    if source.constraints is not None:
        rect = apply_constraints(rect, source.constraints, parent_size)

    if node.node_type == "TEXT":
        center_pivot = False
    if center_pivot:
        rect = set_pivot(rect, CENTER_PIVOT, parent_size)
    return ResolvedTransform(rect=rect, layout_element=layout_element)


def resolve_absolute_transform(
    node: DesignNode,
    parent: DesignNode | None,
    center_pivot: bool = False,
) -> ResolvedTransform:
    """Placement from absolute bounds, for nodes whose rotation is baked into a bitmap."""

    bbox = node.absolute_bounding_box or Rect(0.0, 0.0, *(node.size or (0.0, 0.0)))
    origin = (0.0, 0.0)
    if parent is not None and parent.absolute_bounding_box is not None:
        origin = (parent.absolute_bounding_box.x, parent.absolute_bounding_box.y)
    rect = AnchoredRect(
        anchored_position=(bbox.x - origin[0], -(bbox.y - origin[1])),
        size_delta=(bbox.width, bbox.height),
    )
    parent_size = parent_size_of(parent)
    if node.constraints is not None:
        rect = apply_constraints(rect, node.constraints, parent_size)
    if center_pivot:
        rect = set_pivot(rect, CENTER_PIVOT, parent_size)
    return ResolvedTransform(
        rect=rect,
        layout_element=LayoutElement(preferred_size=(bbox.width, bbox.height), min_size=(bbox.width, bbox.height)),
    )


def apply_constraints(rect: AnchoredRect, constraints: LayoutConstraint, parent_size: Vec2) -> AnchoredRect:
    anchors_x = _HORIZONTAL_ANCHORS.get(constraints.horizontal, (0.0, 1.0))
    anchors_y = _VERTICAL_ANCHORS.get(constraints.vertical, (0.0, 1.0))
    position = np.array(rect.anchored_position, dtype=float)
    position[0] += _HORIZONTAL_OFFSET.get(constraints.horizontal, 0.0) * parent_size[0]
    position[1] += _VERTICAL_OFFSET.get(constraints.vertical, 0.0) * parent_size[1]

    size_delta = np.array(rect.size_delta, dtype=float)
    if constraints.horizontal in _STRETCH_HORIZONTAL:
        size_delta[0] -= parent_size[0]
    if constraints.vertical in _STRETCH_VERTICAL:
        size_delta[1] -= parent_size[1]

    return replace(
        rect,
        anchor_min=(anchors_x[0], anchors_y[0]),
        anchor_max=(anchors_x[1], anchors_y[1]),
        anchored_position=(float(position[0]), float(position[1])),
        size_delta=(float(size_delta[0]), float(size_delta[1])),
    )


def local_axes(rect: AnchoredRect) -> np.ndarray:
    """Rotation-scale block mapping rect-local vectors into the parent frame."""

    theta = math.radians(rect.rotation_deg)
    rotation = np.array([[math.cos(theta), -math.sin(theta)], [math.sin(theta), math.cos(theta)]])
    return rotation @ np.diag(rect.scale)


def set_pivot(rect: AnchoredRect, pivot: Vec2, parent_size: Vec2 = (0.0, 0.0)) -> AnchoredRect:
    """Move the pivot without moving the rect on screen."""

    size = np.array(rect.rect_size(parent_size))
    offset = (np.array(pivot) - np.array(rect.pivot)) * size
    pivot_point = np.array(rect.pivot_point(parent_size)) + local_axes(rect) @ offset
    moved = replace(rect, pivot=(float(pivot[0]), float(pivot[1])))
    reference = np.array(moved.anchor_reference(parent_size))
    position = pivot_point - reference
    return replace(moved, anchored_position=(float(position[0]), float(position[1])))


def rect_center(rect: AnchoredRect, parent_size: Vec2 = (0.0, 0.0)) -> Vec2:
    size = np.array(rect.rect_size(parent_size))
    offset = (np.array(CENTER_PIVOT) - np.array(rect.pivot)) * size
    center = np.array(rect.pivot_point(parent_size)) + local_axes(rect) @ offset
    return (float(center[0]), float(center[1]))


def rect_origin(rect: AnchoredRect, parent_size: Vec2 = (0.0, 0.0)) -> Vec2:
    """Bottom-left corner of an unrotated rect in its parent frame."""

    size = np.array(rect.rect_size(parent_size))
    origin = np.array(rect.pivot_point(parent_size)) - np.array(rect.pivot) * size
    return (float(origin[0]), float(origin[1]))


def rebase_rect(rect: AnchoredRect, parent_size: Vec2, container: AnchoredRect) -> AnchoredRect:
    """Re-express `rect` relative to `container`, a sibling rect in the same parent.

    The rect keeps its anchors and pivot and stays where it was on screen.
    Containers are assumed to be axis aligned.
    """

    container_size = container.rect_size(parent_size)
    origin = np.array(rect_origin(container, parent_size))
    size = np.array(rect.rect_size(parent_size))
    pivot_point = np.array(rect.pivot_point(parent_size)) - origin

    stretch = np.array(rect.anchor_max) - np.array(rect.anchor_min)
    size_delta = size - stretch * np.array(container_size)
    provisional = replace(rect, size_delta=(float(size_delta[0]), float(size_delta[1])))
    position = pivot_point - np.array(provisional.anchor_reference(container_size))
    return replace(provisional, anchored_position=(float(position[0]), float(position[1])))


def rebase_through(rect: AnchoredRect, parent_size: Vec2, containers: Sequence[AnchoredRect]) -> AnchoredRect:
    current_size = parent_size
    for container in containers:
        rect = rebase_rect(rect, current_size, container)
        current_size = container.rect_size(current_size)
    return rect


def relative_bounds_for_children(node: DesignNode) -> ChildBounds | None:
    if not node.children or node.absolute_bounding_box is None:
        return None
    boxes = [child.absolute_bounding_box for child in node.children if child.absolute_bounding_box is not None]
    if not boxes:
        return None
    origin = np.array([node.absolute_bounding_box.x, node.absolute_bounding_box.y])
    mins = np.array([[box.x, box.y] for box in boxes]) - origin
    maxs = np.array([[box.x_max, box.y_max] for box in boxes]) - origin
    low = mins.min(axis=0)
    high = maxs.max(axis=0)
    return ChildBounds(x_min=float(low[0]), y_min=float(low[1]), x_max=float(high[0]), y_max=float(high[1]))


def _normalize_degrees(value: float) -> float:
    wrapped = math.fmod(value, 360.0)
    if wrapped <= -180.0:
        wrapped += 360.0
    elif wrapped > 180.0:
        wrapped -= 360.0
    return wrapped + 0.0  # -0.0 -> 0.0
