from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Callable, Iterator, Literal, Mapping


Vec2 = tuple[float, float]
Color = tuple[float, float, float, float]

SCENE_IR_VERSION = "figscene-scene-v1"

ShapeKind = Literal["rectangle", "ellipse", "star"]
FillKind = Literal["none", "solid", "linear_gradient", "radial_gradient", "image"]
ImageScaleMode = Literal["stretch", "fit", "fill", "tile"]
LayoutAxis = Literal["horizontal", "vertical"]
FitMode = Literal["unconstrained", "preferred"]
NodeRole = Literal["node", "scroll_content", "page"]
BitmapReason = Literal["export", "substitution"]

CHILD_ALIGNMENTS = (
    "upper_left",
    "upper_center",
    "upper_right",
    "middle_left",
    "middle_center",
    "middle_right",
    "lower_left",
    "lower_center",
    "lower_right",
)
TEXT_ALIGN_HORIZONTAL = ("left", "center", "right", "justified")
TEXT_ALIGN_VERTICAL = ("top", "middle", "bottom")
TEXT_CASES = ("original", "upper", "lower", "small_caps")
TEXT_AUTO_SIZES = ("none", "height", "width_and_height")

TRANSPARENT: Color = (1.0, 1.0, 1.0, 0.0)
WHITE: Color = (1.0, 1.0, 1.0, 1.0)


@dataclass(frozen=True)
class AnchoredRect:
    """Resolution-independent placement of a node inside its parent.

    Coordinates follow the target convention: origin at the parent's bottom-left
    corner and y pointing up. `anchored_position` is the offset of the pivot from
    the anchor reference point; `size_delta` is added to the anchor stretch.
    """

    anchor_min: Vec2 = (0.0, 1.0)
    anchor_max: Vec2 = (0.0, 1.0)
    pivot: Vec2 = (0.0, 1.0)
    anchored_position: Vec2 = (0.0, 0.0)
    size_delta: Vec2 = (0.0, 0.0)
    rotation_deg: float = 0.0
    scale: Vec2 = (1.0, 1.0)

    def __post_init__(self) -> None:
        for label, value in (("anchor_min", self.anchor_min), ("anchor_max", self.anchor_max)):
            if len(value) != 2:
                raise ValueError(f"{label} must be a 2-tuple")
        if self.anchor_max[0] < self.anchor_min[0] or self.anchor_max[1] < self.anchor_min[1]:
            raise ValueError("anchor_max must be >= anchor_min on both axes")

    @property
    def is_stretched_x(self) -> bool:
        return self.anchor_max[0] != self.anchor_min[0]

    @property
    def is_stretched_y(self) -> bool:
        return self.anchor_max[1] != self.anchor_min[1]

    def rect_size(self, parent_size: Vec2 = (0.0, 0.0)) -> Vec2:
        return (
            (self.anchor_max[0] - self.anchor_min[0]) * parent_size[0] + self.size_delta[0],
            (self.anchor_max[1] - self.anchor_min[1]) * parent_size[1] + self.size_delta[1],
        )

    def anchor_reference(self, parent_size: Vec2 = (0.0, 0.0)) -> Vec2:
        """Point in the parent frame that `anchored_position` is measured from."""
        return (
            (self.anchor_min[0] + (self.anchor_max[0] - self.anchor_min[0]) * self.pivot[0]) * parent_size[0],
            (self.anchor_min[1] + (self.anchor_max[1] - self.anchor_min[1]) * self.pivot[1]) * parent_size[1],
        )

    def pivot_point(self, parent_size: Vec2 = (0.0, 0.0)) -> Vec2:
        ref = self.anchor_reference(parent_size)
        return (ref[0] + self.anchored_position[0], ref[1] + self.anchored_position[1])


@dataclass(frozen=True)
class LayoutElement:
    preferred_size: Vec2
    min_size: Vec2


@dataclass(frozen=True)
class GradientStop:
    position: float
    color: Color

    def __post_init__(self) -> None:
        if not 0.0 <= self.position <= 1.0:
            raise ValueError("gradient stop position must be within [0, 1]")


@dataclass(frozen=True)
class ArcData:
    starting_angle: float
    ending_angle: float
    inner_radius: float


@dataclass(frozen=True)
class ShapeFill:
    shape: ShapeKind = "rectangle"
    fill_kind: FillKind = "none"
    fill_enabled: bool = True
    fill_color: Color = WHITE
    gradient_stops: tuple[GradientStop, ...] = ()
    gradient_handles: tuple[Vec2, ...] = ()
    image_ref: str | None = None
    image_scale_mode: ImageScaleMode = "stretch"
    image_scaling_factor: float = 1.0
    image_transform: tuple[tuple[float, float, float], ...] = ()
    corner_radii: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    stroke_width: float = 0.0
    stroke_color: Color = TRANSPARENT
    arc: ArcData | None = None

    def __post_init__(self) -> None:
        if self.stroke_width < 0:
            raise ValueError("stroke_width must be >= 0")
        if len(self.gradient_handles) not in (0, 3):
            raise ValueError("gradient_handles must hold 0 or 3 positions")


@dataclass(frozen=True)
class ImageFill:
    image_ref: str
    color: Color = WHITE
    slice_borders: tuple[float, float, float, float] | None = None
    preserve_aspect: bool = False


@dataclass(frozen=True)
class BitmapRef:
    node_id: str
    reason: BitmapReason
    image_scale: float = 3.0

    def __post_init__(self) -> None:
        if self.reason not in ("export", "substitution"):
            raise ValueError(f"Unsupported bitmap reason: {self.reason}")
        if self.image_scale <= 0:
            raise ValueError("image_scale must be > 0")


@dataclass(frozen=True)
class TextMaterialVariant:
    name: str
    outline_color: Color | None = None
    outline_width: float = 0.0
    shadow_color: Color | None = None
    shadow_distance: Vec2 | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.outline_width <= 0.5:
            raise ValueError("outline_width must be within [0, 0.5]")


@dataclass(frozen=True)
class TextStyle:
    characters: str
    font: str
    font_size: float
    color: Color = WHITE
    character_spacing: float = 0.0
    align_horizontal: str = "left"
    align_vertical: str = "top"
    text_case: str = "original"
    underline: bool = False
    strikethrough: bool = False
    italic: bool = False
    auto_size: str = "none"
    gradient_top: Color | None = None
    gradient_bottom: Color | None = None
    material_variant: TextMaterialVariant | None = None

    def __post_init__(self) -> None:
        if self.font_size < 0:
            raise ValueError("font_size must be >= 0")
        if self.align_horizontal not in TEXT_ALIGN_HORIZONTAL:
            raise ValueError(f"Unsupported horizontal alignment: {self.align_horizontal}")
        if self.align_vertical not in TEXT_ALIGN_VERTICAL:
            raise ValueError(f"Unsupported vertical alignment: {self.align_vertical}")
        if self.text_case not in TEXT_CASES:
            raise ValueError(f"Unsupported text case: {self.text_case}")
        if self.auto_size not in TEXT_AUTO_SIZES:
            raise ValueError(f"Unsupported auto size mode: {self.auto_size}")


@dataclass(frozen=True)
class LayoutGroup:
    axis: LayoutAxis
    padding: tuple[int, int, int, int] = (0, 0, 0, 0)
    spacing: float = 0.0
    child_alignment: str = "upper_left"
    control_child_size: tuple[bool, bool] = (True, True)
    force_expand: tuple[bool, bool] = (False, False)

    def __post_init__(self) -> None:
        if self.axis not in ("horizontal", "vertical"):
            raise ValueError(f"Unsupported layout axis: {self.axis}")
        if self.child_alignment not in CHILD_ALIGNMENTS:
            raise ValueError(f"Unsupported child alignment: {self.child_alignment}")


@dataclass(frozen=True)
class ScrollContainer:
    horizontal: bool
    vertical: bool
    clip_content: bool = False
    content_name: str = ""


@dataclass(frozen=True)
class ContentSizeFitter:
    horizontal: FitMode = "unconstrained"
    vertical: FitMode = "unconstrained"


@dataclass(frozen=True)
class Shadow:
    distance: Vec2
    color: Color


@dataclass(frozen=True)
class ButtonBinding:
    target_graphic: str | None = None
    transition: Literal["none", "color_tint"] = "none"


@dataclass(frozen=True)
class PrototypeLink:
    target_node_id: str


@dataclass(frozen=True)
class PlaceholderMarker:
    node_id: str
    parent_node_id: str
    component_id: str


@dataclass(frozen=True)
class InstanceSwapMarker:
    target_name: str
    replacement_component_id: str


@dataclass(eq=False)
class SceneNode:
    name: str
    rect: AnchoredRect = field(default_factory=AnchoredRect)
    children: list[SceneNode] = field(default_factory=list)
    node_id: str | None = None
    active: bool = True
    role: NodeRole = "node"
    layout_element: LayoutElement | None = None
    shape_fill: ShapeFill | None = None
    image: ImageFill | None = None
    bitmap: BitmapRef | None = None
    text: TextStyle | None = None
    mask: bool = False
    group_alpha: float | None = None
    shadows: tuple[Shadow, ...] = ()
    layout: LayoutGroup | None = None
    scroll: ScrollContainer | None = None
    content_size_fitter: ContentSizeFitter | None = None
    button: ButtonBinding | None = None
    prototype_link: PrototypeLink | None = None
    placeholder: PlaceholderMarker | None = None
    instance_swaps: tuple[InstanceSwapMarker, ...] = ()
    behaviours: tuple[str, ...] = ()
    orphan_component_id: str | None = None
    parent: SceneNode | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("scene node name must be non-empty")
        for child in self.children:
            child.parent = self

    def add_child(self, child: SceneNode, index: int | None = None) -> SceneNode:
        if child.parent is not None:
            child.parent.remove_child(child)
        if index is None:
            self.children.append(child)
        else:
            self.children.insert(index, child)
        child.parent = self
        return child

    def remove_child(self, child: SceneNode) -> int:
        for index, existing in enumerate(self.children):
            if existing is child:
                del self.children[index]
                child.parent = None
                return index
        raise ValueError(f"`{child.name}` is not a child of `{self.name}`")

    def sibling_index(self) -> int:
        if self.parent is None:
            return 0
        for index, sibling in enumerate(self.parent.children):
            if sibling is self:
                return index
        raise RuntimeError(f"`{self.name}` is detached from its parent list")

    def walk(self) -> Iterator[SceneNode]:
        """Pre-order traversal, children in painter's order."""
        stack: list[SceneNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find(self, predicate: Callable[[SceneNode], bool]) -> SceneNode | None:
        for node in self.walk():
            if predicate(node):
                return node
        return None

    def scroll_content(self) -> SceneNode | None:
        for child in self.children:
            if child.role == "scroll_content":
                return child
        return None

    def clone(self) -> SceneNode:
        copied = replace(self, children=[], parent=None)
        for child in self.children:
            copied.add_child(child.clone())
        return copied

    def path(self) -> str:
        parts: list[str] = []
        node: SceneNode | None = self
        while node is not None:
            parts.append(node.name)
            node = node.parent
        return "/".join(reversed(parts))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "rect": _plain(self.rect)}
        for f in fields(self):
            if f.name in ("name", "rect", "children", "parent"):
                continue
            value = getattr(self, f.name)
            if value is None or value == () or (f.name == "role" and value == "node"):
                continue
            if f.name == "active" and value:
                continue
            if f.name == "mask" and not value:
                continue
            out[f.name] = _plain(value)
        out["children"] = [child.to_dict() for child in self.children]
        return out


def scene_node_from_dict(payload: Mapping[str, Any]) -> SceneNode:
    if not isinstance(payload, Mapping):
        raise TypeError("Scene node payload must be a mapping")
    raw_children = payload.get("children", [])
    if not isinstance(raw_children, list):
        raise TypeError("`children` must be a list")
    kwargs: dict[str, Any] = {
        "name": str(payload["name"]),
        "rect": _value_from_dict(AnchoredRect, payload.get("rect", {})),
        "children": [scene_node_from_dict(child) for child in raw_children],
    }
    for key, cls in _VALUE_FIELDS.items():
        raw = payload.get(key)
        if raw is not None:
            kwargs[key] = _value_from_dict(cls, raw)
    for key in ("node_id", "orphan_component_id", "role"):
        if payload.get(key) is not None:
            kwargs[key] = str(payload[key])
    if "active" in payload:
        kwargs["active"] = bool(payload["active"])
    if "mask" in payload:
        kwargs["mask"] = bool(payload["mask"])
    if payload.get("group_alpha") is not None:
        kwargs["group_alpha"] = float(payload["group_alpha"])
    kwargs["instance_swaps"] = tuple(
        _value_from_dict(InstanceSwapMarker, raw) for raw in payload.get("instance_swaps", ())
    )
    kwargs["shadows"] = tuple(_value_from_dict(Shadow, raw) for raw in payload.get("shadows", ()))
    kwargs["behaviours"] = tuple(str(item) for item in payload.get("behaviours", ()))
    return SceneNode(**kwargs)


_VALUE_FIELDS: dict[str, type] = {
    "layout_element": LayoutElement,
    "shape_fill": ShapeFill,
    "image": ImageFill,
    "bitmap": BitmapRef,
    "text": TextStyle,
    "layout": LayoutGroup,
    "scroll": ScrollContainer,
    "content_size_fitter": ContentSizeFitter,
    "button": ButtonBinding,
    "prototype_link": PrototypeLink,
    "placeholder": PlaceholderMarker,
}

_NESTED_VALUES: dict[tuple[type, str], type] = {
    (ShapeFill, "arc"): ArcData,
    (TextStyle, "material_variant"): TextMaterialVariant,
}


def _plain(value: Any) -> Any:
    if hasattr(value, "__dataclass_fields__"):
        return _plain(asdict(value))
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def _freeze(raw: Any) -> Any:
    if isinstance(raw, list):
        return tuple(_freeze(item) for item in raw)
    return raw


def _value_from_dict(cls: type, raw: Any) -> Any:
    if not isinstance(raw, Mapping):
        raise TypeError(f"`{cls.__name__}` payload must be a mapping")
    known = {f.name for f in fields(cls)}
    kwargs: dict[str, Any] = {}
    for key, value in raw.items():
        if key not in known:
            raise ValueError(f"Unknown `{cls.__name__}` field: {key}")
        nested = _NESTED_VALUES.get((cls, key))
        if nested is not None and value is not None:
            kwargs[key] = _value_from_dict(nested, value)
        elif cls is ShapeFill and key == "gradient_stops":
            kwargs[key] = tuple(_value_from_dict(GradientStop, stop) for stop in value)
        else:
            kwargs[key] = _freeze(value)
    return cls(**kwargs)
