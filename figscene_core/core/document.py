from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any, Iterable, Iterator, Literal, Mapping


NodeType = Literal[
    "DOCUMENT",
    "CANVAS",
    "FRAME",
    "GROUP",
    "VECTOR",
    "BOOLEAN_OPERATION",
    "STAR",
    "LINE",
    "ELLIPSE",
    "REGULAR_POLYGON",
    "RECTANGLE",
    "TEXT",
    "SLICE",
    "COMPONENT",
    "COMPONENT_SET",
    "INSTANCE",
    "STICKY",
    "SHAPE_WITH_TEXT",
    "CONNECTOR",
    "SECTION",
    "TABLE",
    "TABLE_CELL",
    "WASHI_TAPE",
    "UNKNOWN",
]
NODE_TYPES: tuple[str, ...] = (
    "DOCUMENT",
    "CANVAS",
    "FRAME",
    "GROUP",
    "VECTOR",
    "BOOLEAN_OPERATION",
    "STAR",
    "LINE",
    "ELLIPSE",
    "REGULAR_POLYGON",
    "RECTANGLE",
    "TEXT",
    "SLICE",
    "COMPONENT",
    "COMPONENT_SET",
    "INSTANCE",
    "STICKY",
    "SHAPE_WITH_TEXT",
    "CONNECTOR",
    "SECTION",
    "TABLE",
    "TABLE_CELL",
    "WASHI_TAPE",
    "UNKNOWN",
)

HORIZONTAL_CONSTRAINTS = ("LEFT", "RIGHT", "CENTER", "LEFT_RIGHT", "SCALE")
VERTICAL_CONSTRAINTS = ("TOP", "BOTTOM", "CENTER", "TOP_BOTTOM", "SCALE")
LAYOUT_MODES = ("NONE", "HORIZONTAL", "VERTICAL")
PRIMARY_AXIS_ALIGNS = ("MIN", "CENTER", "MAX", "SPACE_BETWEEN")
COUNTER_AXIS_ALIGNS = ("MIN", "CENTER", "MAX", "BASELINE")
OVERFLOW_DIRECTIONS = (
    "NONE",
    "HORIZONTAL_SCROLLING",
    "VERTICAL_SCROLLING",
    "HORIZONTAL_AND_VERTICAL_SCROLLING",
)
PAINT_TYPES = (
    "SOLID",
    "GRADIENT_LINEAR",
    "GRADIENT_RADIAL",
    "GRADIENT_ANGULAR",
    "GRADIENT_DIAMOND",
    "IMAGE",
    "EMOJI",
)
EFFECT_TYPES = ("INNER_SHADOW", "DROP_SHADOW", "LAYER_BLUR", "BACKGROUND_BLUR")
SCALE_MODES = ("FILL", "FIT", "TILE", "STRETCH")

Matrix2x3 = tuple[tuple[float, float, float], tuple[float, float, float]]
IDENTITY_TRANSFORM: Matrix2x3 = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0))


@dataclass(frozen=True)
class RGBA:
    r: float
    g: float
    b: float
    a: float = 1.0

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.r, self.g, self.b, self.a)


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("rect width/height must be >= 0")

    @property
    def x_max(self) -> float:
        return self.x + self.width

    @property
    def y_max(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class ColorStop:
    position: float
    color: RGBA


@dataclass(frozen=True)
class Paint:
    paint_type: str
    visible: bool = True
    opacity: float = 1.0
    color: RGBA | None = None
    gradient_handle_positions: tuple[tuple[float, float], ...] = ()
    gradient_stops: tuple[ColorStop, ...] = ()
    scale_mode: str = "FILL"
    image_ref: str | None = None
    scaling_factor: float = 1.0
    image_transform: tuple[tuple[float, float, float], ...] = ()

    def __post_init__(self) -> None:
        if self.paint_type not in PAINT_TYPES:
            raise ValueError(f"Unsupported paint type: {self.paint_type}")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError("paint opacity must be within [0, 1]")


@dataclass(frozen=True)
class Effect:
    effect_type: str
    visible: bool = True
    radius: float = 0.0
    color: RGBA | None = None
    offset: tuple[float, float] = (0.0, 0.0)
    spread: float = 0.0


@dataclass(frozen=True)
class TypeStyle:
    font_family: str = ""
    font_weight: int = 400
    font_size: float = 12.0
    italic: bool = False
    text_case: str = "ORIGINAL"
    text_decoration: str = "NONE"
    text_auto_resize: str = "NONE"
    text_align_horizontal: str = "LEFT"
    text_align_vertical: str = "TOP"
    letter_spacing: float = 0.0
    line_height_px: float | None = None


@dataclass(frozen=True)
class LayoutConstraint:
    horizontal: str = "LEFT"
    vertical: str = "TOP"

    def __post_init__(self) -> None:
        if self.horizontal not in HORIZONTAL_CONSTRAINTS:
            raise ValueError(f"Unsupported horizontal constraint: {self.horizontal}")
        if self.vertical not in VERTICAL_CONSTRAINTS:
            raise ValueError(f"Unsupported vertical constraint: {self.vertical}")


@dataclass(frozen=True)
class ArcData:
    starting_angle: float
    ending_angle: float
    inner_radius: float


@dataclass(frozen=True)
class ComponentProperty:
    property_type: str
    value: str


@dataclass(frozen=True)
class ComponentPropertyDefinition:
    property_type: str
    default_value: str


@dataclass(frozen=True)
class FlowStartingPoint:
    node_id: str
    name: str


@dataclass(frozen=True)
class DesignNode:
    node_id: str
    name: str
    node_type: str
    visible: bool = True
    locked: bool = False
    absolute_bounding_box: Rect | None = None
    relative_transform: Matrix2x3 | None = None
    size: tuple[float, float] | None = None
    fills: tuple[Paint, ...] = ()
    strokes: tuple[Paint, ...] = ()
    stroke_weight: float = 0.0
    corner_radius: float = 0.0
    rectangle_corner_radii: tuple[float, float, float, float] | None = None
    effects: tuple[Effect, ...] = ()
    layout_mode: str = "NONE"
    primary_axis_align_items: str = "MIN"
    counter_axis_align_items: str = "MIN"
    padding_left: float = 0.0
    padding_right: float = 0.0
    padding_top: float = 0.0
    padding_bottom: float = 0.0
    item_spacing: float = 0.0
    overflow_direction: str = "NONE"
    clips_content: bool = False
    constraints: LayoutConstraint | None = None
    opacity: float = 1.0
    component_id: str | None = None
    component_properties: Mapping[str, ComponentProperty] = field(default_factory=dict)
    component_property_definitions: Mapping[str, ComponentPropertyDefinition] = field(default_factory=dict)
    children: tuple[DesignNode, ...] | None = None
    transition_node_id: str | None = None
    characters: str | None = None
    style: TypeStyle | None = None
    is_mask: bool = False
    export_settings: tuple[Mapping[str, Any], ...] = ()
    arc_data: ArcData | None = None
    flow_starting_points: tuple[FlowStartingPoint, ...] = ()
    prototype_start_node_id: str | None = None

    def __post_init__(self) -> None:
        if not self.node_id.strip():
            raise ValueError("DesignNode.node_id must be non-empty")
        if self.node_type not in NODE_TYPES:
            raise ValueError(f"Unsupported node type: {self.node_type}")
        if self.children is not None and len(self.children) == 0:
            raise ValueError("DesignNode.children must be None or non-empty")
        if self.layout_mode not in LAYOUT_MODES:
            raise ValueError(f"Unsupported layout mode: {self.layout_mode}")
        if self.overflow_direction not in OVERFLOW_DIRECTIONS:
            raise ValueError(f"Unsupported overflow direction: {self.overflow_direction}")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError("DesignNode.opacity must be within [0, 1]")

    @property
    def child_nodes(self) -> tuple[DesignNode, ...]:
        return self.children or ()

    @property
    def component_local_id(self) -> str:
        """Trailing segment of an instance-expanded id (`I1:2;3:4` -> `3:4`)."""
        return self.node_id.split(";")[-1]

    def iter_tree(self) -> Iterator[DesignNode]:
        stack: list[DesignNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.child_nodes))


@dataclass(frozen=True)
class ComponentInfo:
    key: str
    name: str
    description: str = ""
    component_set_id: str | None = None


@dataclass(frozen=True)
class StyleInfo:
    key: str
    name: str
    style_type: str
    description: str = ""


@dataclass(frozen=True)
class DesignDocument:
    name: str
    document: DesignNode
    components: Mapping[str, ComponentInfo] = field(default_factory=dict)
    styles: Mapping[str, StyleInfo] = field(default_factory=dict)
    schema_version: int = 0
    version: str | None = None
    last_modified: str | None = None

    def __post_init__(self) -> None:
        if self.document.node_type != "DOCUMENT":
            raise ValueError("DesignDocument root must be a DOCUMENT node")

    @property
    def pages(self) -> tuple[DesignNode, ...]:
        return self.document.child_nodes


def document_from_dict(payload: Mapping[str, Any]) -> DesignDocument:
    root = payload.get("document")
    if not isinstance(root, Mapping):
        raise TypeError("`document` must be a mapping")
    raw_components = _expect_mapping(payload.get("components", {}), "components")
    raw_styles = _expect_mapping(payload.get("styles", {}), "styles")
    return DesignDocument(
        name=str(payload.get("name", "Untitled")),
        document=node_from_dict(root),
        components={
            str(key): ComponentInfo(
                key=str(_expect_mapping(raw, "component").get("key", "")),
                name=str(raw.get("name", "")),
                description=str(raw.get("description", "")),
                component_set_id=_coerce_optional_str(raw.get("componentSetId")),
            )
            for key, raw in raw_components.items()
        },
        styles={
            str(key): StyleInfo(
                key=str(_expect_mapping(raw, "style").get("key", "")),
                name=str(raw.get("name", "")),
                style_type=str(raw.get("styleType", raw.get("style_type", ""))),
                description=str(raw.get("description", "")),
            )
            for key, raw in raw_styles.items()
        },
        schema_version=int(payload.get("schemaVersion", 0)),
        version=_coerce_optional_str(payload.get("version")),
        last_modified=_coerce_optional_str(payload.get("lastModified")),
    )


def load_document(path: str | Path) -> DesignDocument:
    source = Path(path)
    payload = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(payload, Mapping):
        raise TypeError("Design document payload must be a JSON object")
    return document_from_dict(payload)


def node_from_dict(raw: Mapping[str, Any]) -> DesignNode:
    if not isinstance(raw, Mapping):
        raise TypeError("Each node must be a mapping")
    node_type = str(raw.get("type", "UNKNOWN"))
    if node_type not in NODE_TYPES:
        node_type = "UNKNOWN"
    raw_children = raw.get("children")
    children: tuple[DesignNode, ...] | None = None
    if raw_children is not None:
        if not isinstance(raw_children, list):
            raise TypeError("`children` must be a list")
        # An empty list carries no ordering information.
        children = tuple(node_from_dict(child) for child in raw_children) or None

    constraints = None
    if isinstance(raw.get("constraints"), Mapping):
        constraints = LayoutConstraint(
            horizontal=str(raw["constraints"].get("horizontal", "LEFT")),
            vertical=str(raw["constraints"].get("vertical", "TOP")),
        )

    return DesignNode(
        node_id=str(raw["id"]),
        name=str(raw.get("name", "")),
        node_type=node_type,
        visible=bool(raw.get("visible", True)),
        locked=bool(raw.get("locked", False)),
        absolute_bounding_box=_parse_rect(raw.get("absoluteBoundingBox")),
        relative_transform=_parse_transform(raw.get("relativeTransform")),
        size=_parse_vector(raw.get("size")),
        fills=_parse_paints(raw.get("fills")),
        strokes=_parse_paints(raw.get("strokes")),
        stroke_weight=float(raw.get("strokeWeight", 0.0)),
        corner_radius=float(raw.get("cornerRadius", 0.0)),
        rectangle_corner_radii=_parse_radii(raw.get("rectangleCornerRadii")),
        effects=tuple(_parse_effect(item) for item in raw.get("effects") or ()),
        layout_mode=str(raw.get("layoutMode", "NONE")),
        primary_axis_align_items=str(raw.get("primaryAxisAlignItems", "MIN")),
        counter_axis_align_items=str(raw.get("counterAxisAlignItems", "MIN")),
        padding_left=float(raw.get("paddingLeft", raw.get("horizontalPadding", 0.0))),
        padding_right=float(raw.get("paddingRight", raw.get("horizontalPadding", 0.0))),
        padding_top=float(raw.get("paddingTop", raw.get("verticalPadding", 0.0))),
        padding_bottom=float(raw.get("paddingBottom", raw.get("verticalPadding", 0.0))),
        item_spacing=float(raw.get("itemSpacing", 0.0)),
        overflow_direction=str(raw.get("overflowDirection", "NONE")),
        clips_content=bool(raw.get("clipsContent", False)),
        constraints=constraints,
        opacity=float(raw.get("opacity", 1.0)),
        component_id=_coerce_optional_str(raw.get("componentId")),
        component_properties={
            str(key): ComponentProperty(property_type=str(item.get("type", "")), value=str(item.get("value", "")))
            for key, item in _expect_mapping(raw.get("componentProperties") or {}, "componentProperties").items()
        },
        component_property_definitions={
            str(key): ComponentPropertyDefinition(
                property_type=str(item.get("type", "")),
                default_value=str(item.get("defaultValue", "")),
            )
            for key, item in _expect_mapping(
                raw.get("componentPropertyDefinitions") or {}, "componentPropertyDefinitions"
            ).items()
        },
        children=children,
        transition_node_id=_coerce_optional_str(raw.get("transitionNodeID")),
        characters=raw.get("characters") if isinstance(raw.get("characters"), str) else None,
        style=_parse_type_style(raw.get("style")),
        is_mask=bool(raw.get("isMask", False)),
        export_settings=tuple(item for item in raw.get("exportSettings") or () if isinstance(item, Mapping)),
        arc_data=_parse_arc(raw.get("arcData")),
        flow_starting_points=tuple(
            FlowStartingPoint(node_id=str(item["nodeId"]), name=str(item.get("name", "")))
            for item in raw.get("flowStartingPoints") or ()
        ),
        prototype_start_node_id=_coerce_optional_str(raw.get("prototypeStartNodeID")),
    )


def _expect_mapping(raw: object, label: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise TypeError(f"`{label}` must be a mapping")
    return raw


def _coerce_optional_str(raw: object) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    return text if text else None


def _parse_color(raw: object) -> RGBA | None:
    if raw is None:
        return None
    data = _expect_mapping(raw, "color")
    return RGBA(
        r=float(data.get("r", 0.0)),
        g=float(data.get("g", 0.0)),
        b=float(data.get("b", 0.0)),
        a=float(data.get("a", 1.0)),
    )


def _parse_rect(raw: object) -> Rect | None:
    if raw is None:
        return None
    data = _expect_mapping(raw, "absoluteBoundingBox")
    return Rect(
        x=float(data.get("x", 0.0)),
        y=float(data.get("y", 0.0)),
        width=float(data.get("width", 0.0)),
        height=float(data.get("height", 0.0)),
    )


def _parse_vector(raw: object) -> tuple[float, float] | None:
    if raw is None:
        return None
    data = _expect_mapping(raw, "vector")
    return (float(data.get("x", 0.0)), float(data.get("y", 0.0)))


def _parse_transform(raw: object) -> Matrix2x3 | None:
    if raw is None:
        return None
    rows = _parse_matrix_rows(raw)
    if len(rows) != 2:
        raise ValueError("relativeTransform must have 2 rows of 3 values")
    return (rows[0], rows[1])


def _parse_matrix_rows(raw: object) -> tuple[tuple[float, float, float], ...]:
    if not isinstance(raw, Iterable):
        raise TypeError("matrix must be a list of rows")
    rows = []
    for row in raw:
        values = tuple(float(item) for item in row)
        if len(values) != 3:
            raise ValueError("matrix rows must hold 3 values")
        rows.append((values[0], values[1], values[2]))
    return tuple(rows)


def _parse_radii(raw: object) -> tuple[float, float, float, float] | None:
    if raw is None:
        return None
    values = tuple(float(item) for item in raw)  # type: ignore[union-attr]
    if len(values) != 4:
        raise ValueError("rectangleCornerRadii must hold 4 values")
    return (values[0], values[1], values[2], values[3])


def _parse_paints(raw: object) -> tuple[Paint, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise TypeError("paint list must be a list")
    # Paint kinds newer than this model (video, pattern) are dropped here.
    return tuple(
        _parse_paint(item)
        for item in raw
        if str(_expect_mapping(item, "paint").get("type", "SOLID")) in PAINT_TYPES
    )


def _parse_paint(raw: object) -> Paint:
    data = _expect_mapping(raw, "paint")
    return Paint(
        paint_type=str(data.get("type", "SOLID")),
        visible=bool(data.get("visible", True)),
        opacity=float(data.get("opacity", 1.0)),
        color=_parse_color(data.get("color")),
        gradient_handle_positions=tuple(
            (float(item.get("x", 0.0)), float(item.get("y", 0.0)))
            for item in data.get("gradientHandlePositions") or ()
        ),
        gradient_stops=tuple(
            ColorStop(position=float(item.get("position", 0.0)), color=_parse_color(item.get("color")) or RGBA(0, 0, 0))
            for item in data.get("gradientStops") or ()
        ),
        scale_mode=str(data.get("scaleMode", "FILL")),
        image_ref=_coerce_optional_str(data.get("imageRef")),
        scaling_factor=float(data.get("scalingFactor", 1.0)),
        image_transform=_parse_matrix_rows(data["imageTransform"]) if data.get("imageTransform") else (),
    )


def _parse_effect(raw: object) -> Effect:
    data = _expect_mapping(raw, "effect")
    return Effect(
        effect_type=str(data.get("type", "")),
        visible=bool(data.get("visible", True)),
        radius=float(data.get("radius", 0.0)),
        color=_parse_color(data.get("color")),
        offset=_parse_vector(data.get("offset")) or (0.0, 0.0),
        spread=float(data.get("spread", 0.0)),
    )


def _parse_type_style(raw: object) -> TypeStyle | None:
    if raw is None:
        return None
    data = _expect_mapping(raw, "style")
    line_height = data.get("lineHeightPx")
    return TypeStyle(
        font_family=str(data.get("fontFamily", "")),
        font_weight=int(data.get("fontWeight", 400)),
        font_size=float(data.get("fontSize", 12.0)),
        italic=bool(data.get("italic", False)),
        text_case=str(data.get("textCase", "ORIGINAL")),
        text_decoration=str(data.get("textDecoration", "NONE")),
        text_auto_resize=str(data.get("textAutoResize", "NONE")),
        text_align_horizontal=str(data.get("textAlignHorizontal", "LEFT")),
        text_align_vertical=str(data.get("textAlignVertical", "TOP")),
        letter_spacing=float(data.get("letterSpacing", 0.0)),
        line_height_px=float(line_height) if line_height is not None else None,
    )


def _parse_arc(raw: object) -> ArcData | None:
    if raw is None:
        return None
    data = _expect_mapping(raw, "arcData")
    return ArcData(
        starting_angle=float(data.get("startingAngle", 0.0)),
        ending_angle=float(data.get("endingAngle", 0.0)),
        inner_radius=float(data.get("innerRadius", 0.0)),
    )
