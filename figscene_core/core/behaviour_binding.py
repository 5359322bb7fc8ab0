from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Iterable

from figscene_ui.scene_ir import SceneNode


LOGGER = logging.getLogger(__name__)

SAFE_AREA_NAME = "SAFEAREA"
SAFE_AREA_BEHAVIOUR = "SafeArea"
MAX_SEARCH_DEPTH = 3


@dataclass(frozen=True)
class BoundBehaviour:
    template_name: str
    node_path: str
    behaviour: str
    fields: tuple[tuple[str, str], ...] = ()
    button_presses: tuple[tuple[str, str], ...] = ()


BehaviourFactory = Callable[[SceneNode, BoundBehaviour], None]


@dataclass(frozen=True)
class BehaviourSpec:
    """A behaviour the host application attaches to matching scene nodes.

    `fields` name child nodes to resolve; `button_presses` pairs a handler name
    with the name of a child button that should trigger it.
    """

    name: str
    fields: tuple[str, ...] = ()
    button_presses: tuple[tuple[str, str], ...] = ()
    factory: BehaviourFactory | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("behaviour name must be non-empty")


class BehaviourRegistry:
    """Explicit mapping from node names or node ids to behaviours."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], BehaviourSpec] = {}

    def register(self, key: str, spec: BehaviourSpec | str, namespace: str = "") -> None:
        if not key:
            raise ValueError("behaviour key must be non-empty")
        if isinstance(spec, str):
            spec = BehaviourSpec(name=spec)
        lookup_key = (namespace.strip().lower(), key.lower())
        if lookup_key in self._entries:
            raise ValueError(f"behaviour already registered for key: {key}")
        self._entries[lookup_key] = spec

    def lookup(self, name: str, node_id: str | None = None, namespace: str = "") -> BehaviourSpec | None:
        space = namespace.strip().lower()
        spec = self._entries.get((space, name.lower()))
        if spec is None and node_id is not None:
            spec = self._entries.get((space, node_id.lower()))
        return spec

    def __len__(self) -> int:
        return len(self._entries)


def bind_behaviours(
    templates: Iterable[tuple[str, SceneNode]],
    registry: BehaviourRegistry | None,
    namespace: str = "",
) -> list[BoundBehaviour]:
    """Attach behaviours to every node of the given templates, children before parents."""

    bound: list[BoundBehaviour] = []
    for template_name, root in templates:
        _bind_node_and_children(template_name, root, registry, namespace, bound)
    return bound


def find_child_by_name(node: SceneNode, name: str, depth: int = MAX_SEARCH_DEPTH) -> SceneNode | None:
    """Breadth-first by level: direct children first, then up to `depth` levels below."""

    for child in node.children:
        if _name_matches(child.name, name):
            return child
    if depth <= 0:
        return None
    for child in node.children:
        found = find_child_by_name(child, name, depth - 1)
        if found is not None:
            return found
    return None


def _bind_node_and_children(
    template_name: str,
    node: SceneNode,
    registry: BehaviourRegistry | None,
    namespace: str,
    bound: list[BoundBehaviour],
) -> None:
    for child in node.children:
        _bind_node_and_children(template_name, child, registry, namespace, bound)

    if node.name.upper() == SAFE_AREA_NAME:
        if SAFE_AREA_BEHAVIOUR not in node.behaviours:
            node.behaviours = node.behaviours + (SAFE_AREA_BEHAVIOUR,)
            bound.append(BoundBehaviour(template_name, node.path(), SAFE_AREA_BEHAVIOUR))
        return

    if registry is None:
        return
    spec = registry.lookup(node.name, node.node_id, namespace)
    if spec is None:
        return
    if spec.name not in node.behaviours:
        node.behaviours = node.behaviours + (spec.name,)

    fields: list[tuple[str, str]] = []
    for field_name in spec.fields:
        target = find_child_by_name(node, field_name)
        if target is None:
            LOGGER.warning("behaviour %s: no child matches field %s under %s", spec.name, field_name, node.path())
            continue
        fields.append((field_name, target.path()))

    presses: list[tuple[str, str]] = []
    for handler, button_name in spec.button_presses:
        target = find_child_by_name(node, button_name)
        if target is None or target.button is None:
            LOGGER.warning("behaviour %s: no button %s under %s", spec.name, button_name, node.path())
            continue
        presses.append((handler, target.path()))

    result = BoundBehaviour(
        template_name=template_name,
        node_path=node.path(),
        behaviour=spec.name,
        fields=tuple(fields),
        button_presses=tuple(presses),
    )
    if spec.factory is not None:
        spec.factory(node, result)
    bound.append(result)


def _name_matches(candidate: str, wanted: str) -> bool:
    if candidate.lower() == wanted.lower():
        return True
    # Field names like `m_ScoreLabel` match a node named `ScoreLabel`.
    if "_" in wanted:
        return _name_matches(candidate, wanted.split("_", 1)[1])
    return False
