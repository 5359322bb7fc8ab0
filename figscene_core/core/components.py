from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
import logging
from typing import Iterator, Literal, Mapping

from figscene_ui.scene_ir import InstanceSwapMarker, SceneNode

from .context import BuildContext
from .document import ComponentPropertyDefinition, DesignNode
from .document_queries import component_display_name, full_path_for_node
from .effects import apply_effects
from .layout import apply_layout
from .properties import apply_properties
from .prototype_flow import apply_prototype_functionality
from .transforms import parent_size_of, rebase_through, resolve_absolute_transform, resolve_transform


LOGGER = logging.getLogger(__name__)

TemplateKind = Literal["component", "screen", "page"]
TEMPLATE_KINDS: tuple[TemplateKind, ...] = ("component", "screen", "page")
MAX_INSTANCING_PASSES = 8


@dataclass
class TemplateEntry:
    template_id: str
    name: str
    kind: TemplateKind
    root: SceneNode
    finalized: bool = False


@dataclass(frozen=True)
class OrphanRecord:
    template_name: str
    node_path: str
    node_id: str
    component_id: str


class ComponentRegistry:
    """Template arena for one build: components, screens and pages in registration order."""

    def __init__(self) -> None:
        self._entries: dict[TemplateKind, list[TemplateEntry]] = {kind: [] for kind in TEMPLATE_KINDS}
        self._components: dict[str, TemplateEntry] = {}
        self._name_counts: dict[tuple[TemplateKind, str], int] = {}
        self._open: dict[str, TemplateKind] = {}

    def open(self, template_id: str, kind: TemplateKind) -> None:
        """Mark a template as being walked; it must be registered before instancing."""
        self._open[template_id] = kind

    def unique_name(self, kind: TemplateKind, name: str) -> str:
        count = self._name_counts.get((kind, name), 0)
        self._name_counts[(kind, name)] = count + 1
        return name if count == 0 else f"{name}_{count}"

    def register(self, template_id: str, kind: TemplateKind, name: str, root: SceneNode) -> TemplateEntry:
        if kind not in TEMPLATE_KINDS:
            raise ValueError(f"Unsupported template kind: {kind}")
        if kind == "component" and template_id in self._components:
            raise ValueError(f"component template already registered: {template_id}")
        unique = self.unique_name(kind, name)
        root.name = unique
        entry = TemplateEntry(template_id=template_id, name=unique, kind=kind, root=root)
        self._entries[kind].append(entry)
        if kind == "component":
            self._components[template_id] = entry
        self._open.pop(template_id, None)
        return entry

    def register_component(self, node: DesignNode, parent: DesignNode | None, scene: SceneNode) -> TemplateEntry:
        return self.register(node.node_id, "component", component_display_name(node, parent), scene.clone())

    def register_screen(self, node: DesignNode, scene: SceneNode) -> TemplateEntry:
        snapshot = scene.clone()
        snapshot.rect = replace(snapshot.rect, anchored_position=(0.0, 0.0))
        return self.register(node.node_id, "screen", node.name, snapshot)

    def component(self, component_id: str) -> TemplateEntry | None:
        return self._components.get(component_id)

    def entries(self, kind: TemplateKind | None = None) -> list[TemplateEntry]:
        if kind is not None:
            return list(self._entries[kind])
        return [entry for each in TEMPLATE_KINDS for entry in self._entries[each]]

    @property
    def open_template_ids(self) -> tuple[str, ...]:
        return tuple(self._open)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())


def iter_markers(root: SceneNode) -> Iterator[SceneNode]:
    for node in root.walk():
        if node.placeholder is not None:
            yield node


def instantiate_all_components(registry: ComponentRegistry, context: BuildContext) -> list[OrphanRecord]:
    """Replace every placeholder marker in every template with an instance.

    Components are resolved nested-first so a template is complete before it is
    cloned, then screens, then pages.
    """

    orphans: list[OrphanRecord] = []
    ordered = component_dependency_order(registry, context)
    for entry in ordered + registry.entries("screen") + registry.entries("page"):
        _instantiate_in_template(entry, registry, context, orphans)
    return orphans


def component_dependency_order(registry: ComponentRegistry, context: BuildContext) -> list[TemplateEntry]:
    entries = registry.entries("component")
    order: list[TemplateEntry] = []
    state: dict[str, str] = {}

    def visit(entry: TemplateEntry) -> None:
        mark = state.get(entry.template_id)
        if mark == "done":
            return
        if mark == "visiting":
            LOGGER.warning("component nesting cycle through %s", entry.name)
            return
        state[entry.template_id] = "visiting"
        for dependency_id in _template_dependencies(entry.root, context):
            dependency = registry.component(dependency_id)
            if dependency is not None:
                visit(dependency)
        state[entry.template_id] = "done"
        order.append(entry)

    for entry in entries:
        visit(entry)
    return order


def _template_dependencies(root: SceneNode, context: BuildContext) -> list[str]:
    found: list[str] = []
    for marker in iter_markers(root):
        assert marker.placeholder is not None
        found.append(marker.placeholder.component_id)
        node = context.lookup.get(marker.placeholder.node_id)
        if node is None:
            continue
        for prop in node.component_properties.values():
            if prop.property_type == "INSTANCE_SWAP" and prop.value:
                found.append(prop.value)
    return list(dict.fromkeys(found))


def _instantiate_in_template(
    entry: TemplateEntry,
    registry: ComponentRegistry,
    context: BuildContext,
    orphans: list[OrphanRecord],
) -> None:
    for _ in range(MAX_INSTANCING_PASSES):
        markers = list(iter_markers(entry.root))
        if not markers:
            return
        for marker in markers:
            instantiate_marker(marker, entry, registry, context, orphans)
    for marker in list(iter_markers(entry.root)):
        LOGGER.warning("giving up on nested instances in %s at %s", entry.name, marker.path())
        orphans.append(_orphan(marker, entry))


def instantiate_marker(
    marker: SceneNode,
    entry: TemplateEntry,
    registry: ComponentRegistry,
    context: BuildContext,
    orphans: list[OrphanRecord],
) -> SceneNode:
    placeholder = marker.placeholder
    assert placeholder is not None
    template = registry.component(placeholder.component_id)
    if template is None or marker.parent is None:
        LOGGER.warning(
            "no template for component %s (instance %s in %s); leaving an orphan",
            placeholder.component_id,
            marker.name,
            entry.name,
        )
        orphans.append(_orphan(marker, entry))
        return marker

    instance = template.root.clone()
    instance.rect = marker.rect
    instance.layout_element = marker.layout_element
    instance.name = marker.name
    instance.node_id = placeholder.node_id
    instance.mask = marker.mask
    # Siblings masked by this instance were re-parented under the marker during the walk.
    for masked in list(marker.children):
        instance.add_child(masked)
    parent = marker.parent
    index = parent.remove_child(marker)
    parent.add_child(instance, index)

    node = context.lookup.get(placeholder.node_id)
    if node is None:
        LOGGER.warning("instance %s is missing from the document lookup", placeholder.node_id)
        return instance
    design_parent = context.lookup.get(placeholder.parent_node_id)
    apply_component_properties(instance, node, registry, context)
    reapply_properties(instance, node, design_parent, context, place=False)
    return instance


def apply_component_properties(
    instance: SceneNode,
    node: DesignNode,
    registry: ComponentRegistry,
    context: BuildContext,
) -> None:
    """Record and perform instance swaps declared by the instance's component properties."""

    if node.component_id is None or not node.component_properties:
        return
    definitions = _property_definitions(node.component_id, context)
    if not definitions:
        return

    swaps: list[InstanceSwapMarker] = []
    for key, prop in node.component_properties.items():
        if prop.property_type != "INSTANCE_SWAP":
            continue
        definition = definitions.get(key)
        if definition is None:
            continue
        default_node = context.lookup.get(definition.default_value)
        if default_node is not None:
            target_name = default_node.name
        else:
            # The default lives in an external library; find the node built from it.
            found = instance.find(lambda item: item.orphan_component_id == definition.default_value)
            target_name = found.name if found is not None else ""
        swaps.append(InstanceSwapMarker(target_name=target_name, replacement_component_id=prop.value))
        if target_name and prop.value != definition.default_value:
            _swap_instance(instance, target_name, prop.value, registry)
    instance.instance_swaps = tuple(swaps)


def reapply_properties(
    scene: SceneNode,
    node: DesignNode,
    parent: DesignNode | None,
    context: BuildContext,
    containers: tuple[SceneNode, ...] = (),
    place: bool = True,
) -> None:
    """Walk an instance's design subtree and its cloned scene subtree together."""

    substitution = context.is_substitution(node) or scene.bitmap is not None
    if not substitution:
        try:
            apply_properties(scene, node, context)
            apply_effects(scene, node)
        except (TypeError, ValueError) as exc:
            LOGGER.warning(
                "could not apply properties for %s: %s",
                full_path_for_node(node, context.parents),
                exc,
            )
    apply_prototype_functionality(scene, node, context)
    apply_layout(scene, node, context.settings.enable_auto_layout)

    if place:
        resolve = resolve_absolute_transform if substitution else resolve_transform
        resolved = resolve(node, parent, True)
        scene.rect = rebase_through(
            resolved.rect,
            parent_size_of(parent),
            [container.rect for container in containers],
        )
        scene.layout_element = resolved.layout_element
    if substitution:
        return

    for child in node.child_nodes:
        match, path = find_matching_child(child, scene)
        if match is None:
            LOGGER.warning(
                "re-applying properties: no child for %s (%s) under %s",
                child.node_id,
                child.name,
                scene.path(),
            )
            continue
        reapply_properties(match, child, node, context, path)


def find_matching_child(child: DesignNode, scene: SceneNode) -> tuple[SceneNode | None, tuple[SceneNode, ...]]:
    """Scene node built from `child`, plus the mask or scroll containers passed on the way.

    Direct children are checked first; re-parented nodes are found by searching
    through scroll content and mask nodes.
    """

    local_id = child.component_local_id
    queue: deque[tuple[SceneNode, tuple[SceneNode, ...]]] = deque([(scene, ())])
    while queue:
        current, path = queue.popleft()
        for candidate in current.children:
            if candidate.node_id == local_id or candidate.node_id == child.node_id:
                return candidate, path
        for candidate in current.children:
            if candidate.role == "scroll_content" or candidate.mask:
                queue.append((candidate, path + (candidate,)))
    return None, ()


def remove_temporary_node_tags(registry: ComponentRegistry) -> int:
    """Strip matching tags and marker data from every template; returns nodes touched."""

    touched = 0
    for entry in registry.entries():
        for node in entry.root.walk():
            if node.node_id is not None or node.placeholder is not None:
                touched += 1
            node.node_id = None
            node.placeholder = None
    return touched


def _property_definitions(component_id: str, context: BuildContext) -> Mapping[str, ComponentPropertyDefinition]:
    definition = context.lookup.get(component_id)
    if definition is None:
        return {}
    if definition.component_property_definitions:
        return definition.component_property_definitions
    # Variants keep their property definitions on the enclosing component set.
    owner = context.parents.get(component_id)
    if owner is not None and owner.node_type == "COMPONENT_SET":
        return owner.component_property_definitions
    return {}


def _swap_instance(instance: SceneNode, target_name: str, replacement_id: str, registry: ComponentRegistry) -> None:
    target = instance.find(lambda item: item is not instance and item.name == target_name)
    if target is None or target.parent is None:
        LOGGER.warning("instance swap: %s has no child named %s", instance.name, target_name)
        return
    template = registry.component(replacement_id)
    if template is None:
        LOGGER.warning("instance swap: no template for component %s", replacement_id)
        return
    replacement = template.root.clone()
    replacement.rect = target.rect
    replacement.name = target.name
    replacement.node_id = target.node_id
    parent = target.parent
    index = parent.remove_child(target)
    parent.add_child(replacement, index)


def _orphan(marker: SceneNode, entry: TemplateEntry) -> OrphanRecord:
    placeholder = marker.placeholder
    assert placeholder is not None
    marker.orphan_component_id = placeholder.component_id
    marker.placeholder = None
    return OrphanRecord(
        template_name=entry.name,
        node_path=marker.path(),
        node_id=placeholder.node_id,
        component_id=placeholder.component_id,
    )
