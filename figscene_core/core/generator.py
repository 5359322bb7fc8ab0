from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any, Callable, Mapping

from figscene_ui.scene_ir import BitmapRef, PlaceholderMarker, SceneNode, TextMaterialVariant

from .behaviour_binding import BehaviourRegistry, BoundBehaviour, bind_behaviours
from .components import ComponentRegistry, OrphanRecord, TemplateEntry, instantiate_all_components, remove_temporary_node_tags
from .context import BuildContext
from .document import DesignDocument, DesignNode, FlowStartingPoint
from .document_queries import collect_image_refs, flow_starting_points, initial_screen_id, is_screen_node
from .effects import apply_effects
from .fonts import FontMap
from .layout import apply_layout, fit_scroll_content
from .properties import apply_properties
from .prototype_flow import FlowKind, FlowRegistration, FlowRegistrationCallback, apply_prototype_functionality
from .settings import DEFAULT_SETTINGS, BridgeSettings
from .substitution import ServerRenderType
from .transforms import parent_size_of, rebase_through, resolve_absolute_transform, resolve_transform
from .validation import require_valid_document


LOGGER = logging.getLogger(__name__)

DUMMY_NODE_NAME = "DummyNode"

PersistHook = Callable[[TemplateEntry], None]


class BuildPhase(str, Enum):
    WALKING = "walking"
    AWAITING_INSTANCING = "awaiting_instancing"
    INSTANCING = "instancing"
    CLEANING_UP = "cleaning_up"
    DONE = "done"


_NEXT_PHASE = {
    BuildPhase.WALKING: BuildPhase.AWAITING_INSTANCING,
    BuildPhase.AWAITING_INSTANCING: BuildPhase.INSTANCING,
    BuildPhase.INSTANCING: BuildPhase.CLEANING_UP,
    BuildPhase.CLEANING_UP: BuildPhase.DONE,
}


class BuildPhaseError(RuntimeError):
    pass


@dataclass(frozen=True)
class BuildResult:
    screens: tuple[TemplateEntry, ...]
    components: tuple[TemplateEntry, ...]
    pages: tuple[TemplateEntry, ...]
    flow_registrations: tuple[FlowRegistration, ...] = ()
    orphans: tuple[OrphanRecord, ...] = ()
    behaviours: tuple[BoundBehaviour, ...] = ()
    flow_starting_points: tuple[FlowStartingPoint, ...] = ()
    start_screen_id: str | None = None
    image_refs: tuple[str, ...] = ()
    material_variants: tuple[TextMaterialVariant, ...] = ()

    def templates(self) -> tuple[TemplateEntry, ...]:
        return self.components + self.screens + self.pages

    def as_dict(self) -> dict[str, Any]:
        return {
            "screens": [entry.name for entry in self.screens],
            "components": [entry.name for entry in self.components],
            "pages": [entry.name for entry in self.pages],
            "start_screen_id": self.start_screen_id,
            "flow_starting_points": [point.node_id for point in self.flow_starting_points],
            "orphans": [
                {"template": orphan.template_name, "path": orphan.node_path, "component_id": orphan.component_id}
                for orphan in self.orphans
            ],
            "behaviours": [
                {"template": bound.template_name, "path": bound.node_path, "behaviour": bound.behaviour}
                for bound in self.behaviours
            ],
            "image_refs": list(self.image_refs),
            "material_variants": [variant.name for variant in self.material_variants],
        }


@dataclass
class BuildSession:
    """Mutable state of one document build; nothing here outlives the build."""

    context: BuildContext
    registry: ComponentRegistry = field(default_factory=ComponentRegistry)
    behaviour_registry: BehaviourRegistry | None = None
    on_flow_registration: FlowRegistrationCallback | None = None
    phase: BuildPhase = BuildPhase.WALKING
    flow_registrations: list[FlowRegistration] = field(default_factory=list)
    orphans: list[OrphanRecord] = field(default_factory=list)
    behaviours: list[BoundBehaviour] = field(default_factory=list)

    def advance(self, target: BuildPhase) -> None:
        expected = _NEXT_PHASE.get(self.phase)
        if expected is not target:
            raise BuildPhaseError(f"cannot move from {self.phase.value} to {target.value}")
        if target is BuildPhase.INSTANCING and self.registry.open_template_ids:
            pending = ", ".join(self.registry.open_template_ids)
            raise BuildPhaseError(f"templates still being built: {pending}")
        LOGGER.debug("build phase %s -> %s", self.phase.value, target.value)
        self.phase = target

    def require(self, phase: BuildPhase) -> None:
        if self.phase is not phase:
            raise BuildPhaseError(f"operation needs phase {phase.value}, build is in {self.phase.value}")

    # Walking

    def build_pages(self) -> None:
        self.require(BuildPhase.WALKING)
        page_filter = self.context.settings.page_filter
        for page in self.context.document.pages:
            if page_filter is not None and page.node_id not in page_filter:
                continue
            self.build_page(page)

    def build_page(self, page: DesignNode) -> SceneNode:
        self.require(BuildPhase.WALKING)
        self.registry.open(page.node_id, "page")
        scene = SceneNode(name=page.name or page.node_id, node_id=page.node_id, role="page")
        for child in page.child_nodes:
            if self._valid_for_generation(child):
                self.build_node(child, scene, page, 0)
        self.registry.register(page.node_id, "page", scene.name, scene)
        return scene

    def build_node(self, node: DesignNode, parent_scene: SceneNode, parent: DesignNode, depth: int) -> SceneNode | None:
        if node.name == DUMMY_NODE_NAME:
            return None
        context = self.context
        server_rendered = context.is_server_rendered(node)
        resolve = resolve_absolute_transform if server_rendered else resolve_transform
        resolved = resolve(node, parent, depth > 0)
        scene = SceneNode(
            name=node.name or node.node_id,
            rect=resolved.rect,
            layout_element=resolved.layout_element,
            node_id=node.node_id,
            mask=node.is_mask,
        )
        parent_scene.add_child(scene)

        # The shared template reproduces the instance's content; instancing fills it in.
        if node.node_type == "INSTANCE" and node.component_id is not None and context.has_known_definition(node):
            scene.placeholder = PlaceholderMarker(
                node_id=node.node_id,
                parent_node_id=parent.node_id,
                component_id=node.component_id,
            )
            return scene

        if server_rendered:
            scene.bitmap = BitmapRef(
                node_id=node.node_id,
                reason=context.server_render[node.node_id],
                image_scale=float(context.settings.server_render_image_scale),
            )
            apply_prototype_functionality(scene, node, context)
            if node.node_type == "COMPONENT":
                self.registry.register_component(node, parent, scene)
            return scene

        screen = node.node_type == "FRAME" and is_screen_node(node, parent)
        if node.node_type == "COMPONENT":
            self.registry.open(node.node_id, "component")
        if screen:
            self.registry.open(node.node_id, "screen")
        if node.node_type == "SECTION":
            self._register_flow(node, "section", node.name, parent)

        apply_properties(scene, node, context)
        apply_effects(scene, node)
        content = apply_layout(scene, node, context.settings.enable_auto_layout)
        if content is not None and node.layout_mode == "NONE":
            fit_scroll_content(content, node)
        self._build_children(node, scene, content, depth)

        # Buttons look at the finished children for a "selected" state graphic.
        apply_prototype_functionality(scene, node, context)

        if screen:
            entry = self.registry.register_screen(node, scene)
            self._register_flow(node, "screen", entry.name, parent)
        if node.node_type == "COMPONENT":
            self.registry.register_component(node, parent, scene)
        return scene

    def _build_children(self, node: DesignNode, scene: SceneNode, content: SceneNode | None, depth: int) -> None:
        active_mask: SceneNode | None = None
        for child in node.child_nodes:
            built = self.build_node(child, scene, node, depth + 1)
            if built is None:
                continue
            if built.mask:
                active_mask = built
                if content is not None:
                    self._reparent(built, node, (content,))
            elif active_mask is not None:
                chain = (content, active_mask) if content is not None else (active_mask,)
                self._reparent(built, node, chain)
            elif content is not None:
                self._reparent(built, node, (content,))

    def _reparent(self, scene: SceneNode, parent: DesignNode, chain: tuple[SceneNode, ...]) -> None:
        """Move a child under the last container of `chain` without moving it on screen."""

        scene.rect = rebase_through(scene.rect, parent_size_of(parent), [container.rect for container in chain])
        chain[-1].add_child(scene)

    def _valid_for_generation(self, node: DesignNode) -> bool:
        return self.context.settings.generate_export_marked_nodes or not node.export_settings

    def _register_flow(self, node: DesignNode, kind: FlowKind, name: str, parent: DesignNode) -> None:
        if not self.context.settings.build_prototype_flow:
            return
        registration = FlowRegistration(
            node_id=node.node_id,
            name=name,
            kind=kind,
            parent_section_id=parent.node_id if parent.node_type == "SECTION" else None,
        )
        self.flow_registrations.append(registration)
        if self.on_flow_registration is not None:
            self.on_flow_registration(registration)

    # Later phases

    def instantiate(self) -> None:
        self.advance(BuildPhase.AWAITING_INSTANCING)
        self.advance(BuildPhase.INSTANCING)
        self.orphans.extend(instantiate_all_components(self.registry, self.context))

    def clean_up(self) -> None:
        self.advance(BuildPhase.CLEANING_UP)
        bindable = [
            (entry.name, entry.root)
            for entry in self.registry.entries("component") + self.registry.entries("screen")
        ]
        self.behaviours.extend(
            bind_behaviours(bindable, self.behaviour_registry, self.context.settings.screen_binding_namespace)
        )
        remove_temporary_node_tags(self.registry)

    def finish(self, persist: PersistHook | None = None) -> BuildResult:
        self.advance(BuildPhase.DONE)
        for entry in self.registry.entries():
            entry.finalized = True
        if persist is not None:
            for entry in self.registry.entries():
                persist(entry)

        document = self.context.document
        screens = tuple(self.registry.entries("screen"))
        return BuildResult(
            screens=screens,
            components=tuple(self.registry.entries("component")),
            pages=tuple(self.registry.entries("page")),
            flow_registrations=tuple(self.flow_registrations),
            orphans=tuple(self.orphans),
            behaviours=tuple(self.behaviours),
            flow_starting_points=flow_starting_points(document),
            start_screen_id=initial_screen_id(document, {entry.template_id for entry in screens}),
            image_refs=collect_image_refs(document),
            material_variants=self.context.material_variants.all_variants(),
        )


def build_document(
    document: DesignDocument,
    settings: BridgeSettings = DEFAULT_SETTINGS,
    *,
    font_map: FontMap | None = None,
    server_render: Mapping[str, ServerRenderType] | None = None,
    behaviour_registry: BehaviourRegistry | None = None,
    on_flow_registration: FlowRegistrationCallback | None = None,
    persist: PersistHook | None = None,
) -> BuildResult:
    """Translate a design document into screen, component and page templates.

    Raises DocumentValidationError before any work when the document is
    structurally unusable; everything else degrades with a logged warning.
    """

    require_valid_document(document)
    context = BuildContext.create(document, settings, server_render=server_render, font_map=font_map)
    session = BuildSession(
        context=context,
        behaviour_registry=behaviour_registry,
        on_flow_registration=on_flow_registration,
    )
    LOGGER.info("building %s (%d pages)", document.name, len(document.pages))
    session.build_pages()
    session.instantiate()
    session.clean_up()
    result = session.finish(persist)
    LOGGER.info(
        "built %d screens, %d components, %d pages (%d orphans)",
        len(result.screens),
        len(result.components),
        len(result.pages),
        len(result.orphans),
    )
    return result
