from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from figscene_ui.scene_ir import ButtonBinding, PrototypeLink, SceneNode

from .context import BuildContext
from .document import DesignNode


FlowKind = Literal["screen", "section"]


@dataclass(frozen=True)
class FlowRegistration:
    node_id: str
    name: str
    kind: FlowKind
    parent_section_id: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in ("screen", "section"):
            raise ValueError(f"Unsupported flow registration kind: {self.kind}")


FlowRegistrationCallback = Callable[[FlowRegistration], None]


def wants_button(node: DesignNode, context: BuildContext) -> bool:
    if "button" in node.name.lower():
        return True
    return context.settings.build_prototype_flow and bool(node.transition_node_id)


def apply_prototype_functionality(scene: SceneNode, node: DesignNode, context: BuildContext) -> None:
    """Attach button and screen-transition wiring.

    Runs after the node's children exist so a "selected" child can become the
    button's tint target.
    """

    if wants_button(node, context) and scene.button is None:
        binding = ButtonBinding()
        for child in scene.children:
            if "selected" in child.name.lower():
                binding = ButtonBinding(target_graphic=child.name, transition="color_tint")
        scene.button = binding

    if not context.settings.build_prototype_flow or not node.transition_node_id:
        return
    scene.prototype_link = PrototypeLink(target_node_id=node.transition_node_id)
