from __future__ import annotations

from figscene_ui.scene_ir import SceneNode, Shadow

from .document import DesignNode


def apply_effects(scene: SceneNode, node: DesignNode) -> None:
    """Map drop shadows onto non-text nodes; other effect kinds are dropped.

    Text shadows go through the text material variant instead.
    """

    if node.node_type == "TEXT":
        return
    shadows = [
        Shadow(
            distance=(effect.offset[0], -effect.offset[1]),
            color=effect.color.as_tuple() if effect.color is not None else (0.0, 0.0, 0.0, 1.0),
        )
        for effect in node.effects
        if effect.effect_type == "DROP_SHADOW"
    ]
    scene.shadows = tuple(shadows)
