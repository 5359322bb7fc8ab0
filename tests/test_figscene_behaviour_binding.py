from __future__ import annotations

import unittest

from figscene_core.core.behaviour_binding import (
    SAFE_AREA_BEHAVIOUR,
    BehaviourRegistry,
    BehaviourSpec,
    BoundBehaviour,
    bind_behaviours,
    find_child_by_name,
)
from figscene_ui.scene_ir import ButtonBinding, SceneNode


def _screen() -> SceneNode:
    root = SceneNode(name="Game")
    safe = root.add_child(SceneNode(name="SafeArea"))
    hud = safe.add_child(SceneNode(name="HUD"))
    hud.add_child(SceneNode(name="ScoreLabel"))
    hud.add_child(SceneNode(name="Pause", button=ButtonBinding()))
    root.add_child(SceneNode(name="Background"))
    return root


class BehaviourRegistryTests(unittest.TestCase):
    def test_lookup_is_case_insensitive_and_namespaced(self) -> None:
        registry = BehaviourRegistry()
        registry.register("Game", "GameScreen", namespace="Arcade")
        self.assertIsNone(registry.lookup("game"))
        spec = registry.lookup("GAME", namespace=" arcade ")
        assert spec is not None
        self.assertEqual(spec.name, "GameScreen")
        self.assertEqual(len(registry), 1)

    def test_lookup_falls_back_to_node_id(self) -> None:
        registry = BehaviourRegistry()
        registry.register("2:1", "HomeScreen")
        spec = registry.lookup("Home", node_id="2:1")
        assert spec is not None
        self.assertEqual(spec.name, "HomeScreen")

    def test_duplicate_keys_rejected(self) -> None:
        registry = BehaviourRegistry()
        registry.register("Game", "GameScreen")
        with self.assertRaises(ValueError):
            registry.register("game", "Other")
        with self.assertRaises(ValueError):
            registry.register("", "Other")


class BindBehavioursTests(unittest.TestCase):
    def test_safe_area_is_bound_without_registry(self) -> None:
        root = _screen()
        bound = bind_behaviours([("Game", root)], None)
        self.assertEqual(bound, [BoundBehaviour("Game", "Game/SafeArea", SAFE_AREA_BEHAVIOUR)])
        self.assertEqual(root.children[0].behaviours, (SAFE_AREA_BEHAVIOUR,))

        # Binding twice does not stack the behaviour.
        bind_behaviours([("Game", root)], None)
        self.assertEqual(root.children[0].behaviours, (SAFE_AREA_BEHAVIOUR,))

    def test_fields_and_buttons_resolve_by_name(self) -> None:
        seen: list[tuple[str, BoundBehaviour]] = []
        registry = BehaviourRegistry()
        registry.register(
            "Game",
            BehaviourSpec(
                name="GameScreen",
                fields=("m_ScoreLabel", "Missing"),
                button_presses=(("OnPause", "pause"), ("OnBackground", "Background")),
                factory=lambda node, result: seen.append((node.name, result)),
            ),
        )
        root = _screen()
        with self.assertLogs("figscene_core.core.behaviour_binding", level="WARNING") as logs:
            bound = bind_behaviours([("Game", root)], registry)

        game = bound[-1]
        self.assertEqual(game.behaviour, "GameScreen")
        self.assertEqual(game.fields, (("m_ScoreLabel", "Game/SafeArea/HUD/ScoreLabel"),))
        self.assertEqual(game.button_presses, (("OnPause", "Game/SafeArea/HUD/Pause"),))
        self.assertEqual(len(logs.output), 2)
        self.assertEqual(seen, [("Game", game)])
        self.assertEqual(root.behaviours, ("GameScreen",))

    def test_children_are_bound_before_parents(self) -> None:
        registry = BehaviourRegistry()
        registry.register("Game", "GameScreen")
        registry.register("HUD", "HudPanel")
        bound = bind_behaviours([("Game", _screen())], registry)
        self.assertEqual([item.behaviour for item in bound], ["HudPanel", SAFE_AREA_BEHAVIOUR, "GameScreen"])

    def test_find_child_by_name_prefers_shallow_matches(self) -> None:
        root = SceneNode(name="Root")
        deep = root.add_child(SceneNode(name="Group")).add_child(SceneNode(name="Title"))
        shallow = root.add_child(SceneNode(name="title"))
        self.assertIs(find_child_by_name(root, "Title"), shallow)
        self.assertIsNot(find_child_by_name(root, "Title"), deep)

    def test_search_depth_is_limited(self) -> None:
        root = SceneNode(name="Root")
        node = root
        for index in range(5):
            node = node.add_child(SceneNode(name=f"Level{index}"))
        self.assertIsNotNone(find_child_by_name(root, "Level3"))
        self.assertIsNone(find_child_by_name(root, "Level4"))


if __name__ == "__main__":
    unittest.main()
