from __future__ import annotations

import unittest
from typing import Any

from figscene_core.core.components import ComponentRegistry, find_matching_child, iter_markers
from figscene_core.core.document import DesignNode, document_from_dict
from figscene_core.core.generator import build_document
from figscene_ui.scene_ir import InstanceSwapMarker, PlaceholderMarker, SceneNode


def _node(
    node_id: str,
    name: str,
    node_type: str,
    box: tuple[float, float, float, float] = (0.0, 0.0, 100.0, 100.0),
    *,
    children: list[dict[str, Any]] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    x, y, width, height = box
    raw: dict[str, Any] = {
        "id": node_id,
        "name": name,
        "type": node_type,
        "relativeTransform": [[1, 0, x], [0, 1, y]],
        "size": {"x": width, "y": height},
        "absoluteBoundingBox": {"x": x, "y": y, "width": width, "height": height},
    }
    if children is not None:
        raw["children"] = children
    raw.update(extra)
    return raw


def _document(page_children: list[dict[str, Any]], components: dict[str, Any]) -> Any:
    return document_from_dict(
        {
            "name": "Components",
            "document": {
                "id": "0:0",
                "name": "Document",
                "type": "DOCUMENT",
                "children": [{"id": "0:1", "name": "Page 1", "type": "CANVAS", "children": page_children}],
            },
            "components": components,
        }
    )


class ComponentRegistryTests(unittest.TestCase):
    def test_unique_names_are_counted_per_kind(self) -> None:
        registry = ComponentRegistry()
        names = [registry.register(f"1:{i}", "component", "Button", SceneNode(name="Button")).name for i in range(3)]
        self.assertEqual(names, ["Button", "Button_1", "Button_2"])
        self.assertEqual(registry.register("2:1", "screen", "Button", SceneNode(name="Button")).name, "Button")
        self.assertEqual(len(registry), 4)

    def test_register_renames_root_and_closes_template(self) -> None:
        registry = ComponentRegistry()
        registry.register("1:1", "component", "Card", SceneNode(name="Card"))
        registry.open("1:2", "component")
        self.assertEqual(registry.open_template_ids, ("1:2",))
        root = SceneNode(name="Card")
        entry = registry.register("1:2", "component", "Card", root)
        self.assertEqual(root.name, "Card_1")
        self.assertIs(registry.component("1:2"), entry)
        self.assertEqual(registry.open_template_ids, ())

    def test_duplicate_component_id_is_rejected(self) -> None:
        registry = ComponentRegistry()
        registry.register("1:1", "component", "Card", SceneNode(name="Card"))
        with self.assertRaises(ValueError):
            registry.register("1:1", "component", "Card", SceneNode(name="Card"))

    def test_component_set_variants_use_set_name(self) -> None:
        registry = ComponentRegistry()
        variant = DesignNode(node_id="5:1", name="On", node_type="COMPONENT")
        parent = DesignNode(node_id="5:0", name="Toggle", node_type="COMPONENT_SET", children=(variant,))
        entry = registry.register_component(variant, parent, SceneNode(name="On"))
        self.assertEqual(entry.name, "Toggle-On")

    def test_iter_markers(self) -> None:
        root = SceneNode(name="Root")
        marker = root.add_child(SceneNode(name="Slot"))
        marker.placeholder = PlaceholderMarker(node_id="2:2", parent_node_id="2:1", component_id="1:1")
        root.add_child(SceneNode(name="Plain"))
        self.assertEqual([node.name for node in iter_markers(root)], ["Slot"])


class MatchingChildTests(unittest.TestCase):
    def test_matches_component_local_id(self) -> None:
        scene = SceneNode(name="Card")
        scene.add_child(SceneNode(name="Title", node_id="3:2"))
        child = DesignNode(node_id="I9:1;3:2", name="Title", node_type="TEXT")
        match, path = find_matching_child(child, scene)
        assert match is not None
        self.assertEqual(match.name, "Title")
        self.assertEqual(path, ())

    def test_searches_through_scroll_content_and_masks(self) -> None:
        scene = SceneNode(name="List")
        content = scene.add_child(SceneNode(name="List_ScrollContent", role="scroll_content"))
        mask = content.add_child(SceneNode(name="Mask", mask=True, node_id="3:3"))
        mask.add_child(SceneNode(name="Row", node_id="3:4"))
        child = DesignNode(node_id="I9:1;3:4", name="Row", node_type="RECTANGLE")
        match, path = find_matching_child(child, scene)
        assert match is not None
        self.assertEqual(match.name, "Row")
        self.assertEqual([node.name for node in path], ["List_ScrollContent", "Mask"])

    def test_missing_child_returns_none(self) -> None:
        scene = SceneNode(name="Card")
        scene.add_child(SceneNode(name="Title", node_id="3:2"))
        match, path = find_matching_child(DesignNode(node_id="3:9", name="Other", node_type="TEXT"), scene)
        self.assertIsNone(match)
        self.assertEqual(path, ())


class InstancingTests(unittest.TestCase):
    def _swap_document(self) -> Any:
        return _document(
            [
                _node("3:1", "Star", "COMPONENT", children=[_node("3:2", "StarShape", "RECTANGLE")]),
                _node("3:3", "Heart", "COMPONENT", children=[_node("3:4", "HeartShape", "RECTANGLE")]),
                _node(
                    "3:5",
                    "Card",
                    "COMPONENT",
                    componentPropertyDefinitions={"Icon#1": {"type": "INSTANCE_SWAP", "defaultValue": "3:1"}},
                    children=[_node("3:6", "Star", "INSTANCE", componentId="3:1")],
                ),
                _node(
                    "4:1",
                    "Shop",
                    "FRAME",
                    (500.0, 0.0, 375.0, 812.0),
                    children=[
                        _node(
                            "4:2",
                            "Card",
                            "INSTANCE",
                            componentId="3:5",
                            componentProperties={"Icon#1": {"type": "INSTANCE_SWAP", "value": "3:3"}},
                            children=[
                                _node(
                                    "I4:2;3:6",
                                    "Star",
                                    "INSTANCE",
                                    componentId="3:3",
                                    children=[_node("I4:2;3:6;3:4", "HeartShape", "RECTANGLE")],
                                )
                            ],
                        )
                    ],
                ),
            ],
            {"3:1": {"key": "star"}, "3:3": {"key": "heart"}, "3:5": {"key": "card"}},
        )

    def test_nested_component_is_expanded_in_template(self) -> None:
        result = build_document(self._swap_document())
        card = next(entry for entry in result.components if entry.name == "Card")
        star = card.root.children[0]
        self.assertEqual(star.name, "Star")
        self.assertEqual([child.name for child in star.children], ["StarShape"])

    def test_instance_swap_replaces_default_and_is_recorded(self) -> None:
        result = build_document(self._swap_document())
        card = result.screens[0].root.children[0]
        self.assertEqual(card.instance_swaps, (InstanceSwapMarker(target_name="Star", replacement_component_id="3:3"),))
        swapped = card.children[0]
        self.assertEqual(swapped.name, "Star")
        self.assertEqual([child.name for child in swapped.children], ["HeartShape"])
        self.assertEqual(result.orphans, ())

    def test_external_library_instance_is_built_inline(self) -> None:
        document = _document(
            [
                _node(
                    "2:1",
                    "Home",
                    "FRAME",
                    (0.0, 0.0, 375.0, 812.0),
                    children=[
                        _node(
                            "2:2",
                            "Avatar",
                            "INSTANCE",
                            componentId="7:7",
                            children=[_node("I2:2;7:8", "Photo", "RECTANGLE")],
                        )
                    ],
                )
            ],
            {"7:7": {"key": "library-avatar", "name": "Avatar"}},
        )
        result = build_document(document)
        avatar = result.screens[0].root.children[0]
        self.assertIsNone(avatar.orphan_component_id)
        self.assertEqual([child.name for child in avatar.children], ["Photo"])
        self.assertEqual(result.components, ())


if __name__ == "__main__":
    unittest.main()
