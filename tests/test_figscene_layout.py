from __future__ import annotations

import unittest
from typing import Any

from figscene_core.core.document import DesignNode, Rect, document_from_dict
from figscene_core.core.generator import build_document
from figscene_core.core.layout import SCROLL_CONTENT_SUFFIX, apply_layout, child_alignment, scroll_axes
from figscene_ui.scene_ir import SceneNode


def _frame(**overrides: Any) -> DesignNode:
    values: dict[str, Any] = {
        "node_id": "1:1",
        "name": "List",
        "node_type": "FRAME",
        "absolute_bounding_box": Rect(0.0, 0.0, 100.0, 200.0),
        "relative_transform": ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0)),
        "size": (100.0, 200.0),
    }
    values.update(overrides)
    return DesignNode(**values)


def _rect(node_id: str, name: str, y: float) -> dict[str, Any]:
    return {
        "id": node_id,
        "name": name,
        "type": "RECTANGLE",
        "relativeTransform": [[1, 0, 0], [0, 1, y]],
        "size": {"x": 100, "y": 50},
        "absoluteBoundingBox": {"x": 0, "y": y, "width": 100, "height": 50},
        "fills": [{"type": "SOLID", "color": {"r": 0.2, "g": 0.2, "b": 0.2, "a": 1.0}}],
    }


class ApplyLayoutTests(unittest.TestCase):
    def test_vertical_layout_padding_and_alignment(self) -> None:
        node = _frame(
            layout_mode="VERTICAL",
            primary_axis_align_items="MAX",
            counter_axis_align_items="CENTER",
            padding_left=2.5,
            padding_right=3.5,
            padding_top=4.0,
            padding_bottom=1.2,
            item_spacing=8.0,
        )
        scene = SceneNode(name="List")
        self.assertIsNone(apply_layout(scene, node))
        assert scene.layout is not None
        self.assertEqual(scene.layout.axis, "vertical")
        self.assertEqual(scene.layout.padding, (2, 4, 4, 1))
        self.assertEqual(scene.layout.spacing, 8.0)
        self.assertEqual(scene.layout.child_alignment, "lower_center")

    def test_alignment_tables_differ_per_axis(self) -> None:
        horizontal = _frame(layout_mode="HORIZONTAL", primary_axis_align_items="CENTER", counter_axis_align_items="MAX")
        vertical = _frame(layout_mode="VERTICAL", primary_axis_align_items="CENTER", counter_axis_align_items="MAX")
        self.assertEqual(child_alignment(horizontal), "lower_center")
        self.assertEqual(child_alignment(vertical), "middle_right")

    def test_space_between_and_baseline_pack_like_min(self) -> None:
        node = _frame(
            layout_mode="HORIZONTAL",
            primary_axis_align_items="SPACE_BETWEEN",
            counter_axis_align_items="BASELINE",
        )
        self.assertEqual(child_alignment(node), "upper_left")

    def test_auto_layout_can_be_disabled(self) -> None:
        scene = SceneNode(name="List")
        apply_layout(scene, _frame(layout_mode="HORIZONTAL"), enable_auto_layout=False)
        self.assertIsNone(scene.layout)

    def test_scrolling_layout_goes_on_content(self) -> None:
        node = _frame(overflow_direction="HORIZONTAL_SCROLLING", layout_mode="HORIZONTAL", clips_content=True)
        scene = SceneNode(name="List")
        content = apply_layout(scene, node)
        assert content is not None and scene.scroll is not None
        self.assertEqual(content.name, f"List{SCROLL_CONTENT_SUFFIX}")
        self.assertIs(scene.children[0], content)
        self.assertIsNone(scene.layout)
        self.assertIsNotNone(content.layout)
        assert content.content_size_fitter is not None
        self.assertEqual(content.content_size_fitter.horizontal, "preferred")
        self.assertTrue(scene.scroll.horizontal)
        self.assertFalse(scene.scroll.vertical)
        self.assertTrue(scene.scroll.clip_content)

    def test_reapplying_reuses_scroll_content(self) -> None:
        node = _frame(overflow_direction="VERTICAL_SCROLLING")
        scene = SceneNode(name="List")
        first = apply_layout(scene, node)
        second = apply_layout(scene, node)
        self.assertIs(first, second)
        self.assertEqual(len(scene.children), 1)

    def test_scroll_axes(self) -> None:
        self.assertEqual(scroll_axes("HORIZONTAL_AND_VERTICAL_SCROLLING"), (True, True))
        self.assertEqual(scroll_axes("NONE"), (False, False))


class ScrollBuildTests(unittest.TestCase):
    def _document(self) -> Any:
        feed = {
            "id": "2:1",
            "name": "Feed",
            "type": "FRAME",
            "relativeTransform": [[1, 0, 0], [0, 1, 0]],
            "size": {"x": 100, "y": 200},
            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 100, "height": 200},
            "overflowDirection": "VERTICAL_SCROLLING",
            "clipsContent": True,
            "children": [_rect("2:2", "First", 0), _rect("2:3", "Second", 60), _rect("2:4", "Third", 120)],
        }
        return document_from_dict(
            {
                "name": "Scroll",
                "document": {
                    "id": "0:0",
                    "name": "Document",
                    "type": "DOCUMENT",
                    "children": [{"id": "0:1", "name": "Page 1", "type": "CANVAS", "children": [feed]}],
                },
            }
        )

    def test_free_layout_scroll_frame_wraps_children_in_content(self) -> None:
        result = build_document(self._document())
        feed = result.screens[0].root
        assert feed.scroll is not None
        self.assertTrue(feed.scroll.vertical)
        self.assertFalse(feed.scroll.horizontal)
        self.assertTrue(feed.scroll.clip_content)

        content_nodes = [child for child in feed.children if child.role == "scroll_content"]
        self.assertEqual(len(content_nodes), 1)
        self.assertEqual(len(feed.children), 1)
        content = content_nodes[0]
        self.assertEqual(content.name, "Feed_ScrollContent")
        self.assertEqual(content.rect.size_delta, (100.0, 170.0))
        self.assertEqual([child.name for child in content.children], ["First", "Second", "Third"])

    def test_children_keep_their_place_inside_content(self) -> None:
        result = build_document(self._document())
        first = result.screens[0].root.children[0].children[0]
        self.assertAlmostEqual(first.rect.anchored_position[0], 50.0)
        self.assertAlmostEqual(first.rect.anchored_position[1], -25.0)
        self.assertEqual(first.rect.pivot, (0.5, 0.5))


if __name__ == "__main__":
    unittest.main()
