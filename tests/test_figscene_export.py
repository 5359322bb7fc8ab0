from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from figscene_ui.export import (
    TemplateExporter,
    build_manifest,
    iter_layout_boxes,
    render_scene_outline,
    safe_file_name,
)
from figscene_ui.scene_ir import AnchoredRect, SceneNode, ScrollContainer, ShapeFill, TextStyle


def _screen() -> SceneNode:
    root = SceneNode(name="Home", rect=AnchoredRect(size_delta=(375.0, 812.0)))
    feed = root.add_child(
        SceneNode(
            name="List",
            rect=AnchoredRect(anchored_position=(10.0, -20.0), size_delta=(200.0, 300.0)),
            scroll=ScrollContainer(horizontal=False, vertical=True, content_name="List_ScrollContent"),
        )
    )
    feed.add_child(
        SceneNode(
            name="List_ScrollContent",
            rect=AnchoredRect(size_delta=(200.0, 600.0)),
            role="scroll_content",
            shape_fill=ShapeFill(fill_kind="solid", fill_color=(0.2, 0.4, 0.6, 1.0)),
        )
    )
    root.add_child(
        SceneNode(
            name="Title",
            rect=AnchoredRect(anchored_position=(10.0, -400.0), size_delta=(200.0, 30.0)),
            text=TextStyle(characters="Hello", font="Default SDF", font_size=18.0),
        )
    )
    return root


class SceneOutlineTests(unittest.TestCase):
    def test_outline_tree(self) -> None:
        self.assertEqual(
            render_scene_outline(_screen()),
            "\n".join(
                [
                    "Home",
                    "|-- List [scroll]",
                    "|   `-- List_ScrollContent [scroll_content]",
                    '`-- Title [text "Hello"]',
                ]
            )
            + "\n",
        )

    def test_layout_boxes_are_in_root_frame(self) -> None:
        boxes = {node.name: (origin, size) for node, origin, size in iter_layout_boxes(_screen())}
        self.assertEqual(boxes["Home"], ((0.0, 0.0), (375.0, 812.0)))
        # Top-left pivot 10 from the left and 20 below the top of an 812 tall root.
        self.assertEqual(boxes["List"], ((10.0, 492.0), (200.0, 300.0)))

    def test_safe_file_name(self) -> None:
        self.assertEqual(safe_file_name("Settings/Profile v1.2"), "Settings_Profile v1_2")
        self.assertEqual(safe_file_name("   "), "_")
        self.assertEqual(safe_file_name("a:b*c"), "a_b_c")


class TemplateExporterTests(unittest.TestCase):
    def test_writes_json_outline_and_preview(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            exporter = TemplateExporter(tmp)
            bundle = exporter.write_template("screen", "Home", _screen())
            self.assertEqual(bundle.scene_json, Path(tmp) / "screens" / "Home.json")
            self.assertTrue(bundle.scene_json.exists())
            self.assertTrue(bundle.outline.read_text(encoding="utf-8").startswith("Home\n"))
            assert bundle.preview_png is not None
            self.assertGreater(bundle.preview_png.stat().st_size, 0)
            self.assertIn('"schema": "figscene-scene-v1"', bundle.scene_json.read_text(encoding="utf-8"))

    def test_components_get_no_preview_and_unique_stems(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            exporter = TemplateExporter(tmp)
            first = exporter.write_template("component", "Icon.Large", SceneNode(name="Icon.Large"))
            second = exporter.write_template("component", "Icon/Large", SceneNode(name="Icon/Large"))
            self.assertIsNone(first.preview_png)
            self.assertEqual(first.scene_json.name, "Icon_Large.json")
            self.assertEqual(second.scene_json.name, "Icon_Large_1.json")

    def test_failed_export_rolls_back(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            exporter = TemplateExporter(tmp, previews=False)
            templates = [
                ("screen", "Home", _screen()),
                ("widget", "Broken", SceneNode(name="Broken")),
            ]
            with self.assertLogs("figscene_ui.export", level="WARNING"):
                with self.assertRaises(ValueError):
                    exporter.export_all(templates)
            self.assertEqual(list(Path(tmp).rglob("*.json")), [])
            self.assertEqual(exporter.bundles, ())

    def test_manifest_lists_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            exporter = TemplateExporter(tmp, previews=False)
            exporter.write_template("page", "Page 1", _screen())
            manifest = build_manifest({"screens": []}, exporter.bundles)
        self.assertEqual(manifest["schema"], "figscene-scene-v1")
        self.assertEqual(manifest["build"], {"screens": []})
        self.assertEqual([item["kind"] for item in manifest["files"]], ["page"])
        self.assertNotIn("preview_png", manifest["files"][0])


if __name__ == "__main__":
    unittest.main()
