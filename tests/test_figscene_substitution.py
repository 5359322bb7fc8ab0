from __future__ import annotations

import unittest
from typing import Any

from figscene_core.core.document import DesignDocument, document_from_dict
from figscene_core.core.document_queries import build_node_lookup
from figscene_core.core.substitution import find_server_render_nodes, node_is_substitution


def _node(node_id: str, name: str, node_type: str, *, children: list[dict[str, Any]] | None = None, **extra: Any) -> dict[str, Any]:
    raw: dict[str, Any] = {"id": node_id, "name": name, "type": node_type}
    if children is not None:
        raw["children"] = children
    raw.update(extra)
    return raw


def _document() -> DesignDocument:
    icon = _node(
        "1:1",
        "Icon",
        "COMPONENT",
        children=[_node("1:2", "Glyph", "VECTOR"), _node("1:3", "Glyph 2", "VECTOR")],
    )
    home = _node(
        "2:1",
        "Home",
        "FRAME",
        children=[
            _node("2:2", "Logo", "GROUP", children=[_node("2:3", "Mark", "VECTOR")]),
            _node("2:4", "Hero Render", "RECTANGLE"),
            _node("2:5", "Panel", "FRAME", children=[_node("2:6", "Caption", "TEXT")]),
            _node("2:7", "Icon", "INSTANCE", componentId="1:1"),
            _node("2:8", "Hidden", "VECTOR", visible=False),
            _node("2:9", "Badge", "INSTANCE", componentId="9:9", children=[_node("I2:9;1", "Star", "VECTOR")]),
        ],
    )
    hero = _node("3:1", "Banner", "RECTANGLE", exportSettings=[{"format": "PNG"}])
    archive = _node(
        "0:2",
        "Archive",
        "CANVAS",
        children=[
            _node("4:1", "Old", "FRAME", children=[_node("4:2", "Arrow", "VECTOR")]),
            _node("4:3", "Chevron", "COMPONENT", children=[_node("4:4", "Path", "VECTOR")]),
        ],
    )
    return document_from_dict(
        {
            "document": {
                "id": "0:0",
                "name": "Document",
                "type": "DOCUMENT",
                "children": [
                    {"id": "0:1", "name": "Page 1", "type": "CANVAS", "children": [icon, home, hero]},
                    archive,
                ],
            },
            "components": {"9:9": {"key": "lib-badge", "name": "Badge"}},
        }
    )


class ServerRenderTests(unittest.TestCase):
    def test_detects_substitutions_and_exports(self) -> None:
        found = find_server_render_nodes(_document(), missing_component_ids={"9:9"})
        self.assertEqual(found["1:1"], "substitution")
        self.assertEqual(found["2:2"], "substitution")
        self.assertEqual(found["2:4"], "substitution")
        self.assertEqual(found["3:1"], "export")
        self.assertEqual(found["2:9"], "substitution")
        self.assertNotIn("2:3", found)
        self.assertNotIn("2:1", found)
        self.assertNotIn("2:5", found)
        self.assertNotIn("2:7", found)
        self.assertNotIn("2:8", found)

    def test_unselected_pages_only_contribute_components(self) -> None:
        found = find_server_render_nodes(_document(), selected_page_ids={"0:1"})
        self.assertNotIn("4:2", found)
        self.assertEqual(found["4:3"], "substitution")
        self.assertIn("4:2", find_server_render_nodes(_document()))

    def test_instances_follow_their_definition(self) -> None:
        document = _document()
        lookup = build_node_lookup(document)
        found = find_server_render_nodes(document)
        self.assertTrue(node_is_substitution(lookup["2:7"], found, lookup))
        self.assertTrue(node_is_substitution(lookup["1:1"], found, lookup))
        self.assertFalse(node_is_substitution(lookup["2:4"], found, lookup))


if __name__ == "__main__":
    unittest.main()
