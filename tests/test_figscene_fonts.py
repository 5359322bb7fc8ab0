from __future__ import annotations

import unittest

from figscene_core.core.document import DesignDocument, DesignNode, TypeStyle
from figscene_core.core.fonts import (
    DEFAULT_FONT,
    FontHandle,
    FontMap,
    MaterialVariantRegistry,
    closest_font,
    generate_font_map,
    levenshtein_distance,
    strip_font_details,
)

INTER_BOLD = FontHandle(family="Inter", weight=700, asset_name="Inter-Bold SDF")
ROBOTO = FontHandle(family="Roboto", weight=400, asset_name="Roboto-Regular SDF")
LATO = FontHandle(family="Lato", weight=400, asset_name="Lato SDF")


def _document(*styles: TypeStyle) -> DesignDocument:
    texts = tuple(
        DesignNode(node_id=f"1:{index}", name=f"Text {index}", node_type="TEXT", style=style)
        for index, style in enumerate(styles)
    )
    page = DesignNode(node_id="0:1", name="Page", node_type="CANVAS", children=texts or None)
    return DesignDocument(
        name="Fonts",
        document=DesignNode(node_id="0:0", name="Document", node_type="DOCUMENT", children=(page,)),
    )


class FontMatchingTests(unittest.TestCase):
    def test_levenshtein_distance(self) -> None:
        self.assertEqual(levenshtein_distance("kitten", "sitting"), 3)
        self.assertEqual(levenshtein_distance("", "abc"), 3)
        self.assertEqual(levenshtein_distance("inter", "inter"), 0)

    def test_strip_font_details(self) -> None:
        self.assertEqual(strip_font_details("Inter-Bold SDF"), "inter")
        self.assertEqual(strip_font_details("Open Sans Regular SDF"), "opensans")

    def test_closest_font(self) -> None:
        self.assertIs(closest_font("Roboto Mono", (INTER_BOLD, ROBOTO, LATO)), ROBOTO)
        self.assertIsNone(closest_font("Inter", ()))

    def test_generate_font_map_prefers_exact_match(self) -> None:
        document = _document(
            TypeStyle(font_family="Inter", font_weight=700),
            TypeStyle(font_family="Robotto", font_weight=400),
            TypeStyle(font_family="Inter", font_weight=700),
        )
        font_map = generate_font_map(document, (INTER_BOLD, ROBOTO, LATO))
        self.assertEqual(
            font_map.entries,
            {("Inter", 700): INTER_BOLD, ("Robotto", 400): ROBOTO},
        )

    def test_unmapped_font_falls_back_to_default(self) -> None:
        font_map = FontMap({("Inter", 700): INTER_BOLD})
        self.assertIs(font_map.get_font_mapping("Inter", 700), INTER_BOLD)
        with self.assertLogs("figscene_core.core.fonts", level="WARNING"):
            self.assertIs(font_map.get_font_mapping("Inter", 400), DEFAULT_FONT)

    def test_font_handle_needs_asset(self) -> None:
        with self.assertRaises(ValueError):
            FontHandle(family="Inter", weight=400, asset_name=" ")


class MaterialVariantTests(unittest.TestCase):
    def test_variants_are_numbered_per_font(self) -> None:
        registry = MaterialVariantRegistry()
        outline = registry.variant_for(
            INTER_BOLD,
            shadow_color=None,
            shadow_distance=None,
            outline_color=(0.0, 0.0, 0.0, 1.0),
            outline_width=0.2,
        )
        shadow = registry.variant_for(
            INTER_BOLD,
            shadow_color=(0.0, 0.0, 0.0, 0.5),
            shadow_distance=(2.0, -2.0),
            outline_color=None,
            outline_width=0.0,
        )
        other_font = registry.variant_for(
            ROBOTO,
            shadow_color=None,
            shadow_distance=None,
            outline_color=(0.0, 0.0, 0.0, 1.0),
            outline_width=0.2,
        )
        self.assertEqual(outline.name, "Inter-Bold SDF_variant_0")
        self.assertEqual(shadow.name, "Inter-Bold SDF_variant_1")
        self.assertEqual(other_font.name, "Roboto-Regular SDF_variant_0")
        repeat = registry.variant_for(
            INTER_BOLD,
            shadow_color=None,
            shadow_distance=None,
            outline_color=(0.0, 0.0, 0.0, 1.0),
            outline_width=0.2,
        )
        self.assertIs(repeat, outline)
        self.assertEqual(len(registry.all_variants()), 3)


if __name__ == "__main__":
    unittest.main()
