from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Iterable, Mapping

from figscene_ui.scene_ir import Color, TextMaterialVariant, Vec2

from .document import DesignDocument


LOGGER = logging.getLogger(__name__)

_STRIP_WORDS = ("sdf", "regular", "bold", "italic", " ")


@dataclass(frozen=True)
class FontHandle:
    family: str
    weight: int
    asset_name: str

    def __post_init__(self) -> None:
        if not self.asset_name.strip():
            raise ValueError("FontHandle.asset_name must be non-empty")


DEFAULT_FONT = FontHandle(family="Default", weight=400, asset_name="Default SDF")


class FontMap:
    """Lookup of `(family, weight)` to the font asset used for it."""

    def __init__(
        self,
        entries: Mapping[tuple[str, int], FontHandle] | None = None,
        default: FontHandle = DEFAULT_FONT,
    ) -> None:
        self._entries = dict(entries or {})
        self._default = default

    @property
    def entries(self) -> dict[tuple[str, int], FontHandle]:
        return dict(self._entries)

    def get_font_mapping(self, family: str, weight: int) -> FontHandle:
        handle = self._entries.get((family, weight))
        if handle is None:
            LOGGER.warning("no font mapping for %s/%s; using %s", family, weight, self._default.asset_name)
            return self._default
        return handle


def generate_font_map(
    document: DesignDocument,
    available_fonts: Iterable[FontHandle],
    default: FontHandle = DEFAULT_FONT,
) -> FontMap:
    fonts = tuple(available_fonts)
    entries: dict[tuple[str, int], FontHandle] = {}
    for node in document.document.iter_tree():
        if node.node_type != "TEXT" or node.style is None:
            continue
        key = (node.style.font_family, node.style.font_weight)
        if key in entries:
            continue
        exact = next(
            (font for font in fonts if font.family.lower() == key[0].lower() and font.weight == key[1]),
            None,
        )
        if exact is not None:
            entries[key] = exact
            continue
        closest = closest_font(key[0], fonts)
        if closest is None:
            LOGGER.warning("no fonts available for %s/%s", *key)
            continue
        LOGGER.warning("font %s/%s not available; closest match is %s", key[0], key[1], closest.asset_name)
        entries[key] = closest
    return FontMap(entries, default=default)


def closest_font(family: str, fonts: Iterable[FontHandle]) -> FontHandle | None:
    target = family.lower().replace(" ", "")
    best: FontHandle | None = None
    best_score: int | None = None
    for font in fonts:
        score = levenshtein_distance(target, strip_font_details(font.asset_name))
        if best_score is None or score < best_score:
            best = font
            best_score = score
    return best


def strip_font_details(asset_name: str) -> str:
    # Weight variants are suffixed after a hyphen (`Roboto-Bold SDF`).
    name = asset_name.lower().split("-", 1)[0]
    for word in _STRIP_WORDS:
        name = name.replace(word, "")
    return re.sub(r"\s+", "", name)


def levenshtein_distance(left: str, right: str) -> int:
    if len(left) < len(right):
        left, right = right, left
    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


class MaterialVariantRegistry:
    """Deduplicates text material variants (outline/underlay) per font asset for one build."""

    def __init__(self) -> None:
        self._variants: dict[str, list[TextMaterialVariant]] = {}

    def variant_for(
        self,
        font: FontHandle,
        *,
        shadow_color: Color | None,
        shadow_distance: Vec2 | None,
        outline_color: Color | None,
        outline_width: float,
    ) -> TextMaterialVariant:
        known = self._variants.setdefault(font.asset_name, [])
        for variant in known:
            if (
                variant.shadow_color == shadow_color
                and variant.shadow_distance == shadow_distance
                and variant.outline_color == outline_color
                and variant.outline_width == outline_width
            ):
                return variant
        variant = TextMaterialVariant(
            name=f"{font.asset_name}_variant_{len(known)}",
            outline_color=outline_color,
            outline_width=outline_width,
            shadow_color=shadow_color,
            shadow_distance=shadow_distance,
        )
        known.append(variant)
        return variant

    def all_variants(self) -> tuple[TextMaterialVariant, ...]:
        return tuple(variant for name in sorted(self._variants) for variant in self._variants[name])
