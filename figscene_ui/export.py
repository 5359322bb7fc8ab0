from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
import re
from typing import Any, Iterable, Iterator, Mapping

from PIL import Image, ImageDraw, ImageFont

from .scene_ir import SCENE_IR_VERSION, SceneNode, Vec2


LOGGER = logging.getLogger(__name__)

TEMPLATE_FOLDERS = {"component": "components", "screen": "screens", "page": "pages"}
MAX_PREVIEW_EDGE = 1024

_UNSAFE_FILE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f.]+')


@dataclass(frozen=True)
class TemplateExportBundle:
    kind: str
    name: str
    scene_json: Path
    outline: Path
    preview_png: Path | None = None

    def as_dict(self) -> dict[str, str]:
        out = {
            "kind": self.kind,
            "name": self.name,
            "scene_json": str(self.scene_json),
            "outline": str(self.outline),
        }
        if self.preview_png is not None:
            out["preview_png"] = str(self.preview_png)
        return out


def safe_file_name(name: str) -> str:
    """File-system safe version of a template name; dots are replaced as well."""

    cleaned = _UNSAFE_FILE_CHARS.sub("_", name.strip())
    return cleaned or "_"


class TemplateExporter:
    """Writes templates under `out_dir/{components,screens,pages}`.

    Every written file is tracked so a failed export can be rolled back.
    """

    def __init__(self, out_dir: str | Path, *, previews: bool = True) -> None:
        self.out_dir = Path(out_dir)
        self.previews = previews
        self._written: list[Path] = []
        self._bundles: list[TemplateExportBundle] = []
        self._stems: set[tuple[str, str]] = set()

    @property
    def bundles(self) -> tuple[TemplateExportBundle, ...]:
        return tuple(self._bundles)

    @property
    def written(self) -> tuple[Path, ...]:
        return tuple(self._written)

    def write_template(self, kind: str, name: str, root: SceneNode) -> TemplateExportBundle:
        folder = TEMPLATE_FOLDERS.get(kind)
        if folder is None:
            raise ValueError(f"Unsupported template kind: {kind}")
        target_dir = self.out_dir / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        stem = safe_file_name(name)
        base, count = stem, 0
        while (folder, stem) in self._stems:
            count += 1
            stem = f"{base}_{count}"
        self._stems.add((folder, stem))

        scene_path = target_dir / f"{stem}.json"
        payload = {"schema": SCENE_IR_VERSION, "kind": kind, "name": name, "root": root.to_dict()}
        self._write_text(scene_path, json.dumps(payload, indent=2, sort_keys=True) + "\n")

        outline_path = target_dir / f"{stem}.txt"
        self._write_text(outline_path, render_scene_outline(root))

        preview_path: Path | None = None
        if self.previews and kind == "screen":
            preview_path = target_dir / f"{stem}.png"
            self._written.append(preview_path)
            render_wireframe_png(root, preview_path)

        bundle = TemplateExportBundle(
            kind=kind,
            name=name,
            scene_json=scene_path,
            outline=outline_path,
            preview_png=preview_path,
        )
        self._bundles.append(bundle)
        return bundle

    def export_all(self, templates: Iterable[tuple[str, str, SceneNode]]) -> tuple[TemplateExportBundle, ...]:
        """Write every template, or none of them if any write fails."""

        try:
            for kind, name, root in templates:
                self.write_template(kind, name, root)
        except Exception:
            self.rollback()
            raise
        return self.bundles

    def rollback(self) -> None:
        for path in reversed(self._written):
            if path.exists():
                path.unlink()
        LOGGER.warning("rolled back %d exported files under %s", len(self._written), self.out_dir)
        self._written.clear()
        self._bundles.clear()
        self._stems.clear()

    def _write_text(self, path: Path, text: str) -> None:
        self._written.append(path)
        path.write_text(text, encoding="utf-8")


def build_manifest(summary: Mapping[str, Any], bundles: Iterable[TemplateExportBundle]) -> dict[str, Any]:
    return {
        "schema": SCENE_IR_VERSION,
        "build": dict(summary),
        "files": [bundle.as_dict() for bundle in bundles],
    }


def render_scene_outline(root: SceneNode) -> str:
    lines: list[str] = []
    _outline(root, "", True, lines, is_root=True)
    return "\n".join(lines) + "\n"


def _outline(node: SceneNode, prefix: str, last: bool, lines: list[str], is_root: bool = False) -> None:
    tags: list[str] = []
    if node.role != "node":
        tags.append(node.role)
    if node.mask:
        tags.append("mask")
    if node.text is not None:
        tags.append(f'text "{node.text.characters[:24]}"')
    if node.bitmap is not None:
        tags.append(f"bitmap:{node.bitmap.reason}")
    if node.image is not None:
        tags.append("image")
    if node.layout is not None:
        tags.append(f"layout:{node.layout.axis}")
    if node.scroll is not None:
        tags.append("scroll")
    if node.button is not None:
        tags.append("button")
    if node.orphan_component_id is not None:
        tags.append(f"orphan:{node.orphan_component_id}")
    if not node.active:
        tags.append("hidden")
    label = node.name + (f" [{', '.join(tags)}]" if tags else "")

    if is_root:
        lines.append(label)
        child_prefix = ""
    else:
        lines.append(f"{prefix}{'`-- ' if last else '|-- '}{label}")
        child_prefix = prefix + ("    " if last else "|   ")
    for index, child in enumerate(node.children):
        _outline(child, child_prefix, index == len(node.children) - 1, lines)


def iter_layout_boxes(root: SceneNode) -> Iterator[tuple[SceneNode, Vec2, Vec2]]:
    """(node, bottom-left origin, size) in the root's frame, ignoring rotation."""

    root_size = root.rect.rect_size()
    stack: list[tuple[SceneNode, Vec2, Vec2]] = [(root, (0.0, 0.0), root_size)]
    while stack:
        node, origin, size = stack.pop()
        yield node, origin, size
        for child in reversed(node.children):
            child_size = child.rect.rect_size(size)
            pivot = child.rect.pivot_point(size)
            child_origin = (
                origin[0] + pivot[0] - child.rect.pivot[0] * child_size[0],
                origin[1] + pivot[1] - child.rect.pivot[1] * child_size[1],
            )
            stack.append((child, child_origin, child_size))


def render_wireframe_png(
    root: SceneNode,
    out_path: Path,
    *,
    padding: int = 16,
    bg: tuple[int, int, int] = (17, 24, 39),
    fg: tuple[int, int, int] = (226, 232, 240),
) -> None:
    width, height = root.rect.rect_size()
    width = max(width, 1.0)
    height = max(height, 1.0)
    scale = min(1.0, MAX_PREVIEW_EDGE / max(width, height))
    image = Image.new("RGB", (int(width * scale) + padding * 2, int(height * scale) + padding * 2), color=bg)
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default()

    for node, origin, size in iter_layout_boxes(root):
        if not node.active or size[0] <= 0 or size[1] <= 0:
            continue
        left = padding + origin[0] * scale
        top = padding + (height - origin[1] - size[1]) * scale
        right = left + size[0] * scale
        bottom = top + size[1] * scale
        fill = None
        if node.shape_fill is not None and node.shape_fill.fill_kind == "solid":
            r, g, b, a = node.shape_fill.fill_color
            if a > 0:
                fill = tuple(int(round(channel * 255 * a + bg_channel * (1 - a))) for channel, bg_channel in zip((r, g, b), bg))
        draw.rectangle((left, top, right, bottom), outline=_outline_color(node, fg), fill=fill)
        if node.text is not None:
            draw.text((left + 2, top + 2), node.text.characters[:40], fill=fg, font=font)

    image.save(out_path)


def _outline_color(node: SceneNode, fg: tuple[int, int, int]) -> tuple[int, int, int]:
    if node.orphan_component_id is not None:
        return (239, 68, 68)
    if node.bitmap is not None or node.image is not None:
        return (234, 179, 8)
    if node.text is not None:
        return (56, 189, 248)
    if node.scroll is not None or node.role == "scroll_content":
        return (34, 197, 94)
    return fg
