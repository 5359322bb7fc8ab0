from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
import tomllib
from typing import Any, Mapping

from .fonts import FontHandle


@dataclass(frozen=True)
class BridgeSettings:
    """Options for one document build, read from the `[bridge]` table of a settings file."""

    generate_export_marked_nodes: bool = True
    build_prototype_flow: bool = True
    enable_auto_layout: bool = True
    screen_binding_namespace: str = ""
    server_render_image_scale: int = 3
    only_import_selected_pages: bool = False
    selected_page_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 1 <= self.server_render_image_scale <= 4:
            raise ValueError("server_render_image_scale must be within [1, 4]")
        if self.only_import_selected_pages and not self.selected_page_ids:
            raise ValueError("only_import_selected_pages requires selected_page_ids")

    @property
    def page_filter(self) -> frozenset[str] | None:
        if not self.only_import_selected_pages:
            return None
        return frozenset(self.selected_page_ids)


DEFAULT_SETTINGS = BridgeSettings()

_BOOL_KEYS = (
    "generate_export_marked_nodes",
    "build_prototype_flow",
    "enable_auto_layout",
    "only_import_selected_pages",
)


def validate_settings(overrides: Mapping[str, Any] | None = None) -> BridgeSettings:
    """Merge `[bridge]` overrides onto the defaults, rejecting unknown keys and wrong types."""

    raw: dict[str, Any] = asdict(DEFAULT_SETTINGS)
    if overrides:
        for key, value in overrides.items():
            if key not in raw:
                raise ValueError(f"Unknown bridge setting: {key}")
            raw[key] = value

    for key in _BOOL_KEYS:
        if not isinstance(raw[key], bool):
            raise ValueError(f"Setting `{key}` must be a boolean")
    if not isinstance(raw["screen_binding_namespace"], str):
        raise ValueError("Setting `screen_binding_namespace` must be a string")
    scale = raw["server_render_image_scale"]
    if isinstance(scale, bool) or not isinstance(scale, int):
        raise ValueError("Setting `server_render_image_scale` must be an integer")
    pages = raw["selected_page_ids"]
    if isinstance(pages, str) or not all(isinstance(item, str) for item in pages):
        raise ValueError("Setting `selected_page_ids` must be a list of strings")

    return BridgeSettings(
        generate_export_marked_nodes=raw["generate_export_marked_nodes"],
        build_prototype_flow=raw["build_prototype_flow"],
        enable_auto_layout=raw["enable_auto_layout"],
        screen_binding_namespace=raw["screen_binding_namespace"].strip(),
        server_render_image_scale=scale,
        only_import_selected_pages=raw["only_import_selected_pages"],
        selected_page_ids=tuple(pages),
    )


def load_settings(path: str | Path) -> BridgeSettings:
    raw = _read_toml(path)
    bridge = raw.get("bridge", {})
    if not isinstance(bridge, dict):
        raise ValueError("`[bridge]` must be a table")
    return validate_settings(bridge)


def load_font_catalog(path: str | Path) -> tuple[FontHandle, ...]:
    """Fonts declared as `[[fonts]]` entries (family, weight, asset)."""

    raw = _read_toml(path)
    entries = raw.get("fonts", [])
    if not isinstance(entries, list):
        raise ValueError("`fonts` must be an array of tables")
    fonts: list[FontHandle] = []
    for entry in entries:
        try:
            fonts.append(
                FontHandle(
                    family=str(entry["family"]),
                    weight=int(entry.get("weight", 400)),
                    asset_name=str(entry["asset"]),
                )
            )
        except KeyError as exc:
            raise ValueError(f"font entry missing required field: {exc.args[0]}") from exc
    return tuple(fonts)


def _read_toml(path: str | Path) -> dict[str, Any]:
    settings_path = Path(path)
    if not settings_path.exists():
        raise FileNotFoundError(f"settings file not found: {settings_path}")
    with settings_path.open("rb") as f:
        return tomllib.load(f)
