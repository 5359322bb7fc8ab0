from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from figscene_core.core import (
    DEFAULT_SETTINGS,
    DocumentValidationError,
    FontMap,
    build_document,
    generate_font_map,
    load_document,
    load_font_catalog,
    load_settings,
    validate_document,
)
from figscene_ui import TemplateExporter, build_manifest


def main() -> None:
    parser = argparse.ArgumentParser(prog="figscene")
    parser.add_argument("--verbose", action="store_true", help="Log build progress and warnings.")
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Translate a design document (REST JSON) into scene templates.")
    build.add_argument("document", type=Path)
    build.add_argument("--out", type=Path, required=True)
    build.add_argument("--settings", type=Path, default=None, help="TOML file with a [bridge] table.")
    build.add_argument("--fonts", type=Path, default=None, help="TOML file with [[fonts]] entries.")
    build.add_argument("--no-preview", action="store_true", help="Skip PNG wireframes for screens.")

    check = sub.add_parser("validate", help="Check a design document for structural errors.")
    check.add_argument("document", type=Path)

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "validate":
        report = validate_document(load_document(args.document))
        print(json.dumps({"ok": report.ok, "errors": report.errors, "warnings": report.warnings}, indent=2))
        if not report.ok:
            raise SystemExit(1)
        return

    if args.command == "build":
        document = load_document(args.document)
        settings = load_settings(args.settings) if args.settings is not None else DEFAULT_SETTINGS
        font_map = FontMap()
        if args.fonts is not None:
            font_map = generate_font_map(document, load_font_catalog(args.fonts))

        exporter = TemplateExporter(args.out, previews=not args.no_preview)
        try:
            result = build_document(
                document,
                settings,
                font_map=font_map,
                persist=lambda entry: exporter.write_template(entry.kind, entry.name, entry.root),
            )
        except DocumentValidationError as exc:
            print(json.dumps({"ok": False, "errors": exc.report.errors}, indent=2))
            raise SystemExit(1) from exc
        except Exception:
            exporter.rollback()
            raise

        manifest = build_manifest(result.as_dict(), exporter.bundles)
        manifest_path = args.out / "manifest.json"
        manifest_path.write_text(json.dumps(manifest, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        print(json.dumps(result.as_dict(), indent=2, sort_keys=True))
        return

    raise RuntimeError(f"unsupported command: {args.command}")


if __name__ == "__main__":
    main()
