from __future__ import annotations

from dataclasses import dataclass

from .document import DesignDocument, DesignNode


@dataclass(frozen=True)
class ValidationReport:
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


class DocumentValidationError(ValueError):
    def __init__(self, report: ValidationReport) -> None:
        self.report = report
        super().__init__(f"Document validation failed: {'; '.join(report.errors)}")


def validate_document(document: DesignDocument) -> ValidationReport:
    """Structural checks that must hold before the scene walk starts."""

    errors: list[str] = []
    warnings: list[str] = []

    seen: set[str] = set()
    for node in document.document.iter_tree():
        if node.node_id in seen:
            errors.append(f"Duplicate node id `{node.node_id}`")
        seen.add(node.node_id)

    for page in document.pages:
        if page.node_type != "CANVAS":
            errors.append(f"Top-level node `{page.node_id}` must be a page (CANVAS), got {page.node_type}")
            continue
        for child in page.child_nodes:
            _check_subtree(child, (page.node_id,), errors, warnings, seen, document)

    component_edges: dict[str, tuple[str, ...]] = {}
    for node in document.document.iter_tree():
        if node.node_type != "COMPONENT":
            continue
        component_edges[node.node_id] = tuple(
            sorted(
                {
                    inner.component_id
                    for inner in node.iter_tree()
                    if inner is not node and inner.node_type == "INSTANCE" and inner.component_id
                }
            )
        )
    cycle = _detect_cycle(component_edges)
    if cycle:
        errors.append(f"Component nesting cycle detected: {' -> '.join(cycle)}")

    return ValidationReport(errors=tuple(errors), warnings=tuple(warnings))


def require_valid_document(document: DesignDocument) -> ValidationReport:
    report = validate_document(document)
    if report.errors:
        raise DocumentValidationError(report)
    return report


def _check_subtree(
    node: DesignNode,
    ancestors: tuple[str, ...],
    errors: list[str],
    warnings: list[str],
    known_ids: set[str],
    document: DesignDocument,
) -> None:
    if node.relative_transform is None or node.size is None:
        errors.append(f"Node `{node.node_id}` ({node.name}) is missing relativeTransform/size")
    if node.node_type == "UNKNOWN":
        warnings.append(f"Node `{node.node_id}` ({node.name}) has an unrecognised type and will be skipped")
    if node.node_type == "INSTANCE":
        if node.component_id is None:
            warnings.append(f"Instance `{node.node_id}` has no componentId")
        elif node.component_id == node.node_id or node.component_id in ancestors:
            errors.append(f"Instance `{node.node_id}` references itself or an ancestor (`{node.component_id}`)")
        elif node.component_id not in known_ids and node.component_id not in document.components:
            warnings.append(f"Instance `{node.node_id}` references undefined component `{node.component_id}`")
    lineage = ancestors + (node.node_id,)
    for child in node.child_nodes:
        _check_subtree(child, lineage, errors, warnings, known_ids, document)


def _detect_cycle(edges: dict[str, tuple[str, ...]]) -> tuple[str, ...] | None:
    visited: set[str] = set()
    active: set[str] = set()
    trail: list[str] = []

    def dfs(node: str) -> tuple[str, ...] | None:
        visited.add(node)
        active.add(node)
        trail.append(node)
        for dep in edges.get(node, ()):
            if dep not in visited:
                cycle = dfs(dep)
                if cycle:
                    return cycle
            elif dep in active:
                idx = trail.index(dep)
                return tuple(trail[idx:] + [dep])
        active.remove(node)
        trail.pop()
        return None

    for node in sorted(edges.keys()):
        if node in visited:
            continue
        cycle = dfs(node)
        if cycle:
            return cycle
    return None
