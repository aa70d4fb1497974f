"""Architecture and entity-relationship diagrams rendered as Mermaid text."""
from __future__ import annotations

import re

from src.shared.models.consultant import (
    ArchitectureDiagram,
    DatabaseSchema,
    DiagramEdge,
    DiagramNode,
    LoadLevel,
    ProjectType,
    RecommendationResult,
    RelationshipType,
    UserRequirements,
)

ER_CARDINALITY: dict[RelationshipType, str] = {
    RelationshipType.ONE_TO_ONE: "||--||",
    RelationshipType.ONE_TO_MANY: "||--o{",
    RelationshipType.MANY_TO_MANY: "}o--o{",
}


def _mermaid_id(node_id: str) -> str:
    return node_id.replace("-", "_")


def _mermaid_label(text: str) -> str:
    return text.replace('"', "'")


def build_architecture_diagram(
    result: RecommendationResult,
    requirements: UserRequirements,
) -> ArchitectureDiagram:
    """Lay out the components around the primary database.

    Positions are percentages of the drawing area.  Without a primary
    recommendation the diagram is empty.
    """
    primary = result.primary
    if primary is None:
        return ArchitectureDiagram()

    high = requirements.expected_load == LoadLevel.HIGH
    has_cache = requirements.expected_load != LoadLevel.LOW
    has_replicas = high and "High Availability" in primary.database.features
    has_analytics = requirements.project_type == ProjectType.ANALYTICS_PLATFORM

    nodes = [DiagramNode(id="users", name="Users", x=50, y=10)]
    if high:
        nodes.append(DiagramNode(id="loadbalancer", name="Load Balancer", x=50, y=25))
    nodes.append(DiagramNode(id="app", name="Application Server", x=50, y=40 if high else 30))
    if has_cache:
        nodes.append(DiagramNode(id="cache", name="Cache Layer", x=25, y=55 if high else 50))
    nodes.append(DiagramNode(id="primary-db", name=primary.database.name, x=50, y=70 if high else 60))
    if has_replicas:
        nodes.append(DiagramNode(id="read-replica", name="Read Replicas", x=75, y=70))
    if has_analytics:
        nodes.append(DiagramNode(id="analytics", name="Analytics Engine", x=75, y=55))

    edges = [DiagramEdge(source="users", target="loadbalancer" if high else "app", label="HTTP/HTTPS")]
    if high:
        edges.append(DiagramEdge(source="loadbalancer", target="app", label="Distribute Load"))
    if has_cache:
        edges.append(DiagramEdge(source="app", target="cache", label="Cache Queries"))
    edges.append(DiagramEdge(source="app", target="primary-db", label="Read/Write"))
    if has_replicas:
        edges.append(DiagramEdge(source="primary-db", target="read-replica", label="Replication"))
    if has_analytics:
        edges.append(DiagramEdge(source="primary-db", target="analytics", label="Analytical Queries"))

    return ArchitectureDiagram(nodes=nodes, edges=edges, mermaid=render_flowchart(nodes, edges))


def render_flowchart(nodes: list[DiagramNode], edges: list[DiagramEdge]) -> str:
    lines = ["flowchart TD"]
    lines += [f'    {_mermaid_id(n.id)}["{_mermaid_label(n.name)}"]' for n in nodes]
    lines += [
        f"    {_mermaid_id(e.source)} -->|{_mermaid_label(e.label)}| {_mermaid_id(e.target)}"
        for e in edges
    ]
    return "\n".join(lines) + "\n"


def _er_type(column_type: str) -> str:
    # Mermaid attribute types allow word characters only
    return re.sub(r"\W", "", column_type) or "string"


def render_er_diagram(schema: DatabaseSchema) -> str:
    """Render *schema* as a Mermaid ``erDiagram``."""
    foreign_keys = {
        (table.name, column.name)
        for table in schema.tables
        for column in table.columns
        if column.name.endswith("_id") and column.name != "_id"
    }
    lines = ["erDiagram"]
    for table in schema.tables:
        lines.append(f"    {table.name} {{")
        for column in table.columns:
            keys = []
            if column.name in table.primary_key:
                keys.append("PK")
            if (table.name, column.name) in foreign_keys:
                keys.append("FK")
            suffix = f" {', '.join(keys)}" if keys else ""
            lines.append(f"        {_er_type(column.type)} {column.name}{suffix}")
        lines.append("    }")
    for rel in schema.relationships:
        label = rel.name or rel.to_column
        lines.append(
            f'    {rel.from_table} {ER_CARDINALITY[rel.type]} {rel.to_table} : "{label}"'
        )
    return "\n".join(lines) + "\n"
