"""Template-based starter schema generation.

A use-case description is mapped to one of four domain templates by
keyword.  Each template entity becomes a table named by its lowercased
plural (``users``, ``categories``) with an id column, per-entity columns,
foreign key columns for the template relationships and timestamps.  Relational targets (SQL, NewSQL) get SQL
type spellings, views and, for PostgreSQL, helper functions; every other
target gets document-store spellings.

The generated DDL is presentation text and is never executed.  Output is
deterministic: the same input always renders byte-identical SQL.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from textwrap import dedent
from typing import Any

from src.consultant.services.diagrams import render_er_diagram
from src.shared.models.consultant import (
    ColumnDefinition,
    DatabaseSchema,
    FunctionDefinition,
    IndexDefinition,
    LoadLevel,
    ParameterDefinition,
    RelationshipDefinition,
    RelationshipType,
    SchemaResponse,
    SchemaTarget,
    TableSchema,
    UseCaseAnalysis,
    UserRequirements,
    ViewDefinition,
)

logger = logging.getLogger("consultant.schema")

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

ECOMMERCE = "e-commerce"
BLOG = "blog"
CRM = "crm"
SOCIAL_MEDIA = "social-media"


@dataclass(frozen=True)
class SchemaTemplate:
    entities: tuple[str, ...]
    relationships: tuple[tuple[str, str, RelationshipType], ...]


_1N = RelationshipType.ONE_TO_MANY
_11 = RelationshipType.ONE_TO_ONE
_NN = RelationshipType.MANY_TO_MANY

SCHEMA_TEMPLATES: dict[str, SchemaTemplate] = {
    ECOMMERCE: SchemaTemplate(
        entities=("User", "Product", "Category", "Order", "OrderItem", "Payment", "Address", "Review"),
        relationships=(
            ("User", "Order", _1N),
            ("Order", "OrderItem", _1N),
            ("Product", "OrderItem", _1N),
            ("Category", "Product", _1N),
            ("User", "Address", _1N),
            ("User", "Review", _1N),
            ("Product", "Review", _1N),
            ("Order", "Payment", _11),
        ),
    ),
    BLOG: SchemaTemplate(
        entities=("User", "Post", "Category", "Tag", "Comment", "Media"),
        relationships=(
            ("User", "Post", _1N),
            ("Post", "Comment", _1N),
            ("User", "Comment", _1N),
            ("Category", "Post", _1N),
            ("Post", "Tag", _NN),
            ("Post", "Media", _1N),
        ),
    ),
    CRM: SchemaTemplate(
        entities=("Contact", "Company", "Deal", "Activity", "Task", "Note", "User", "Pipeline"),
        relationships=(
            ("Company", "Contact", _1N),
            ("Contact", "Deal", _1N),
            ("User", "Deal", _1N),
            ("Deal", "Activity", _1N),
            ("Contact", "Task", _1N),
            ("Contact", "Note", _1N),
            ("Pipeline", "Deal", _1N),
        ),
    ),
    SOCIAL_MEDIA: SchemaTemplate(
        entities=("User", "Post", "Comment", "Like", "Follow", "Message", "Group", "Event"),
        relationships=(
            ("User", "Post", _1N),
            ("Post", "Comment", _1N),
            ("User", "Comment", _1N),
            ("User", "Like", _1N),
            ("Post", "Like", _1N),
            ("User", "Follow", _1N),
            ("User", "Message", _1N),
            ("User", "Group", _NN),
        ),
    ),
}

PATTERN_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("ecommerce", "shop", "store"), ECOMMERCE),
    (("blog", "cms", "content"), BLOG),
    (("crm", "customer", "sales"), CRM),
    (("social", "community", "network"), SOCIAL_MEDIA),
]

DEFAULT_PATTERN = ECOMMERCE

# ---------------------------------------------------------------------------
# Use case analysis tables
# ---------------------------------------------------------------------------

COMMON_ENTITIES: tuple[str, ...] = (
    "user", "customer", "product", "order", "payment", "address", "category",
    "post", "comment", "article", "blog", "tag", "media", "image", "file",
    "company", "contact", "deal", "lead", "opportunity", "task", "activity",
    "invoice", "transaction", "account", "profile", "setting", "notification",
    "message", "chat", "conversation", "group", "team", "project", "event",
    "booking", "reservation", "appointment", "schedule", "calendar",
    "inventory", "stock", "warehouse", "supplier", "vendor", "purchase",
)

DEFAULT_ENTITIES: tuple[str, ...] = ("User", "Item", "Category")

RELATIONSHIP_PHRASES: tuple[str, ...] = (
    "belongs to", "has many", "has one", "contains", "includes",
    "associated with", "linked to", "connected to", "part of",
)

BUSINESS_RULES: list[tuple[tuple[str, ...], str]] = [
    (("must", "required"), "Required field validation needed"),
    (("unique", "duplicate"), "Unique constraints required"),
    (("audit", "track"), "Audit trail required"),
    (("permission", "access"), "Access control needed"),
]

DATA_FLOWS: list[tuple[tuple[str, ...], str]] = [
    (("create", "add"), "Data creation workflow"),
    (("update", "edit"), "Data modification workflow"),
    (("delete", "remove"), "Data deletion workflow"),
    (("search", "find"), "Data retrieval workflow"),
]

SCALING_CONSIDERATIONS: list[tuple[tuple[str, ...], tuple[str, ...]]] = [
    (("million", "large scale"), ("Horizontal scaling required", "Database sharding consideration")),
    (("real-time", "live"), ("Real-time data synchronization",)),
    (("global", "worldwide"), ("Multi-region deployment",)),
]


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def detect_pattern(use_case: str) -> str:
    """Map a use case description to a template name."""
    lowered = use_case.lower()
    for keywords, pattern in PATTERN_KEYWORDS:
        if _contains_any(lowered, keywords):
            return pattern
    return DEFAULT_PATTERN


def analyze_use_case(description: str) -> UseCaseAnalysis:
    """Keyword analysis of a use case description."""
    text = description.lower()

    entities = [e.capitalize() for e in COMMON_ENTITIES if e in text]
    if not entities:
        entities = list(DEFAULT_ENTITIES)

    relationships = [f"Entities are {phrase}" for phrase in RELATIONSHIP_PHRASES if phrase in text]
    if "User" in entities and "Order" in entities:
        relationships.append("User has many Orders")
    if "Category" in entities and "Product" in entities:
        relationships.append("Category has many Products")

    scaling: list[str] = []
    for keywords, considerations in SCALING_CONSIDERATIONS:
        if _contains_any(text, keywords):
            scaling.extend(considerations)

    return UseCaseAnalysis(
        entities=entities,
        relationships=relationships,
        business_rules=[rule for keywords, rule in BUSINESS_RULES if _contains_any(text, keywords)],
        data_flow=[flow for keywords, flow in DATA_FLOWS if _contains_any(text, keywords)],
        scaling_considerations=scaling,
    )


def apply_requirements(analysis: UseCaseAnalysis, requirements: UserRequirements | None) -> UseCaseAnalysis:
    """Add scaling considerations implied by consultant requirements."""
    if requirements is None or requirements.expected_load != LoadLevel.HIGH:
        return analysis
    scaling = list(analysis.scaling_considerations)
    for item in ("Horizontal scaling required", "Database sharding consideration"):
        if item not in scaling:
            scaling.append(item)
    return analysis.model_copy(update={"scaling_considerations": scaling})


# ---------------------------------------------------------------------------
# Type spellings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TypeSpelling:
    id_column: str
    id_type: str
    id_default: str | None
    reference: str
    string: str
    text: str
    boolean: str
    integer: str
    timestamp: str
    now: str


RELATIONAL_TYPES = TypeSpelling(
    id_column="id",
    id_type="UUID",
    id_default="gen_random_uuid()",
    reference="UUID",
    string="VARCHAR",
    text="TEXT",
    boolean="BOOLEAN",
    integer="INTEGER",
    timestamp="TIMESTAMP",
    now="CURRENT_TIMESTAMP",
)

DOCUMENT_TYPES = TypeSpelling(
    id_column="_id",
    id_type="ObjectId",
    id_default=None,
    reference="ObjectId",
    string="String",
    text="String",
    boolean="Boolean",
    integer="Number",
    timestamp="Date",
    now="new Date()",
)


def _spelling(target: SchemaTarget) -> TypeSpelling:
    return RELATIONAL_TYPES if target.type.is_relational else DOCUMENT_TYPES


def _is_postgres(target: SchemaTarget) -> bool:
    return target.name.strip().lower() == "postgresql"


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def table_name(entity: str) -> str:
    """Lowercased plural: User -> users, Category -> categories, Address -> addresses."""
    name = entity.lower()
    if name.endswith("y") and name[-2:-1] not in ("a", "e", "i", "o", "u"):
        return f"{name[:-1]}ies"
    if name.endswith(("s", "x", "ch", "sh")):
        return f"{name}es"
    return f"{name}s"


def reference_column(entity: str) -> str:
    return f"{entity.lower()}_id"


def _entity_columns(entity: str, t: TypeSpelling) -> list[ColumnDefinition]:
    kind = entity.lower()
    if kind == "user":
        return [
            ColumnDefinition(name="email", type=t.string, nullable=False, length=255,
                             description="User email address"),
            ColumnDefinition(name="username", type=t.string, length=100, description="Username"),
            ColumnDefinition(name="first_name", type=t.string, length=100, description="First name"),
            ColumnDefinition(name="last_name", type=t.string, length=100, description="Last name"),
            ColumnDefinition(name="password_hash", type=t.string, nullable=False, length=255,
                             description="Hashed password"),
            ColumnDefinition(name="is_active", type=t.boolean, nullable=False,
                             default_value="true", description="Account status"),
        ]
    if kind == "product":
        return [
            ColumnDefinition(name="name", type=t.string, nullable=False, length=255,
                             description="Product name"),
            ColumnDefinition(name="description", type=t.text, description="Product description"),
            ColumnDefinition(name="price", type="DECIMAL", nullable=False, precision=10, scale=2,
                             description="Product price"),
            ColumnDefinition(name="sku", type=t.string, nullable=False, length=100,
                             description="Stock keeping unit"),
            ColumnDefinition(name="stock_quantity", type=t.integer, nullable=False,
                             default_value="0", description="Available stock"),
            ColumnDefinition(name="is_active", type=t.boolean, nullable=False,
                             default_value="true", description="Product status"),
        ]
    if kind == "order":
        return [
            ColumnDefinition(name="order_number", type=t.string, nullable=False, length=100,
                             description="Order number"),
            ColumnDefinition(name="status", type=t.string, nullable=False, length=50,
                             description="Order status"),
            ColumnDefinition(name="total_amount", type="DECIMAL", nullable=False, precision=10,
                             scale=2, description="Total amount"),
            ColumnDefinition(name="user_id", type=t.reference, nullable=False,
                             description="Customer ID"),
        ]
    return [
        ColumnDefinition(name="name", type=t.string, nullable=False, length=255,
                         description=f"{entity} name"),
        ColumnDefinition(name="description", type=t.text, description=f"{entity} description"),
        ColumnDefinition(name="is_active", type=t.boolean, nullable=False,
                         default_value="true", description="Status"),
    ]


def _indexes(name: str, columns: list[ColumnDefinition], target: SchemaTarget) -> list[IndexDefinition]:
    index_type = "BTREE" if _is_postgres(target) else None
    indexes: list[IndexDefinition] = []
    for column in columns:
        if column.name in ("email", "username", "sku"):
            unique = True
        elif column.name.endswith("_id") or column.name in ("status", "name"):
            unique = False
        else:
            continue
        indexes.append(IndexDefinition(
            name=f"idx_{name}_{column.name}",
            columns=[column.name],
            unique=unique,
            type=index_type,
        ))
    return indexes


def _timestamp_columns(t: TypeSpelling) -> list[ColumnDefinition]:
    return [
        ColumnDefinition(name="created_at", type=t.timestamp, nullable=False,
                         default_value=t.now, description="Creation timestamp"),
        ColumnDefinition(name="updated_at", type=t.timestamp, nullable=False,
                         default_value=t.now, description="Last update timestamp"),
    ]


def _id_column(t: TypeSpelling) -> ColumnDefinition:
    description = "Primary key" if t is RELATIONAL_TYPES else "Document ID"
    return ColumnDefinition(name=t.id_column, type=t.id_type, nullable=False,
                            default_value=t.id_default, description=description)


def _build_table(
    entity: str,
    parents: list[str],
    target: SchemaTarget,
) -> TableSchema:
    t = _spelling(target)
    name = table_name(entity)
    columns = [_id_column(t), *_entity_columns(entity, t)]
    existing = {column.name for column in columns}
    for parent in parents:
        column = reference_column(parent)
        if column not in existing:
            columns.append(ColumnDefinition(name=column, type=t.reference,
                                            description=f"Reference to {table_name(parent)}"))
            existing.add(column)
    columns += _timestamp_columns(t)
    return TableSchema(
        name=name,
        columns=columns,
        primary_key=[t.id_column],
        indexes=_indexes(name, columns, target),
    )


def _build_junction(parent: str, child: str, target: SchemaTarget) -> TableSchema:
    t = _spelling(target)
    name = f"{table_name(parent)}_{table_name(child)}"
    keys = [reference_column(parent), reference_column(child)]
    columns = [
        ColumnDefinition(name=keys[0], type=t.reference, nullable=False,
                         description=f"Reference to {table_name(parent)}"),
        ColumnDefinition(name=keys[1], type=t.reference, nullable=False,
                         description=f"Reference to {table_name(child)}"),
        ColumnDefinition(name="created_at", type=t.timestamp, nullable=False,
                         default_value=t.now, description="Creation timestamp"),
    ]
    return TableSchema(
        name=name,
        columns=columns,
        primary_key=keys,
        indexes=_indexes(name, columns, target),
    )


def _relationships(template: SchemaTemplate, target: SchemaTarget) -> list[RelationshipDefinition]:
    id_column = _spelling(target).id_column
    return [
        RelationshipDefinition(
            id=f"rel_{index}",
            from_table=table_name(parent),
            from_column=id_column,
            to_table=table_name(child),
            to_column=reference_column(parent),
            type=kind,
            name=f"{parent}_{child}_relationship",
        )
        for index, (parent, child, kind) in enumerate(template.relationships)
    ]


# ---------------------------------------------------------------------------
# Views and functions
# ---------------------------------------------------------------------------

USER_SUMMARY_VIEW = ViewDefinition(
    name="user_summary",
    query=dedent("""\
        SELECT
          id,
          email,
          CONCAT(first_name, ' ', last_name) AS full_name,
          is_active,
          created_at
        FROM users
        WHERE is_active = true"""),
    description="Active users summary",
)

PRODUCT_CATALOG_VIEW = ViewDefinition(
    name="product_catalog",
    query=dedent("""\
        SELECT
          p.id,
          p.name,
          p.description,
          p.price,
          p.stock_quantity,
          c.name AS category_name
        FROM products p
        LEFT JOIN categories c ON p.category_id = c.id
        WHERE p.is_active = true"""),
    description="Active products with category information",
)

UPDATE_TIMESTAMP_FUNCTION = FunctionDefinition(
    name="update_updated_at_column",
    parameters=[],
    return_type="TRIGGER",
    language="plpgsql",
    body=dedent("""\
        BEGIN
          NEW.updated_at = CURRENT_TIMESTAMP;
          RETURN NEW;
        END;"""),
)

CREATE_USER_FUNCTION = FunctionDefinition(
    name="create_user",
    parameters=[
        ParameterDefinition(name="p_email", type="VARCHAR"),
        ParameterDefinition(name="p_password", type="VARCHAR"),
        ParameterDefinition(name="p_first_name", type="VARCHAR", default_value="NULL"),
        ParameterDefinition(name="p_last_name", type="VARCHAR", default_value="NULL"),
    ],
    return_type="UUID",
    language="plpgsql",
    body=dedent("""\
        DECLARE
          user_id UUID;
        BEGIN
          INSERT INTO users (email, password_hash, first_name, last_name)
          VALUES (p_email, crypt(p_password, gen_salt('bf')), p_first_name, p_last_name)
          RETURNING id INTO user_id;
          RETURN user_id;
        END;"""),
)


def _views(tables: list[TableSchema], target: SchemaTarget) -> list[ViewDefinition]:
    if not target.type.is_relational:
        return []
    names = {table.name for table in tables}
    views: list[ViewDefinition] = []
    if "users" in names:
        views.append(USER_SUMMARY_VIEW)
    if "products" in names:
        views.append(PRODUCT_CATALOG_VIEW)
    return views


def _functions(tables: list[TableSchema], target: SchemaTarget) -> list[FunctionDefinition]:
    if not _is_postgres(target):
        return []
    functions = [UPDATE_TIMESTAMP_FUNCTION]
    if any(table.name == "users" for table in tables):
        functions.append(CREATE_USER_FUNCTION)
    return functions


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


def schema_name(use_case: str) -> str:
    base = re.sub(r"[^a-z0-9]+", "_", use_case.lower()).strip("_")[:48].rstrip("_")
    return f"{base or 'schema'}_db"


def generate_schema(
    use_case: str,
    target: SchemaTarget | None = None,
) -> DatabaseSchema:
    """Generate a starter schema for *use_case* on *target*.

    Tables follow the detected template's entities in template order,
    followed by junction tables for many-to-many relationships.  The
    tables depend only on the use case and target; requirements affect
    the analysis attached by :func:`design_schema`.
    """
    target = target or SchemaTarget()
    pattern = detect_pattern(use_case)
    template = SCHEMA_TEMPLATES[pattern]

    parents: dict[str, list[str]] = {entity: [] for entity in template.entities}
    junctions: list[tuple[str, str]] = []
    for parent, child, kind in template.relationships:
        if kind == RelationshipType.MANY_TO_MANY:
            junctions.append((parent, child))
        else:
            parents[child].append(parent)

    tables = [_build_table(entity, parents[entity], target) for entity in template.entities]
    tables += [_build_junction(parent, child, target) for parent, child in junctions]

    logger.debug(
        "Generated %s schema with %d tables for %s",
        pattern, len(tables), target.name,
    )
    return DatabaseSchema(
        name=schema_name(use_case),
        tables=tables,
        relationships=_relationships(template, target),
        views=_views(tables, target),
        functions=_functions(tables, target),
    )


# ---------------------------------------------------------------------------
# SQL rendering
# ---------------------------------------------------------------------------


def _quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def _column_sql(column: ColumnDefinition) -> str:
    sql = f"  {column.name} {column.type}"
    if column.length:
        sql += f"({column.length})"
    if column.precision and column.scale is not None:
        sql += f"({column.precision}, {column.scale})"
    if not column.nullable:
        sql += " NOT NULL"
    if column.default_value:
        sql += f" DEFAULT {column.default_value}"
    return sql


def _create_table_sql(table: TableSchema) -> str:
    lines = [_column_sql(column) for column in table.columns]
    if table.primary_key:
        lines.append(f"  PRIMARY KEY ({', '.join(table.primary_key)})")
    sql = f"CREATE TABLE {table.name} (\n" + ",\n".join(lines) + "\n);"
    for column in table.columns:
        if column.description:
            sql += f"\nCOMMENT ON COLUMN {table.name}.{column.name} IS {_quote(column.description)};"
    return sql


def _create_index_sql(table: TableSchema, index: IndexDefinition) -> str:
    unique = "UNIQUE " if index.unique else ""
    using = f" USING {index.type}" if index.type else ""
    return f"CREATE {unique}INDEX {index.name} ON {table.name}{using} ({', '.join(index.columns)});"


def _foreign_key_sql(table: str, column: str, ref_table: str, ref_column: str) -> str:
    return (
        f"ALTER TABLE {table}\n"
        f"  ADD CONSTRAINT fk_{table}_{column}\n"
        f"  FOREIGN KEY ({column}) REFERENCES {ref_table}({ref_column});"
    )


def _relationship_sql(schema: DatabaseSchema, rel: RelationshipDefinition) -> list[str]:
    if rel.type != RelationshipType.MANY_TO_MANY:
        return [_foreign_key_sql(rel.to_table, rel.to_column, rel.from_table, rel.from_column)]
    junction_name = f"{rel.from_table}_{rel.to_table}"
    junction = next((table for table in schema.tables if table.name == junction_name), None)
    if junction is None:
        return []
    parent_column, child_column = junction.primary_key
    return [
        _foreign_key_sql(junction_name, parent_column, rel.from_table, rel.from_column),
        _foreign_key_sql(junction_name, child_column, rel.to_table, rel.from_column),
    ]


def _function_sql(function: FunctionDefinition) -> str:
    params = ", ".join(
        f"{p.name} {p.type}" + (f" DEFAULT {p.default_value}" if p.default_value else "")
        for p in function.parameters
    )
    return (
        f"CREATE OR REPLACE FUNCTION {function.name}({params})\n"
        f"RETURNS {function.return_type}\n"
        f"LANGUAGE {function.language}\n"
        f"AS $$\n{function.body}\n$$;"
    )


def generate_sql_script(schema: DatabaseSchema, target: SchemaTarget | None = None) -> str:
    """Render *schema* as a DDL script."""
    target = target or SchemaTarget()
    parts = [f"-- Database Schema for {schema.name}\n-- Generated for {target.name}\n"]
    parts += [_create_table_sql(table) + "\n" for table in schema.tables]

    indexes = [_create_index_sql(table, index) for table in schema.tables for index in table.indexes]
    if indexes:
        parts.append("\n".join(indexes) + "\n")

    constraints = [sql for rel in schema.relationships for sql in _relationship_sql(schema, rel)]
    if constraints:
        parts.append("\n".join(constraints) + "\n")

    parts += [f"CREATE VIEW {view.name} AS\n{view.query};\n" for view in schema.views]
    parts += [_function_sql(function) + "\n" for function in schema.functions]
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Document store validators
# ---------------------------------------------------------------------------

BSON_TYPES: dict[str, str] = {
    "VARCHAR": "string",
    "TEXT": "string",
    "INTEGER": "int",
    "DECIMAL": "decimal",
    "BOOLEAN": "bool",
    "TIMESTAMP": "date",
    "UUID": "string",
    "String": "string",
    "Number": "int",
    "Boolean": "bool",
    "Date": "date",
    "ObjectId": "objectId",
}


def generate_document_schema(schema: DatabaseSchema) -> dict[str, Any]:
    """Render each table as a collection with a ``$jsonSchema`` validator."""
    collections: dict[str, Any] = {}
    for table in schema.tables:
        properties: dict[str, Any] = {}
        for column in table.columns:
            prop: dict[str, Any] = {"bsonType": BSON_TYPES.get(column.type, "string")}
            if column.description:
                prop["description"] = column.description
            properties[column.name] = prop
        collections[table.name] = {
            "name": table.name,
            "validator": {
                "$jsonSchema": {
                    "bsonType": "object",
                    "required": [c.name for c in table.columns if not c.nullable],
                    "properties": properties,
                }
            },
            "indexes": [
                {
                    "key": {column: 1 for column in index.columns},
                    "unique": index.unique,
                    "name": index.name,
                }
                for index in table.indexes
            ],
        }
    return collections


# ---------------------------------------------------------------------------
# Full design
# ---------------------------------------------------------------------------


def design_schema(
    use_case: str,
    target: SchemaTarget | None = None,
    requirements: UserRequirements | None = None,
) -> SchemaResponse:
    """Analysis, schema and rendered artifacts for one use case.

    Relational targets get the SQL script; other targets get the
    collection validators instead.
    """
    target = target or SchemaTarget()
    schema = generate_schema(use_case, target)
    relational = target.type.is_relational
    return SchemaResponse(
        pattern=detect_pattern(use_case),
        target=target,
        database_schema=schema,
        analysis=apply_requirements(analyze_use_case(use_case), requirements),
        sql=generate_sql_script(schema, target) if relational else "",
        document_schema=None if relational else generate_document_schema(schema),
        er_diagram=render_er_diagram(schema),
    )
