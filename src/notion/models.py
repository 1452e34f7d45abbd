"""Pydantic models for Notion API data.

Column definitions are a tagged union keyed on ``type``: every variant carries
only the configuration its type needs. Unknown types are kept as
``OpaqueColumn`` so schema drift in Notion never drops a column.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Discriminator, Field, Tag, model_validator

from src.notion.enums import PARAMETERLESS_TYPES


class SelectOption(BaseModel):
    """A select or multi-select option with an optional colour."""

    name: str = Field(..., min_length=1, description="Option label")
    color: str | None = Field(None, description="Notion option colour")


class RelationConfig(BaseModel):
    """Target of a relation column."""

    target_database_id: str | None = Field(None, description="Related database ID")
    synced_property_name: str | None = Field(
        None,
        description="Name of the mirrored property for two-way relations",
    )


class RollupConfig(BaseModel):
    """Aggregation settings for a rollup column."""

    relation_property_name: str | None = Field(None, description="Relation to roll up")
    rollup_property_name: str | None = Field(None, description="Property on the related rows")
    function: str | None = Field(None, description="Aggregation function, e.g. count or sum")


class SimpleColumn(BaseModel):
    """A column whose type needs no configuration."""

    name: str | None = Field(None, description="Column name")
    type: Literal[
        "title",
        "rich_text",
        "checkbox",
        "date",
        "url",
        "email",
        "phone_number",
        "files",
        "people",
        "created_time",
        "last_edited_time",
        "created_by",
        "last_edited_by",
    ]


class SelectColumn(BaseModel):
    """A select or multi-select column."""

    name: str | None = Field(None, description="Column name")
    type: Literal["select", "multi_select"]
    options: list[str | SelectOption] = Field(default_factory=list)


class NumberColumn(BaseModel):
    """A number column."""

    name: str | None = Field(None, description="Column name")
    type: Literal["number"]
    number_format: str = Field("number", description="Notion number format")


class RelationColumn(BaseModel):
    """A relation column pointing at another database."""

    name: str | None = Field(None, description="Column name")
    type: Literal["relation"]
    relation: RelationConfig | None = None


class FormulaColumn(BaseModel):
    """A formula column, computed by Notion."""

    name: str | None = Field(None, description="Column name")
    type: Literal["formula"]
    formula_expression: str | None = Field(None, description="Notion formula expression")


class RollupColumn(BaseModel):
    """A rollup column, computed by Notion."""

    name: str | None = Field(None, description="Column name")
    type: Literal["rollup"]
    rollup: RollupConfig | None = None


class OpaqueColumn(BaseModel):
    """A column of a type this service does not interpret."""

    name: str | None = Field(None, description="Column name")
    type: str


_CONFIGURED_TAGS = {
    "select": "select",
    "multi_select": "select",
    "number": "number",
    "relation": "relation",
    "formula": "formula",
    "rollup": "rollup",
}


def _column_tag(value: Any) -> str:
    """Pick the column variant for a raw or parsed column definition."""
    column_type = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if column_type in PARAMETERLESS_TYPES:
        return "simple"
    return _CONFIGURED_TAGS.get(column_type, "opaque")


ColumnDefinition = Annotated[
    Annotated[SimpleColumn, Tag("simple")]
    | Annotated[SelectColumn, Tag("select")]
    | Annotated[NumberColumn, Tag("number")]
    | Annotated[RelationColumn, Tag("relation")]
    | Annotated[FormulaColumn, Tag("formula")]
    | Annotated[RollupColumn, Tag("rollup")]
    | Annotated[OpaqueColumn, Tag("opaque")],
    Discriminator(_column_tag),
]


class DatabaseSchema(BaseModel):
    """Canonical schema of a Notion database.

    Column names are the mapping keys; each definition's ``name`` is kept in
    sync with its key.
    """

    id: str = Field(..., description="Notion database ID")
    name: str = Field(..., description="Database title")
    columns: dict[str, ColumnDefinition] = Field(default_factory=dict)
    created_time: str | None = Field(None, description="Creation timestamp")
    last_edited_time: str | None = Field(None, description="Last edit timestamp")
    url: str | None = Field(None, description="Notion URL")

    @model_validator(mode="after")
    def _sync_column_names(self) -> "DatabaseSchema":
        for column_name, column in self.columns.items():
            column.name = column_name
        return self

    @property
    def title_column(self) -> str | None:
        """Name of the title-typed column, if any."""
        for column_name, column in self.columns.items():
            if column.type == "title":
                return column_name
        return None


class DatabaseSpec(BaseModel):
    """Options for creating a new database."""

    name: str = Field(..., min_length=1, description="Database title")
    columns: dict[str, ColumnDefinition] = Field(default_factory=dict)
    parent_page_id: str | None = Field(None, description="Parent page ID")
    icon: dict[str, Any] | None = Field(None, description="Notion icon object")
    cover: dict[str, Any] | None = Field(None, description="Notion cover object")


class DatabaseSummary(BaseModel):
    """Basic information about a database visible to the integration."""

    id: str = Field(..., min_length=1, description="Notion database ID")
    name: str = Field(..., description="Database title")
    url: str | None = Field(None, description="Notion URL")
    created_time: str | None = Field(None, description="Creation timestamp")
    last_edited_time: str | None = Field(None, description="Last edit timestamp")


class DiscoveredSchema(DatabaseSchema):
    """A live schema found by discovery, or a database whose schema could not be read."""

    error: str | None = Field(None, description="Why the schema could not be retrieved")


class Entry(BaseModel):
    """A row of a dynamic database with plain values keyed by column name."""

    id: str = Field(..., min_length=1, description="Notion page ID")
    values: dict[str, Any] = Field(default_factory=dict)
    created_time: str | None = Field(None, description="Creation timestamp")
    last_edited_time: str | None = Field(None, description="Last edit timestamp")
    url: str | None = Field(None, description="Notion page URL")
    archived: bool = Field(default=False)


class EntryQuery(BaseModel):
    """Filter, sort and paging options for listing entries.

    ``filters`` maps column names to predicates: a plain value means equality
    (or ``contains`` for text and multi-select), while date and number columns
    also accept an object such as ``{"after": "2025-01-01"}``.
    """

    filters: dict[str, Any] = Field(default_factory=dict)
    sorts: list[dict[str, Any]] | None = Field(None)
    page_size: int | None = Field(None, ge=1, le=100)
    start_cursor: str | None = Field(None)


class EntryPage(BaseModel):
    """One page of entries from a database query."""

    entries: list[Entry] = Field(default_factory=list)
    has_more: bool = Field(default=False)
    next_cursor: str | None = Field(None)
