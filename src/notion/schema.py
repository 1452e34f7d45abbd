"""Conversion between canonical column definitions and Notion property schemas.

Canonical definitions are the tagged models in ``src.notion.models``; the wire
format is the ``properties`` object Notion accepts when creating or updating a
database and returns when retrieving one.
"""

import logging
from typing import Any

from src.dynamic.exceptions import ValidationError
from src.notion.enums import PARAMETERLESS_TYPES, PropertyType
from src.notion.models import (
    ColumnDefinition,
    DatabaseSchema,
    FormulaColumn,
    NumberColumn,
    OpaqueColumn,
    RelationColumn,
    RelationConfig,
    RollupColumn,
    RollupConfig,
    SelectColumn,
    SelectOption,
    SimpleColumn,
)

logger = logging.getLogger(__name__)

DEFAULT_NUMBER_FORMAT = "number"
DEFAULT_OPTION_COLOR = "default"
UNTITLED_DATABASE = "Untitled Database"


def _option_to_wire(option: str | SelectOption) -> dict[str, Any]:
    """Build a select option payload from a bare name or an option object."""
    if isinstance(option, str):
        return {"name": option.strip()}
    return {"name": option.name.strip(), "color": option.color or DEFAULT_OPTION_COLOR}


def to_wire_column(name: str, column: ColumnDefinition) -> dict[str, Any] | None:  # noqa: PLR0911
    """Build the Notion property definition for a canonical column.

    :param name: Column name, used in error messages.
    :param column: Canonical column definition.
    :returns: Notion property definition, or None for types Notion cannot create.
    :raises ValidationError: If a relation, formula or rollup lacks required settings.
    """
    match column:
        case SelectColumn():
            return {column.type: {"options": [_option_to_wire(o) for o in column.options]}}
        case NumberColumn():
            return {"number": {"format": column.number_format or DEFAULT_NUMBER_FORMAT}}
        case RelationColumn():
            relation = column.relation
            if relation is None or not relation.target_database_id:
                raise ValidationError(f"Relation column {name!r} requires target_database_id")
            if relation.synced_property_name:
                return {
                    "relation": {
                        "database_id": relation.target_database_id,
                        "type": "dual_property",
                        "dual_property": {"synced_property_name": relation.synced_property_name},
                    }
                }
            return {
                "relation": {
                    "database_id": relation.target_database_id,
                    "type": "single_property",
                    "single_property": {},
                }
            }
        case FormulaColumn():
            if not column.formula_expression:
                raise ValidationError(f"Formula column {name!r} requires formula_expression")
            return {"formula": {"expression": column.formula_expression}}
        case RollupColumn():
            rollup = column.rollup
            if (
                rollup is None
                or not rollup.relation_property_name
                or not rollup.rollup_property_name
                or not rollup.function
            ):
                raise ValidationError(
                    f"Rollup column {name!r} requires relation_property_name, "
                    "rollup_property_name and function"
                )
            return {
                "rollup": {
                    "relation_property_name": rollup.relation_property_name,
                    "rollup_property_name": rollup.rollup_property_name,
                    "function": rollup.function,
                }
            }
        case SimpleColumn():
            return {column.type: {}}
        case _:
            logger.warning(f"Skipping column with unsupported type: name={name}, type={column.type}")
            return None


def to_wire_columns(columns: dict[str, ColumnDefinition]) -> dict[str, Any]:
    """Build the Notion properties object for a mapping of columns.

    :param columns: Column name to canonical definition.
    :returns: Notion properties object.
    :raises ValidationError: If any column lacks required settings.
    """
    properties: dict[str, Any] = {}

    for name, column in columns.items():
        wire = to_wire_column(name, column)
        if wire is not None:
            properties[name] = wire

    return properties


def from_wire_column(name: str, prop: dict[str, Any]) -> ColumnDefinition | None:  # noqa: PLR0911
    """Build a canonical column from a Notion property definition.

    Unknown types are preserved as ``OpaqueColumn``.

    :param name: Property name.
    :param prop: Notion property definition from a retrieved database.
    :returns: Canonical column, or None if the property carries no type.
    """
    prop_type = prop.get("type")
    if not prop_type:
        return None

    config = prop.get(prop_type) or {}

    match prop_type:
        case PropertyType.SELECT | PropertyType.MULTI_SELECT:
            options = [
                SelectOption(name=option["name"], color=option.get("color"))
                for option in config.get("options", [])
                if option.get("name")
            ]
            return SelectColumn(name=name, type=prop_type, options=options)
        case PropertyType.NUMBER:
            return NumberColumn(
                name=name,
                type="number",
                number_format=config.get("format") or DEFAULT_NUMBER_FORMAT,
            )
        case PropertyType.RELATION:
            synced = (config.get("dual_property") or {}).get("synced_property_name")
            return RelationColumn(
                name=name,
                type="relation",
                relation=RelationConfig(
                    target_database_id=config.get("database_id"),
                    synced_property_name=synced,
                ),
            )
        case PropertyType.FORMULA:
            return FormulaColumn(
                name=name,
                type="formula",
                formula_expression=config.get("expression"),
            )
        case PropertyType.ROLLUP:
            return RollupColumn(
                name=name,
                type="rollup",
                rollup=RollupConfig(
                    relation_property_name=config.get("relation_property_name"),
                    rollup_property_name=config.get("rollup_property_name"),
                    function=config.get("function"),
                ),
            )
        case _ if prop_type in PARAMETERLESS_TYPES:
            return SimpleColumn(name=name, type=prop_type)
        case _:
            return OpaqueColumn(name=name, type=prop_type)


def from_wire_columns(properties: dict[str, Any]) -> dict[str, ColumnDefinition]:
    """Build canonical columns from a Notion properties object.

    :param properties: Notion properties object from a retrieved database.
    :returns: Column name to canonical definition.
    """
    columns: dict[str, ColumnDefinition] = {}

    for name, prop in (properties or {}).items():
        column = from_wire_column(name, prop or {})
        if column is not None:
            columns[name] = column

    return columns


def extract_plain_title(title_items: list[dict[str, Any]] | None) -> str:
    """Join the plain text of a Notion title array."""
    return "".join(item.get("plain_text", "") for item in title_items or [])


def schema_from_database(database: dict[str, Any]) -> DatabaseSchema:
    """Build a canonical schema from a retrieved Notion database object.

    :param database: Raw database object from the Notion API.
    :returns: Canonical DatabaseSchema.
    """
    return DatabaseSchema(
        id=database["id"],
        name=extract_plain_title(database.get("title")) or UNTITLED_DATABASE,
        columns=from_wire_columns(database.get("properties", {})),
        created_time=database.get("created_time"),
        last_edited_time=database.get("last_edited_time"),
        url=database.get("url"),
    )
