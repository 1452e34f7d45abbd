"""Parser functions for Notion property values.

This module handles the conversion between plain row values and the Notion
page property payloads, driven by each column's declared type on the way in
and by the wire value's own type tag on the way out.

Writing follows one rule for missing data: a field left out of the input is
not written at all, while an explicit ``None`` clears the property.
"""

import logging
import math
from typing import Any

from src.notion.enums import READ_ONLY_TYPES, PropertyType
from src.notion.models import ColumnDefinition, Entry

logger = logging.getLogger(__name__)

# Case-insensitive names that always resolve to the title column
TITLE_ALIASES = frozenset({"title", "name"})

# Timestamp sorts Notion supports without naming a property
TIMESTAMP_SORTS = frozenset({"created_time", "last_edited_time"})

DEFAULT_SORTS: list[dict[str, Any]] = [{"timestamp": "created_time", "direction": "descending"}]

_KNOWN_TYPES = frozenset(PropertyType)


# Writing values


def _text_payload(value: Any) -> list[dict[str, Any]]:
    """Build a rich text array; empty input clears the property."""
    if value is None or value == "":
        return []
    return [{"type": "text", "text": {"content": str(value)}}]


def _coerce_checkbox(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return bool(value)


def _coerce_select(value: Any) -> dict[str, Any] | None:
    if isinstance(value, list | tuple):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("name")
    if value is None:
        return None
    name = str(value).strip()
    return {"name": name} if name else None


def _as_list(value: Any) -> list[Any]:
    """Treat None as empty and a bare scalar as a one-element list."""
    if value is None:
        return []
    if isinstance(value, list | tuple | set):
        return list(value)
    return [value]


def _coerce_number(value: Any) -> int | float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int | float):
        number: int | float = value
    else:
        try:
            text = str(value).strip()
            number = int(text) if text.lstrip("+-").isdigit() else float(text)
        except ValueError:
            logger.warning(f"Could not parse number, clearing value: value={value!r}")
            return None
    if isinstance(number, float) and not math.isfinite(number):
        logger.warning(f"Non-finite number, clearing value: value={value!r}")
        return None
    return number


def _coerce_date(value: Any) -> dict[str, Any] | None:
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        return value if value.get("start") else None
    return {"start": str(value)}


def _optional_string(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def to_wire_value(column_type: str, value: Any) -> dict[str, Any] | None:  # noqa: PLR0911, PLR0912
    """Build a Notion property value for a plain value of the given column type.

    Malformed values degrade to an empty or null payload instead of raising.

    :param column_type: Declared column type.
    :param value: Plain input value.
    :returns: Notion property value, or None when the type is read-only.
    """
    match column_type:
        case PropertyType.TITLE:
            return {"title": _text_payload(value)}
        case PropertyType.RICH_TEXT:
            return {"rich_text": _text_payload(value)}
        case PropertyType.CHECKBOX:
            return {"checkbox": _coerce_checkbox(value)}
        case PropertyType.SELECT:
            return {"select": _coerce_select(value)}
        case PropertyType.MULTI_SELECT:
            options = (_coerce_select(item) for item in _as_list(value))
            return {"multi_select": [option for option in options if option]}
        case PropertyType.DATE:
            return {"date": _coerce_date(value)}
        case PropertyType.NUMBER:
            return {"number": _coerce_number(value)}
        case PropertyType.RELATION:
            return {"relation": [{"id": str(item)} for item in _as_list(value) if item]}
        case PropertyType.URL | PropertyType.EMAIL | PropertyType.PHONE_NUMBER:
            return {column_type: _optional_string(value)}
        case PropertyType.FILES:
            return {
                "files": [
                    {"name": str(url)[:100], "type": "external", "external": {"url": str(url)}}
                    for url in _as_list(value)
                    if url
                ]
            }
        case PropertyType.PEOPLE:
            return {"people": [{"object": "user", "id": str(item)} for item in _as_list(value) if item]}
        case _ if column_type in READ_ONLY_TYPES:
            logger.debug(f"Ignoring value for read-only column type: type={column_type}")
            return None
        case _:
            logger.warning(f"Unknown column type, writing as rich_text: type={column_type}")
            return {"rich_text": _text_payload(value)}


def resolve_property_name(columns: dict[str, ColumnDefinition], name: str) -> str:
    """Resolve a caller-supplied property name against a schema.

    Case-insensitive exact matches win, then the "title"/"name" aliases map
    to the title column. Anything else is returned unchanged so Notion can
    report the unknown property.

    :param columns: Schema columns.
    :param name: Name supplied by the caller.
    :returns: The schema column name, or the input unchanged.
    """
    lowered = name.lower()

    for column_name in columns:
        if column_name.lower() == lowered:
            return column_name

    if lowered in TITLE_ALIASES:
        for column_name, column in columns.items():
            if column.type == PropertyType.TITLE:
                return column_name

    return name


def build_properties(columns: dict[str, ColumnDefinition], values: dict[str, Any]) -> dict[str, Any]:
    """Build the Notion properties payload for a row.

    :param columns: Schema columns.
    :param values: Plain values keyed by column name or alias.
    :returns: Properties payload; read-only columns are left out.
    """
    properties: dict[str, Any] = {}

    for key, value in values.items():
        name = resolve_property_name(columns, key)
        column = columns.get(name)
        column_type = column.type if column is not None else "unknown"

        wire = to_wire_value(column_type, value)
        if wire is not None:
            properties[name] = wire

    return properties


# Reading values


def _wire_type(wire: dict[str, Any]) -> str | None:
    """Find a property value's type from its tag, or the single type key it holds."""
    tag = wire.get("type")
    if tag:
        return tag
    keys = [key for key in wire if key in _KNOWN_TYPES]
    return keys[0] if len(keys) == 1 else None


def _mapping(content: Any, wire_type: str) -> dict[str, Any]:
    """Return content if it is a mapping, else an empty one."""
    if content is None or isinstance(content, dict):
        return content or {}
    logger.warning(f"Malformed property value, reading as empty: type={wire_type}")
    return {}


def _mappings(content: Any, wire_type: str) -> list[dict[str, Any]]:
    """Return the mapping items of a list value, dropping anything else."""
    if content is None:
        return []
    if not isinstance(content, list):
        logger.warning(f"Malformed property value, reading as empty: type={wire_type}")
        return []
    items = [item for item in content if isinstance(item, dict)]
    if len(items) != len(content):
        logger.warning(f"Dropped malformed items from property value: type={wire_type}")
    return items


def _first_text_run(items: list[dict[str, Any]]) -> str:
    if not items:
        return ""
    first = items[0]
    if "plain_text" in first:
        return first.get("plain_text") or ""
    return _mapping(first.get("text"), "text").get("content") or ""


def _file_url(item: dict[str, Any]) -> str | None:
    """Prefer the Notion-hosted URL over an external one."""
    hosted = _mapping(item.get("file"), "file")
    if hosted.get("url"):
        return hosted["url"]
    return _mapping(item.get("external"), "external").get("url")


def _formula_result(result: dict[str, Any]) -> Any:
    if not result:
        return None
    result_type = result.get("type")
    if result_type == "date":
        return _mapping(result.get("date"), "date").get("start")
    return result.get(result_type) if result_type else None


def _rollup_result(result: dict[str, Any]) -> Any:
    if not result:
        return None
    result_type = result.get("type")
    if result_type == "array":
        return [from_wire_value(item) for item in _mappings(result.get("array"), "array")]
    if result_type == "date":
        return _mapping(result.get("date"), "date").get("start")
    return result.get(result_type) if result_type else None


def from_wire_value(wire: dict[str, Any] | None) -> Any:  # noqa: PLR0911, PLR0912
    """Extract a plain value from a Notion property value.

    Values whose shape does not match their type read as empty.

    :param wire: Notion property value.
    :returns: Plain value, or None for unknown or empty values.
    """
    if not wire:
        return None
    if not isinstance(wire, dict):
        logger.warning(f"Malformed property value, ignoring: value={wire!r}")
        return None

    wire_type = _wire_type(wire)
    content = wire.get(wire_type) if wire_type else None

    match wire_type:
        case PropertyType.TITLE | PropertyType.RICH_TEXT:
            return _first_text_run(_mappings(content, wire_type))
        case PropertyType.CHECKBOX:
            return bool(content)
        case PropertyType.SELECT:
            return _mapping(content, wire_type).get("name")
        case PropertyType.MULTI_SELECT:
            return [o["name"] for o in _mappings(content, wire_type) if o.get("name")]
        case PropertyType.DATE:
            return _mapping(content, wire_type).get("start")
        case PropertyType.NUMBER:
            return content
        case PropertyType.RELATION:
            return [item["id"] for item in _mappings(content, wire_type) if item.get("id")]
        case PropertyType.FILES:
            urls = (_file_url(item) for item in _mappings(content, wire_type))
            return [url for url in urls if url]
        case PropertyType.URL | PropertyType.EMAIL | PropertyType.PHONE_NUMBER:
            return content
        case PropertyType.FORMULA:
            return _formula_result(_mapping(content, wire_type))
        case PropertyType.ROLLUP:
            return _rollup_result(_mapping(content, wire_type))
        case PropertyType.PEOPLE:
            return [p["id"] for p in _mappings(content, wire_type) if p.get("id")]
        case PropertyType.CREATED_TIME | PropertyType.LAST_EDITED_TIME:
            return content
        case PropertyType.CREATED_BY | PropertyType.LAST_EDITED_BY:
            return _mapping(content, wire_type).get("id")
        case _:
            logger.debug(f"Unhandled property value type: type={wire_type}")
            return None


def parse_page(page: dict[str, Any]) -> Entry:
    """Parse a Notion page response into an Entry.

    :param page: Raw page object from Notion API response.
    :returns: Entry with plain values keyed by property name.
    """
    values = {
        name: from_wire_value(prop)
        for name, prop in (page.get("properties") or {}).items()
    }

    return Entry(
        id=page["id"],
        values=values,
        created_time=page.get("created_time"),
        last_edited_time=page.get("last_edited_time"),
        url=page.get("url"),
        archived=bool(page.get("archived", False)),
    )


# Queries


def _range_condition(value: Any, allowed: frozenset[str]) -> dict[str, Any] | None:
    """Keep the supported operators of a range predicate, or treat a scalar as equality."""
    if isinstance(value, dict):
        condition = {op: operand for op, operand in value.items() if op in allowed}
        return condition or None
    if value is None or value == "":
        return None
    return {"equals": value}


_DATE_OPERATORS = frozenset(
    {"equals", "before", "after", "on_or_before", "on_or_after", "is_empty", "is_not_empty"}
)
_NUMBER_OPERATORS = frozenset(
    {
        "equals",
        "does_not_equal",
        "greater_than",
        "less_than",
        "greater_than_or_equal_to",
        "less_than_or_equal_to",
        "is_empty",
        "is_not_empty",
    }
)


def _build_condition(name: str, column_type: str, value: Any) -> dict[str, Any] | None:  # noqa: PLR0911
    """Build a single Notion filter condition for a column predicate."""
    match column_type:
        case PropertyType.CHECKBOX:
            return {"property": name, "checkbox": {"equals": _coerce_checkbox(value)}}
        case PropertyType.SELECT:
            selected = _coerce_select(value)
            if selected is None:
                return None
            return {"property": name, "select": {"equals": selected["name"]}}
        case PropertyType.MULTI_SELECT:
            if not value:
                return None
            return {"property": name, "multi_select": {"contains": str(value)}}
        case PropertyType.TITLE | PropertyType.RICH_TEXT:
            if not value:
                return None
            return {"property": name, column_type: {"contains": str(value)}}
        case PropertyType.DATE:
            condition = _range_condition(value, _DATE_OPERATORS)
            return {"property": name, "date": condition} if condition else None
        case PropertyType.NUMBER:
            if isinstance(value, dict):
                condition = _range_condition(value, _NUMBER_OPERATORS)
            else:
                number = _coerce_number(value)
                condition = {"equals": number} if number is not None else None
            return {"property": name, "number": condition} if condition else None
        case PropertyType.URL | PropertyType.EMAIL | PropertyType.PHONE_NUMBER:
            if not value:
                return None
            return {"property": name, column_type: {"contains": str(value)}}
        case _:
            return None


def build_query_filter(
    columns: dict[str, ColumnDefinition],
    filters: dict[str, Any],
) -> dict[str, Any] | None:
    """Build a Notion query filter from column predicates.

    Predicates on unknown columns or unsupported types are skipped.

    :param columns: Schema columns.
    :param filters: Column name to predicate.
    :returns: Notion filter object, or None if no conditions apply.
    """
    conditions: list[dict[str, Any]] = []

    for key, value in filters.items():
        name = resolve_property_name(columns, key)
        column = columns.get(name)
        if column is None:
            logger.debug(f"Skipping filter on unknown column: name={key}")
            continue

        condition = _build_condition(name, column.type, value)
        if condition is not None:
            conditions.append(condition)

    if not conditions:
        return None
    if len(conditions) == 1:
        return conditions[0]
    return {"and": conditions}


def build_sorts(
    columns: dict[str, ColumnDefinition],
    sorts: list[dict[str, Any]] | None,
) -> list[dict[str, Any]]:
    """Build Notion sort objects, defaulting to newest first.

    :param columns: Schema columns.
    :param sorts: Caller sorts, each with "property" or "timestamp" and "direction".
    :returns: Notion sorts list.
    """
    if not sorts:
        return [dict(sort) for sort in DEFAULT_SORTS]

    built: list[dict[str, Any]] = []

    for sort in sorts:
        direction = sort.get("direction", "ascending")
        if sort.get("timestamp") in TIMESTAMP_SORTS:
            built.append({"timestamp": sort["timestamp"], "direction": direction})
        elif sort.get("property"):
            name = resolve_property_name(columns, str(sort["property"]))
            built.append({"property": name, "direction": direction})

    return built or [dict(sort) for sort in DEFAULT_SORTS]
