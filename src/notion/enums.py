"""Enums for Notion property types."""

from enum import StrEnum


class PropertyType(StrEnum):
    """Column types supported by dynamic databases."""

    TITLE = "title"
    RICH_TEXT = "rich_text"
    CHECKBOX = "checkbox"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    DATE = "date"
    NUMBER = "number"
    URL = "url"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    RELATION = "relation"
    FILES = "files"
    FORMULA = "formula"
    ROLLUP = "rollup"
    PEOPLE = "people"
    CREATED_TIME = "created_time"
    LAST_EDITED_TIME = "last_edited_time"
    CREATED_BY = "created_by"
    LAST_EDITED_BY = "last_edited_by"


# Computed by Notion, never written by the API
READ_ONLY_TYPES: frozenset[str] = frozenset(
    {
        PropertyType.FORMULA,
        PropertyType.ROLLUP,
        PropertyType.CREATED_TIME,
        PropertyType.LAST_EDITED_TIME,
        PropertyType.CREATED_BY,
        PropertyType.LAST_EDITED_BY,
    }
)

# Types whose wire definition carries no configuration
PARAMETERLESS_TYPES: frozenset[str] = frozenset(
    {
        PropertyType.TITLE,
        PropertyType.RICH_TEXT,
        PropertyType.CHECKBOX,
        PropertyType.DATE,
        PropertyType.URL,
        PropertyType.EMAIL,
        PropertyType.PHONE_NUMBER,
        PropertyType.FILES,
        PropertyType.PEOPLE,
        PropertyType.CREATED_TIME,
        PropertyType.LAST_EDITED_TIME,
        PropertyType.CREATED_BY,
        PropertyType.LAST_EDITED_BY,
    }
)
