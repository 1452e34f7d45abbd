"""Tests for Notion column schema conversion."""

import unittest

from pydantic import TypeAdapter

from src.dynamic.exceptions import ValidationError
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
from src.notion.schema import (
    from_wire_column,
    from_wire_columns,
    schema_from_database,
    to_wire_column,
    to_wire_columns,
)

column_adapter: TypeAdapter[ColumnDefinition] = TypeAdapter(ColumnDefinition)


class TestColumnDefinitionParsing(unittest.TestCase):
    """Tests for validating raw column definitions into tagged variants."""

    def test_variants_selected_by_type(self) -> None:
        """Test that the type tag picks the column model."""
        cases = [
            ({"type": "title"}, SimpleColumn),
            ({"type": "multi_select", "options": ["a"]}, SelectColumn),
            ({"type": "number", "number_format": "dollar"}, NumberColumn),
            ({"type": "relation", "relation": {"target_database_id": "db"}}, RelationColumn),
            ({"type": "formula", "formula_expression": "1"}, FormulaColumn),
            ({"type": "rollup"}, RollupColumn),
            ({"type": "status"}, OpaqueColumn),
        ]
        for raw, expected in cases:
            with self.subTest(type=raw["type"]):
                self.assertIsInstance(column_adapter.validate_python(raw), expected)

    def test_schema_syncs_column_names(self) -> None:
        """Test that each column's name follows its mapping key."""
        schema = DatabaseSchema(id="db-1", name="Groceries", columns={"Item": {"type": "title"}})

        self.assertEqual(schema.columns["Item"].name, "Item")
        self.assertEqual(schema.title_column, "Item")


class TestToWireColumn(unittest.TestCase):
    """Tests for to_wire_column function."""

    def test_select_options(self) -> None:
        """Test bare-string and object options, with the default colour."""
        column = SelectColumn(
            type="select",
            options=["Low", SelectOption(name="High", color="red"), SelectOption(name="Mid")],
        )

        self.assertEqual(
            to_wire_column("Priority", column),
            {
                "select": {
                    "options": [
                        {"name": "Low"},
                        {"name": "High", "color": "red"},
                        {"name": "Mid", "color": "default"},
                    ]
                }
            },
        )

    def test_number_format(self) -> None:
        """Test that number columns carry their format."""
        self.assertEqual(
            to_wire_column("Cost", NumberColumn(type="number")),
            {"number": {"format": "number"}},
        )
        self.assertEqual(
            to_wire_column("Cost", NumberColumn(type="number", number_format="euro")),
            {"number": {"format": "euro"}},
        )

    def test_relation_single_and_dual(self) -> None:
        """Test that a synced property name switches to a dual relation."""
        single = RelationColumn(type="relation", relation=RelationConfig(target_database_id="db"))
        dual = RelationColumn(
            type="relation",
            relation=RelationConfig(target_database_id="db", synced_property_name="Back"),
        )

        self.assertEqual(to_wire_column("Link", single)["relation"]["type"], "single_property")
        self.assertEqual(
            to_wire_column("Link", dual)["relation"],
            {
                "database_id": "db",
                "type": "dual_property",
                "dual_property": {"synced_property_name": "Back"},
            },
        )

    def test_relation_without_target_raises(self) -> None:
        """Test that a relation without a target database is rejected."""
        with self.assertRaises(ValidationError) as context:
            to_wire_column("Link", RelationColumn(type="relation"))

        self.assertIn("Link", str(context.exception))

    def test_formula_without_expression_raises(self) -> None:
        """Test that a formula without an expression is rejected."""
        with self.assertRaises(ValidationError):
            to_wire_column("Total", FormulaColumn(type="formula"))

    def test_rollup_without_function_raises(self) -> None:
        """Test that a rollup missing its function is rejected."""
        column = RollupColumn(
            type="rollup",
            rollup=RollupConfig(relation_property_name="Link", rollup_property_name="Cost"),
        )

        with self.assertRaises(ValidationError):
            to_wire_column("Sum", column)

    def test_complete_rollup(self) -> None:
        """Test that a complete rollup maps all three settings."""
        column = RollupColumn(
            type="rollup",
            rollup=RollupConfig(
                relation_property_name="Link", rollup_property_name="Cost", function="sum"
            ),
        )

        self.assertEqual(
            to_wire_column("Sum", column),
            {
                "rollup": {
                    "relation_property_name": "Link",
                    "rollup_property_name": "Cost",
                    "function": "sum",
                }
            },
        )

    def test_parameterless_types(self) -> None:
        """Test that simple types map to an empty configuration."""
        for column_type in ("title", "rich_text", "checkbox", "date", "created_time"):
            with self.subTest(type=column_type):
                self.assertEqual(
                    to_wire_column("C", SimpleColumn(type=column_type)), {column_type: {}}
                )

    def test_opaque_columns_are_skipped(self) -> None:
        """Test that unknown types are left out of the wire schema."""
        columns = {
            "Title": SimpleColumn(type="title"),
            "Stage": OpaqueColumn(type="status"),
        }

        with self.assertLogs("src.notion.schema", level="WARNING"):
            properties = to_wire_columns(columns)

        self.assertEqual(properties, {"Title": {"title": {}}})


class TestFromWireColumn(unittest.TestCase):
    """Tests for from_wire_column and schema_from_database."""

    def test_select_options_read_back(self) -> None:
        """Test that select options keep their colours."""
        column = from_wire_column(
            "Priority",
            {
                "id": "x",
                "type": "select",
                "select": {"options": [{"id": "1", "name": "High", "color": "red"}]},
            },
        )

        self.assertIsInstance(column, SelectColumn)
        self.assertEqual(column.options, [SelectOption(name="High", color="red")])

    def test_relation_reads_synced_name(self) -> None:
        """Test that dual relations keep the synced property name."""
        column = from_wire_column(
            "Link",
            {
                "type": "relation",
                "relation": {
                    "database_id": "db-2",
                    "type": "dual_property",
                    "dual_property": {"synced_property_name": "Back"},
                },
            },
        )

        self.assertEqual(column.relation.target_database_id, "db-2")
        self.assertEqual(column.relation.synced_property_name, "Back")

    def test_unknown_type_kept_as_opaque(self) -> None:
        """Test that unsupported types survive as opaque columns."""
        column = from_wire_column("Stage", {"type": "status", "status": {"options": []}})

        self.assertIsInstance(column, OpaqueColumn)
        self.assertEqual(column.type, "status")

    def test_missing_type_is_skipped(self) -> None:
        """Test that properties without a type are dropped."""
        self.assertEqual(from_wire_columns({"Broken": {"id": "x"}}), {})

    def test_round_trip_of_supported_columns(self) -> None:
        """Test that canonical columns survive a trip through the wire format."""
        columns = {
            "Title": SimpleColumn(type="title"),
            "Cost": NumberColumn(type="number", number_format="dollar"),
            "Tags": SelectColumn(type="multi_select", options=[SelectOption(name="a", color="blue")]),
            "Total": FormulaColumn(type="formula", formula_expression='prop("Cost") * 2'),
        }
        wire = {
            name: {"type": next(iter(prop)), **prop}
            for name, prop in to_wire_columns(columns).items()
        }
        wire["Total"]["formula"] = {"expression": 'prop("Cost") * 2'}

        restored = from_wire_columns(wire)

        self.assertEqual(restored["Cost"].number_format, "dollar")
        self.assertEqual(restored["Tags"].options, [SelectOption(name="a", color="blue")])
        self.assertEqual(restored["Total"].formula_expression, 'prop("Cost") * 2')
        self.assertEqual(restored["Title"].type, "title")

    def test_schema_from_database(self) -> None:
        """Test building a schema from a retrieved database object."""
        schema = schema_from_database(
            {
                "id": "db-1",
                "title": [{"plain_text": "Gro"}, {"plain_text": "ceries"}],
                "url": "https://notion.so/db-1",
                "created_time": "2025-01-01T00:00:00.000Z",
                "properties": {
                    "Item": {"type": "title", "title": {}},
                    "Done": {"type": "checkbox", "checkbox": {}},
                },
            }
        )

        self.assertEqual(schema.name, "Groceries")
        self.assertEqual(set(schema.columns), {"Item", "Done"})
        self.assertEqual(schema.title_column, "Item")

    def test_untitled_database(self) -> None:
        """Test that a database without a title gets a placeholder name."""
        schema = schema_from_database({"id": "db-1", "title": [], "properties": {}})

        self.assertEqual(schema.name, "Untitled Database")


if __name__ == "__main__":
    unittest.main()
