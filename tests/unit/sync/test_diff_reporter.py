"""Unit tests for sync.diff_reporter module."""

from src.models.article import CellStyle
from src.sync.diff_reporter import FORMATTING_NOTE, DiffReporter
from tests.fixtures.sample_articles import make_article


class TestFieldDifferences:
    """Test cases for DiffReporter.field_differences."""

    def test_identical_articles_have_no_differences(self):
        assert DiffReporter().field_differences(make_article(1), make_article(1)) == []

    def test_differences_in_display_order(self):
        local = make_article(1, price=3.0, name="New name")
        server = make_article(1)

        differences = DiffReporter().field_differences(local, server)

        assert [d.field_name for d in differences] == ["name", "price"]
        assert differences[1].server_value == 2.5
        assert differences[1].local_value == 3.0

    def test_timestamp_is_not_a_field_difference(self):
        local = make_article(1, timestamp="2020-01-01T00:00:00Z")

        assert DiffReporter().field_differences(local, make_article(1)) == []


class TestDescribe:
    """Test cases for DiffReporter.describe."""

    def test_single_field_change_gives_one_line(self):
        """stock 3 on the server vs 5 locally yields exactly one field line."""
        local = make_article(3, name="Cable", stock=5)
        server = make_article(3, name="Cable", stock=3)

        text = DiffReporter().describe(local, server)

        assert text.splitlines() == [
            "Changes for article #3 (Cable):",
            "  - stock: 3 -> 5",
        ]

    def test_new_local_article(self):
        text = DiffReporter().describe(make_article(-1, name="Drill"), None, is_new_local=True)

        assert text == "New local article: Drill"

    def test_deleted_on_server(self):
        text = DiffReporter().describe(make_article(4, name="Oil"), None)

        assert text == "Deleted on server: Oil"

    def test_formatting_change_is_noted(self):
        local = make_article(2, styles={"name": CellStyle(bold=True)})

        text = DiffReporter().describe(local, make_article(2))

        assert text.splitlines()[-1] == f"  - {FORMATTING_NOTE}"

    def test_no_differences_gives_header_only(self):
        text = DiffReporter().describe(make_article(2), make_article(2))

        assert text == "Changes for article #2 (Article 2):"

    def test_styles_differ(self):
        reporter = DiffReporter()

        assert reporter.styles_differ(
            make_article(1, styles={"id": CellStyle(color="#FF0000")}), make_article(1)
        )
        assert not reporter.styles_differ(make_article(1), make_article(1))
