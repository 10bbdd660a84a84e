from rich.console import Console

from insightguru.models.chat import Message, Sender
from insightguru.render import chart_summary, format_value, group_indian, render_message


def _text(renderable) -> str:
    console = Console(width=120, record=True)
    console.print(renderable)
    return console.export_text()


class TestFormatValue:
    def test_blank_values(self):
        assert format_value(None) == ""
        assert format_value("") == ""

    def test_integers_grouped_en_in(self):
        assert format_value(1234567) == "12,34,567"
        assert format_value("1000") == "1,000"
        assert format_value(999) == "999"
        assert format_value(-1234567) == "-12,34,567"

    def test_fractions_two_decimals(self):
        assert format_value(1234.5) == "1,234.50"
        assert format_value("2.5") == "2.50"

    def test_text_passthrough(self):
        assert format_value("North") == "North"
        assert format_value(True) == "true"


def test_group_indian():
    assert group_indian("100000") == "1,00,000"
    assert group_indian("12") == "12"


def test_chart_summary():
    chart = {"data": [{"type": "bar"}, {"type": "line"}], "layout": {"title": {"text": "Sales"}}}
    assert chart_summary(chart) == "Sales (2 trace(s), bar, line)"


def test_collapsed_message_hides_details():
    msg = Message(
        sender=Sender.BOT,
        content="South leads.",
        query="SELECT region FROM sales",
        rows=[{"region": "N", "total": 3}, {"region": "S", "total": 4}],
        collapsed=True,
    )
    out = _text(render_message(msg, 2))
    assert "South leads." in out
    assert "/toggle 2" in out
    assert "SELECT" not in out


def test_expanded_message_renders_table_with_derived_columns():
    msg = Message(
        sender=Sender.BOT,
        content="South leads.",
        query="SELECT region FROM sales",
        rows=[{"region": "N", "total": 300000}, {"region": "S", "total": 4}],
    )
    out = _text(render_message(msg, 1))
    assert "SELECT region FROM sales" in out
    assert "region" in out and "total" in out
    assert "3,00,000" in out


def test_preview_row_limit_caption():
    msg = Message(sender=Sender.BOT, content="many", rows=[{"a": i, "b": i} for i in range(5)])
    out = _text(render_message(msg, 1, row_limit=2))
    assert "showing 2 of 5 rows" in out
