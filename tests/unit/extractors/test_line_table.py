from __future__ import annotations

from mdtsync.extractors.base import LineTable, scan_comments


def test_positions_are_one_indexed() -> None:
    table = LineTable("ab\ncd\n")

    assert table.line_count == 3
    assert table.position(0) == (1, 1)
    assert table.position(4) == (2, 2)
    assert table.position(6) == (3, 1)


def test_line_start_past_the_end_is_text_length() -> None:
    table = LineTable("ab\ncd")

    assert table.line_start(0) == 0
    assert table.line_start(1) == 3
    assert table.line_start(7) == 5


def test_scan_comments_records_offsets_and_positions() -> None:
    text = "x\n  <!-- a -->\n<!-- b\nc -->"
    nodes = scan_comments(text, LineTable(text))

    assert [node.value for node in nodes] == ["<!-- a -->", "<!-- b\nc -->"]
    first = nodes[0]
    assert (first.start_offset, first.end_offset) == (4, 14)
    assert (first.start_line, first.start_column) == (2, 3)
    assert (nodes[1].end_line, nodes[1].end_column) == (4, 6)


def test_unterminated_comment_stops_scan() -> None:
    text = "<!-- a --> <!-- b"

    assert [node.value for node in scan_comments(text, LineTable(text))] == ["<!-- a -->"]
