import pdfoverlay.core.text_extraction as te_mod
from pdfoverlay.core.text_extraction import extract_text_in_region, select_lines


LINES = [
    ("Second line of text\n", (72.0, 120.0, 300.0, 132.0)),
    ("First line\n", (72.0, 100.0, 250.0, 112.0)),
    ("   \n", (72.0, 110.0, 80.0, 111.0)),
    ("Far below\n", (72.0, 600.0, 200.0, 612.0)),
]


def test_select_lines_in_reading_order():
    hits = select_lines(LINES, (60.0, 95.0, 320.0, 140.0))
    assert [t.strip() for t, _ in hits] == ["First line", "Second line of text"]


def test_select_lines_outside_region():
    assert select_lines(LINES, (400.0, 0.0, 500.0, 50.0)) == []


def test_extract_text_in_region(monkeypatch):
    monkeypatch.setattr(te_mod, "page_lines", lambda path, idx, h: LINES)
    text, boxes = extract_text_in_region("dummy.pdf", 0, 792.0, (60.0, 95.0, 320.0, 140.0))
    assert text == "First line Second line of text"
    assert boxes == [LINES[1][1], LINES[0][1]]
