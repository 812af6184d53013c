from __future__ import annotations
from typing import Iterable, List, Tuple
try:
    from pdfminer.high_level import extract_pages  # type: ignore
    from pdfminer.layout import LTTextContainer, LTTextLine  # type: ignore
except Exception as e:  # pragma: no cover - environment dependent
    raise ImportError(
        "pdfminer.six is required for text selection. Install with 'pip install pdfminer.six'."
        f" (Import error: {e})"
    )

Box = Tuple[float, float, float, float]  # (x1, y1, x2, y2), PDF points, origin top-left


def _iter_text_lines(layout_obj) -> Iterable[LTTextLine]:
    if isinstance(layout_obj, LTTextLine):
        yield layout_obj
    elif isinstance(layout_obj, LTTextContainer):
        for line in layout_obj:
            yield from _iter_text_lines(line)
    else:
        if hasattr(layout_obj, '__iter__'):
            for child in layout_obj:
                yield from _iter_text_lines(child)


def _overlaps(a: Box, b: Box) -> bool:
    return not (a[2] <= b[0] or a[0] >= b[2] or a[3] <= b[1] or a[1] >= b[3])


def select_lines(lines: Iterable[Tuple[str, Box]], region: Box) -> List[Tuple[str, Box]]:
    """Lines intersecting `region`, in reading order (top to bottom, then left to right)."""
    hits = [(text, box) for text, box in lines if text.strip() and _overlaps(box, region)]
    hits.sort(key=lambda tb: (round(tb[1][1], 1), tb[1][0]))
    return hits


def page_lines(pdf_path: str, page_index: int, page_height: float) -> List[Tuple[str, Box]]:
    """Text lines of one page with boxes flipped to a top-left origin."""
    out: List[Tuple[str, Box]] = []
    for layout in extract_pages(pdf_path, page_numbers=[page_index]):
        for line in _iter_text_lines(layout):
            x0, y0, x1, y1 = line.bbox
            out.append((line.get_text(), (x0, page_height - y1, x1, page_height - y0)))
    return out


def extract_text_in_region(pdf_path: str, page_index: int, page_height: float, region: Box) -> Tuple[str, List[Box]]:
    """Return the text under `region` and the boxes of the lines it came from.

    Whole lines are returned: a rough stand-in for a character-accurate text layer."""
    hits = select_lines(page_lines(pdf_path, page_index, page_height), region)
    text = " ".join(t.strip() for t, _ in hits)
    return text, [box for _, box in hits]
