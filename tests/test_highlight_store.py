import json
from types import SimpleNamespace

import pytest

import pdfoverlay.core.highlights as hl_mod
from pdfoverlay.core.highlights import (
    Comment, Content, Highlight, HighlightLibrary, HighlightStore, IdGenerator, NewHighlight, Position, Scaled,
    update_highlight,
)


def _scaled(x1, y1, x2, y2, page=1):
    return Scaled(x1=x1, y1=y1, x2=x2, y2=y2, width=600, height=800, page_number=page)


def _new(text="alpha", image=None, comment=None, page=1):
    rect = _scaled(10, 10, 110, 30, page)
    return NewHighlight(
        content=Content(text=text, image=image),
        position=Position(bounding_rect=rect, rects=[rect], page_number=page),
        comment=comment or Comment(text="note", emoji="🔥"),
    )


def _seeded(id_, text):
    n = _new(text=text)
    return Highlight(id=id_, content=n.content, position=n.position, comment=n.comment)


def test_add_ids_distinct_and_newest_first():
    store = HighlightStore()
    created = [store.add(_new(text=f"t{i}")) for i in range(50)]
    ids = [h.id for h in store.highlights]
    assert len(set(ids)) == 50
    assert store.highlights[0].id == created[-1].id
    assert [h.content.text for h in store.highlights[:3]] == ["t49", "t48", "t47"]


def test_id_generator_skips_reserved(monkeypatch):
    values = iter(["seed1", "seed1", "fresh"])
    monkeypatch.setattr(hl_mod.uuid, "uuid4", lambda: SimpleNamespace(hex=next(values)))
    gen = IdGenerator()
    gen.reserve(["seed1"])
    assert gen.next_id() == "fresh"


def test_update_merges_position_and_keeps_comment():
    store = HighlightStore()
    h = store.add(_new())
    new_rect = _scaled(5, 5, 50, 50)
    store.update(h.id, {"bounding_rect": new_rect}, {"image": "data:image/png;base64,AAAA"})
    got = store.find_by_id(h.id)
    assert got.position.bounding_rect == new_rect
    assert got.position.rects == h.position.rects
    assert got.position.page_number == h.position.page_number
    assert got.content.text == "alpha"
    assert got.content.image == "data:image/png;base64,AAAA"
    assert got.comment is h.comment


def test_update_accepts_camel_case_patch_keys():
    store = HighlightStore()
    h = store.add(_new())
    store.update(h.id, {"boundingRect": {"x1": 1, "y1": 2, "x2": 3, "y2": 4, "width": 600, "height": 800}}, {})
    got = store.find_by_id(h.id)
    assert (got.position.bounding_rect.x1, got.position.bounding_rect.y2) == (1, 4)


def test_update_with_malformed_patch_keeps_collection():
    store = HighlightStore()
    h = store.add(_new())
    seen = []
    store.subscribe(seen.append)
    result = store.update(h.id, {"boundingRect": {"x1": 5}}, {})
    assert result == [h]
    assert store.find_by_id(h.id).position == h.position
    assert seen == []


def test_update_unknown_id_is_noop():
    store = HighlightStore()
    store.add(_new(text="a"))
    store.add(_new(text="b"))
    before = store.highlights
    result = store.update("missing", {"page_number": 7}, {"text": "x"})
    assert result == before
    assert [h.id for h in store.highlights] == [h.id for h in before]


def test_update_highlight_does_not_mutate_input():
    original = [_seeded("a", "one")]
    updated = update_highlight(original, "a", {}, {"text": "two"})
    assert original[0].content.text == "one"
    assert updated[0].content.text == "two"


def test_find_by_id_missing_returns_none():
    store = HighlightStore()
    assert store.find_by_id("nope") is None
    assert store.find_by_id(None) is None


def test_reset_clears_highlights():
    store = HighlightStore()
    store.add(_new())
    store.add(_new())
    assert len(store) == 2
    store.reset()
    assert store.highlights == []


def test_replace_for_document_swaps_collection():
    library = HighlightLibrary({"B": [_seeded("b1", "from b")]})
    store = HighlightStore(library)
    store.replace_for_document("A")
    store.add(_new(text="on a"))
    old = store.highlights
    store.replace_for_document("B")
    assert [h.id for h in store.highlights] == ["b1"]
    assert not any(h.id in {o.id for o in old} for h in store.highlights)
    store.replace_for_document("C")
    assert store.highlights == []


def test_replace_for_document_hands_out_copies():
    seed = _seeded("b1", "from b")
    store = HighlightStore(HighlightLibrary({"B": [seed]}))
    store.replace_for_document("B")
    store.update("b1", {}, {"text": "changed"})
    assert seed.content.text == "from b"
    store.replace_for_document("B")
    assert store.find_by_id("b1").content.text == "from b"


def test_library_ids_are_never_reissued():
    store = HighlightStore(HighlightLibrary({"B": [_seeded("b1", "x")]}))
    assert "b1" in store.ids._seen


def test_subscribers_receive_new_collection():
    store = HighlightStore()
    seen = []
    store.subscribe(lambda hls: seen.append([h.id for h in hls]))
    h = store.add(_new())
    store.reset()
    assert seen == [[h.id], []]


def test_kind_is_derived_from_content():
    text = _seeded("t", "words")
    area = text.model_copy(update={"content": Content(image="data:image/png;base64,AA")})
    assert text.is_text and not text.is_area
    assert area.is_area and not area.is_text


def test_preview_and_hash():
    h = _seeded("abc", "x" * 120)
    assert h.preview() == "x" * 90 + "..."
    assert h.hash == "#highlight-abc"


def test_library_from_json_camel_case(tmp_path):
    payload = {
        "https://example.org/a.pdf": [{
            "id": "seed-1",
            "content": {"text": "hello"},
            "position": {
                "boundingRect": {"x1": 1, "y1": 2, "x2": 3, "y2": 4, "width": 600, "height": 800, "pageNumber": 2},
                "rects": [],
                "pageNumber": 2,
            },
            "comment": {"text": "c", "emoji": "🔥"},
        }]
    }
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    lib = HighlightLibrary.load(str(path))
    got = lib.for_document("https://example.org/a.pdf")
    assert got[0].id == "seed-1" and got[0].position.page_number == 2
    assert lib.locators() == ["https://example.org/a.pdf"]


def test_library_missing_file_is_empty(tmp_path):
    assert HighlightLibrary.load(str(tmp_path / "nope.json")).locators() == []
    assert HighlightLibrary.load(None).locators() == []


def test_library_rejects_non_object():
    with pytest.raises(ValueError):
        HighlightLibrary.from_json("[]")
