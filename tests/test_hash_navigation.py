from pdfoverlay.core.highlights import Comment, Content, Highlight, Position, Scaled
from pdfoverlay.core.navigation import FragmentLocation, HashNavigator, parse_id_from_hash


def _highlight(id_):
    rect = Scaled(x1=0, y1=0, x2=10, y2=10, width=600, height=800)
    return Highlight(id=id_, content=Content(text="t"), position=Position(bounding_rect=rect, rects=[rect], page_number=1),
                     comment=Comment())


def _navigator(*highlights, fragment=""):
    by_id = {h.id: h for h in highlights}
    location = FragmentLocation(fragment)
    return HashNavigator(lambda id_: by_id.get(id_), location), location


def test_parse_id_from_hash():
    assert parse_id_from_hash("#highlight-abc123") == "abc123"
    assert parse_id_from_hash("#highlight-") is None
    assert parse_id_from_hash("#other-abc") is None
    assert parse_id_from_hash("") is None
    assert parse_id_from_hash(None) is None


def test_hash_round_trip_scrolls_once():
    nav, location = _navigator(_highlight("X"))
    scrolled = []
    nav.set_scroll_to(lambda h: scrolled.append(h.id))
    location.set_hash("#highlight-X")
    nav.on_hash_change()
    assert scrolled == ["X"]


def test_unknown_id_does_not_scroll():
    nav, location = _navigator(_highlight("X"))
    scrolled = []
    nav.set_scroll_to(lambda h: scrolled.append(h.id))
    location.set_hash("#highlight-doesnotexist")
    nav.on_hash_change()
    assert scrolled == []


def test_initial_fragment_resolves_when_scroll_to_arrives():
    nav, location = _navigator(_highlight("X"), fragment="#highlight-X")
    nav.listen()
    scrolled = []
    nav.on_hash_change()  # viewer not mounted yet
    assert not nav.mounted
    nav.set_scroll_to(lambda h: scrolled.append(h.id))
    assert scrolled == ["X"]


def test_listen_reacts_to_fragment_changes():
    nav, location = _navigator(_highlight("X"), _highlight("Y"))
    nav.listen()
    scrolled = []
    nav.set_scroll_to(lambda h: scrolled.append(h.id))
    location.set_hash("highlight-Y")
    location.set_hash("#highlight-Y")  # unchanged: no event
    assert location.hash == "#highlight-Y"
    assert scrolled == ["Y"]


def test_user_scroll_clears_fragment():
    nav, location = _navigator(_highlight("X"), fragment="#highlight-X")
    nav.listen()
    scrolled = []
    nav.set_scroll_to(lambda h: scrolled.append(h.id))
    nav.on_user_scroll()
    assert location.hash == ""
    assert scrolled == ["X"]
