from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from pathlib import Path
import json
import logging
import uuid

logger = logging.getLogger(__name__)

# Coordinate system: "scaled" rectangles keep the viewport pixel corners together with the
# page viewport size they were measured against, so they can be re-projected at any zoom.

HASH_PREFIX = "#highlight-"
PREVIEW_CHARS = 90


class WireModel(BaseModel):
    """Snake_case in Python, camelCase (pdf.js highlighter shape) on the wire."""
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class Scaled(WireModel):
    x1: float
    y1: float
    x2: float
    y2: float
    width: float   # page viewport width at capture time
    height: float  # page viewport height at capture time
    page_number: Optional[int] = None


class Position(WireModel):
    bounding_rect: Scaled
    rects: List[Scaled] = []
    page_number: int  # 1-based


class Content(WireModel):
    text: Optional[str] = None
    image: Optional[str] = None  # data:image/png;base64,...


class Comment(WireModel):
    text: str = ""
    emoji: str = ""


class NewHighlight(WireModel):
    content: Content
    position: Position
    comment: Comment = Field(default_factory=Comment)


class Highlight(NewHighlight):
    id: str

    @property
    def is_area(self) -> bool:
        return bool(self.content.image)

    @property
    def is_text(self) -> bool:
        return not self.is_area

    @property
    def hash(self) -> str:
        return f"{HASH_PREFIX}{self.id}"

    def preview(self) -> str:
        text = self.content.text or ""
        if len(text) > PREVIEW_CHARS:
            return text[:PREVIEW_CHARS].strip() + "..."
        return text


class IdGenerator:
    """Session-scoped id source. Remembers every id it has seen so none is handed out twice."""

    def __init__(self):
        self._seen: set[str] = set()

    def reserve(self, ids: Iterable[str]):
        self._seen.update(ids)

    def next_id(self) -> str:
        while True:
            candidate = uuid.uuid4().hex
            if candidate not in self._seen:
                self._seen.add(candidate)
                return candidate


# ---- Pure transitions ----

def _shallow_merge(model: BaseModel, patch: Mapping[str, Any]) -> BaseModel:
    """Key-level override of `model` by `patch`.

    Patch keys may use the field name or its camelCase alias. Values replace the existing
    value wholesale; nested models are not merged."""
    fields = type(model).model_fields
    names = {}
    for name, info in fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    merged = {name: getattr(model, name) for name in fields}
    for key, value in patch.items():
        if key in names:
            merged[names[key]] = value
    return type(model).model_validate(merged)


def add_highlight(highlights: List[Highlight], new: NewHighlight, highlight_id: str) -> List[Highlight]:
    created = Highlight(id=highlight_id, content=new.content, position=new.position, comment=new.comment)
    return [created, *highlights]


def update_highlight(highlights: List[Highlight], highlight_id: str,
                     position_patch: Mapping[str, Any], content_patch: Mapping[str, Any]) -> List[Highlight]:
    out: List[Highlight] = []
    for h in highlights:
        if h.id != highlight_id:
            out.append(h)
            continue
        out.append(h.model_copy(update={
            "position": _shallow_merge(h.position, position_patch),
            "content": _shallow_merge(h.content, content_patch),
        }))
    return out


def find_highlight(highlights: Iterable[Highlight], highlight_id: Optional[str]) -> Optional[Highlight]:
    if not highlight_id:
        return None
    return next((h for h in highlights if h.id == highlight_id), None)


class HighlightLibrary:
    """Highlights pre-associated with document locators."""

    def __init__(self, by_locator: Optional[Dict[str, List[Highlight]]] = None):
        self._by_locator: Dict[str, List[Highlight]] = dict(by_locator or {})

    def locators(self) -> List[str]:
        return list(self._by_locator)

    def for_document(self, locator: str) -> List[Highlight]:
        # deep copies: the live collection never aliases library entries
        return [h.model_copy(deep=True) for h in self._by_locator.get(locator, [])]

    def all_ids(self) -> List[str]:
        return [h.id for hls in self._by_locator.values() for h in hls]

    @classmethod
    def from_json(cls, data: str) -> 'HighlightLibrary':
        raw = json.loads(data)
        if not isinstance(raw, dict):
            raise ValueError("Highlight library must be a JSON object keyed by document locator")
        return cls({loc: [Highlight.model_validate(h) for h in items] for loc, items in raw.items()})

    @classmethod
    def load(cls, path: Optional[str]) -> 'HighlightLibrary':
        if not path:
            return cls()
        try:
            data = Path(path).read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.warning("Highlight library %s not found; starting empty", path)
            return cls()
        return cls.from_json(data)


class HighlightStore:
    """Owns the live, newest-first highlight collection of the active document."""

    def __init__(self, library: Optional[HighlightLibrary] = None, ids: Optional[IdGenerator] = None):
        self.library = library or HighlightLibrary()
        self.ids = ids or IdGenerator()
        self.ids.reserve(self.library.all_ids())
        self._highlights: List[Highlight] = []
        self._listeners: List[Callable[[List[Highlight]], None]] = []

    @property
    def highlights(self) -> List[Highlight]:
        return list(self._highlights)

    def __len__(self) -> int:
        return len(self._highlights)

    def subscribe(self, listener: Callable[[List[Highlight]], None]):
        self._listeners.append(listener)

    def _set(self, highlights: List[Highlight]):
        self._highlights = highlights
        for listener in list(self._listeners):
            listener(self.highlights)

    def add(self, new: NewHighlight) -> Highlight:
        logger.info("Saving highlight %s", new.model_dump_json(by_alias=True))
        updated = add_highlight(self._highlights, new, self.ids.next_id())
        self._set(updated)
        return updated[0]

    def update(self, highlight_id: str, position_patch: Mapping[str, Any],
               content_patch: Mapping[str, Any]) -> List[Highlight]:
        logger.info("Updating highlight %s %s", highlight_id, sorted(position_patch))
        if self.find_by_id(highlight_id) is None:
            # stale handle from a previous render or document
            logger.debug("Ignoring update for unknown highlight %s", highlight_id)
            return self.highlights
        try:
            updated = update_highlight(self._highlights, highlight_id, position_patch, content_patch)
        except ValidationError as e:
            logger.warning("Rejected update for highlight %s: %s", highlight_id, e)
            return self.highlights
        self._set(updated)
        return self.highlights

    def find_by_id(self, highlight_id: Optional[str]) -> Optional[Highlight]:
        return find_highlight(self._highlights, highlight_id)

    def reset(self):
        self._set([])

    def replace_for_document(self, locator: str):
        highlights = self.library.for_document(locator)
        logger.info("Loaded %d highlights for %s", len(highlights), locator)
        self._set(highlights)
