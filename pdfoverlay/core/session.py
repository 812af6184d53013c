from __future__ import annotations
from typing import List, Optional, Sequence, Tuple
from urllib.parse import parse_qs, urlencode
from pydantic import BaseModel
import logging
from .config import Settings
from .coordinates import CoordinateGateway
from .highlights import HASH_PREFIX, Highlight, HighlightLibrary, HighlightStore
from .navigation import FragmentLocation, HashNavigator
from .scale import ScaleController
from .selection import SelectionPipeline
from .viewer import BaseViewer

logger = logging.getLogger(__name__)


class OverlayState(BaseModel):
    url: str
    highlights: List[Highlight] = []
    scale_label: str = "Scale 100%"
    show_sidebar: bool = False


def resolve_initial_url(query: Optional[str], settings: Settings) -> str:
    """`url` parameter of a query string (leading '?' optional), else the primary document."""
    if query:
        params = parse_qs(query.lstrip("?"))
        urls = params.get("url")
        if urls and urls[0]:
            return urls[0]
    return settings.primary_url


def launch_target(argv: Sequence[str]) -> Tuple[Optional[str], str]:
    """Split command line arguments into a `url=` query and a `#highlight-<id>` fragment.

    Accepts `url=<locator>`, `?url=<locator>` or a bare locator, with the fragment either
    appended to it or given as its own argument."""
    fragment = ""
    rest: List[str] = []
    for arg in argv[1:]:
        if arg.startswith("-"):
            continue
        head, sep, tail = arg.partition(HASH_PREFIX)
        if sep and not fragment:
            fragment = sep + tail
        if head:
            rest.append(head)
    if not rest:
        return None, fragment
    first = rest[0]
    if first.lstrip("?").startswith("url="):
        return first, fragment
    return urlencode({"url": first}), fragment


class OverlaySession:
    """State container for one viewer window: active document, its highlights, zoom and
    deep-link handling. Every public method is a single state transition."""

    def __init__(self, settings: Optional[Settings] = None, library: Optional[HighlightLibrary] = None,
                 location: Optional[FragmentLocation] = None, url: Optional[str] = None):
        self.settings = settings or Settings()
        self.store = HighlightStore(library or HighlightLibrary.load(self.settings.seed_highlights))
        self.location = location or FragmentLocation()
        self.viewer: Optional[BaseViewer] = None
        self.scale = ScaleController(rerender=self.render, initial_scale=self.settings.initial_scale)
        self.navigator = HashNavigator(self.store.find_by_id, self.location)
        self.navigator.listen()
        self.pipeline = SelectionPipeline(self.store)
        self.url = url or self.settings.primary_url
        self.show_sidebar = False
        self.store.replace_for_document(self.url)
        self.store.subscribe(lambda _highlights: self.render())

    @property
    def highlights(self) -> List[Highlight]:
        return self.store.highlights

    @property
    def state(self) -> OverlayState:
        return OverlayState(url=self.url, highlights=self.store.highlights,
                            scale_label=self.scale.label, show_sidebar=self.show_sidebar)

    # ---- Viewer wiring ----
    def bind_viewer(self, viewer: BaseViewer):
        self.viewer = viewer
        self.pipeline.gateway = CoordinateGateway(viewer)
        self.scale.attach(viewer)
        viewer.set_highlight_transform(self.pipeline.render_item)
        viewer.on_selection_finished(self.pipeline.on_selection_finished)
        viewer.on_scroll_ready(self.navigator.set_scroll_to)
        viewer.on_user_scroll(self.navigator.on_user_scroll)
        self.render()

    def render(self):
        if self.viewer is None or not self.viewer.is_ready():
            return
        self.viewer.render(self.store.highlights)

    # ---- Transitions ----
    def zoom_in(self):
        self.scale.zoom_in()

    def zoom_out(self):
        self.scale.zoom_out()

    def apply_scale(self, scale: float):
        self.scale.apply_scale(scale)

    def sync_scale(self):
        self.scale.sync_from_viewer()

    def reset_highlights(self):
        self.store.reset()

    def open_document(self, locator: str):
        # a confirmation still open belongs to the old document
        self.pipeline.cancel_pending()
        logger.info("Switching document %s -> %s", self.url, locator)
        self.url = locator
        self.store.replace_for_document(locator)

    def toggle_document(self) -> str:
        primary, secondary = self.settings.primary_url, self.settings.secondary_url
        self.open_document(secondary if self.url == primary else primary)
        return self.url

    def toggle_sidebar(self) -> bool:
        self.show_sidebar = not self.show_sidebar
        return self.show_sidebar
