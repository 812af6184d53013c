from __future__ import annotations
from typing import Callable, Optional
import logging
from .viewer import BaseViewer

logger = logging.getLogger(__name__)

MIN_SCALE = 0.2
MAX_SCALE = 2.0
SCALE_STEP = 0.10


def clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, scale))


def scale_label(scale: float) -> str:
    return f"Scale {round(scale * 100)}%"


class ScaleController:
    """Owns the zoom level and keeps the viewer's copy of it in step.

    The viewer's applied scale is re-read before every step: pinch/ctrl+wheel zoom inside
    the viewer can change it without going through this controller."""

    def __init__(self, rerender: Optional[Callable[[], None]] = None, initial_scale: float = 1.0):
        self.viewer: Optional[BaseViewer] = None
        self._rerender = rerender
        self.scale: float = clamp_scale(initial_scale)
        self.label: str = scale_label(self.scale)

    def attach(self, viewer: Optional[BaseViewer]):
        self.viewer = viewer

    def _surface(self) -> Optional[BaseViewer]:
        if self.viewer is None or not self.viewer.is_ready():
            logger.debug("Viewer not ready; ignoring scale request")
            return None
        return self.viewer

    def zoom_in(self):
        viewer = self._surface()
        if viewer is None:
            return
        self.apply_scale(viewer.get_current_scale() + SCALE_STEP)

    def zoom_out(self):
        viewer = self._surface()
        if viewer is None:
            return
        self.apply_scale(viewer.get_current_scale() - SCALE_STEP)

    def apply_scale(self, scale: float):
        viewer = self._surface()
        if viewer is None:
            return
        scale = clamp_scale(scale)
        viewer.set_scale_value(f"{scale:.2f}")
        # overlay geometry is projected from scaled coordinates at draw time
        if self._rerender is not None:
            self._rerender()
        self.scale = scale
        self.label = scale_label(scale)
        logger.debug("Applied %s", self.label)

    def sync_from_viewer(self):
        """Adopt a scale the viewer applied on its own (ctrl+wheel, pinch)."""
        viewer = self._surface()
        if viewer is None:
            return
        self.scale = clamp_scale(viewer.get_current_scale())
        self.label = scale_label(self.scale)
