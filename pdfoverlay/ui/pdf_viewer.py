from __future__ import annotations
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging
from PySide6.QtWidgets import QGraphicsView, QGraphicsScene, QGraphicsRectItem, QGraphicsTextItem, QGraphicsPixmapItem, QGraphicsItem, QDialog
from PySide6.QtGui import QPixmap, QPen, QColor, QBrush, QMouseEvent, QPainter
from PySide6.QtCore import Qt, QRect, QRectF, Signal, QPointF, QBuffer, QByteArray, QIODevice, QTimer

from pdfoverlay.core.coordinates import ViewportRect, scaled_to_viewport, viewport_position_to_scaled, viewport_to_scaled
from pdfoverlay.core.highlights import Comment, Content, Highlight, Scaled
from pdfoverlay.core.pdf_loader import PDFDocument, resolve_locator
from pdfoverlay.core.scale import clamp_scale
from pdfoverlay.core.selection import AreaHighlightView
from pdfoverlay.core.text_extraction import extract_text_in_region
from pdfoverlay.core.viewer import BaseViewer, ScrollTo, SelectionFinished
from pdfoverlay.ui.tip_dialog import TipDialog

logger = logging.getLogger(__name__)

PAGE_GAP = 20
MIN_SELECTION_PX = 3
TEXT_COLOR = QColor(255, 226, 143)
SCROLLED_TO_COLOR = QColor(255, 100, 100)
SELECTION_COLOR = QColor(255, 215, 0)


class HighlightGraphicsRect(QGraphicsRectItem):
    def __init__(self, rect: QRectF, color: QColor, popup: Optional[str] = None):
        super().__init__(rect)
        self.setBrush(QBrush(color, Qt.BrushStyle.SolidPattern))
        self.setPen(QPen(Qt.PenStyle.NoPen))
        self.setOpacity(0.35)
        if popup:
            self.setToolTip(popup)


class AreaGraphicsRect(HighlightGraphicsRect):
    """Area highlight the user can drag; reports its new scene rect on release."""

    def __init__(self, rect: QRectF, color: QColor, popup: Optional[str], on_moved: Callable[[QRectF], None]):
        super().__init__(rect, color, popup)
        self.setPen(QPen(color.darker(150)))
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIsMovable, True)
        self.setCursor(Qt.CursorShape.OpenHandCursor)
        self._on_moved = on_moved

    def mouseReleaseEvent(self, event):  # noqa: N802
        super().mouseReleaseEvent(event)
        if not self.pos().isNull():
            self.report_move()

    def report_move(self):
        # the callback re-renders the overlay, which removes this item from the scene
        rect = self.mapRectToScene(self.rect())
        QTimer.singleShot(0, lambda: self._on_moved(rect))


class PDFCanvas(QGraphicsView):
    """Continuous, stacked-page document surface."""
    selectionFinished = Signal(QRectF, bool)  # scene rect, area selection
    userScrolled = Signal()
    scaleChanged = Signal(float)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setScene(QGraphicsScene(self))
        self._pdf: Optional[PDFDocument] = None
        self.scale_value: float = 1.0
        self._page_items: Dict[int, QGraphicsPixmapItem] = {}
        self._page_offsets: Dict[int, float] = {}  # page_index -> y offset (scene coords)
        self._overlay_items: List[QGraphicsItem] = []
        self._drag_start: Optional[QPointF] = None
        self._area_drag = False
        self._rubber_band_rect: Optional[QGraphicsRectItem] = None
        self.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        self.setMouseTracking(True)
        self.verticalScrollBar().sliderMoved.connect(lambda _: self.userScrolled.emit())

    @property
    def document(self) -> Optional[PDFDocument]:
        return self._pdf

    def load_pdf(self, path: str):
        if self._pdf:
            self._pdf.close()
        self._pdf = PDFDocument(path)
        self._render_all_pages()

    def set_scale(self, scale: float):
        if not self._pdf or scale == self.scale_value:
            self.scale_value = scale
            return
        bar = self.verticalScrollBar()
        fraction = bar.value() / bar.maximum() if bar.maximum() else 0.0
        self.scale_value = scale
        self._render_all_pages()
        bar.setValue(int(fraction * bar.maximum()))

    def _render_all_pages(self):
        if not self._pdf:
            return
        scene = self.scene(); scene.clear()
        self._page_items.clear()
        self._page_offsets.clear()
        self._overlay_items.clear()
        self._rubber_band_rect = None
        y_cursor = 0.0
        max_width = 0.0
        for idx in range(self._pdf.page_count()):
            try:
                img, w, h = self._pdf.render_page(idx, scale=self.scale_value)
            except RuntimeError as e:
                placeholder = QGraphicsTextItem(f"Render error page {idx+1}: {e}")
                placeholder.setPos(10, y_cursor + 10)
                scene.addItem(placeholder)
                self._page_offsets[idx] = y_cursor
                y_cursor += self._pdf.viewport_size(idx, self.scale_value)[1] + PAGE_GAP
                continue
            item = scene.addPixmap(QPixmap.fromImage(img))
            item.setPos(0, y_cursor)
            self._page_offsets[idx] = y_cursor
            self._page_items[idx] = item
            y_cursor += h + PAGE_GAP
            max_width = max(max_width, w)
        self.setSceneRect(QRectF(0, 0, max_width, y_cursor))

    # ---- Geometry helpers ----
    def page_viewport_size(self, page_index: int) -> Tuple[int, int]:
        return self._pdf.viewport_size(page_index, self.scale_value)

    def page_at(self, scene_y: float) -> int:
        page_index = 0
        for idx in sorted(self._page_offsets):
            if self._page_offsets[idx] <= scene_y:
                page_index = idx
        return page_index

    def to_viewport(self, rect: QRectF) -> ViewportRect:
        page_index = self.page_at(rect.top())
        y_off = self._page_offsets.get(page_index, 0.0)
        return ViewportRect(left=rect.left(), top=rect.top() - y_off, width=rect.width(),
                            height=rect.height(), page_number=page_index + 1)

    def to_scene(self, rect: ViewportRect) -> QRectF:
        y_off = self._page_offsets.get((rect.page_number or 1) - 1, 0.0)
        return QRectF(rect.left, rect.top + y_off, rect.width, rect.height)

    def grab_region(self, rect: ViewportRect) -> Optional[QPixmap]:
        item = self._page_items.get((rect.page_number or 1) - 1)
        if item is None:
            return None
        return item.pixmap().copy(QRect(int(rect.left), int(rect.top), max(1, int(rect.width)), max(1, int(rect.height))))

    # ---- Overlay ----
    def clear_overlay(self):
        scene = self.scene()
        for item in self._overlay_items:
            scene.removeItem(item)
        self._overlay_items.clear()

    def add_overlay(self, item: QGraphicsItem):
        self.scene().addItem(item)
        self._overlay_items.append(item)

    def clear_selection_band(self):
        if self._rubber_band_rect is not None:
            self.scene().removeItem(self._rubber_band_rect)
            self._rubber_band_rect = None

    def mark_selection(self):
        if self._rubber_band_rect is not None:
            self._rubber_band_rect.setBrush(QBrush(SELECTION_COLOR, Qt.BrushStyle.Dense4Pattern))

    # ---- Input ----
    def mousePressEvent(self, event: QMouseEvent):  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton and self._pdf and self.itemAt(event.position().toPoint()) not in self._overlay_items:
            self.clear_selection_band()
            self._drag_start = self.mapToScene(event.position().toPoint())
            self._area_drag = bool(event.modifiers() & Qt.KeyboardModifier.AltModifier)
            self._rubber_band_rect = QGraphicsRectItem()
            pen = QPen(SELECTION_COLOR)
            pen.setStyle(Qt.PenStyle.DashLine)
            self._rubber_band_rect.setPen(pen)
            self.scene().addItem(self._rubber_band_rect)
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event: QMouseEvent):  # noqa: N802
        if self._drag_start and self._rubber_band_rect:
            current = self.mapToScene(event.position().toPoint())
            self._rubber_band_rect.setRect(QRectF(self._drag_start, current).normalized())
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent):  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton and self._drag_start and self._rubber_band_rect:
            rect = self._rubber_band_rect.rect()
            self._drag_start = None
            if rect.width() < MIN_SELECTION_PX or rect.height() < MIN_SELECTION_PX:
                self.clear_selection_band()
            else:
                self.selectionFinished.emit(rect, self._area_drag)
        super().mouseReleaseEvent(event)

    def wheelEvent(self, event):  # noqa: N802
        if self._pdf and event.modifiers() & Qt.KeyboardModifier.ControlModifier:
            # zoom gesture handled by the surface itself; controllers re-read the scale
            step = 1.1 if event.angleDelta().y() > 0 else 1 / 1.1
            self.set_scale(clamp_scale(self.scale_value * step))
            self.scaleChanged.emit(self.scale_value)
            return
        super().wheelEvent(event)
        if self._pdf:
            self.userScrolled.emit()


class QtViewer(BaseViewer):
    """BaseViewer adapter around PDFCanvas."""

    def __init__(self, canvas: PDFCanvas, cache_dir: str):
        self.canvas = canvas
        self.cache_dir = cache_dir
        self._selection_cb: Optional[SelectionFinished] = None
        self._scroll_ready_cb: Optional[Callable[[ScrollTo], None]] = None
        self._user_scroll_cbs: List[Callable[[], None]] = []
        self._highlights: List[Highlight] = []
        self._scrolled_to_id: Optional[str] = None
        canvas.selectionFinished.connect(self._on_selection)
        canvas.userScrolled.connect(self._on_user_scroll)
        canvas.scaleChanged.connect(lambda _: self._draw())

    def load_document(self, locator: str, scale: float = 1.0):
        path = resolve_locator(locator, self.cache_dir)
        self.canvas.scale_value = clamp_scale(scale)
        self.canvas.load_pdf(path)
        self._highlights = []
        self._scrolled_to_id = None
        if self._scroll_ready_cb is not None:
            self._scroll_ready_cb(self.scroll_to)

    # ---- BaseViewer ----
    def is_ready(self) -> bool:
        return self.canvas.document is not None

    def render(self, highlights: Sequence[Highlight]):
        self._highlights = list(highlights)
        self._draw()

    def get_current_scale(self) -> float:
        return self.canvas.scale_value

    def set_scale_value(self, label: str):
        try:
            scale = float(label)
        except ValueError:
            logger.warning("Unsupported scale value %r", label)
            return
        self.canvas.set_scale(scale)

    def to_scaled_position(self, viewport_rect: ViewportRect) -> Scaled:
        vw, vh = self.canvas.page_viewport_size((viewport_rect.page_number or 1) - 1)
        return viewport_to_scaled(viewport_rect, vw, vh)

    def capture_image(self, viewport_rect: ViewportRect) -> str:
        pix = self.canvas.grab_region(viewport_rect)
        if pix is None:
            return ""
        data = QByteArray()
        buf = QBuffer(data)
        buf.open(QIODevice.OpenModeFlag.WriteOnly)
        pix.save(buf, "PNG")
        buf.close()
        return "data:image/png;base64," + bytes(data.toBase64()).decode("ascii")

    def on_selection_finished(self, callback: SelectionFinished):
        self._selection_cb = callback

    def on_scroll_ready(self, callback: Callable[[ScrollTo], None]):
        self._scroll_ready_cb = callback
        if self.is_ready():
            callback(self.scroll_to)

    def on_user_scroll(self, callback: Callable[[], None]):
        self._user_scroll_cbs.append(callback)

    # ---- Scrolling ----
    def scroll_to(self, highlight: Highlight):
        page_index = highlight.position.page_number - 1
        vw, vh = self.canvas.page_viewport_size(page_index)
        rect = scaled_to_viewport(highlight.position.bounding_rect, vw, vh)
        rect.page_number = highlight.position.page_number
        self.canvas.centerOn(self.canvas.to_scene(rect).center())
        self._scrolled_to_id = highlight.id
        self._draw()

    def _on_user_scroll(self):
        if self._scrolled_to_id is not None:
            self._scrolled_to_id = None
            self._draw()
        for cb in list(self._user_scroll_cbs):
            cb()

    # ---- Drawing ----
    def _draw(self):
        self.canvas.clear_overlay()
        if not self.is_ready() or self.highlight_transform is None:
            return
        for index, hl in enumerate(self._highlights):
            view = self.highlight_transform(hl, index, is_scrolled_to=(hl.id == self._scrolled_to_id))
            page_index = hl.position.page_number - 1
            vw, vh = self.canvas.page_viewport_size(page_index)
            color = SCROLLED_TO_COLOR if view.is_scrolled_to else TEXT_COLOR
            if isinstance(view, AreaHighlightView):
                bounds = self._project(hl.position.bounding_rect, hl.position.page_number, vw, vh)
                item = AreaGraphicsRect(bounds, color, view.popup, self._area_mover(view))
                self.canvas.add_overlay(item)
                continue
            for r in hl.position.rects or [hl.position.bounding_rect]:
                self.canvas.add_overlay(HighlightGraphicsRect(self._project(r, hl.position.page_number, vw, vh), color, view.popup))

    def _project(self, scaled: Scaled, page_number: int, vw: float, vh: float) -> QRectF:
        rect = scaled_to_viewport(scaled, vw, vh)
        rect.page_number = page_number
        return self.canvas.to_scene(rect)

    def _area_mover(self, view: AreaHighlightView) -> Callable[[QRectF], None]:
        def moved(scene_rect: QRectF):
            view.on_change(self.canvas.to_viewport(scene_rect))
        return moved

    # ---- Selection ----
    def _on_selection(self, scene_rect: QRectF, area: bool):
        if self._selection_cb is None:
            self.canvas.clear_selection_band()
            return
        bounding = self.canvas.to_viewport(scene_rect)
        page_index = bounding.page_number - 1
        vw, vh = self.canvas.page_viewport_size(page_index)
        if area:
            content = Content(image=self.capture_image(bounding))
            position = viewport_position_to_scaled(bounding, [], vw, vh)
        else:
            content, position = self._text_selection(bounding, vw, vh)
            if content is None:
                self.canvas.clear_selection_band()
                return
        tip = self._selection_cb(position, content, self.canvas.clear_selection_band, self.canvas.mark_selection)
        tip.open()
        dlg = TipDialog(self.canvas)
        if dlg.exec() == QDialog.DialogCode.Accepted:
            tip.confirm(Comment(text=dlg.comment_text(), emoji=dlg.emoji()))
        else:
            tip.cancel()

    def _text_selection(self, bounding: ViewportRect, vw: float, vh: float):
        scale = self.canvas.scale_value
        doc = self.canvas.document
        page_index = bounding.page_number - 1
        _, page_h = doc.get_page_size(page_index)
        region = (bounding.left / scale, bounding.top / scale, bounding.right / scale, bounding.bottom / scale)
        text, boxes = extract_text_in_region(doc.path, page_index, page_h, region)
        if not text:
            return None, None
        line_rects = [
            ViewportRect(left=x1 * scale, top=y1 * scale, width=(x2 - x1) * scale, height=(y2 - y1) * scale,
                         page_number=bounding.page_number)
            for x1, y1, x2, y2 in boxes
        ]
        left = min(r.left for r in line_rects)
        top = min(r.top for r in line_rects)
        union = ViewportRect(left=left, top=top, width=max(r.right for r in line_rects) - left,
                             height=max(r.bottom for r in line_rects) - top, page_number=bounding.page_number)
        return Content(text=text), viewport_position_to_scaled(union, line_rects, vw, vh)
