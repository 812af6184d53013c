from __future__ import annotations
import logging
import sys
from PySide6.QtWidgets import QApplication, QMainWindow, QWidget, QHBoxLayout, QVBoxLayout, QPushButton, QLabel, QMessageBox

from pdfoverlay.core.config import Settings
from pdfoverlay.core.highlights import Highlight
from pdfoverlay.core.logging_utils import configure_logging
from pdfoverlay.core.navigation import FragmentLocation
from pdfoverlay.core.session import OverlaySession, launch_target, resolve_initial_url
from pdfoverlay.ui.pdf_viewer import PDFCanvas, QtViewer
from pdfoverlay.ui.sidebar import Sidebar

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, session: OverlaySession):
        super().__init__()
        self.setWindowTitle("pdfoverlay")
        self.resize(1200, 900)
        self.session = session

        self.sidebar = Sidebar()
        self.sidebar.highlightSelected.connect(self._update_hash)
        self.sidebar.resetRequested.connect(self.session.reset_highlights)
        self.sidebar.toggleDocumentRequested.connect(self.toggle_document)
        self.sidebar.setVisible(session.show_sidebar)

        self.canvas = PDFCanvas()
        self.viewer = QtViewer(self.canvas, session.settings.cache_dir)
        self.canvas.scaleChanged.connect(self._on_viewer_scale)

        self.scale_label = QLabel(session.scale.label)
        controls = QWidget()
        row = QHBoxLayout(controls)
        row.setContentsMargins(0, 0, 0, 0)
        for text, slot in (("Sidebar", self.toggle_sidebar), ("-- Zoom", self.zoom_out), ("++ Zoom", self.zoom_in)):
            btn = QPushButton(text)
            btn.clicked.connect(slot)
            row.addWidget(btn)
        row.addWidget(self.scale_label)
        row.addStretch(1)

        right = QWidget()
        col = QVBoxLayout(right)
        col.addWidget(controls)
        col.addWidget(self.canvas, 1)

        container = QWidget()
        layout = QHBoxLayout(container)
        layout.addWidget(self.sidebar)
        layout.addWidget(right, 1)
        self.setCentralWidget(container)

        session.store.subscribe(self.sidebar.set_highlights)
        self.sidebar.set_highlights(session.highlights)
        session.bind_viewer(self.viewer)
        self._load(session.url)

    def _load(self, locator: str):
        try:
            self.viewer.load_document(locator, scale=self.session.settings.initial_scale)
        except RuntimeError as e:
            logger.error("Could not open %s: %s", locator, e)
            QMessageBox.warning(self, "Open Failed", str(e))
            return
        self.session.apply_scale(self.session.settings.initial_scale)
        self._refresh_scale_label()

    def _update_hash(self, hl: Highlight):
        self.session.location.set_hash(hl.hash)

    def _refresh_scale_label(self):
        self.scale_label.setText(self.session.scale.label)

    def _on_viewer_scale(self, _scale: float):
        self.session.sync_scale()
        self._refresh_scale_label()

    def zoom_in(self):
        self.session.zoom_in()
        self._refresh_scale_label()

    def zoom_out(self):
        self.session.zoom_out()
        self._refresh_scale_label()

    def toggle_sidebar(self):
        self.sidebar.setVisible(self.session.toggle_sidebar())

    def toggle_document(self):
        self._load(self.session.toggle_document())


def run():
    settings = Settings.from_env()
    configure_logging(debug=settings.debug, log_dir=settings.log_dir)
    app = QApplication(sys.argv)
    query, fragment = launch_target(sys.argv)
    url = resolve_initial_url(query, settings)
    session = OverlaySession(settings, location=FragmentLocation(fragment), url=url)
    win = MainWindow(session)
    win.show()
    sys.exit(app.exec())

if __name__ == "__main__":
    run()
