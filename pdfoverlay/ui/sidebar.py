from __future__ import annotations
from typing import List
from PySide6.QtWidgets import QWidget, QVBoxLayout, QListWidget, QListWidgetItem, QLabel, QPushButton
from PySide6.QtCore import Qt, Signal
from pdfoverlay.core.highlights import Highlight


def entry_text(hl: Highlight) -> str:
    body = hl.preview() if hl.is_text else "[area]"
    lines = [f"{hl.comment.emoji} {hl.comment.text}".strip(), body, f"Page {hl.position.page_number}"]
    return "\n".join(line for line in lines if line)


class Sidebar(QWidget):
    highlightSelected = Signal(Highlight)
    resetRequested = Signal()
    toggleDocumentRequested = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        layout = QVBoxLayout(self)
        title = QLabel("<b>Highlights</b><br><small>To create an area highlight hold Alt, then click and drag.</small>")
        title.setWordWrap(True)
        layout.addWidget(title)

        self.list_widget = QListWidget()
        self.list_widget.itemClicked.connect(self._on_item_clicked)
        layout.addWidget(self.list_widget, 1)

        self.toggle_button = QPushButton("Toggle PDF document")
        self.toggle_button.clicked.connect(self.toggleDocumentRequested.emit)
        layout.addWidget(self.toggle_button)

        self.reset_button = QPushButton("Reset highlights")
        self.reset_button.clicked.connect(self.resetRequested.emit)
        layout.addWidget(self.reset_button)

    def set_highlights(self, highlights: List[Highlight]):
        self.list_widget.clear()
        for hl in highlights:
            item = QListWidgetItem(entry_text(hl))
            item.setData(Qt.ItemDataRole.UserRole, hl)
            self.list_widget.addItem(item)
        self.reset_button.setVisible(bool(highlights))

    def _on_item_clicked(self, item: QListWidgetItem):
        self.highlightSelected.emit(item.data(Qt.ItemDataRole.UserRole))
