from __future__ import annotations
from PySide6.QtWidgets import (QDialog, QVBoxLayout, QLabel, QTextEdit, QHBoxLayout, QDialogButtonBox, QWidget, QFormLayout, QRadioButton, QButtonGroup)

EMOJIS = ["💩", "😱", "😍", "🔥", "😳", "⚠️"]


class TipDialog(QDialog):
    """Comment prompt shown for a finished selection. An empty comment is allowed."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Add highlight")
        self.resize(360, 200)

        self._text_edit = QTextEdit()
        self._text_edit.setPlaceholderText("Your comment")

        self._emoji_group = QButtonGroup(self)
        emoji_row = QWidget()
        h = QHBoxLayout(emoji_row)
        for emoji in EMOJIS:
            btn = QRadioButton(emoji)
            self._emoji_group.addButton(btn)
            h.addWidget(btn)

        form = QFormLayout()
        form.addRow(QLabel("Comment"), self._text_edit)
        form.addRow(QLabel("Tag"), emoji_row)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(buttons)

    def comment_text(self) -> str:
        return self._text_edit.toPlainText().strip()

    def emoji(self) -> str:
        checked = self._emoji_group.checkedButton()
        return checked.text() if checked else ""
