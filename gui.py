"""
DL2 Pak Merger - variant prompt (PySide6)
"""

import sys
from typing import Optional

from PySide6.QtGui import QFont
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QLabel,
    QPlainTextEdit,
    QVBoxLayout,
)


class VariantDialog(QDialog):
    """Dialog for choosing which copy of a pak to install."""

    def __init__(self, pak_name: str, candidates: list[str], parent=None):
        super().__init__(parent)
        self.setWindowTitle("Choose Variant")
        self.setMinimumWidth(420)

        layout = QVBoxLayout(self)

        label = QLabel(
            f"This mod has several variants for <b>{pak_name}</b> - please choose "
            "the variant you wish to install. (You can choose a different variant "
            "by re-installing the mod)"
        )
        label.setWordWrap(True)
        layout.addWidget(label)

        self.combo = QComboBox()
        for path in candidates:
            self.combo.addItem(path, userData=path)
        layout.addWidget(self.combo)

        self.path_view = QPlainTextEdit()
        self.path_view.setReadOnly(True)
        self.path_view.setMaximumHeight(60)
        self.path_view.setFont(QFont("Consolas", 9))
        layout.addWidget(self.path_view)

        self.combo.currentIndexChanged.connect(self._update_path)
        self._update_path()

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.button(QDialogButtonBox.Ok).setText("Confirm")
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _update_path(self):
        self.path_view.setPlainText(self.combo.currentData() or "")

    def selected_variant(self) -> Optional[str]:
        return self.combo.currentData()


def choose_variant_dialog(pak_name: str, candidates: list[str]) -> Optional[str]:
    """Variant chooser for install_content(); returns None on Cancel."""
    app = QApplication.instance() or QApplication(sys.argv)
    app.setStyle("Fusion")
    dialog = VariantDialog(pak_name, candidates)
    if dialog.exec() != QDialog.Accepted:
        return None
    return dialog.selected_variant()
