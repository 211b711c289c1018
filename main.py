import logging
import os
import sys
from pathlib import Path

from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import QApplication, QMainWindow, QPlainTextEdit

from easytyping.settings_manager import SettingsManager
from easytyping.settings_store import SettingsStoreError
from ETPyside.widgets import MarkdownEditor

APP_NAME = "EasyTyping"
SETTINGS_DIRNAME = ".easytyping"

logger = logging.getLogger("easytyping")


def _default_app_dir() -> Path:
    override = os.environ.get("EASYTYPING_APP_DIR", "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / SETTINGS_DIRNAME


def _startup_file(argv: list[str], manager: SettingsManager) -> Path | None:
    candidates = list(argv)
    last_open = str(manager.get("window.last_open_file", "") or "").strip()
    if last_open:
        candidates.append(last_open)
    for raw in candidates:
        path = Path(raw).expanduser()
        if path.is_file():
            return path
    return None


class EasyTypingWindow(QMainWindow):
    def __init__(self, manager: SettingsManager) -> None:
        super().__init__()
        self.manager = manager
        self.editor = MarkdownEditor(
            self,
            settings=manager.easy_typing_settings(),
            keybindings=manager.keybindings(),
        )
        editor_settings = manager.editor_settings()
        self.editor.set_editor_font_preferences(
            family=editor_settings.get("font_family") or None,
            point_size=editor_settings.get("font_size"),
        )
        tab_width = int(editor_settings.get("tab_width") or 4)
        self.editor.setTabStopDistance(self.editor.fontMetrics().horizontalAdvance(" ") * tab_width)
        if not editor_settings.get("word_wrap", True):
            self.editor.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        self.setCentralWidget(self.editor)
        self.editor.noticeRequested.connect(lambda message: self.statusBar().showMessage(message, 4000))
        self.resize(int(manager.get("window.width", 960)), int(manager.get("window.height", 720)))
        self._save_shortcut = QShortcut(QKeySequence(QKeySequence.StandardKey.Save), self)
        self._save_shortcut.activated.connect(self.save_file)

    def open_file(self, path: Path) -> None:
        text = path.read_text(encoding="utf-8")
        self.editor.set_document(str(path), text)
        self.manager.set("window.last_open_file", str(path))
        self.setWindowTitle(f"{APP_NAME} [{path.name}]")

    def save_file(self) -> None:
        if not self.editor.file_path:
            return
        try:
            Path(self.editor.file_path).write_text(self.editor.toPlainText(), encoding="utf-8")
        except OSError:
            logger.exception("Could not save %s", self.editor.file_path)
            return
        self.statusBar().showMessage(f"Saved {self.editor.file_path}", 2000)

    def closeEvent(self, event):
        self.manager.update_easy_typing(self.editor.session.settings)
        self.manager.set("window.width", self.width())
        self.manager.set("window.height", self.height())
        try:
            self.manager.save()
        except SettingsStoreError:
            logger.exception("Could not save settings")
        super().closeEvent(event)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    manager = SettingsManager(_default_app_dir())
    manager.load()
    if manager.load_error():
        logger.warning("Settings not loaded: %s", manager.load_error())
    if manager.get("easy_typing.debug", False):
        logging.getLogger("easytyping").setLevel(logging.DEBUG)

    app = QApplication(sys.argv)
    app.setStyle("Fusion")
    app.setApplicationName(APP_NAME)
    window = EasyTypingWindow(manager)
    startup = _startup_file(sys.argv[1:], manager)
    if startup is not None:
        window.open_file(startup)
    window.show()
    sys.exit(app.exec())
