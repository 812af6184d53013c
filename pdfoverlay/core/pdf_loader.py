from __future__ import annotations
from typing import Tuple, Optional
from pathlib import Path
from urllib.parse import urlparse
import hashlib
import logging
import requests
try:
    from pypdf import PdfReader  # type: ignore
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Missing dependency 'pypdf'. Activate your virtual environment and run 'pip install -e .'. "
        "If already installed, ensure you're not invoking system Python instead of the venv."
    ) from e

"""pdf_loader

Turns a document locator (http(s) URL or local path) into a local file and exposes the
little the overlay needs from it: page count, page size in PDF points and page rasters.

 - pypdf answers structural questions (page sizes in points).
 - QPdfDocument (Qt6's QtPdf module) renders pages when present in the PySide6 build.
"""

logger = logging.getLogger(__name__)

try:
    from PySide6.QtPdf import QPdfDocument  # type: ignore
    from PySide6.QtGui import QImage
    HAVE_QPDF = True
except Exception:  # pragma: no cover - environment dependent
    HAVE_QPDF = False
    QPdfDocument = None  # type: ignore
    QImage = None  # type: ignore


def is_remote(locator: str) -> bool:
    return urlparse(locator).scheme in ("http", "https")


def cache_path_for(locator: str, cache_dir: str) -> Path:
    digest = hashlib.sha1(locator.encode("utf-8")).hexdigest()[:16]
    name = Path(urlparse(locator).path).name or "document.pdf"
    return Path(cache_dir) / f"{digest}_{name}"


def resolve_locator(locator: str, cache_dir: str, timeout: float = 60) -> str:
    """Return a local path for `locator`, downloading remote documents once into `cache_dir`."""
    if not is_remote(locator):
        path = Path(locator).expanduser()
        if not path.exists():
            raise RuntimeError(f"Document not found: {locator}")
        return str(path)
    target = cache_path_for(locator, cache_dir)
    if target.exists():
        return str(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Downloading %s", locator)
    try:
        resp = requests.get(locator, timeout=timeout)
    except requests.RequestException as e:
        raise RuntimeError(f"Network error fetching {locator}: {e}")
    if resp.status_code != 200:
        raise RuntimeError(f"Fetching {locator} failed with HTTP {resp.status_code}")
    tmp = target.with_suffix(target.suffix + ".part")
    tmp.write_bytes(resp.content)
    tmp.replace(target)
    return str(target)


class PDFDocument:
    def __init__(self, path: str):
        self.path = path
        self.reader = PdfReader(path)
        self._qpdf: Optional[QPdfDocument] = None
        if HAVE_QPDF:
            self._qpdf = QPdfDocument()
            self._qpdf.load(path)

    # ---- Basic Metadata ----
    def page_count(self) -> int:
        return len(self.reader.pages)

    def get_page_size(self, index: int) -> Tuple[float, float]:
        page = self.reader.pages[index]
        mb = page.mediabox
        width = float(mb.right) - float(mb.left)
        height = float(mb.top) - float(mb.bottom)
        return width, height

    def viewport_size(self, index: int, scale: float) -> Tuple[int, int]:
        """Pixel size of page `index` rendered at `scale` (1 point -> 1 pixel at scale 1)."""
        w, h = self.get_page_size(index)
        return max(1, int(w * scale)), max(1, int(h * scale))

    # ---- Rendering ----
    def render_page(self, index: int, scale: float = 1.0):
        """Render a page to QImage, returning (image, width, height)."""
        if not HAVE_QPDF or self._qpdf is None:
            raise RuntimeError("QtPdf (QPdfDocument) not available in this PySide6 build. Install PySide6-Essentials with QtPdf support.")
        from PySide6.QtCore import QSize
        target_w, target_h = self.viewport_size(index, scale)
        img = self._qpdf.render(index, QSize(target_w, target_h))
        if img.isNull():  # pragma: no cover
            raise RuntimeError("Failed to render PDF page: received null image from QPdfDocument.render")
        return img, target_w, target_h

    def close(self):
        if self._qpdf is not None:
            self._qpdf.close()
            self._qpdf = None
