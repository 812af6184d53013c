from __future__ import annotations
from typing import Mapping, Optional
from pydantic import BaseModel, field_validator
import os
from .scale import clamp_scale

PRIMARY_PDF_URL = "https://arxiv.org/pdf/1708.08021.pdf"
SECONDARY_PDF_URL = "https://arxiv.org/pdf/1604.02480.pdf"


class Settings(BaseModel):
    """Runtime settings.

    Env Vars:
      PO_PRIMARY_PDF_URL     document opened when no locator is given
      PO_SECONDARY_PDF_URL   document the "toggle" action switches to
      PO_SEED_HIGHLIGHTS     JSON file of highlights keyed by document locator (optional)
      PO_CACHE_DIR           where downloaded documents are kept (default ~/.pdfoverlay/cache)
      PO_LOG_DIR             log directory (default ./logs)
      PO_DEBUG               1/true/yes to log at DEBUG and echo to the console
      PO_INITIAL_SCALE       zoom applied when a document is mounted (default 1.0, clamped to 0.2..2.0)
    """
    primary_url: str = PRIMARY_PDF_URL
    secondary_url: str = SECONDARY_PDF_URL
    seed_highlights: Optional[str] = None
    cache_dir: str = os.path.join(os.path.expanduser("~"), ".pdfoverlay", "cache")
    log_dir: Optional[str] = None
    debug: bool = False
    initial_scale: float = 1.0

    @field_validator("initial_scale")
    @classmethod
    def _clamp_initial_scale(cls, value: float) -> float:
        return clamp_scale(value)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        env = os.environ if environ is None else environ
        values = {}
        for field, var in (
            ("primary_url", "PO_PRIMARY_PDF_URL"),
            ("secondary_url", "PO_SECONDARY_PDF_URL"),
            ("seed_highlights", "PO_SEED_HIGHLIGHTS"),
            ("cache_dir", "PO_CACHE_DIR"),
            ("log_dir", "PO_LOG_DIR"),
        ):
            raw = env.get(var)
            if raw:
                values[field] = raw
        values["debug"] = env.get("PO_DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}
        raw_scale = env.get("PO_INITIAL_SCALE")
        if raw_scale:
            try:
                values["initial_scale"] = float(raw_scale)
            except ValueError:
                pass
        return cls(**values)
