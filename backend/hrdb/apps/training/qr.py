# backend/hrdb/apps/training/qr.py
"""
QR code payloads and rendering for training modules.

The printed QR carries a small JSON document identifying the module; the
employee app scans it and posts `qr_code` back to the unlock endpoint.
Rendering uses reportlab's QR widget and returns SVG markup.
"""

from __future__ import annotations

import importlib.util
import json
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from hrdb.user_id import generate_code as _generate_code

try:
    QR_SIZE: int = int(os.getenv("TRAINING_QR_SIZE", "300"))
except ValueError:
    QR_SIZE = 300

QR_PREFIX = os.getenv("TRAINING_QR_PREFIX", "TRN")

QRRenderer = Callable[[str], str]


def generate_code() -> str:
    return _generate_code(QR_PREFIX)


@dataclass(frozen=True)
class TrainingQRCode:
    module_id: str
    qr_code: str
    payload: str
    image: str
    media_type: str = "image/svg+xml"


def build_qr_payload(*, module_id: str, qr_code: str, title: str, timestamp: datetime) -> str:
    return json.dumps(
        {
            "module_id": module_id,
            "qr_code": qr_code,
            "title": title,
            "timestamp": timestamp.isoformat(),
        }
    )


def render_qr_svg(payload: str, size: int = QR_SIZE) -> str:
    if importlib.util.find_spec("reportlab") is None:
        raise RuntimeError(
            "Missing dependency 'reportlab'. Install it with "
            "'pip install -e .'."
        )
    from reportlab.graphics import renderSVG  # type: ignore[import-not-found]
    from reportlab.graphics.barcode.qr import QrCodeWidget  # type: ignore[import-not-found]
    from reportlab.graphics.shapes import Drawing  # type: ignore[import-not-found]

    widget = QrCodeWidget(payload)
    x0, y0, x1, y1 = widget.getBounds()
    width = x1 - x0
    height = y1 - y0
    drawing = Drawing(size, size, transform=[size / width, 0, 0, size / height, 0, 0])
    drawing.add(widget)
    return renderSVG.drawToString(drawing)
