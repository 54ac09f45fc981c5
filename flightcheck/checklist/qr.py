"""
QR payload codec for student links.

A student's QR code carries an absolute URL to the instructor view of that
student: `<base>/instructor/student/<url-encoded student id>`. Scanners (the
camera page or manual entry) hand back whatever text they read, and
`extract_student_id` turns it back into a student id.
"""
from __future__ import annotations

from io import BytesIO
from typing import Optional
from urllib.parse import quote, unquote, urlsplit
import base64
import re

import qrcode


STUDENT_PATH_PREFIX = "/instructor/student/"

_STUDENT_PATH = re.compile(r"/instructor/student/([^/?#]+)")

# Same unescaped set as ECMAScript encodeURIComponent (alnum plus -_.!~*'()).
_COMPONENT_SAFE = "!~*'()"


def encode_component(value: str) -> str:
    return quote(str(value), safe=_COMPONENT_SAFE)


def student_path(student_id: str) -> str:
    return f"{STUDENT_PATH_PREFIX}{encode_component(student_id)}"


def build_student_url(student_id: str, base_url: str) -> str:
    """Absolute link to the instructor view of `student_id`."""
    return f"{(base_url or '').rstrip('/')}{student_path(student_id)}"


def extract_student_id(text: Optional[str]) -> Optional[str]:
    """Decode scanned or typed text into a student id.

    Order:
        1. Empty or blank → None.
        2. An absolute http(s) URL → the id from its path, or None when the
           path is not a student link. A URL that fails to parse falls
           through to step 3.
        3. Text containing a student path → the id from that path.
        4. Anything else is taken verbatim (trimmed) as the id.
    """
    if not text:
        return None
    t = text.strip()
    if not t:
        return None

    if t.startswith(("http://", "https://")):
        try:
            parts = urlsplit(t)
            if not parts.netloc:
                raise ValueError("no host")
        except ValueError:
            parts = None
        if parts is not None:
            m = _STUDENT_PATH.search(parts.path)
            return unquote(m.group(1)) if m else None

    m = _STUDENT_PATH.search(t)
    if m:
        return unquote(m.group(1))
    return t


def render_qr_data_uri(payload: str, *, box_size: int = 8, border: int = 4) -> str:
    """Render `payload` as a PNG QR code and return it as a data URI."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"
