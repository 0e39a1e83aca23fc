"""QR code rendering for share links."""

import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M


def render_qr_data_url(data: str, box_size: int = 10, border: int = 2) -> str:
    """Render a QR code for ``data`` as a PNG data URL."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("utf-8")
    return f"data:image/png;base64,{encoded}"
