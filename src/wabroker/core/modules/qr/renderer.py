"""QR code rendering for login payloads."""

import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M

DATA_URI_PREFIX = "data:image/png;base64,"


def render_qr_png(payload: str) -> bytes:
    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def render_qr_data_uri(payload: str) -> str:
    """Render a QR payload as a PNG data URI suitable for an <img> src."""
    return DATA_URI_PREFIX + base64.b64encode(render_qr_png(payload)).decode("ascii")
