"""QR badge rendering."""
import io

import qrcode
from qrcode.image.svg import SvgImage

from rollcall.services.identity import encode_key_payload, encode_participant_payload


def generate_qr_svg(data: str) -> bytes:
    """Render ``data`` as an SVG QR code.

    Args:
        data: The text to encode

    Returns:
        bytes: The SVG document
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(image_factory=SvgImage)
    buffer = io.BytesIO()
    img.save(buffer)
    return buffer.getvalue()


def render_participant_qr(participant_id: str) -> bytes:
    """Badge QR carrying the structured check-in payload."""
    return generate_qr_svg(encode_participant_payload(participant_id))


def render_key_qr(key: str) -> bytes:
    """QR for a derived key, as printed by the offline key generator."""
    return generate_qr_svg(encode_key_payload(key))
