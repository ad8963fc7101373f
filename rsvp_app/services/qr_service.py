"""
QR code generation service
"""

import io
import qrcode

class QRService:
    """Service for generating QR codes for invitation links"""

    @staticmethod
    def generate_link_qr(url: str, format: str = 'PNG', box_size: int = 10) -> bytes:
        """Generate a QR code image pointing at an invitation URL"""
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=box_size,
            border=4,
        )
        qr.add_data(url)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format=format)

        return buffer.getvalue()
