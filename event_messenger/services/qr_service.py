"""
QR code generation service
"""

import io
import qrcode

from event_messenger.models import Event
from event_messenger.services.event_service import event_url

class QRService:
    """Service for generating QR codes"""

    @staticmethod
    def get_share_url(event: Event) -> str:
        """URL contributors open to leave a message; the same link the event stores"""
        return event.website_link or event_url(event.slug)

    @staticmethod
    def generate_event_qr(event: Event, format: str = 'PNG') -> bytes:
        """Generate QR code pointing at the event share link"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(QRService.get_share_url(event))
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format=format)

        return buffer.getvalue()
