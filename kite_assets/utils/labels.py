"""
QR Asset Labels

Small printable cards: a header, a QR code and the asset's name and tag.
The QR code carries {"assetTag": ..., "name": ...} as JSON so any scanner
app can read it without knowing about this service.
"""
import json
import re
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_H
from PIL import Image, ImageDraw, ImageFont

from kite_assets.config import get_settings

LABEL_WIDTH = 320
QR_BOX_SIZE = 5
QR_BORDER = 2
PADDING = 16
LINE_GAP = 8


def label_payload(asset_tag: str, name: str) -> str:
    """JSON encoded into the QR code."""
    return json.dumps({"assetTag": asset_tag, "name": name})


def label_filename(asset_tag: str) -> str:
    return "label_" + re.sub(r"[^A-Za-z0-9_.-]", "_", asset_tag) + ".png"


def _load_font(size: int):
    return ImageFont.load_default(size=size)


def _text_size(draw: ImageDraw.ImageDraw, text: str, font):
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    return right - left, bottom - top


def build_qr_image(payload: str) -> Image.Image:
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_H,
        box_size=QR_BOX_SIZE,
        border=QR_BORDER,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    return qr.make_image(fill_color="black", back_color="white").convert("RGB")


def render_asset_label(asset_tag: str, name: str) -> bytes:
    """Render the label card as PNG bytes."""
    qr_img = build_qr_image(label_payload(asset_tag, name))

    header_font = _load_font(20)
    name_font = _load_font(18)
    tag_font = _load_font(14)
    header = get_settings().APP_NAME

    # Measure on a scratch canvas before sizing the card
    scratch = ImageDraw.Draw(Image.new("RGB", (1, 1)))
    lines = [
        (header, header_font, "black"),
        (name, name_font, "black"),
        (asset_tag, tag_font, "#525252"),
    ]
    sizes = [_text_size(scratch, text, font) for text, font, _ in lines]

    width = max([LABEL_WIDTH, qr_img.width + 2 * PADDING] + [w + 2 * PADDING for w, _ in sizes])
    height = (
        PADDING
        + sizes[0][1] + LINE_GAP
        + qr_img.height + LINE_GAP
        + sizes[1][1] + LINE_GAP
        + sizes[2][1] + PADDING
    )

    card = Image.new("RGB", (width, height), "white")
    draw = ImageDraw.Draw(card)
    draw.rectangle([0, 0, width - 1, height - 1], outline="black", width=2)

    y = PADDING
    draw.text(((width - sizes[0][0]) // 2, y), header, font=header_font, fill="black")
    y += sizes[0][1] + LINE_GAP

    card.paste(qr_img, ((width - qr_img.width) // 2, y))
    y += qr_img.height + LINE_GAP

    for (text, font, color), (text_width, text_height) in zip(lines[1:], sizes[1:]):
        draw.text(((width - text_width) // 2, y), text, font=font, fill=color)
        y += text_height + LINE_GAP

    buffer = BytesIO()
    card.save(buffer, format="PNG")
    return buffer.getvalue()
