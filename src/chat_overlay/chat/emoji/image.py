"""Image decoding for emoji payloads.

Only QImage is used here (never QPixmap), so every helper is safe to call
from a loader thread.
"""

import logging

from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QImage, QImageReader

from .models import AnimatedImage, EmojiType

logger = logging.getLogger(__name__)

MIN_FRAME_DELAY_MS = 20


def _open_reader(data: bytes) -> tuple[QImageReader, QBuffer, QByteArray]:
    # The buffer and byte array must outlive the reader
    byte_array = QByteArray(data)
    buffer = QBuffer(byte_array)
    buffer.open(QIODevice.OpenModeFlag.ReadOnly)
    reader = QImageReader(buffer)
    reader.setAutoTransform(True)
    return reader, buffer, byte_array


def decode_static(data: bytes | None) -> QImage | None:
    """Decode the first frame of an image payload."""
    if not data:
        return None
    reader, buffer, _byte_array = _open_reader(data)
    image = reader.read()
    buffer.close()
    if image.isNull():
        image = QImage.fromData(data)
    if image.isNull():
        return None
    return image


def decode_animated(data: bytes | None) -> AnimatedImage | None:
    """Decode every frame of an animated payload.

    The reported size is the animation's canvas size, which can differ from
    the size of its first frame.
    """
    if not data:
        return None
    reader, buffer, _byte_array = _open_reader(data)
    canvas = reader.size()

    frames: list[QImage] = []
    delays: list[int] = []
    while reader.canRead():
        image = reader.read()
        if image.isNull():
            break
        frames.append(image)
        delays.append(max(reader.nextImageDelay(), MIN_FRAME_DELAY_MS))
    buffer.close()

    if not frames:
        return None

    width = canvas.width() if canvas.isValid() else frames[0].width()
    height = canvas.height() if canvas.isValid() else frames[0].height()
    return AnimatedImage(frames=frames, delays=delays, width=width, height=height)


def needs_opacity_fix(emoji_type: EmojiType, image: QImage) -> bool:
    """Whether a decoded emote was served without the transparency it should have."""
    return emoji_type.opacity_fix_candidate and not image.hasAlphaChannel()


def fix_opaque_background(image: QImage) -> QImage:
    """Make every pixel matching the top-left corner colour transparent."""
    fixed = image.convertToFormat(QImage.Format.Format_ARGB32)
    if fixed.isNull() or fixed.width() == 0 or fixed.height() == 0:
        return image
    background = fixed.pixel(0, 0)
    for y in range(fixed.height()):
        for x in range(fixed.width()):
            if fixed.pixel(x, y) == background:
                fixed.setPixel(x, y, 0)
    return fixed
