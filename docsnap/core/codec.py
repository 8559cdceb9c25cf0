"""Conversions between numpy buffers and Qt images, and blob encoding."""

import numpy as np
from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QImage


class EncodeError(Exception):
    """Exception raised when a buffer cannot be encoded."""

    pass


def rgba_to_qimage(rgba: np.ndarray) -> QImage:
    """Wrap an RGBA buffer in a QImage that owns its own copy."""
    rgba = np.ascontiguousarray(rgba, dtype=np.uint8)
    height, width = rgba.shape[:2]
    data = rgba.tobytes()
    image = QImage(data, width, height, 4 * width, QImage.Format.Format_RGBA8888)
    # QImage only borrows the numpy memory, detach before it goes away
    return image.copy()


def qimage_to_rgba(image: QImage) -> np.ndarray:
    """Copy a QImage into an (h, w, 4) RGBA uint8 array."""
    image = image.convertToFormat(QImage.Format.Format_RGBA8888)
    width, height = image.width(), image.height()
    if width == 0 or height == 0:
        return np.zeros((0, 0, 4), dtype=np.uint8)

    stride = image.bytesPerLine()
    data = np.frombuffer(image.constBits(), dtype=np.uint8, count=image.sizeInBytes())
    rows = data.reshape(height, stride)
    return rows[:, : width * 4].reshape(height, width, 4).copy()


def encode_image(rgba: np.ndarray, fmt: str = "JPEG", quality: float = 0.9) -> bytes:
    """Encode an RGBA buffer to a compressed blob.

    Args:
        rgba: Buffer to encode
        fmt: Qt image format tag ("JPEG", "PNG", ...)
        quality: Quality factor in [0, 1]

    Returns:
        Encoded bytes

    Raises:
        EncodeError: If Qt cannot write the format
    """
    image = rgba_to_qimage(rgba)
    if fmt.upper() in ("JPEG", "JPG"):
        # JPEG has no alpha channel
        image = image.convertToFormat(QImage.Format.Format_RGB888)

    data = QByteArray()
    buffer = QBuffer(data)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    ok = image.save(buffer, fmt.upper(), int(round(quality * 100)))
    buffer.close()

    if not ok:
        raise EncodeError(f"Cannot encode image as {fmt}")
    return bytes(data.data())


def load_image(path: str) -> np.ndarray:
    """Load an image file as an RGBA array.

    Raises:
        SourceError: If the file cannot be decoded
    """
    from .source import SourceError

    image = QImage(path)
    if image.isNull():
        raise SourceError(f"Cannot read image: {path}")
    return qimage_to_rgba(image)
