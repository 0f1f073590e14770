"""
Conversion between numpy RGBA buffers and Qt images, plus encoding.

QImage handles every file format; the editor itself only ever sees
(height, width, 4) uint8 arrays.
"""

from pathlib import Path

import numpy as np
from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QImage

from shotmark.core.errors import EncodeFailed, SaveFailed
from shotmark.services.logging_service import get_logger

logger = get_logger(__name__)


def to_qimage(pixels: np.ndarray) -> QImage:
    """Copy an RGBA8 array into a new QImage (Format_RGBA8888)."""
    rgba = np.ascontiguousarray(pixels, dtype=np.uint8)
    height, width = rgba.shape[:2]
    return QImage(rgba.data, width, height, width * 4, QImage.Format.Format_RGBA8888).copy()


def from_qimage(image: QImage) -> np.ndarray:
    """Copy any QImage into an RGBA8 array of shape (height, width, 4)."""
    rgba = image.convertToFormat(QImage.Format.Format_RGBA8888)
    width, height = rgba.width(), rgba.height()
    stride = rgba.bytesPerLine()
    buffer = np.frombuffer(rgba.constBits(), dtype=np.uint8, count=stride * height)
    return buffer.reshape((height, stride))[:, : width * 4].reshape((height, width, 4)).copy()


def encode_image(pixels: np.ndarray, fmt: str) -> bytes:
    """
    Encode pixels in an image format Qt can write.

    Args:
        pixels: RGBA8 array.
        fmt: Qt format name such as "PNG" or "BMP".

    Returns:
        The encoded file contents.

    Raises:
        EncodeFailed: If the image is empty or Qt cannot write the format.
    """
    if pixels.size == 0:
        raise EncodeFailed("image is empty")
    data = QByteArray()
    buffer = QBuffer(data)
    if not buffer.open(QIODevice.OpenModeFlag.WriteOnly):
        raise EncodeFailed("could not open encode buffer")
    try:
        if not to_qimage(pixels).save(buffer, fmt):
            raise EncodeFailed(f"{fmt} encoding failed")
    finally:
        buffer.close()
    return bytes(data.data())


def save_image(pixels: np.ndarray, path: Path) -> None:
    """
    Write pixels to path; the format follows the file extension (PNG if none).

    Raises:
        SaveFailed: If the directory cannot be created or Qt fails to write.
    """
    path = Path(path).expanduser()
    fmt = path.suffix.lstrip(".").upper() or "PNG"
    if fmt == "JPG":
        fmt = "JPEG"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SaveFailed(f"{path.parent}: {e.strerror or e}") from e

    image = to_qimage(pixels)
    if fmt == "JPEG":
        # JPEG has no alpha channel
        image = image.convertToFormat(QImage.Format.Format_RGB888)
    if not image.save(str(path), fmt):
        raise SaveFailed(f"could not write {path}")
    logger.info(f"Saved {pixels.shape[1]}x{pixels.shape[0]} image to {path}")


def load_image(path: Path) -> np.ndarray:
    """
    Read an image file into an RGBA8 array.

    Raises:
        OSError: If the file is missing or not a readable image.
    """
    image = QImage(str(path))
    if image.isNull():
        raise OSError(f"could not read image {path}")
    return from_qimage(image)
