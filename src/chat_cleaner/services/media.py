"""
Разбор картинок для рассылки: base64 (или data:-URL) -> байты + имя файла.
"""

from __future__ import annotations

import base64
import binascii
import io
import struct
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, TypeVar

from PIL import Image, UnidentifiedImageError

T = TypeVar("T")


@dataclass(frozen=True)
class DecodedImage:
    data: bytes
    filename: str


def _strip_data_url(payload: str) -> str:
    payload = payload.strip()
    if payload.startswith("data:"):
        header, sep, body = payload.partition(",")
        if not sep or ";base64" not in header:
            raise ValueError("data URL без base64-тела")
        return body
    return payload


def decode_image(payload: str, *, index: int = 0) -> DecodedImage:
    """
    Декодировать одну картинку и проверить, что это действительно изображение.

    :raises ValueError: payload не base64 или не картинка.
    """
    if not isinstance(payload, str):
        raise ValueError(f"image #{index}: expected base64 text, got {type(payload).__name__}")
    try:
        data = base64.b64decode(_strip_data_url(payload), validate=True)
    except binascii.Error as e:
        raise ValueError(f"image #{index}: bad base64: {e}") from e
    if not data:
        raise ValueError(f"image #{index}: empty payload")

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = (img.format or "jpeg").lower()
            img.verify()
    except Image.DecompressionBombError as e:
        raise ValueError(f"image #{index}: too large: {e}") from e
    except (UnidentifiedImageError, OSError, SyntaxError, struct.error) as e:
        raise ValueError(f"image #{index}: not an image: {e}") from e

    ext = "jpg" if fmt == "jpeg" else fmt
    return DecodedImage(data=data, filename=f"image_{index}.{ext}")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def decode_images(payloads: Iterable[str]) -> tuple[list[DecodedImage], list[str]]:
    """Вернуть (картинки, ошибки). Битые картинки пропускаются."""
    images: list[DecodedImage] = []
    errors: list[str] = []
    for idx, payload in enumerate(payloads):
        try:
            images.append(decode_image(payload, index=idx))
        except ValueError as e:
            errors.append(str(e))
    return images, errors
