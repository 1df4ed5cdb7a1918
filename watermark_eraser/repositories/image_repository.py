from io import BytesIO
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image as PILImage, UnidentifiedImageError

from ..models.pixel_buffer import PixelBuffer


class ImageRepository:
    """
    Handles file I/O and encode/decode for PixelBuffer entities.
    Everything outside this file sees raw RGBA bytes only.
    """

    @staticmethod
    def _from_pil(pil_obj: PILImage.Image) -> PixelBuffer:
        rgba = np.asarray(pil_obj.convert("RGBA"), dtype=np.uint8)
        return PixelBuffer.from_rgba(rgba)

    @classmethod
    def load(cls, path: Union[str, Path]) -> PixelBuffer:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found: {path}")
        try:
            with PILImage.open(path) as pil_obj:
                return cls._from_pil(pil_obj)
        except UnidentifiedImageError as err:
            raise ValueError(f"Unreadable image file: {path}") from err
        except PILImage.DecompressionBombError as err:
            raise ValueError(f"Image too large to decode: {path}") from err

    @classmethod
    def decode(cls, raw: bytes) -> PixelBuffer:
        """Decode an in-memory compressed image (PNG, JPEG, ...)."""
        try:
            with PILImage.open(BytesIO(raw)) as pil_obj:
                return cls._from_pil(pil_obj)
        except UnidentifiedImageError as err:
            raise ValueError("Uploaded data is not a readable image") from err
        except PILImage.DecompressionBombError as err:
            raise ValueError("Uploaded image is too large to decode") from err

    @staticmethod
    def to_pil(buffer: PixelBuffer) -> PILImage.Image:
        return PILImage.fromarray(np.ascontiguousarray(buffer.rgba), mode="RGBA")

    @classmethod
    def encode(cls, buffer: PixelBuffer, fmt: str = "PNG") -> bytes:
        pil_obj = cls.to_pil(buffer)
        if fmt.upper() in ("JPEG", "JPG"):
            # JPEG has no alpha channel
            pil_obj = pil_obj.convert("RGB")
            fmt = "JPEG"
        out = BytesIO()
        pil_obj.save(out, format=fmt.upper())
        return out.getvalue()

    @classmethod
    def save(cls, buffer: PixelBuffer, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        pil_obj = cls.to_pil(buffer)
        if path.suffix.lower() in (".jpg", ".jpeg"):
            pil_obj = pil_obj.convert("RGB")
        pil_obj.save(path)
        return path
