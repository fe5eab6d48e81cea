from pathlib import Path
from typing import Union, Iterable, List, Iterator, Optional
from io import BytesIO
import logging
import os
import re
import numpy as np
import cv2
from PIL import Image as PILImage
from dotenv import load_dotenv
from models.raster_image import RasterImage
from models.composite_canvas import CompositeCanvas
from models.errors import DecodeError

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"(\d+)")


def natural_sort_key(name: str):
    """
    Sort key that orders '2.png' before '10.png', ignoring case.
    """
    return [int(part) if part.isdigit() else part.lower() for part in _DIGITS.split(name)]


class ImageRepository:
    """
    Handles decoding, encoding and file I/O for RasterImage entities.
    """
    def __init__(self):
        exts = os.getenv("VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg,.webp,.bmp")
        self.VALID_EXTS = {ext.strip().lower() for ext in exts.split(",") if ext.strip()}

    @staticmethod
    def create_image(pixels: np.ndarray, path: Union[str, Path] = None) -> RasterImage:
        if path is None:
            return RasterImage(pixels)
        return RasterImage(pixels=pixels, path=Path(path))

    @staticmethod
    def _normalise(arr: np.ndarray) -> np.ndarray:
        """
        OpenCV decode output → uint8 RGB / RGBA.
        """
        if arr.dtype == np.uint16:
            arr = (arr >> 8).astype(np.uint8)
        elif arr.dtype != np.uint8:
            raise DecodeError(f"Unsupported sample type: {arr.dtype}")

        if arr.ndim == 2:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGB)
        channels = arr.shape[2]
        if channels == 1:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGB)
        if channels == 3:
            return cv2.cvtColor(arr, cv2.COLOR_BGR2RGB)
        if channels == 4:
            return cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)
        raise DecodeError(f"Unsupported channel count: {channels}")

    def decode(self, data: bytes, path: Union[str, Path] = None) -> RasterImage:
        """Decode an encoded image byte stream (PNG, JPEG, WebP, ...)."""
        label = path or "<bytes>"
        if not data:
            raise DecodeError(f"Empty image payload: {label}")

        arr = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if arr is None or arr.size == 0:
            raise DecodeError(f"Image unreadable: {label}")

        pixels = np.ascontiguousarray(self._normalise(arr))
        logger.debug(f"Decoded {label}: {pixels.shape[1]}x{pixels.shape[0]}x{pixels.shape[2]}")
        return self.create_image(pixels, path)

    def load(self, path: Union[str, Path]) -> RasterImage:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found: {path}")
        return self.decode(path.read_bytes(), path)

    @staticmethod
    def encode_png(canvas: CompositeCanvas) -> bytes:
        """
        Lossless PNG byte stream for the canvas.
        """
        np_img = canvas.pixels
        if not np_img.flags['C_CONTIGUOUS']:
            np_img = np.ascontiguousarray(np_img)

        buffer = BytesIO()
        PILImage.fromarray(np_img).save(buffer, format="PNG")
        return buffer.getvalue()

    def save(self, canvas: CompositeCanvas, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.encode_png(canvas))
        return path

    def list_dir(
        self,
        folder: Union[str, Path],
        *,
        exts: Optional[Iterable[str]] = None,
    ) -> List[Path]:
        """
        Image files in *folder*, in natural filename order.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        paths = []
        for p in folder.iterdir():
            if not p.is_file():
                continue
            if p.suffix.lower() not in allowed:
                logger.debug(f"Skipping due to extension: {p}")
                continue
            paths.append(p)
        return sorted(paths, key=lambda p: natural_sort_key(p.name))

    def iter_dir(
        self,
        folder: Union[str, Path],
        *,
        exts: Optional[Iterable[str]] = None,
    ) -> Iterator[RasterImage]:
        """
        Yield RasterImage objects one at a time, in stitching order.
        Unreadable files raise DecodeError.
        """
        for p in self.list_dir(folder, exts=exts):
            logger.info(f"Loading: {p}")
            yield self.load(p)
