from pathlib import Path
from typing import Iterable, Union, Iterator
import base64
from models.raster_image import RasterImage
from models.composite_canvas import CompositeCanvas
from repositories.image_repository import ImageRepository


class ImageService:
    """I/O helpers.  No stitching logic."""
    def __init__(self):
        self.image_repository = ImageRepository()

    def decode(self, data: bytes, name: Union[str, Path] = None) -> RasterImage:
        """Decode an uploaded byte stream into a RasterImage."""
        return self.image_repository.decode(data, name)

    def stream_folder(
        self,
        folder: Union[str, Path],
        *,
        exts: Iterable[str] | None = None,
    ) -> Iterator[RasterImage]:
        """
        Yield a folder's screenshots lazily, in natural filename order.
        """
        return self.image_repository.iter_dir(folder, exts=exts)

    def encode_png(self, canvas: CompositeCanvas) -> bytes:
        return self.image_repository.encode_png(canvas)

    def save(self, canvas: CompositeCanvas, path: Union[str, Path]) -> Path:
        """
        Business-level method to write the stitched canvas to a PNG file.
        """
        return self.image_repository.save(canvas, path)

    @staticmethod
    def png_to_data_url(png: bytes) -> str:
        """
        Wrap a PNG byte stream as a data URL for JSON responses.
        """
        if not png:
            return ""
        return f"data:image/png;base64,{base64.b64encode(png).decode('utf-8')}"
