"""Normalize uploaded school images before storage."""

from dataclasses import dataclass
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from school_directory.core.exceptions import ImageValidationError

OUTPUT_FORMAT = "WEBP"
OUTPUT_CONTENT_TYPE = "image/webp"


@dataclass(frozen=True)
class TransformedImage:
    data: bytes
    width: int
    height: int
    content_type: str = OUTPUT_CONTENT_TYPE


def transform_image(
    data: bytes,
    *,
    max_width: int = 800,
    max_height: int = 600,
    quality: int = 80,
) -> TransformedImage:
    """
    Fit the image inside ``max_width`` x ``max_height`` and re-encode as WebP.

    Images are only ever scaled down, keeping their aspect ratio. Only the
    first frame of animated images is kept.

    Raises:
        ImageValidationError: If the bytes cannot be decoded as an image
    """
    try:
        with Image.open(BytesIO(data)) as source:
            source.load()
            image = ImageOps.exif_transpose(source)
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise ImageValidationError("The uploaded file is not a valid image") from exc

    if image.mode not in ("RGB", "RGBA"):
        has_alpha = "A" in image.getbands() or "transparency" in image.info
        image = image.convert("RGBA" if has_alpha else "RGB")

    image.thumbnail((max_width, max_height))

    buffer = BytesIO()
    image.save(buffer, format=OUTPUT_FORMAT, quality=quality)
    return TransformedImage(data=buffer.getvalue(), width=image.width, height=image.height)
