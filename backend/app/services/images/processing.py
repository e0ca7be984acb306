# backend/app/services/images/processing.py
from io import BytesIO
from PIL import Image, ImageOps, UnidentifiedImageError

THUMBNAIL_SIZE = (400, 300)


class InvalidImageError(ValueError):
    pass


def _open(data: bytes) -> Image.Image:
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"could not decode image: {e}") from e
    # 端末の向きを反映し RGB に揃える
    return ImageOps.exif_transpose(img).convert("RGB")


def _jpeg(img: Image.Image, quality: int) -> bytes:
    buf = BytesIO()
    img.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def process_image(data: bytes) -> tuple[bytes, bytes]:
    """保存用 JPEG（quality 90）と 400x300 のサムネイル（cover, quality 80）を返す。"""
    img = _open(data)
    full = _jpeg(img, 90)
    thumb = _jpeg(ImageOps.fit(img, THUMBNAIL_SIZE), 80)
    return full, thumb
