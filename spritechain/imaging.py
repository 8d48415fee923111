"""
Image post-processing: background matting, sprite centering and sheet compositing.

Every function takes an encoded raster (data URL, bare base64 string or raw
bytes) and returns a PNG data URL. Decoding problems raise ImageDecodeError,
canvas allocation problems raise ImageSurfaceError.
"""

import base64
import binascii
import math
from io import BytesIO
from typing import Sequence, Tuple, Union

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from spritechain.errors import ImageDecodeError, ImageSurfaceError
from spritechain.logging_config import get_logger

logger = get_logger("imaging")

ImageSource = Union[str, bytes]

DEFAULT_MIME = "image/png"
DEFAULT_TOLERANCE = 20
# Pixels at or below this alpha are treated as matting noise when locating content
ALPHA_THRESHOLD = 10


def split_data_url(value: str) -> Tuple[str, str]:
    """Split 'data:<mime>;base64,<payload>' into (mime, payload); bare base64 passes through."""
    if value.startswith("data:") and "," in value:
        header, payload = value.split(",", 1)
        mime = header[len("data:"):].split(";", 1)[0] or DEFAULT_MIME
        return mime, payload
    return DEFAULT_MIME, value


def to_data_url(payload: str, mime: str = DEFAULT_MIME) -> str:
    return f"data:{mime};base64,{payload}"


def decode_image(source: ImageSource) -> Image.Image:
    """Decode an encoded raster into an RGBA Pillow image."""
    if isinstance(source, (bytes, bytearray)):
        raw = bytes(source)
    elif isinstance(source, str):
        _, payload = split_data_url(source.strip())
        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeError("Image payload is not valid base64", {"error": str(e)})
    else:
        raise ImageDecodeError(f"Unsupported image source type: {type(source).__name__}")

    if not raw:
        raise ImageDecodeError("Image payload is empty")

    try:
        img = Image.open(BytesIO(raw))
        img.load()
        return img.convert("RGBA")
    except Image.DecompressionBombError as e:
        raise ImageSurfaceError("Image too large to allocate", {"error": str(e)})
    except MemoryError as e:
        raise ImageSurfaceError("Out of memory while decoding image", {"error": str(e)})
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise ImageDecodeError("Could not decode image data", {"error": str(e)})


def encode_image(img: Image.Image) -> str:
    """Encode a Pillow image as a PNG data URL."""
    buf = BytesIO()
    img.save(buf, format="PNG")
    return to_data_url(base64.b64encode(buf.getvalue()).decode("utf-8"))


def new_canvas(width: int, height: int) -> Image.Image:
    """Allocate a fully transparent RGBA canvas."""
    try:
        return Image.new("RGBA", (width, height), (0, 0, 0, 0))
    except (MemoryError, ValueError) as e:
        raise ImageSurfaceError(f"Could not allocate {width}x{height} canvas", {"error": str(e)})


def remove_background(image: ImageSource, tolerance: float = DEFAULT_TOLERANCE) -> str:
    """
    Make the background transparent by chroma-keying against pixel (0, 0).

    Every pixel whose RGB Euclidean distance to the reference color is at most
    `tolerance` gets alpha 0. RGB channels are never modified.
    """
    if tolerance < 0:
        raise ValueError(f"tolerance must be >= 0, got {tolerance}")

    img = decode_image(image)
    try:
        arr = np.array(img)
    except MemoryError as e:
        raise ImageSurfaceError("Out of memory while reading pixels", {"error": str(e)})

    # TODO: sample a majority color from the border instead; content touching the corner breaks this
    target = arr[0, 0, :3].astype(np.int32)
    diff = arr[:, :, :3].astype(np.int32) - target
    dist_sq = np.sum(diff * diff, axis=2)

    background = dist_sq <= tolerance * tolerance
    arr[background, 3] = 0
    logger.debug(f"Matted {int(background.sum())}/{background.size} pixels against "
                 f"RGB{tuple(int(c) for c in target)} (tolerance {tolerance})")

    return encode_image(Image.fromarray(arr, "RGBA"))


def content_bounds(img: Image.Image, threshold: int = ALPHA_THRESHOLD):
    """Tight (x, y, w, h) box around pixels with alpha above threshold, or None."""
    alpha = np.array(img.getchannel("A"))
    mask = (alpha > threshold).astype(np.uint8)
    points = cv2.findNonZero(mask)
    if points is None:
        return None
    x, y, w, h = cv2.boundingRect(points)
    return int(x), int(y), int(w), int(h)


def center_sprite(image: ImageSource) -> ImageSource:
    """
    Move the visible content to the center of a same-size transparent canvas.

    Content is re-positioned, never scaled. A fully transparent input is
    returned unchanged.
    """
    img = decode_image(image)
    bounds = content_bounds(img)
    if bounds is None:
        logger.debug("No visible content, leaving image as-is")
        return image

    x, y, w, h = bounds
    target_x = (img.width - w) // 2
    target_y = (img.height - h) // 2

    canvas = new_canvas(img.width, img.height)
    canvas.paste(img.crop((x, y, x + w, y + h)), (target_x, target_y))
    logger.debug(f"Centered {w}x{h} content from ({x}, {y}) to ({target_x}, {target_y})")
    return encode_image(canvas)


def generate_sprite_sheet(images: Sequence[ImageSource], columns: int = 4) -> str:
    """
    Composite frames into a grid, left-to-right then top-to-bottom.

    The first frame's size is used for every cell; later frames are drawn
    as-is without scaling. Returns an empty string when there are no frames.
    """
    if not images:
        return ""
    if columns < 1:
        raise ValueError(f"columns must be >= 1, got {columns}")

    frames = [decode_image(src) for src in images]
    frame_w, frame_h = frames[0].size
    rows = math.ceil(len(frames) / columns)

    sheet = new_canvas(frame_w * columns, frame_h * rows)
    for i, frame in enumerate(frames):
        col = i % columns
        row = i // columns
        sheet.alpha_composite(frame, dest=(col * frame_w, row * frame_h))

    logger.info(f"Sprite sheet: {len(frames)} frames, {columns}x{rows} grid, "
                f"{sheet.width}x{sheet.height}px")
    return encode_image(sheet)
