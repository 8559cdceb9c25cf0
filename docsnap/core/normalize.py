"""Frame normalization.

Turns a raw source frame of any size or orientation into the canonical
landscape 16:9 buffer used for hashing and delivery:
1. Portrait frames are rotated 90 degrees clockwise about their centre
2. The landscape frame is cover-cropped to the target aspect ratio
3. The crop is scaled to the fixed output resolution
"""

from typing import Optional

import numpy as np

from .constants import OUTPUT_HEIGHT, OUTPUT_WIDTH
from .model import Rect
from .source import frame_size, resample


def cover_crop(width: int, height: int, aspect: float) -> Rect:
    """Centred crop of a width x height frame with the given aspect.

    If the frame is wider than `aspect`, left and right are trimmed
    equally; otherwise top and bottom are.

    Args:
        width: Frame width
        height: Frame height
        aspect: Target width / height

    Returns:
        The crop region
    """
    if width / height > aspect:
        crop_w = max(1, min(width, int(round(height * aspect))))
        return Rect((width - crop_w) // 2, 0, crop_w, height)

    crop_h = max(1, min(height, int(round(width / aspect))))
    return Rect(0, (height - crop_h) // 2, width, crop_h)


def normalize_frame(
    frame: Optional[np.ndarray],
    output_size: tuple[int, int] = (OUTPUT_WIDTH, OUTPUT_HEIGHT),
) -> Optional[np.ndarray]:
    """Produce the canonical output buffer from a raw frame.

    Args:
        frame: Source frame (RGBA)
        output_size: (width, height) of the result, default 1600x900

    Returns:
        RGBA buffer of exactly output_size, or None when the source
        reports a zero width or height
    """
    width, height = frame_size(frame)
    if width == 0 or height == 0:
        return None

    out_w, out_h = output_size
    aspect = out_w / out_h

    if height <= width:
        crop = cover_crop(width, height, aspect)
        return resample(frame, crop, out_w, out_h)  # type: ignore[arg-type]

    # Portrait: crop in the rotated (height x width) frame, map the crop
    # back onto the source, scale it upright, then rotate the small result.
    crop = cover_crop(height, width, aspect)
    region = Rect(x=crop.y, y=height - crop.right, w=crop.h, h=crop.w)
    upright = resample(frame, region, out_h, out_w)  # type: ignore[arg-type]
    return np.ascontiguousarray(np.rot90(upright, k=-1))
