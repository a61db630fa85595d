"""
Orientation normalization: bake the EXIF orientation into the pixel data.
"""

from pathlib import Path
from typing import Dict, Optional, Tuple

import pillow_heif
from PIL import Image

from .constants import (DEFAULT_ORIENTATION, EXIF_IFD_POINTER, GPS_IFD_POINTER,
                        TAG_ORIENTATION, get_logger)

logger = get_logger("photoimport.orientation")

pillow_heif.register_heif_opener()

# Pillow's ROTATE_* constants turn counter-clockwise, so a clockwise quarter
# turn is ROTATE_270.
ROTATE_90_CW = Image.Transpose.ROTATE_270
ROTATE_180 = Image.Transpose.ROTATE_180
ROTATE_270_CW = Image.Transpose.ROTATE_90
FLIP_HORIZONTAL = Image.Transpose.FLIP_LEFT_RIGHT

ORIENTATION_TRANSFORMS: Dict[int, Tuple[Image.Transpose, ...]] = {
    1: (),
    2: (FLIP_HORIZONTAL,),
    3: (ROTATE_180,),
    4: (ROTATE_180, FLIP_HORIZONTAL),
    5: (ROTATE_90_CW, FLIP_HORIZONTAL),
    6: (ROTATE_90_CW,),
    7: (ROTATE_270_CW, FLIP_HORIZONTAL),
    8: (ROTATE_270_CW,),
}


def needs_normalization(orientation: Optional[int]) -> bool:
    return bool(ORIENTATION_TRANSFORMS.get(orientation or DEFAULT_ORIENTATION))


def apply_orientation(image: Image.Image, orientation: Optional[int]) -> Image.Image:
    """Return the image transformed for the given orientation code.

    Absent or unrecognized codes return the image unchanged.
    """
    for operation in ORIENTATION_TRANSFORMS.get(orientation or DEFAULT_ORIENTATION, ()):
        image = image.transpose(operation)
    return image


def normalize_orientation(file_path: Path, orientation: Optional[int]) -> bool:
    """Rotate/flip a picture in place and reset its orientation tag to 1.

    Returns True when the file was rewritten. Files that need no transform
    are left byte-for-byte untouched. Errors while decoding or writing
    propagate to the caller.
    """
    if not needs_normalization(orientation):
        return False

    with Image.open(file_path) as original:
        # Multi-picture JPEGs are written back as plain JPEG
        image_format = "JPEG" if original.format == "MPO" else original.format
        exif = original.getexif()
        # Load nested EXIF directories before the source file is replaced
        for ifd in list(exif.keys()):
            if ifd in (EXIF_IFD_POINTER, GPS_IFD_POINTER):
                exif.get_ifd(ifd)
        icc_profile = original.info.get("icc_profile")
        original.load()
        transformed = apply_orientation(original, orientation)

    exif[TAG_ORIENTATION] = DEFAULT_ORIENTATION

    save_options = {"format": image_format, "exif": exif}
    if icc_profile:
        save_options["icc_profile"] = icc_profile
    if image_format in ("JPEG", "HEIF"):
        save_options["quality"] = 95

    transformed.save(file_path, **save_options)
    logger.debug(f"Normalized orientation {orientation} -> {DEFAULT_ORIENTATION}: {file_path}")
    return True
