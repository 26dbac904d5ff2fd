"""
Atlas encoding, archive assembly and delivery.

The last step of an export turns the two finished atlas images into PNG
bytes, packs them into one zip archive, and hands the archive to the user:

    encode_png(image)          → bytes
    assemble([(name, bytes)])  → zip archive bytes
    deliver_archive(data, dst) → writes the archive to dst

Archive metadata (timestamps) may differ between runs; entry names and
entry contents always match the inputs exactly.
"""

import io
import os
import tempfile
import zipfile
from pathlib import Path

from PIL import Image

from atlas_shop.core.errors import EncodingFailure
from atlas_shop.core.pipeline import IMAGE_FORMAT


def encode_png(image: Image.Image) -> bytes:
    """
    Encode a finished atlas as PNG.

    Raises:
        EncodingFailure: If Pillow cannot encode the image.
    """
    buffer = io.BytesIO()
    try:
        image.save(buffer, IMAGE_FORMAT)
    except (OSError, ValueError) as e:
        raise EncodingFailure(f"Could not encode atlas as {IMAGE_FORMAT}: {e}") from e
    return buffer.getvalue()


def assemble(named_images: list[tuple[str, bytes]]) -> bytes:
    """
    Pack named blobs into one zip archive.

    PNG data is already compressed, so entries are stored rather than
    deflated again.

    Args:
        named_images: (entry name, bytes) pairs. Names must be unique.

    Returns:
        The archive as bytes.

    Raises:
        EncodingFailure: If a name repeats or an entry can't be written.
    """
    seen = set()
    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as archive:
            for name, data in named_images:
                if not name:
                    raise EncodingFailure("Archive entry name is empty")
                if name in seen:
                    raise EncodingFailure(f"Duplicate archive entry: {name}")
                seen.add(name)
                archive.writestr(name, data)
    except (OSError, ValueError, TypeError, zipfile.LargeZipFile) as e:
        raise EncodingFailure(f"Could not write archive: {e}") from e
    return buffer.getvalue()


def deliver_archive(data: bytes, destination: Path) -> Path:
    """
    Write the archive to destination without leaving a partial file.

    The bytes go to a temporary file next to the destination, which is then
    renamed over it. The temporary file is removed if anything fails, so
    it never outlives this call.

    Returns:
        The destination path.
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{destination.stem}-", suffix=".part", dir=destination.parent
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, destination)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    return destination
