"""Texture resampling and WebP recompression using Pillow."""

import io
from typing import Any

from PIL import Image

from mobile_glb.document import SceneDocument, texture_images
from mobile_glb.utils import get_field
from mobile_glb.utils.constants import WEBP_EXTENSION
from mobile_glb.utils.logging import bright_cyan, dim, log_detail

WEBP_MIME = "image/webp"


def fit_within(width: int, height: int, max_size: int) -> tuple[int, int]:
    """Largest size <= max_size on both axes with the same aspect ratio."""
    if width <= max_size and height <= max_size:
        return width, height
    scale = min(max_size / width, max_size / height)
    return max(1, round(width * scale)), max(1, round(height * scale))


def _image_label(document: SceneDocument, index: int) -> str:
    return document.gltf.images[index].name or f"image_{index}"


def _encode(img: Image.Image, fmt: str, **params: object) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt, **params)
    return buf.getvalue()


def resample_textures(document: SceneDocument, max_size: int = 1024) -> int:
    """
    Downscale every image larger than max_size on either axis.

    Aspect ratio is kept and the image is re-encoded in its original format.
    Images already within bounds are left byte-for-byte unchanged.

    Returns:
        Number of images resized.
    """
    resized = 0
    for index, image in enumerate(document.gltf.images or []):
        if image.bufferView is None:
            continue
        with Image.open(io.BytesIO(document.image_bytes(index))) as img:
            w, h = img.size
            new_w, new_h = fit_within(w, h, max_size)
            if (new_w, new_h) == (w, h):
                continue
            fmt = img.format or "PNG"
            scaled = img.resize((new_w, new_h), Image.Resampling.LANCZOS)

        data = _encode(scaled, fmt)
        document.set_image_bytes(index, data, Image.MIME.get(fmt, f"image/{fmt.lower()}"))
        resized += 1
        log_detail(
            f"{_image_label(document, index)}: {dim(f'{w}x{h}')} -> {bright_cyan(f'{new_w}x{new_h}')}"
        )
    return resized


def _webp_ready(img: Image.Image) -> Image.Image:
    """Convert to a mode the WebP encoder accepts, keeping alpha if present."""
    if img.mode in ("RGB", "RGBA"):
        return img
    if "A" in img.getbands() or "transparency" in img.info:
        return img.convert("RGBA")
    return img.convert("RGB")


def _webp_candidate(texture: Any) -> int | None:
    """Image to encode for a texture: an existing WebP source wins over the fallback."""
    extensions = texture.extensions or {}
    webp_source = get_field(extensions.get(WEBP_EXTENSION), "source")
    return webp_source if webp_source is not None else texture.source


def compress_textures(
    document: SceneDocument, quality: int = 100, max_size: int = 1024
) -> int:
    """
    Re-encode every texture image as WebP and switch textures to
    EXT_texture_webp.

    A texture that already has an EXT_texture_webp image keeps it and loses
    its fallback ``source``; fallback images left without users are removed.
    Textures holding only KTX2 or AVIF images are left as they are.

    Args:
        document: Document to modify in place
        quality: WebP quality, 0-100
        max_size: Images still larger than this are resized first

    Returns:
        Number of images re-encoded.
    """
    textures = document.gltf.textures or []
    before = {i for t in textures for i in texture_images(t)}
    chosen = {i: _webp_candidate(t) for i, t in enumerate(textures)}
    sources = set(chosen.values()) - {None}

    for index in sorted(sources):
        with Image.open(io.BytesIO(document.image_bytes(index))) as img:
            img.load()
            size = fit_within(*img.size, max_size)
            if size != img.size:
                img = img.resize(size, Image.Resampling.LANCZOS)
            data = _encode(_webp_ready(img), "WEBP", quality=quality)
        document.set_image_bytes(index, data, WEBP_MIME)

    for t, source in chosen.items():
        if source is None:
            continue
        texture = textures[t]
        extensions = texture.extensions or {}
        extensions[WEBP_EXTENSION] = {"source": source}
        texture.extensions = extensions
        texture.source = None

    if sources:
        document.add_extension(WEBP_EXTENSION, required=True)

    still_used = {i for t in textures for i in texture_images(t)}
    document.remove_images(before - still_used)
    return len(sources)
