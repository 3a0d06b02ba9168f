"""Filter engine: applies a FilterSettings bundle to a still image.

Pipeline: decode -> allocate surface -> ordered filter chain -> optional
vignette -> JPEG data URI. Stage math follows the W3C Filter Effects
shorthand definitions (the same ones a browser canvas uses for
``ctx.filter``), evaluated in float on the sRGB values. Every stage clamps
to [0, 1]; the surface is quantised to 8 bits once, after the last stage.
"""
import asyncio
import base64
import binascii
import math
import time
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import Iterable, Optional, Union
from urllib.parse import unquote_to_bytes

import httpx
import numpy as np
from PIL import Image, ImageOps

from studio.core.errors import ImageDecodeError, SurfaceAllocationError
from studio.core.logging import setup_logging
from studio.models.image import FilterSettings

logger = setup_logging("filters")

ImageSource = Union[str, bytes, Path]

DEFAULT_JPEG_QUALITY = 95
DEFAULT_MAX_PIXELS = 40_000_000
DEFAULT_VIGNETTE_MODEL_IDS = ("linkedin-headshot", "editorial-magazine")
DEFAULT_MAX_FETCH_BYTES = 6 * 1024 * 1024

# Vignette geometry, as fractions of the smaller surface dimension.
VIGNETTE_INNER = 0.3
VIGNETTE_OUTER = 0.7
VIGNETTE_MAX_ALPHA = 0.3

# Luma weights used by the saturate and hue-rotate matrices.
_LUMA = np.array([0.213, 0.715, 0.072])


class FilterStage(str, Enum):
    """Filter stages in the fixed order they are applied."""

    brightness = "brightness"
    contrast = "contrast"
    saturate = "saturate"
    blur = "blur"
    sepia = "sepia"
    grayscale = "grayscale"
    hue_rotate = "hue-rotate"

    @property
    def unit(self) -> str:
        if self is FilterStage.blur:
            return "px"
        if self is FilterStage.hue_rotate:
            return "deg"
        return "%"


FilterChain = list[tuple[FilterStage, int]]


def build_filter_chain(settings: FilterSettings) -> FilterChain:
    """Return the ordered (stage, parameter) list for ``settings``.

    Optional stages appear only when their value is set; an omitted stage
    is absent, not present with value 0.
    """
    chain: FilterChain = [
        (FilterStage.brightness, settings.brightness),
        (FilterStage.contrast, settings.contrast),
        (FilterStage.saturate, settings.saturate),
    ]
    optional = (
        (FilterStage.blur, settings.blur),
        (FilterStage.sepia, settings.sepia),
        (FilterStage.grayscale, settings.grayscale),
        (FilterStage.hue_rotate, settings.hue_rotate),
    )
    chain.extend((stage, value) for stage, value in optional if value is not None)
    return chain


def format_filter_chain(chain: Iterable[tuple[FilterStage, int]]) -> str:
    """Render a chain as a CSS filter string, e.g. ``brightness(110%) blur(2px)``."""
    return " ".join(f"{stage.value}({value}{stage.unit})" for stage, value in chain)


# ---------------------------------------------------------------------------
# Stage implementations
# ---------------------------------------------------------------------------


def _saturate_matrix(s: float) -> np.ndarray:
    return np.array(
        [
            [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
        ]
    )


def _sepia_matrix(amount: float) -> np.ndarray:
    k = 1.0 - min(amount, 1.0)
    return np.array(
        [
            [0.393 + 0.607 * k, 0.769 - 0.769 * k, 0.189 - 0.189 * k],
            [0.349 - 0.349 * k, 0.686 + 0.314 * k, 0.168 - 0.168 * k],
            [0.272 - 0.272 * k, 0.534 - 0.534 * k, 0.131 + 0.869 * k],
        ]
    )


def _grayscale_matrix(amount: float) -> np.ndarray:
    k = 1.0 - min(amount, 1.0)
    return np.array(
        [
            [0.2126 + 0.7874 * k, 0.7152 - 0.7152 * k, 0.0722 - 0.0722 * k],
            [0.2126 - 0.2126 * k, 0.7152 + 0.2848 * k, 0.0722 - 0.0722 * k],
            [0.2126 - 0.2126 * k, 0.7152 - 0.7152 * k, 0.0722 + 0.9278 * k],
        ]
    )


def _hue_rotate_matrix(degrees: float) -> np.ndarray:
    theta = math.radians(degrees % 360)
    cos, sin = math.cos(theta), math.sin(theta)
    base = np.tile(_LUMA, (3, 1))
    cos_part = np.array(
        [
            [0.787, -0.715, -0.072],
            [-0.213, 0.285, -0.072],
            [-0.213, -0.715, 0.928],
        ]
    )
    sin_part = np.array(
        [
            [-0.213, -0.715, 0.928],
            [0.143, 0.140, -0.283],
            [-0.787, 0.715, 0.072],
        ]
    )
    return base + cos * cos_part + sin * sin_part


def _apply_matrix(surface: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    return surface @ matrix.T.astype(np.float32)


def _axis_kernel(kernel: np.ndarray, size: int) -> np.ndarray:
    """Trim a centred kernel to at most ``size`` taps each side.

    Every tap at least ``size`` away samples the clamped edge pixel, so the
    trimmed weight is folded into the outermost remaining tap.
    """
    radius = len(kernel) // 2
    if radius <= size:
        return kernel
    trimmed = kernel[radius - size : radius + size + 1].copy()
    trimmed[0] += kernel[: radius - size].sum()
    trimmed[-1] += kernel[radius + size + 1 :].sum()
    return trimmed


def _gaussian_blur(surface: np.ndarray, sigma: float) -> np.ndarray:
    """Separable Gaussian blur with standard deviation ``sigma`` pixels."""
    if sigma <= 0:
        return surface
    radius = max(1, int(math.ceil(sigma * 3)))
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    full_kernel = np.exp(-(offsets**2) / (2.0 * sigma * sigma))
    full_kernel /= full_kernel.sum()

    for axis in (0, 1):
        size = surface.shape[axis]
        kernel = _axis_kernel(full_kernel, size).astype(np.float32)
        reach = len(kernel) // 2
        pad = [(0, 0)] * surface.ndim
        pad[axis] = (reach, reach)
        padded = np.pad(surface, pad, mode="edge")
        blurred = np.zeros_like(surface)
        for tap, weight in enumerate(kernel):
            window = [slice(None)] * surface.ndim
            window[axis] = slice(tap, tap + size)
            blurred += weight * padded[tuple(window)]
        surface = blurred
    return surface


def _apply_stage(surface: np.ndarray, stage: FilterStage, value: int) -> np.ndarray:
    amount = value / 100.0
    if stage is FilterStage.brightness:
        out = surface * amount
    elif stage is FilterStage.contrast:
        out = surface * amount + (0.5 - 0.5 * amount)
    elif stage is FilterStage.saturate:
        out = _apply_matrix(surface, _saturate_matrix(amount))
    elif stage is FilterStage.blur:
        out = _gaussian_blur(surface, float(value))
    elif stage is FilterStage.sepia:
        out = _apply_matrix(surface, _sepia_matrix(amount))
    elif stage is FilterStage.grayscale:
        out = _apply_matrix(surface, _grayscale_matrix(amount))
    else:
        out = _apply_matrix(surface, _hue_rotate_matrix(value))
    return np.clip(out, 0.0, 1.0, out=out)


def _apply_vignette(surface: np.ndarray) -> np.ndarray:
    """Paint a black radial gradient over the surface.

    Transparent inside VIGNETTE_INNER x min(w, h) from the centre, linear
    ramp to VIGNETTE_MAX_ALPHA at VIGNETTE_OUTER x min(w, h), constant beyond.
    """
    height, width = surface.shape[:2]
    shortest = min(width, height)
    inner, outer = VIGNETTE_INNER * shortest, VIGNETTE_OUTER * shortest

    ys = np.arange(height, dtype=np.float32) + 0.5 - height / 2.0
    xs = np.arange(width, dtype=np.float32) + 0.5 - width / 2.0
    distance = np.hypot(xs[np.newaxis, :], ys[:, np.newaxis])
    ramp = np.clip((distance - inner) / (outer - inner), 0.0, 1.0)
    alpha = VIGNETTE_MAX_ALPHA * ramp
    return surface * (1.0 - alpha)[..., np.newaxis]


# ---------------------------------------------------------------------------
# Decode / encode
# ---------------------------------------------------------------------------


def _source_bytes(source: ImageSource) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, Path):
        try:
            return source.read_bytes()
        except OSError as exc:
            raise ImageDecodeError(f"Cannot read image file {source}: {exc}") from exc
    if source.startswith("data:"):
        header, sep, payload = source.partition(",")
        if not sep:
            raise ImageDecodeError("Malformed data URI: missing ',' separator")
        if header.endswith(";base64"):
            return _b64decode(payload)
        return unquote_to_bytes(payload)
    if source.startswith(("http://", "https://")):
        raise ImageDecodeError("Remote image sources must be fetched before decoding")
    return _b64decode(source)


def _b64decode(payload: str) -> bytes:
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"Invalid base64 image payload: {exc}") from exc


def decode_image(source: ImageSource) -> Image.Image:
    """Decode ``source`` to an RGB image at its natural dimensions.

    EXIF orientation is applied, so phone photos come out upright with
    width and height as displayed. Transparent pixels are flattened over
    black, which is what a JPEG export of a transparent canvas produces.

    Raises:
        ImageDecodeError: When the bytes are not a decodable raster image.
    """
    data = _source_bytes(source)
    if not data:
        raise ImageDecodeError("Empty image payload")
    try:
        image = Image.open(BytesIO(data))
        image.load()
        image = ImageOps.exif_transpose(image)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"Cannot decode image: {exc}") from exc

    if image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info:
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (0, 0, 0, 255))
        return Image.alpha_composite(background, rgba).convert("RGB")
    return image.convert("RGB")


def encode_jpeg_data_uri(image: Image.Image, quality: int = DEFAULT_JPEG_QUALITY) -> str:
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}"


def allocate_surface(width: int, height: int, max_pixels: int = DEFAULT_MAX_PIXELS) -> np.ndarray:
    """Allocate a float RGB drawing surface of exactly ``width`` x ``height``.

    Raises:
        SurfaceAllocationError: Zero-area, over ``max_pixels``, or out of memory.
    """
    if width <= 0 or height <= 0:
        raise SurfaceAllocationError(f"Cannot allocate a {width}x{height} surface")
    if width * height > max_pixels:
        raise SurfaceAllocationError(
            f"Surface {width}x{height} exceeds the {max_pixels} pixel limit"
        )
    try:
        return np.empty((height, width, 3), dtype=np.float32)
    except MemoryError as exc:
        raise SurfaceAllocationError(f"Out of memory allocating {width}x{height} surface") from exc


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class FilterEngine:
    """Deterministic image filter pipeline.

    Holds only configuration; every call allocates its own surface, so one
    engine may serve concurrent requests.
    """

    def __init__(
        self,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
        vignette_model_ids: Iterable[str] = DEFAULT_VIGNETTE_MODEL_IDS,
        max_pixels: int = DEFAULT_MAX_PIXELS,
        fetch_timeout: float = 30.0,
        allowed_hosts: Iterable[str] = (),
        max_fetch_bytes: int = DEFAULT_MAX_FETCH_BYTES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.jpeg_quality = jpeg_quality
        self.vignette_model_ids = frozenset(vignette_model_ids)
        self.max_pixels = max_pixels
        self.fetch_timeout = fetch_timeout
        self.allowed_hosts = frozenset(allowed_hosts)
        self.max_fetch_bytes = max_fetch_bytes
        self._transport = transport

    def uses_vignette(self, model_id: Optional[str]) -> bool:
        return model_id is not None and model_id in self.vignette_model_ids

    def render(
        self, image: Image.Image, settings: FilterSettings, model_id: Optional[str] = None
    ) -> Image.Image:
        """Draw ``image`` through the filter chain onto a fresh surface."""
        width, height = image.size
        surface = allocate_surface(width, height, self.max_pixels)
        surface[...] = np.asarray(image, dtype=np.float32) / 255.0

        try:
            for stage, value in build_filter_chain(settings):
                surface = _apply_stage(surface, stage, value)
            if self.uses_vignette(model_id):
                surface = _apply_vignette(surface)
        except MemoryError as exc:
            raise SurfaceAllocationError(
                f"Out of memory filtering {width}x{height} surface"
            ) from exc

        pixels = np.clip(surface * 255.0 + 0.5, 0, 255).astype(np.uint8)
        return Image.fromarray(pixels, "RGB")

    def apply(
        self, source: ImageSource, settings: FilterSettings, model_id: Optional[str] = None
    ) -> str:
        """Filter ``source`` and return a JPEG data URI.

        Raises:
            ImageDecodeError: The source cannot be decoded.
            SurfaceAllocationError: The drawing surface cannot be allocated.
        """
        started = time.perf_counter()
        image = decode_image(source)
        result = self.render(image, settings, model_id)
        encoded = encode_jpeg_data_uri(result, self.jpeg_quality)
        logger.debug(
            "Applied filter %s (vignette=%s) to %dx%d image",
            format_filter_chain(build_filter_chain(settings)),
            self.uses_vignette(model_id),
            image.width,
            image.height,
            extra={
                "model_id": model_id,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return encoded

    async def apply_async(
        self, source: ImageSource, settings: FilterSettings, model_id: Optional[str] = None
    ) -> str:
        """Async variant of ``apply``; fetches http(s) sources first.

        Decoding, drawing and encoding run in a worker thread, in that order.
        """
        if isinstance(source, str) and source.startswith(("http://", "https://")):
            source = await self._fetch(source)
        return await asyncio.to_thread(self.apply, source, settings, model_id)

    async def _fetch(self, url: str) -> bytes:
        """Download a remote source from an allowed host, at most ``max_fetch_bytes``.

        Redirects are not followed, so a listed host cannot bounce the
        request elsewhere.
        """
        try:
            host = httpx.URL(url).host
        except httpx.InvalidURL as exc:
            raise ImageDecodeError(f"Invalid image URL: {url}") from exc
        if host not in self.allowed_hosts:
            raise ImageDecodeError(f"Remote images from host {host!r} are not allowed")

        chunks: list[bytes] = []
        received = 0
        try:
            async with httpx.AsyncClient(
                timeout=self.fetch_timeout, transport=self._transport
            ) as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    async for chunk in response.aiter_bytes():
                        received += len(chunk)
                        if received > self.max_fetch_bytes:
                            raise ImageDecodeError(
                                f"Remote image exceeds {self.max_fetch_bytes} bytes"
                            )
                        chunks.append(chunk)
        except httpx.HTTPError as exc:
            raise ImageDecodeError(f"Cannot fetch image from {url}: {exc}") from exc
        return b"".join(chunks)
