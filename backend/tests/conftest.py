"""Shared test fixtures and configuration."""
import base64
from io import BytesIO
from typing import Callable, Iterator

import numpy as np
import pytest
from PIL import Image

from studio.services.store import InMemoryRecordStore


@pytest.fixture(autouse=True)
def set_required_env_vars(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Pin the store backend and drop any cached Settings between tests."""
    from studio.core.config import get_settings

    monkeypatch.setenv("STORE_BACKEND", "memory")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def make_image_bytes() -> Callable[..., bytes]:
    """Factory for encoded test images.

    ``pattern="solid"`` fills with ``color``; ``"gradient"`` produces a
    deterministic colour ramp; ``"noise"`` produces seeded random pixels.
    """

    def _make(
        width: int = 64,
        height: int = 48,
        color: tuple = (200, 100, 50),
        pattern: str = "solid",
        fmt: str = "PNG",
        mode: str = "RGB",
    ) -> bytes:
        if pattern == "gradient":
            xs = np.linspace(0, 255, width, dtype=np.float64)
            ys = np.linspace(0, 255, height, dtype=np.float64)
            pixels = np.zeros((height, width, 3), dtype=np.uint8)
            pixels[..., 0] = xs[np.newaxis, :]
            pixels[..., 1] = ys[:, np.newaxis]
            pixels[..., 2] = 255 - xs[np.newaxis, :]
            image = Image.fromarray(pixels, "RGB")
        elif pattern == "noise":
            rng = np.random.default_rng(0)
            pixels = rng.integers(0, 256, (height, width, 3), dtype=np.uint8)
            image = Image.fromarray(pixels, "RGB")
        else:
            image = Image.new(mode, (width, height), color)
        buffer = BytesIO()
        image.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def to_data_uri() -> Callable[[bytes, str], str]:
    def _encode(data: bytes, mime: str = "image/png") -> str:
        return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"

    return _encode


@pytest.fixture
def open_data_uri() -> Callable[[str], Image.Image]:
    """Open a base64 data URI returned by the filter engine."""

    def _open(uri: str) -> Image.Image:
        _, _, payload = uri.partition(",")
        return Image.open(BytesIO(base64.b64decode(payload)))

    return _open
