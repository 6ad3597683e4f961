"""Pytest 配置和共享 fixtures."""

from __future__ import annotations

import io
from typing import Callable

import pytest
from PIL import Image

from postframe.core.surface import Canvas
from postframe.models.app_settings import Settings, get_settings
from postframe.models.sources import ImageSource
from postframe.utils.constants import CANVAS_CLEAR_COLOR

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
CLEAR = CANVAS_CLEAR_COLOR


def png_bytes(size: tuple[int, int], color=RED, mode: str = "RGBA") -> bytes:
    """生成纯色 PNG 字节数据."""
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """每个用例使用独立的全局设置."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """返回默认设置."""
    return Settings(_env_file=None)


@pytest.fixture
def canvas() -> Canvas:
    """1080x1080 透明画布."""
    return Canvas(1080, 1080)


@pytest.fixture
def make_source() -> Callable[..., ImageSource]:
    """生成纯色 PNG 图片源的工厂."""

    def factory(size: tuple[int, int], color=RED) -> ImageSource:
        return ImageSource(data=png_bytes(size, color), mime_type="image/png")

    return factory
