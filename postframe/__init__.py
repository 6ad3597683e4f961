"""postframe: 三图层（背景、前景、水印）画布合成引擎."""

from postframe.core import Canvas, Compositor, compose_frame
from postframe.models import (
    BackgroundOptions,
    CanvasFormat,
    ForegroundOptions,
    Rect,
    WatermarkOptions,
)
from postframe.models.sources import CompositionLayers, ImageSource
from postframe.utils.constants import APP_VERSION

__version__ = APP_VERSION

__all__ = [
    "BackgroundOptions",
    "Canvas",
    "CanvasFormat",
    "Compositor",
    "CompositionLayers",
    "ForegroundOptions",
    "ImageSource",
    "Rect",
    "WatermarkOptions",
    "compose_frame",
]
