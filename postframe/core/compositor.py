"""图层合成器模块.

按固定顺序（背景 → 前景 → 水印）把最多三个图层合成到目标画布。

Features:
    - 并发解码所有图层，全部完成后才开始绘制
    - 解码失败时不触碰画布
    - 背景可复用前景图片
    - 输出为 PIL 图片或编码后的字节
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from PIL import Image

from postframe.core.layer_renderer import LayerRenderer
from postframe.core.surface import FILTER_NONE, Canvas, PaintContext
from postframe.models.app_settings import Settings, get_settings
from postframe.models.layer_options import CanvasFormat
from postframe.models.rect import Rect
from postframe.models.sources import CompositionLayers, DecodedLayers, ImageSource
from postframe.services.image_decoder import BaseImageDecoder, PillowImageDecoder
from postframe.utils.constants import CANVAS_CLEAR_COLOR
from postframe.utils.error_handler import handle_exception
from postframe.utils.exceptions import AppException, DecodeError, SurfaceUnavailableError
from postframe.utils.image_utils import image_to_bytes
from postframe.utils.logger import setup_logger

logger = setup_logger(__name__)

# 进度回调类型
ProgressCallback = Callable[[int, str], None]


class Compositor:
    """图层合成器.

    Attributes:
        decoder: 图片解码器
        settings: 应用设置

    Example:
        >>> compositor = Compositor()
        >>> canvas = Canvas.for_format(CanvasFormat.SQUARE)
        >>> await compositor.compose(
        ...     canvas,
        ...     CompositionLayers(foreground=ImageSource.from_path("photo.jpg")),
        ... )
    """

    def __init__(
        self,
        decoder: Optional[BaseImageDecoder] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.decoder = decoder or PillowImageDecoder()
        self._settings = settings

    @property
    def settings(self) -> Settings:
        """获取应用设置."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    async def compose(
        self,
        canvas: Canvas,
        layers: CompositionLayers,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """执行合成.

        调用方需保证同一画布上的合成串行执行。

        Args:
            canvas: 目标画布，就地修改
            layers: 图层输入
            on_progress: 进度回调

        Raises:
            SurfaceUnavailableError: 画布无法提供绘制上下文
            DecodeError: 任一图层解码失败，画布保持调用前状态
            DimensionError: 图片宽或高为 0
            PatternCreationError: 无法创建平铺图案
        """

        def report_progress(progress: int, message: str) -> None:
            if on_progress:
                on_progress(progress, message)
            logger.debug(f"进度 {progress}%: {message}")

        context = canvas.get_context()
        if context is None:
            logger.error("画布无法提供绘制上下文")
            raise SurfaceUnavailableError()

        try:
            # Step 1: 并发解码
            report_progress(5, "解码图片")
            decoded = await self._decode_all(layers)
            report_progress(50, "解码完成")

            # Step 2: 清屏
            self._clear(context)
            renderer = LayerRenderer(context, self.settings.max_pattern_pixels)

            # Step 3: 背景
            options = layers.background_options
            background = decoded.foreground if options.reuse_foreground else decoded.background
            if background is not None:
                rect = renderer.paint_background(background, options)
                logger.debug(f"背景已绘制: {rect}")
            report_progress(70, "背景完成")

            # Step 4: 前景
            if decoded.foreground is not None:
                rect = renderer.paint_foreground(decoded.foreground, layers.foreground_options)
                logger.debug(f"前景已绘制: {rect}")
            report_progress(85, "前景完成")

            # Step 5: 水印
            if decoded.watermark is not None:
                rect = renderer.paint_watermark(decoded.watermark, layers.watermark_options)
                logger.debug(f"水印已绘制: {rect}")
            report_progress(100, "完成")

        except AppException as e:
            handle_exception(e, context="图层合成", reraise=False)
            raise

    async def compose_to_image(
        self,
        layers: CompositionLayers,
        canvas_format: Optional[CanvasFormat] = None,
    ) -> Image.Image:
        """在新画布上合成并返回结果图片.

        Args:
            layers: 图层输入
            canvas_format: 画布规格，默认使用设置中的规格

        Returns:
            RGBA 合成结果
        """
        canvas = Canvas.for_format(canvas_format or self.settings.default_format)
        await self.compose(canvas, layers)
        return canvas.snapshot()

    async def compose_to_bytes(
        self,
        layers: CompositionLayers,
        canvas_format: Optional[CanvasFormat] = None,
        format: str = "PNG",
    ) -> bytes:
        """合成并编码为图片字节.

        Args:
            layers: 图层输入
            canvas_format: 画布规格
            format: 输出格式 (PNG, JPEG, WEBP)

        Returns:
            编码后的图片数据
        """
        image = await self.compose_to_image(layers, canvas_format)
        return image_to_bytes(image, format=format, quality=self.settings.output_quality)

    async def _decode_all(self, layers: CompositionLayers) -> DecodedLayers:
        """并发解码三个图层，全部完成后返回.

        Raises:
            DecodeError: 任一图层解码失败
        """
        loop = asyncio.get_running_loop()

        async def decode(role: str, source: Optional[ImageSource]) -> Optional[Image.Image]:
            if source is None:
                return None
            try:
                return await loop.run_in_executor(
                    None, self.decoder.decode, source.data, source.mime_type
                )
            except DecodeError as e:
                raise DecodeError(e.message, role=role) from e
            except Exception as e:
                raise DecodeError(str(e), role=role) from e

        # 等待全部解码结束，再按图层顺序抛出第一个错误
        results = await asyncio.gather(
            *(decode(role, source) for role, source in layers.sources().items()),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        background, foreground, watermark = results
        return DecodedLayers(background=background, foreground=foreground, watermark=watermark)

    @staticmethod
    def _clear(context: PaintContext) -> None:
        """用中性灰填满画布."""
        canvas = context.canvas
        context.save()
        try:
            context.filter = FILTER_NONE
            context.global_alpha = 1.0
            context.fill_rect(Rect.from_size(canvas.size), CANVAS_CLEAR_COLOR)
        finally:
            context.restore()


# 便捷函数
def compose_frame(
    layers: CompositionLayers,
    canvas_format: CanvasFormat = CanvasFormat.SQUARE,
    decoder: Optional[BaseImageDecoder] = None,
) -> Image.Image:
    """同步合成一帧（便捷函数）.

    不能在已运行的事件循环中调用，此时应直接 await Compositor.compose_to_image。

    Args:
        layers: 图层输入
        canvas_format: 画布规格
        decoder: 图片解码器

    Returns:
        RGBA 合成结果
    """
    compositor = Compositor(decoder=decoder)
    return asyncio.run(compositor.compose_to_image(layers, canvas_format))
