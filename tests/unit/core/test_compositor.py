"""图层合成器单元测试."""

from __future__ import annotations

import io
import time
from unittest.mock import MagicMock

import pytest
from PIL import Image

from postframe.core.compositor import Compositor, compose_frame
from postframe.core.surface import Canvas
from postframe.models.app_settings import Settings
from postframe.models.layer_options import (
    BackgroundOptions,
    CanvasFormat,
    WatermarkOptions,
)
from postframe.models.sources import CompositionLayers, ImageSource
from postframe.services.image_decoder import BaseImageDecoder
from postframe.utils.exceptions import (
    DecodeError,
    PatternCreationError,
    SurfaceUnavailableError,
)

from conftest import BLUE, CLEAR, GREEN, RED


@pytest.fixture
def compositor(settings: Settings) -> Compositor:
    return Compositor(settings=settings)


class SlowDecoder(BaseImageDecoder):
    """按数据内容决定耗时和成败的解码器."""

    def __init__(self, bad=(), delays=None) -> None:
        self.bad = set(bad)
        self.delays = delays or {}
        self.finished: list[bytes] = []

    def decode(self, data: bytes, mime_type: str) -> Image.Image:
        if data in self.bad:
            time.sleep(self.delays.get(data, 0))
            raise DecodeError("数据损坏")
        time.sleep(self.delays.get(data, 0.2))
        self.finished.append(data)
        return Image.new("RGBA", (10, 10), RED)


def all_layers() -> CompositionLayers:
    return CompositionLayers(
        background=ImageSource(data=b"background", mime_type="image/png"),
        foreground=ImageSource(data=b"foreground", mime_type="image/png"),
        watermark=ImageSource(data=b"watermark", mime_type="image/png"),
    )


# ===================
# 合成顺序与位置测试
# ===================
class TestCompose:
    """测试合成流程."""

    @pytest.mark.asyncio
    async def test_all_layers(self, compositor, canvas, make_source) -> None:
        """测试三层合成结果."""
        layers = CompositionLayers(
            background=make_source((2000, 1000), BLUE),
            foreground=make_source((500, 500), RED),
            watermark=make_source((100, 50), GREEN),
        )

        await compositor.compose(canvas, layers)

        # 背景 contain 后上下留出清屏灰
        assert canvas.image.getpixel((540, 100)) == CLEAR
        assert canvas.image.getpixel((100, 300)) == BLUE
        assert canvas.image.getpixel((540, 540)) == RED
        assert canvas.image.getpixel((1000, 1020)) == GREEN

    @pytest.mark.asyncio
    async def test_no_layers_clears(self, compositor, canvas) -> None:
        """测试没有任何图层时画布为纯灰."""
        await compositor.compose(canvas, CompositionLayers())

        assert canvas.image.getextrema() == ((204, 204), (204, 204), (204, 204), (255, 255))

    @pytest.mark.asyncio
    async def test_watermark_only(self, compositor, canvas, make_source) -> None:
        """测试只有水印."""
        layers = CompositionLayers(watermark=make_source((100, 50), GREEN))

        await compositor.compose(canvas, layers)

        assert canvas.image.getpixel((540, 540)) == CLEAR
        assert canvas.image.getpixel((948, 998)) == GREEN
        assert canvas.image.getpixel((947, 998)) == CLEAR

    @pytest.mark.asyncio
    async def test_previous_content_cleared(self, compositor, canvas, make_source) -> None:
        """测试每次合成前先清屏."""
        await compositor.compose(canvas, CompositionLayers(foreground=make_source((2000, 2000))))
        await compositor.compose(canvas, CompositionLayers())

        assert canvas.image.getpixel((540, 540)) == CLEAR

    @pytest.mark.asyncio
    async def test_z_order(self, compositor, canvas, make_source) -> None:
        """测试水印在前景之上，前景在背景之上."""
        layers = CompositionLayers(
            background=make_source((2000, 2000), BLUE),
            foreground=make_source((2000, 2000), RED),
            watermark=make_source((100, 50), GREEN),
        )

        await compositor.compose(canvas, layers)

        assert canvas.image.getpixel((0, 0)) == RED
        assert canvas.image.getpixel((1000, 1020)) == GREEN

    @pytest.mark.asyncio
    async def test_reuse_foreground(self, compositor, canvas, make_source) -> None:
        """测试背景复用前景图片并铺满画布."""
        layers = CompositionLayers(
            background=make_source((100, 100), BLUE),
            foreground=make_source((500, 500), RED),
            background_options=BackgroundOptions(reuse_foreground=True),
        )

        await compositor.compose(canvas, layers)

        assert canvas.image.getpixel((0, 0)) == RED
        assert canvas.image.getpixel((1079, 1079)) == RED

    @pytest.mark.asyncio
    async def test_reuse_without_foreground(self, compositor, canvas, make_source) -> None:
        """测试复用前景但没有前景时不绘制背景."""
        layers = CompositionLayers(
            background=make_source((2000, 2000), BLUE),
            background_options=BackgroundOptions(reuse_foreground=True),
        )

        await compositor.compose(canvas, layers)

        assert canvas.image.getpixel((540, 540)) == CLEAR

    @pytest.mark.asyncio
    async def test_watermark_opacity(self, compositor, canvas, make_source) -> None:
        """测试水印透明度与清屏色混合."""
        layers = CompositionLayers(
            watermark=make_source((100, 50), (0, 0, 0, 255)),
            watermark_options=WatermarkOptions(opacity=0.5),
        )

        await compositor.compose(canvas, layers)

        r, g, b, a = canvas.image.getpixel((1000, 1020))
        assert abs(r - 102) <= 2
        assert a == 255

    @pytest.mark.asyncio
    async def test_progress(self, compositor, canvas, make_source) -> None:
        """测试进度回调."""
        calls: list[tuple[int, str]] = []

        await compositor.compose(
            canvas,
            CompositionLayers(foreground=make_source((10, 10))),
            on_progress=lambda progress, message: calls.append((progress, message)),
        )

        values = [progress for progress, _ in calls]
        assert values == sorted(values)
        assert values[-1] == 100


# ===================
# 错误处理测试
# ===================
class TestComposeErrors:
    """测试合成失败的情况."""

    @pytest.mark.asyncio
    async def test_decode_error_leaves_canvas_untouched(self, compositor, canvas, make_source) -> None:
        """测试解码失败时画布保持原样."""
        layers = CompositionLayers(
            background=make_source((100, 100)),
            foreground=ImageSource(data=b"not an image", mime_type="image/png"),
        )

        with pytest.raises(DecodeError) as exc_info:
            await compositor.compose(canvas, layers)

        assert exc_info.value.role == "foreground"
        assert exc_info.value.code == "DECODE_ERROR"
        assert canvas.image.getextrema()[3] == (0, 0)

    @pytest.mark.asyncio
    async def test_unsupported_mime_type(self, compositor, canvas) -> None:
        """测试不支持的 MIME 类型."""
        layers = CompositionLayers(
            background=ImageSource(data=b"%PDF-1.4", mime_type="application/pdf"),
        )

        with pytest.raises(DecodeError) as exc_info:
            await compositor.compose(canvas, layers)

        assert exc_info.value.role == "background"

    @pytest.mark.asyncio
    async def test_decoder_failure_is_wrapped(self, settings, canvas, make_source) -> None:
        """测试解码器的任意异常都转换为 DecodeError."""
        decoder = MagicMock(spec=BaseImageDecoder)
        decoder.decode.side_effect = RuntimeError("boom")
        compositor = Compositor(decoder=decoder, settings=settings)

        with pytest.raises(DecodeError) as exc_info:
            await compositor.compose(canvas, CompositionLayers(watermark=make_source((10, 10))))

        assert exc_info.value.role == "watermark"
        assert "boom" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_decode_error_waits_for_other_layers(self, settings, canvas) -> None:
        """测试解码失败后仍等待其余图层解码结束."""
        decoder = SlowDecoder(bad={b"background"})
        compositor = Compositor(decoder=decoder, settings=settings)

        with pytest.raises(DecodeError) as exc_info:
            await compositor.compose(canvas, all_layers())

        assert exc_info.value.role == "background"
        assert sorted(decoder.finished) == [b"foreground", b"watermark"]

    @pytest.mark.asyncio
    async def test_first_error_in_layer_order(self, settings, canvas) -> None:
        """测试多个图层失败时按图层顺序报告."""
        # 背景最后失败，水印最先失败
        decoder = SlowDecoder(bad={b"background", b"watermark"}, delays={b"background": 0.2})
        compositor = Compositor(decoder=decoder, settings=settings)

        with pytest.raises(DecodeError) as exc_info:
            await compositor.compose(canvas, all_layers())

        assert exc_info.value.role == "background"
        assert canvas.image.getextrema()[3] == (0, 0)

    @pytest.mark.asyncio
    async def test_surface_unavailable(self, settings, make_source) -> None:
        """测试画布无法提供上下文时不解码."""
        decoder = MagicMock(spec=BaseImageDecoder)
        compositor = Compositor(decoder=decoder, settings=settings)
        canvas = Canvas(1080, 1080)
        canvas.release()

        with pytest.raises(SurfaceUnavailableError):
            await compositor.compose(canvas, CompositionLayers(foreground=make_source((10, 10))))

        decoder.decode.assert_not_called()

    @pytest.mark.asyncio
    async def test_pattern_too_large(self, canvas, make_source) -> None:
        """测试平铺图案超出上限."""
        compositor = Compositor(settings=Settings(_env_file=None, max_pattern_pixels=1000))
        layers = CompositionLayers(
            background=make_source((100, 100)),
            background_options=BackgroundOptions(repeat=True),
        )

        with pytest.raises(PatternCreationError):
            await compositor.compose(canvas, layers)


# ===================
# 输出测试
# ===================
class TestOutput:
    """测试合成输出."""

    @pytest.mark.asyncio
    async def test_compose_to_image_default_format(self, compositor, make_source) -> None:
        """测试默认画布规格."""
        image = await compositor.compose_to_image(CompositionLayers(foreground=make_source((10, 10))))
        assert image.size == (1080, 1080)
        assert image.mode == "RGBA"

    @pytest.mark.asyncio
    async def test_compose_to_bytes_portrait(self, compositor, make_source) -> None:
        """测试输出 4:5 PNG."""
        data = await compositor.compose_to_bytes(
            CompositionLayers(foreground=make_source((500, 500))),
            CanvasFormat.PORTRAIT,
        )

        with Image.open(io.BytesIO(data)) as image:
            assert image.format == "PNG"
            assert image.size == (1080, 1350)
            assert image.convert("RGBA").getpixel((540, 675)) == RED

    @pytest.mark.asyncio
    async def test_compose_to_bytes_jpeg(self, compositor, make_source) -> None:
        """测试输出 JPEG."""
        data = await compositor.compose_to_bytes(
            CompositionLayers(foreground=make_source((500, 500))),
            format="JPEG",
        )

        with Image.open(io.BytesIO(data)) as image:
            assert image.format == "JPEG"
            assert image.mode == "RGB"

    def test_compose_frame_sync(self, make_source) -> None:
        """测试同步便捷函数."""
        image = compose_frame(
            CompositionLayers(foreground=make_source((500, 500))),
            CanvasFormat.PORTRAIT,
        )

        assert image.size == (1080, 1350)
        assert image.getpixel((540, 675)) == RED
        assert image.getpixel((10, 10)) == CLEAR
