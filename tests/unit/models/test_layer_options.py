"""图层选项模型单元测试."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from postframe.models.layer_options import (
    DEFAULT_BACKGROUND_OPTIONS,
    DEFAULT_WATERMARK_OPTIONS,
    AnchorPosition,
    BackgroundOptions,
    CanvasFormat,
    FitMode,
    ForegroundOptions,
    GeneralOptions,
    WatermarkCorner,
    WatermarkOptions,
    clamp_opacity,
)
from postframe.models.rect import Rect


# ===================
# 枚举测试
# ===================
class TestEnums:
    """测试枚举定义."""

    def test_canvas_format_sizes(self) -> None:
        """测试画布规格解析."""
        assert CanvasFormat.SQUARE.size == (1080, 1080)
        assert CanvasFormat.PORTRAIT.size == (1080, 1350)
        assert CanvasFormat.PORTRAIT.width == 1080
        assert CanvasFormat.PORTRAIT.height == 1350

    def test_canvas_format_from_value(self) -> None:
        """测试从字符串值构造."""
        assert CanvasFormat("4:5-1080x1350px") is CanvasFormat.PORTRAIT

    @pytest.mark.parametrize(
        ("corner", "is_left", "is_top"),
        [
            (WatermarkCorner.TOP_LEFT, True, True),
            (WatermarkCorner.TOP_RIGHT, False, True),
            (WatermarkCorner.BOTTOM_LEFT, True, False),
            (WatermarkCorner.BOTTOM_RIGHT, False, False),
        ],
    )
    def test_watermark_corner(self, corner, is_left, is_top) -> None:
        """测试角落方向判断."""
        assert corner.is_left is is_left
        assert corner.is_top is is_top


# ===================
# 背景选项测试
# ===================
class TestBackgroundOptions:
    """测试背景选项."""

    def test_defaults(self) -> None:
        """测试默认值."""
        options = BackgroundOptions()
        assert options.blur == 0
        assert options.brightness == 100
        assert options.repeat is False
        assert options.reuse_foreground is False
        assert options.scale == 1.0
        assert options == DEFAULT_BACKGROUND_OPTIONS

    def test_fit_mode(self) -> None:
        """测试复用前景时为 cover."""
        assert BackgroundOptions().fit_mode == FitMode.CONTAIN
        assert BackgroundOptions(reuse_foreground=True).fit_mode == FitMode.COVER

    @pytest.mark.parametrize(
        "kwargs",
        [{"blur": -1}, {"brightness": -5}, {"scale": 0}, {"scale": -1}],
    )
    def test_invalid_values(self, kwargs) -> None:
        """测试无效取值."""
        with pytest.raises(ValidationError):
            BackgroundOptions(**kwargs)


# ===================
# 前景选项测试
# ===================
class TestForegroundOptions:
    """测试前景选项."""

    def test_defaults(self) -> None:
        """测试默认值."""
        options = ForegroundOptions()
        assert options.mode == FitMode.CONTAIN
        assert options.position == AnchorPosition.CENTER
        assert options.rotation_in_degrees == 0

    def test_from_strings(self) -> None:
        """测试从字符串值解析."""
        options = ForegroundOptions(mode="cover", position="end", rotation_in_degrees=270)
        assert options.mode is FitMode.COVER
        assert options.position is AnchorPosition.END

    @pytest.mark.parametrize("degrees", [45, 360, -90])
    def test_rotation_must_be_right_angle(self, degrees) -> None:
        """测试只支持直角旋转."""
        with pytest.raises(ValidationError):
            ForegroundOptions(rotation_in_degrees=degrees)


# ===================
# 水印选项测试
# ===================
class TestWatermarkOptions:
    """测试水印选项."""

    def test_defaults(self) -> None:
        """测试默认值."""
        assert DEFAULT_WATERMARK_OPTIONS.opacity == 1.0
        assert DEFAULT_WATERMARK_OPTIONS.position == WatermarkCorner.BOTTOM_RIGHT
        assert DEFAULT_WATERMARK_OPTIONS.scale == 1.0

    def test_opacity_stored_raw(self) -> None:
        """测试超出范围的不透明度按原值保存."""
        options = WatermarkOptions(opacity=1.5)
        assert options.opacity == 1.5
        assert options.effective_opacity == 1.0

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(-0.2, 0.0), (0, 0.0), (0.4, 0.4), (1, 1.0), (3, 1.0)],
    )
    def test_clamp_opacity(self, value, expected) -> None:
        """测试不透明度截断."""
        assert clamp_opacity(value) == expected

    def test_json_round_trip(self) -> None:
        """测试 JSON 序列化保留枚举值."""
        options = WatermarkOptions(opacity=0.5, position=WatermarkCorner.TOP_LEFT)
        data = options.model_dump(mode="json")
        assert data["position"] == "top-left"
        assert WatermarkOptions.model_validate(data) == options


class TestGeneralOptions:
    """测试通用选项."""

    def test_default_format(self) -> None:
        assert GeneralOptions().format is CanvasFormat.SQUARE

    def test_invalid_format(self) -> None:
        with pytest.raises(ValidationError):
            GeneralOptions(format="16:9-1920x1080px")


# ===================
# 矩形测试
# ===================
class TestRect:
    """测试矩形值对象."""

    def test_properties(self) -> None:
        """测试派生属性."""
        rect = Rect(10, 20, 100, 50)
        assert rect.size == (100, 50)
        assert rect.center == (60, 45)
        assert rect.right == 110
        assert rect.bottom == 70

    def test_from_size(self) -> None:
        assert Rect.from_size((1080, 1350)) == Rect(0, 0, 1080, 1350)

    def test_offset(self) -> None:
        assert Rect(10, 20, 5, 5).offset(-10, 5) == Rect(0, 25, 5, 5)

    def test_is_close(self) -> None:
        """测试近似比较."""
        assert Rect(0, 0, 1, 1).is_close(Rect(1e-9, 0, 1, 1))
        assert not Rect(0, 0, 1, 1).is_close(Rect(0.1, 0, 1, 1))
