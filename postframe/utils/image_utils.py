"""图片工具函数模块.

提供图片字节解码、MIME 类型推断和编码输出等工具函数。
"""

from __future__ import annotations

import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from postframe.utils.constants import (
    DEFAULT_OUTPUT_QUALITY,
    EXTENSION_MIME_TYPES,
    SUPPORTED_MIME_TYPES,
)
from postframe.utils.exceptions import DecodeError
from postframe.utils.logger import setup_logger

logger = setup_logger(__name__)


def guess_mime_type(path: Path | str) -> str:
    """根据扩展名推断 MIME 类型.

    Args:
        path: 文件路径

    Returns:
        MIME 类型，无法识别时返回 application/octet-stream
    """
    ext = Path(path).suffix.lower()
    return EXTENSION_MIME_TYPES.get(ext, "application/octet-stream")


def is_supported_mime_type(mime_type: str) -> bool:
    """检查 MIME 类型是否支持解码."""
    return mime_type.lower() in SUPPORTED_MIME_TYPES


def bytes_to_image(data: bytes, mime_type: str = "image/png") -> Image.Image:
    """字节数据解码为图片.

    会强制把像素读入内存，解码结果与输入字节不再关联。

    Args:
        data: 图片字节数据
        mime_type: 声明的 MIME 类型

    Returns:
        PIL Image 对象

    Raises:
        DecodeError: 类型不支持、数据为空或无法解码
    """
    if not is_supported_mime_type(mime_type):
        raise DecodeError(f"不支持的图片类型: {mime_type}")
    if not data:
        raise DecodeError("图片数据为空")

    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.error(f"解码图片失败 ({mime_type}, {len(data)} bytes): {e}")
        raise DecodeError(f"无法解码图片数据: {e}") from e

    return img


def ensure_rgba(image: Image.Image) -> Image.Image:
    """确保图片为 RGBA 模式.

    Args:
        image: PIL Image 对象

    Returns:
        RGBA 模式的图片
    """
    if image.mode != "RGBA":
        return image.convert("RGBA")
    return image


def image_to_bytes(
    image: Image.Image,
    format: str = "PNG",
    quality: int = DEFAULT_OUTPUT_QUALITY,
) -> bytes:
    """图片编码为字节数据.

    Args:
        image: PIL Image 对象
        format: 目标格式 (PNG, JPEG, WEBP)
        quality: JPEG/WEBP 质量

    Returns:
        图片字节数据
    """
    buffer = io.BytesIO()
    fmt = format.upper()
    if fmt == "JPG":
        fmt = "JPEG"

    if fmt == "JPEG" and image.mode in ("RGBA", "P", "LA"):
        image = image.convert("RGB")

    save_kwargs = {}
    if fmt in ("JPEG", "WEBP"):
        save_kwargs["quality"] = quality

    image.save(buffer, format=fmt, **save_kwargs)
    return buffer.getvalue()


def save_image(
    image: Image.Image,
    path: Path | str,
    quality: int = DEFAULT_OUTPUT_QUALITY,
) -> Path:
    """保存图片，格式由扩展名决定.

    Args:
        image: PIL Image 对象
        path: 保存路径
        quality: JPEG 质量

    Returns:
        保存的文件路径
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fmt = Image.registered_extensions().get(path.suffix.lower(), "PNG")
    path.write_bytes(image_to_bytes(image, format=fmt, quality=quality))
    logger.debug(f"图片已保存: {path}")

    return path
