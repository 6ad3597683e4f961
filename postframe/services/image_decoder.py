"""图片解码服务.

定义解码器接口并提供基于 Pillow 的默认实现。
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from PIL import Image

from postframe.utils.image_utils import bytes_to_image
from postframe.utils.logger import setup_logger

logger = setup_logger(__name__)


class BaseImageDecoder(ABC):
    """图片解码器抽象基类.

    解码结果必须保留图片的原始像素尺寸，失败时抛出 DecodeError。

    Example:
        >>> decoder = PillowImageDecoder()
        >>> image = decoder.decode(png_bytes, "image/png")
    """

    @abstractmethod
    def decode(self, data: bytes, mime_type: str) -> Image.Image:
        """解码图片.

        Args:
            data: 原始字节数据
            mime_type: MIME 类型

        Returns:
            解码后的图片

        Raises:
            DecodeError: 无法解码
        """


class PillowImageDecoder(BaseImageDecoder):
    """基于 Pillow 的图片解码器."""

    def decode(self, data: bytes, mime_type: str) -> Image.Image:
        image = bytes_to_image(data, mime_type)
        logger.debug(f"解码完成: {mime_type}, {image.width}x{image.height}, mode={image.mode}")
        return image
