"""应用常量定义."""

from pathlib import Path

# ===================
# 应用信息
# ===================
APP_NAME = "postframe"
APP_VERSION = "0.3.0"

# ===================
# 路径常量
# ===================
# 应用数据目录
APP_DATA_DIR = Path.home() / ".postframe"

# 日志目录
LOG_DIR = APP_DATA_DIR / "logs"

# 选项持久化文件
OPTIONS_FILE = APP_DATA_DIR / "options.json"

# ===================
# 画布设置
# ===================
# 清屏使用的中性灰 (#cccccc)
CANVAS_CLEAR_COLOR = (204, 204, 204, 255)

# ===================
# 图层设置
# ===================
# 水印内边距占画布短边的比例
WATERMARK_PADDING_RATIO = 0.03

# 背景亮度默认值（百分比，100 表示不变）
DEFAULT_BRIGHTNESS = 100

# 平铺图块允许的最大像素数 (64MP)
MAX_PATTERN_PIXELS = 64 * 1024 * 1024

# ===================
# 图片格式
# ===================
# 支持解码的 MIME 类型
SUPPORTED_MIME_TYPES = {
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/bmp",
    "image/gif",
}

# 扩展名到 MIME 类型的映射
EXTENSION_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".gif": "image/gif",
}

# 默认输出质量 (1-100)
DEFAULT_OUTPUT_QUALITY = 90
