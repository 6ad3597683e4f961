"""服务模块."""

from postframe.services.image_decoder import BaseImageDecoder, PillowImageDecoder
from postframe.services.options_store import (
    BaseKeyValueStore,
    JsonFileKeyValueStore,
    MemoryKeyValueStore,
    OptionsStore,
    use_options,
)

__all__ = [
    "BaseImageDecoder",
    "PillowImageDecoder",
    "BaseKeyValueStore",
    "JsonFileKeyValueStore",
    "MemoryKeyValueStore",
    "OptionsStore",
    "use_options",
]
