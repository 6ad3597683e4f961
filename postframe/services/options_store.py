"""选项存储服务.

把用户选择的图层选项保存到键值存储中。每次 ``set`` 都会同步写入存储，
然后通知订阅者。

Features:
    - 启动时从键值存储恢复选项
    - 写入即持久化（JSON）
    - 订阅/取消订阅变更通知
    - 内存与 JSON 文件两种键值存储
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from postframe.models.app_settings import get_settings
from postframe.utils.exceptions import ConfigError, InvalidConfigValueError
from postframe.utils.logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T", bound=BaseModel)

# 变更回调类型
Listener = Callable[[Any], None]


# ===================
# 键值存储
# ===================


class BaseKeyValueStore(ABC):
    """键值存储抽象基类，值为字符串."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """读取键值，不存在时返回 None."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """写入键值."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """删除键值，不存在时忽略."""


class MemoryKeyValueStore(BaseKeyValueStore):
    """内存键值存储."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class JsonFileKeyValueStore(BaseKeyValueStore):
    """JSON 文件键值存储.

    所有键保存在同一个 JSON 对象中，每次写入都会重写整个文件。

    Attributes:
        path: JSON 文件路径
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            content = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"读取选项文件失败，按空文件处理: {self.path}, {e}")
            return {}
        if not isinstance(content, dict):
            logger.warning(f"选项文件格式无效，按空文件处理: {self.path}")
            return {}
        return content

    def _dump(self, items: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(items, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            logger.error(f"保存选项文件失败: {e}")
            raise ConfigError(f"保存选项文件失败: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._dump(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if key in items:
            del items[key]
            self._dump(items)


# ===================
# 选项存储
# ===================


class OptionsStore(Generic[T]):
    """持久化的选项存储.

    Attributes:
        key: 键值存储中的键
        value: 当前选项

    Example:
        >>> store = OptionsStore("background", BackgroundOptions(), MemoryKeyValueStore())
        >>> store.update(blur=4)
        >>> store.value.blur
        4.0
    """

    def __init__(self, key: str, initial: T, storage: BaseKeyValueStore) -> None:
        self.key = key
        self._model = type(initial)
        self._storage = storage
        self._listeners: list[Listener] = []
        self._value: T = initial

        stored = storage.get_item(key)
        if stored:
            try:
                self._value = self._model.model_validate_json(stored)
                logger.debug(f"已恢复选项: {key}")
            except ValidationError as e:
                logger.warning(f"选项 '{key}' 无效，使用初始值: {e}")

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        """替换选项，立即持久化并通知订阅者.

        Args:
            value: 新选项
        """
        if not isinstance(value, self._model):
            value = self._model.model_validate(value)
        self._storage.set_item(self.key, value.model_dump_json())
        self._value = value

        for listener in list(self._listeners):
            listener(value)

    def update(self, **changes: Any) -> T:
        """修改部分字段，等价于用修改后的副本调用 ``set``.

        Raises:
            InvalidConfigValueError: 新值未通过校验
        """
        data = self._value.model_dump()
        data.update(changes)
        try:
            value = self._model.model_validate(data)
        except ValidationError as e:
            field = next(iter(changes), "")
            raise InvalidConfigValueError(
                f"{self.key}.{field}",
                str(changes.get(field)),
                str(e.errors()[0]["msg"]),
            ) from e
        self.set(value)
        return value

    def reset(self, value: T) -> None:
        """删除持久化内容并恢复为给定值（不写入存储）."""
        self._storage.remove_item(self.key)
        self._value = value
        for listener in list(self._listeners):
            listener(value)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """订阅变更.

        Returns:
            取消订阅的函数
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


def use_options(key: str, initial: T, storage: Optional[BaseKeyValueStore] = None) -> OptionsStore[T]:
    """创建选项存储（便捷函数）.

    未指定存储时使用设置中的选项文件。
    """
    if storage is None:
        storage = JsonFileKeyValueStore(get_settings().options_path)
    return OptionsStore(key, initial, storage)
