"""
公用工具组件 - 配置管理和日志工具
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Any, Dict

from .interfaces import Scheduler, ScopeWrapper
from .scope import identity_scope


class ExecutionMode(Enum):
    """执行模式"""
    SYNC = "sync"       # 手动调度（同步驱动）
    ASYNC = "async"     # asyncio 事件循环调度


class UnifiedLogger:
    """统一日志器"""

    def __init__(self, logger: Optional[logging.Logger] = None, mode: ExecutionMode = ExecutionMode.ASYNC):
        self.logger = logger or self._create_default_logger()
        self.mode = mode

    def _create_default_logger(self) -> logging.Logger:
        """创建默认日志器"""
        logger = logging.getLogger("deferred_future")
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)
            logger.setLevel(logging.INFO)
        return logger

    def with_mode(self, mode: ExecutionMode) -> "UnifiedLogger":
        """返回共享同一底层日志器、但前缀不同的日志器"""
        if mode == self.mode:
            return self
        return UnifiedLogger(self.logger, mode)

    def debug(self, message: str, **kwargs):
        """调试信息"""
        self.logger.debug(f"[{self.mode.value.upper()}] {message}", **kwargs)

    def info(self, message: str, **kwargs):
        """普通信息"""
        self.logger.info(f"[{self.mode.value.upper()}] {message}", **kwargs)

    def warning(self, message: str, **kwargs):
        """警告信息"""
        self.logger.warning(f"[{self.mode.value.upper()}] {message}", **kwargs)

    def error(self, message: str, **kwargs):
        """错误信息"""
        self.logger.error(f"[{self.mode.value.upper()}] {message}", **kwargs)


def _default_scheduler() -> Scheduler:
    # task_queue 依赖本模块的日志器，延迟导入避免循环
    from .task_queue import get_auto_scheduler
    return get_auto_scheduler()


@dataclass
class FutureConfig:
    """FutureValue 配置 - 构造时注入，由 then 派生的子对象继承"""
    scheduler: Scheduler = field(default_factory=_default_scheduler)
    scope_wrapper: ScopeWrapper = identity_scope
    logger: Optional[UnifiedLogger] = None

    def __post_init__(self):
        """验证配置参数"""
        if not callable(self.scope_wrapper):
            raise ValueError("scope_wrapper 必须是可调用对象")
        if not callable(getattr(self.scheduler, "bind", None)):
            raise ValueError("scheduler 必须提供 bind() 方法")
        if self.logger is None:
            self.logger = UnifiedLogger()

    def evolve(self, **changes: Any) -> "FutureConfig":
        """返回修改了部分字段的新配置"""
        return replace(self, **changes)


_default_config: Optional[FutureConfig] = None


def get_default_config() -> FutureConfig:
    """获取进程级默认配置（首次调用时创建）"""
    global _default_config
    if _default_config is None:
        _default_config = FutureConfig()
    return _default_config


def set_default_config(config: Any) -> FutureConfig:
    """替换进程级默认配置，返回旧配置；传入 None 时恢复出厂默认"""
    global _default_config
    previous = get_default_config()
    _default_config = FutureConfig() if config is None else convert_config(config)
    return previous


def convert_config(config: Any) -> FutureConfig:
    """
    转换配置对象为FutureConfig

    支持 None、FutureConfig、字典以及具有相应属性的任意对象
    """
    if config is None:
        return get_default_config()

    if isinstance(config, FutureConfig):
        return config

    known = ("scheduler", "scope_wrapper", "logger")

    # 处理字典格式
    if isinstance(config, dict):
        unknown = sorted(set(config) - set(known))
        if unknown:
            raise ValueError(f"未知的配置项: {', '.join(unknown)}")
        values: Dict[str, Any] = dict(config)
    else:
        # 处理对象格式（仅读取存在的属性）
        values = {name: getattr(config, name) for name in known if hasattr(config, name)}

    if isinstance(values.get("logger"), logging.Logger):
        values["logger"] = UnifiedLogger(values["logger"])

    return FutureConfig(**values)
