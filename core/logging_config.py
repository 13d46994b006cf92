"""
SDK 日志配置 - structlog

SDK 作为库被引入时默认不接管根 logger：应用可显式调用 configure_logging()，
或设置 PAYGATE_LOG_SETUP=true 在导入时完成配置。
"""
import json
import logging
import re
from typing import Any, List, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer, TimeStamper, add_log_level
from structlog.stdlib import ProcessorFormatter

from core.config import settings


_SECRET_FIELDS = {"authorization", "key", "private_key"}
_PRIVATE_KEY_IN_TEXT = re.compile(r"\b([sp]-priv-)[A-Za-z0-9]+")


def redact_secrets(logger: Any, method_name: str, event_dict: dict) -> dict:
    """屏蔽私钥与认证头，日志中永不出现完整私钥"""
    for name, value in list(event_dict.items()):
        if name.lower() in _SECRET_FIELDS and value:
            event_dict[name] = "***"
        elif isinstance(value, str):
            event_dict[name] = _PRIVATE_KEY_IN_TEXT.sub(r"\1***", value)
    return event_dict


def get_renderer(debug: bool) -> Any:
    """DEBUG 使用控制台渲染，否则输出 JSON。
    注意：structlog 会向 serializer 传入 default/sort_keys 等参数，需要适配。
    """
    if debug:
        return ConsoleRenderer(colors=True)
    def _dumps(obj, default=None, **kwargs):
        return json.dumps(obj, ensure_ascii=False, default=default, **kwargs)
    return JSONRenderer(serializer=_dumps)


def configure_logging(debug: Optional[bool] = None) -> None:
    """配置 structlog 并桥接标准库 logging（httpx、tenacity、api_clients）到同一处理链。"""
    debug = settings.DEBUG if debug is None else debug

    shared_pre_chain: List[Any] = [
        merge_contextvars,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            *shared_pre_chain,
            ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = ProcessorFormatter(
        foreign_pre_chain=shared_pre_chain,
        processors=[
            ProcessorFormatter.remove_processors_meta,
            get_renderer(debug),
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    # httpx 在 INFO 级别逐条记录请求，SDK 自身已有请求日志
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """获取 structlog logger 实例。"""
    return structlog.get_logger(name)


if settings.LOG_SETUP:
    configure_logging()
