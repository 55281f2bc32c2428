"""日志配置模块：控制台/文件双通道输出，每条记录携带当前请求的 request id。

- 控制台默认彩色文本，``LOG_JSON=true`` 时控制台与文件都输出 JSON 行；
- 文件按天滚动，保留 14 天；
- 时间戳按 ``Settings.timezone`` 渲染。
"""

import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Optional

from .config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
LOG_BACKUP_DAYS = 14

# 由本服务接管输出的 logger；其余第三方 logger 走 root
MANAGED_LOGGERS = ("app", "uvicorn", "uvicorn.access")
# boto 系列在 DEBUG 下会打印完整请求签名，统一压到 WARNING
QUIET_LOGGERS = ("botocore", "boto3", "urllib3")

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def set_request_id(request_id: Optional[str]) -> None:
    _request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


class _TZFormatter(logging.Formatter):
    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        moment = datetime.fromtimestamp(record.created, get_settings().timezone_info)
        if datefmt:
            return moment.strftime(datefmt)
        return moment.isoformat(sep=" ", timespec="milliseconds")


class ColorFormatter(_TZFormatter):
    """按级别着色；输出不是终端时保持纯文本。"""

    LEVEL_COLORS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "41",
    }

    def __init__(self, fmt: str = LOG_FORMAT, datefmt: Optional[str] = None, use_colors: Optional[bool] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_colors = sys.stderr.isatty() if use_colors is None else use_colors

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelno) if self.use_colors else None
        return f"\033[{color}m{message}\033[0m" if color else message


class JsonFormatter(_TZFormatter):
    """每条记录一行 JSON，便于日志平台采集。"""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", None),
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def build_logging_config() -> dict:
    """根据当前配置生成 ``dictConfig`` 所需的字典。"""
    settings = get_settings()
    level = settings.log_level
    console_formatter = "json" if settings.log_json else "color"
    file_formatter = "json" if settings.log_json else "plain"
    handler_names = ["console", "file"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_id": {"()": f"{__name__}.RequestIdFilter"}},
        "formatters": {
            "color": {"()": f"{__name__}.ColorFormatter", "fmt": LOG_FORMAT},
            "plain": {"()": f"{__name__}._TZFormatter", "fmt": LOG_FORMAT},
            "json": {"()": f"{__name__}.JsonFormatter"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": console_formatter,
                "filters": ["request_id"],
            },
            "file": {
                "class": "logging.handlers.TimedRotatingFileHandler",
                "level": level,
                "formatter": file_formatter,
                "filters": ["request_id"],
                "filename": str(settings.log_file_path),
                "when": "midnight",
                "backupCount": LOG_BACKUP_DAYS,
                "encoding": "utf-8",
                "delay": True,
            },
        },
        "loggers": {
            **{name: {"handlers": handler_names, "level": level, "propagate": False} for name in MANAGED_LOGGERS},
            **{name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        },
        "root": {"handlers": handler_names, "level": level},
    }


def setup_logging() -> None:
    get_settings().log_directory.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config())


logger = logging.getLogger("app")
