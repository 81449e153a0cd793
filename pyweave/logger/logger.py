import json
import logging
import traceback
from datetime import datetime
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

# 记录上下文中允许输出的额外字段
_EXTRA_FIELDS = ("request_id", "event", "alias", "route", "error_id")


class JSONFormatter(logging.Formatter):
    """JSON格式的日志格式化器"""

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        super().__init__()

    def format(self, record) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno
        }

        # 添加异常信息
        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info)
            }

        # 添加额外字段
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        log_data.update(self.kwargs)

        return json.dumps(log_data, default=str)


class LoggerManager:
    """
    日志管理器
    配置框架根日志器"pyweave",各模块通过logging.getLogger(__name__)继承其处理器
    """

    def __init__(self,
                 name: str = "pyweave",
                 log_dir: Optional[str] = None,
                 level: str = "INFO",
                 max_size: int = 10*1024*1024,  # 10MB
                 backup_count: int = 10,
                 format_json: bool = True):
        self.name = name
        self.log_dir = Path(log_dir) if log_dir else None
        self.level = getattr(logging, level.upper())
        self.max_size = max_size
        self.backup_count = backup_count
        self.format_json = format_json

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = self._setup_logger()

    def _build_formatter(self) -> logging.Formatter:
        if self.format_json:
            return JSONFormatter()
        return logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    def _setup_logger(self) -> logging.Logger:
        """设置日志器"""
        logger = logging.getLogger(self.name)
        logger.setLevel(self.level)

        # 重复构建应用时不叠加处理器
        for handler in list(logger.handlers):
            if getattr(handler, "_pyweave_managed", False):
                logger.removeHandler(handler)
                handler.close()

        formatter = self._build_formatter()
        handlers = [logging.StreamHandler()]

        # 文件处理器: 常规日志按大小滚动,错误日志按天滚动
        if self.log_dir is not None:
            handlers.append(RotatingFileHandler(
                self.log_dir / f"{self.name}.log",
                maxBytes=self.max_size,
                backupCount=self.backup_count
            ))
            error_handler = TimedRotatingFileHandler(
                self.log_dir / f"{self.name}_error.log",
                when="midnight",
                interval=1,
                backupCount=30
            )
            error_handler.setLevel(logging.ERROR)
            handlers.append(error_handler)

        for handler in handlers:
            if handler.level == logging.NOTSET:
                handler.setLevel(self.level)
            handler.setFormatter(formatter)
            handler._pyweave_managed = True
            logger.addHandler(handler)

        return logger

    def get_logger(self) -> logging.Logger:
        """获取日志器"""
        return self.logger


class RequestLogger:
    """请求日志记录器"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def log_request(self, method: str, uri: str, status_code: int, elapsed: float):
        """记录一次分发的结果"""
        message = f"{method} {uri} -> {status_code} ({elapsed * 1000:.2f}ms)"
        if status_code >= 500:
            self.logger.error(message)
        elif status_code >= 400:
            self.logger.warning(message)
        else:
            self.logger.info(message)
