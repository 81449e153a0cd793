from pyweave.logger.logger import JSONFormatter, LoggerManager, RequestLogger

__all__ = ["JSONFormatter", "LoggerManager", "RequestLogger"]
