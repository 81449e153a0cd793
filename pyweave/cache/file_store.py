# 文件存储: 在固定路径上读写单个序列化数据块
import logging
import os
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class FileStore:
    """
    单文件持久化存储
    所有失败(只读文件系统、权限不足等)都记录日志并返回失败值,不抛出异常
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> Optional[str]:
        """读取文件内容,文件不存在或不可读时返回None"""
        if not self.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to read {self.path}: {e}")
            return None

    def write(self, content: str) -> bool:
        """
        写入文件内容
        目录不存在时自动创建,目录不可写时返回False
        """
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Cannot create cache directory {directory}: {e}")
            return False

        if not os.access(directory, os.W_OK):
            logger.warning(f"Cache directory {directory} is not writable")
            return False

        # 先写临时文件再替换,避免并发读到半个文件
        tmp_path = self.path.with_name(f".{self.path.name}.{os.getpid()}.tmp")
        try:
            tmp_path.write_text(content, encoding="utf-8")
            os.replace(tmp_path, self.path)
            return True
        except OSError as e:
            logger.warning(f"Failed to write {self.path}: {e}")
            try:
                tmp_path.unlink()
            except OSError:
                pass
            return False

    def delete(self) -> bool:
        """删除文件,文件不存在视为成功"""
        try:
            self.path.unlink()
            return True
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.warning(f"Failed to delete {self.path}: {e}")
            return False
