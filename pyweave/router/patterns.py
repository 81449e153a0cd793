# 路由模式编译: ":name:" 占位符 -> 锚定的正则表达式
import re
from typing import Dict, List, Pattern, Tuple

# 占位符语法, 名称必须是合法标识符
PLACEHOLDER = re.compile(r":([a-zA-Z_][a-zA-Z0-9_]*):")

# 每个占位符匹配一个非空路径片段
SEGMENT = r"([^/]+)"


class PatternCompiler:
    """
    路由模式编译器
    编译结果按模式字符串缓存,重复编译同一模式直接返回缓存
    """

    def __init__(self):
        self._compiled: Dict[str, Tuple[Pattern[str], List[str]]] = {}

    def compile(self, pattern: str) -> Tuple[Pattern[str], List[str]]:
        """
        编译路由模式
        :param pattern: 路由模式, 例如 '/user/:id:/posts/:post_id:'
        :return: (锚定的正则, 参数名列表)
        """
        cached = self._compiled.get(pattern)
        if cached is not None:
            return cached

        # 先转义字面量部分, 再替换占位符
        parts = []
        last = 0
        for match in PLACEHOLDER.finditer(pattern):
            parts.append(re.escape(pattern[last:match.start()]))
            parts.append(SEGMENT)
            last = match.end()
        parts.append(re.escape(pattern[last:]))

        compiled = (re.compile("^" + "".join(parts) + "$"), extract_param_names(pattern))
        self._compiled[pattern] = compiled
        return compiled

    def clear(self):
        self._compiled.clear()

    def __len__(self) -> int:
        return len(self._compiled)

    def __contains__(self, pattern: str) -> bool:
        return pattern in self._compiled


def extract_param_names(pattern: str) -> List[str]:
    """
    按出现顺序提取参数名
    '/user/:user_id:/post/:post_id:' -> ['user_id', 'post_id']
    """
    return PLACEHOLDER.findall(pattern)


def normalize_pattern(pattern: str, prefix: str = "") -> str:
    """
    规范化路由模式
    加上分组前缀, 保证以'/'开头, 去掉末尾的一个'/'(根路径'/'除外)
    """
    if prefix and not pattern.startswith("/"):
        pattern = "/" + pattern
    pattern = prefix + pattern
    if not pattern.startswith("/"):
        pattern = "/" + pattern
    if pattern != "/" and pattern.endswith("/"):
        pattern = pattern[:-1]
    return pattern
