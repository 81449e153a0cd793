# hooks/manager.py
"""
钩子管理器

在框架生命周期的关键节点执行回调:
- 同一事件可注册多个回调, 按优先级升序执行(数值小的先执行, 同优先级保持注册顺序)
- 回调返回非None值时替换数据, 传给后续回调
- 回调中调用halt()后, 本次触发中剩余的回调不再执行
- 单个回调抛出的异常被记录并隔离, 不影响其他回调

用法:
    hooks.register('before_action_execute', check_token, priority=5)
    data = hooks.trigger('before_action_execute', data)
"""

import importlib
import importlib.util
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Type, Union

from pyweave.errors import Abort
from pyweave.hooks.base import NamedHook
from pyweave.hooks.events import AVAILABLE_HOOKS, LifecycleEvents

logger = logging.getLogger(__name__)


@dataclass
class HookRegistration:
    """全局事件回调"""
    callback: Callable[[Any], Any]
    priority: int = 10


@dataclass
class NamedHookBinding:
    """命名钩子: 别名 -> 钩子类"""
    alias: str
    target: Type[Any]
    lifecycle_point: str = LifecycleEvents.BEFORE_ACTION_EXECUTE
    priority: int = 10
    params: Union[Sequence[Any], Mapping[str, Any]] = field(default_factory=tuple)


@dataclass
class ResolvedHook:
    """已实例化的命名钩子"""
    instance: Any
    params: Union[Sequence[Any], Mapping[str, Any]]


def resolve_class(target: Union[str, Type[Any]]) -> Type[Any]:
    """
    解析钩子类
    支持类对象, 'package.module:ClassName' 和 'package.module.ClassName'
    """
    if isinstance(target, type):
        return target
    if not isinstance(target, str) or not target:
        raise TypeError(f"Hook target must be a class or dotted path, got {target!r}")

    if ":" in target:
        module_name, _, attr = target.partition(":")
    else:
        module_name, _, attr = target.rpartition(".")
    if not module_name or not attr:
        raise ImportError(f"Invalid hook class path: {target}")

    obj = getattr(importlib.import_module(module_name), attr)
    if not isinstance(obj, type):
        raise TypeError(f"{target} is not a class")
    return obj


def make_route_key(method: str, pattern: str) -> str:
    """路由钩子的存储键, 例如 'GET:/admin'"""
    return f"{method.upper()}:{pattern}"


class HookManager:
    """钩子管理器"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._hooks: Dict[str, List[HookRegistration]] = {}
        self._sorted: Dict[str, bool] = {}  # 延迟排序标记
        self._named: Dict[str, NamedHookBinding] = {}
        self._route_hooks: Dict[str, List[str]] = {}
        self._resolved: Dict[str, ResolvedHook] = {}
        self._execution_log: List[Dict[str, Any]] = []
        self._state = threading.local()  # halt标记按线程隔离
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # 全局事件回调
    # ------------------------------------------------------------------

    def register(self, event: str, callback: Callable[[Any], Any], priority: int = 10):
        """
        注册事件回调
        :param event: 事件名称
        :param callback: 回调函数, 接收一个data参数
        :param priority: 优先级, 数值越小越先执行
        """
        if not callable(callback):
            logger.warning(f"Hook callback for '{event}' is not callable", extra={"event": event})
            return

        self._hooks.setdefault(event, []).append(HookRegistration(callback, priority))
        # 第一次触发时再排序
        self._sorted[event] = False

    def on(self, event: str, priority: int = 10):
        """注册事件回调的装饰器形式"""
        def decorator(func):
            self.register(event, func, priority)
            return func
        return decorator

    def _sorted_callbacks(self, event: str) -> List[HookRegistration]:
        callbacks = self._hooks[event]
        if not self._sorted.get(event):
            with self._lock:
                if not self._sorted.get(event):
                    # list.sort是稳定排序, 同优先级保持注册顺序
                    callbacks.sort(key=lambda registration: registration.priority)
                    self._sorted[event] = True
        return callbacks

    def trigger(self, event: str, data: Any = None) -> Any:
        """
        触发事件
        :param event: 事件名称
        :param data: 传给回调的数据
        :return: 所有回调执行后的数据
        """
        self._state.halted = False

        if not self._hooks.get(event):
            return data

        callbacks = self._sorted_callbacks(event)

        if self.debug:
            self._execution_log.append({
                "hook": event,
                "time": time.time(),
                "callbacks": len(callbacks),
            })

        for registration in list(callbacks):
            # 上一个回调调用了halt()
            if self.is_halted():
                break

            try:
                result = registration.callback(data)
            except Abort:
                raise
            except Exception as e:
                logger.warning(f"Error in hook '{event}': {e}", exc_info=True, extra={"event": event})
                continue

            if result is not None:
                data = result

        return data

    def halt(self):
        """停止当前触发中剩余回调的执行, 对已执行的回调没有影响"""
        self._state.halted = True

    def is_halted(self) -> bool:
        return getattr(self._state, "halted", False)

    def has(self, event: str) -> bool:
        return bool(self._hooks.get(event))

    def count(self, event: str) -> int:
        return len(self._hooks.get(event, []))

    def clear(self, event: str):
        """移除某个事件的所有回调"""
        self._hooks.pop(event, None)
        self._sorted.pop(event, None)

    def clear_all(self):
        """
        移除所有回调、命名钩子、路由钩子和已解析的钩子实例
        只在管理操作或测试中使用, 不要与请求处理并发调用
        """
        self._hooks = {}
        self._sorted = {}
        self._named = {}
        self._route_hooks = {}
        self._resolved = {}
        self._execution_log = []

    def get_all(self) -> Dict[str, List[HookRegistration]]:
        return self._hooks

    def get_execution_log(self) -> List[Dict[str, Any]]:
        """钩子执行日志, 只在调试模式下记录"""
        return self._execution_log

    @staticmethod
    def get_available_hooks() -> Dict[str, str]:
        """框架内置的生命周期事件及说明"""
        return dict(AVAILABLE_HOOKS)

    # ------------------------------------------------------------------
    # 命名钩子和路由钩子
    # ------------------------------------------------------------------

    def register_class(self,
                       alias: str,
                       target: Union[str, Type[Any]],
                       lifecycle_point: str = LifecycleEvents.BEFORE_ACTION_EXECUTE,
                       priority: int = 10,
                       params: Union[Sequence[Any], Mapping[str, Any], None] = None):
        """
        注册命名钩子类, 此时不创建实例
        :param alias: 钩子别名, 例如 'auth'
        :param target: 钩子类或其导入路径
        :param lifecycle_point: 钩子所属的生命周期节点
        :param priority: 优先级
        :param params: 调用handle()时附加的参数, 序列按位置传入, 映射按关键字传入
        """
        try:
            cls = resolve_class(target)
        except (ImportError, AttributeError, TypeError) as e:
            logger.warning(f"Hook class '{target}' does not exist: {e}", extra={"alias": alias})
            return

        self._named[alias] = NamedHookBinding(
            alias=alias,
            target=cls,
            lifecycle_point=lifecycle_point,
            priority=priority,
            params=params if params is not None else (),
        )
        # 重新注册同一别名时丢弃旧实例
        self._resolved.pop(alias, None)

    def attach_to_route(self, method: str, pattern: str, hooks: Union[str, Sequence[str]]):
        """
        把命名钩子挂到路由上, 保持顺序, 允许重复
        :param method: HTTP方法
        :param pattern: 规范化后的路由模式
        :param hooks: 一个或多个钩子别名
        """
        if isinstance(hooks, str):
            hooks = [hooks]
        self._route_hooks.setdefault(make_route_key(method, pattern), []).extend(hooks)

    def detach_route(self, method: str, pattern: str):
        """移除路由上挂载的所有钩子"""
        self._route_hooks.pop(make_route_key(method, pattern), None)

    def get_route_hooks(self, method: str, pattern: str) -> List[str]:
        return list(self._route_hooks.get(make_route_key(method, pattern), []))

    def has_named(self, alias: str) -> bool:
        return alias in self._named

    def get_named_hooks(self) -> Dict[str, NamedHookBinding]:
        return self._named

    def _resolve(self, alias: str) -> ResolvedHook:
        """取得别名对应的钩子实例, 第一次使用时创建并缓存"""
        resolved = self._resolved.get(alias)
        if resolved is not None:
            return resolved

        with self._lock:
            resolved = self._resolved.get(alias)
            if resolved is None:
                binding = self._named[alias]
                instance = binding.target()
                if isinstance(instance, NamedHook):
                    instance.manager = self
                resolved = ResolvedHook(instance=instance, params=binding.params)
                self._resolved[alias] = resolved
        return resolved

    def trigger_route_hooks(self, method: str, pattern: str, data: Any = None) -> Any:
        """
        执行挂在路由上的命名钩子
        按挂载顺序执行, 未注册的别名直接跳过
        """
        self._state.halted = False

        aliases = self._route_hooks.get(make_route_key(method, pattern))
        if not aliases:
            return data

        for alias in list(aliases):
            if self.is_halted():
                break
            if alias not in self._named:
                continue

            try:
                resolved = self._resolve(alias)
                handle = getattr(resolved.instance, "handle", None)
                if handle is None:
                    continue

                params = resolved.params
                if isinstance(params, Mapping):
                    result = handle(data, **params)
                else:
                    result = handle(data, *params)
            except Abort:
                raise
            except Exception as e:
                logger.warning(f"Error in route hook '{alias}': {e}", exc_info=True, extra={"alias": alias})
                continue

            if result is not None:
                data = result

        return data

    # ------------------------------------------------------------------
    # 钩子文件
    # ------------------------------------------------------------------

    def load_hook_files(self, hooks_dir: Union[str, Path]) -> int:
        """
        加载钩子目录中的所有模块
        每个模块通过 register_hooks(hooks) 函数注册自己的回调和命名钩子
        :return: 成功加载的文件数
        """
        directory = Path(hooks_dir)
        if not directory.is_dir():
            return 0

        loaded = 0
        for path in sorted(directory.glob("*.py")):
            if path.name.startswith("_"):
                continue
            try:
                spec = importlib.util.spec_from_file_location(f"pyweave_hooks_{path.stem}", path)
                module = importlib.util.module_from_spec(spec)
                spec.loader.exec_module(module)
                register = getattr(module, "register_hooks", None)
                if callable(register):
                    register(self)
                loaded += 1
            except Exception as e:
                logger.warning(f"Error loading hook file '{path}': {e}", exc_info=True)
        return loaded
