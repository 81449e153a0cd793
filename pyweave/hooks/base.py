from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from pyweave.hooks.manager import HookManager


class NamedHook:
    """
    命名钩子基类
    通过HookManager.register_class注册别名后即可挂到路由上:
        hooks.register_class('auth', AuthHook, 'before_action_execute', 5)
        router.get('/admin', 'Admin#dashboard').hook('auth')

    实例在第一次使用时创建并在整个进程内复用,不要在实例上保存请求级状态
    """
    manager: Optional["HookManager"] = None

    def handle(self, data: Any, *args: Any, **kwargs: Any) -> Any:
        """处理钩子数据, 返回非None值时替换数据"""
        raise NotImplementedError

    def halt(self):
        """停止当前触发中剩余的钩子"""
        if self.manager is not None:
            self.manager.halt()
