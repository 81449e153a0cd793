# hooks/events.py
"""框架生命周期事件定义"""

from typing import Dict


class LifecycleEvents:
    """生命周期事件名称"""
    FRAMEWORK_START = "framework_start"
    BEFORE_ROUTER_INIT = "before_router_init"
    AFTER_ROUTES_REGISTERED = "after_routes_registered"
    BEFORE_ROUTE_MATCH = "before_route_match"
    AFTER_ROUTE_MATCH = "after_route_match"
    BEFORE_CONTROLLER_LOAD = "before_controller_load"
    AFTER_CONTROLLER_INSTANTIATE = "after_controller_instantiate"
    BEFORE_ACTION_EXECUTE = "before_action_execute"
    AFTER_ACTION_EXECUTE = "after_action_execute"
    BEFORE_VIEW_RENDER = "before_view_render"
    AFTER_VIEW_RENDER = "after_view_render"
    ON_404 = "on_404"
    ON_ERROR = "on_error"
    FRAMEWORK_SHUTDOWN = "framework_shutdown"


AVAILABLE_HOOKS: Dict[str, str] = {
    LifecycleEvents.FRAMEWORK_START: "Triggered when the application is constructed",
    LifecycleEvents.BEFORE_ROUTER_INIT: "Before routes are loaded from cache or declared",
    LifecycleEvents.AFTER_ROUTES_REGISTERED: "After the route table is ready",
    LifecycleEvents.BEFORE_ROUTE_MATCH: "Before route matching begins",
    LifecycleEvents.AFTER_ROUTE_MATCH: "After a route is matched (includes matched route data)",
    LifecycleEvents.BEFORE_CONTROLLER_LOAD: "Before the controller is loaded",
    LifecycleEvents.AFTER_CONTROLLER_INSTANTIATE: "After the controller object is created",
    LifecycleEvents.BEFORE_ACTION_EXECUTE: "Before the controller action is called",
    LifecycleEvents.AFTER_ACTION_EXECUTE: "After the controller action completes",
    LifecycleEvents.BEFORE_VIEW_RENDER: "Before a view template is rendered",
    LifecycleEvents.AFTER_VIEW_RENDER: "After a view is rendered",
    LifecycleEvents.ON_404: "When no route matches",
    LifecycleEvents.ON_ERROR: "When an exception occurs during dispatch",
    LifecycleEvents.FRAMEWORK_SHUTDOWN: "At the end of every request",
}
