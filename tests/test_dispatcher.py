"""Tests for pyweave.router.dispatcher: the request lifecycle."""

import pytest

from pyweave.controller import Controller, ControllerResolver
from pyweave.errors import Abort, ErrorHandler
from pyweave.hooks import HookManager, LifecycleEvents, NamedHook
from pyweave.request import Request
from pyweave.response import Response
from pyweave.router.core import Router
from pyweave.router.dispatcher import Dispatcher


class Posts(Controller):
    def index(self):
        return "all posts"

    def view(self, id):
        return f"post {id}"

    def thread(self, user_id, post_id):
        return f"user={user_id} post={post_id}"

    def create(self):
        return Response(status_code=201, body="created")

    def update(self, id):
        return f"updated {id}"

    def fail(self):
        raise RuntimeError("<script>alert(1)</script>")

    def deny(self):
        raise Abort(Response(status_code=403, body="forbidden"))

    def _secret(self):
        return "hidden"


class RewriteHook(NamedHook):
    def handle(self, data, value="99"):
        data["params"]["id"] = value
        data["marker"] = "route-hook"
        return data


def _make(debug: bool = False, base_url: str = "/"):
    hooks = HookManager(debug=debug)
    router = Router(hooks)
    controllers = ControllerResolver()
    controllers.register("Posts", Posts)
    dispatcher = Dispatcher(
        router,
        hooks,
        controllers,
        error_handler=ErrorHandler(debug=debug),
        base_url=base_url,
        debug=debug,
    )
    return dispatcher, router, hooks


@pytest.fixture
def posts_app():
    return _make()


class TestMatching:
    def test_action_receives_params(self, posts_app) -> None:
        dispatcher, router, _ = posts_app
        router.get("/posts/:id:", "Posts#view")

        response = dispatcher.dispatch(Request("GET", "/posts/42"))

        assert response.status_code == 200
        assert response.body == "post 42"
        assert response.data == "post 42"

    def test_params_passed_in_declaration_order(self, posts_app) -> None:
        dispatcher, router, _ = posts_app
        router.get("/user/:user_id:/post/:post_id:", "Posts#thread")

        response = dispatcher.dispatch(Request("GET", "/user/42/post/7"))

        assert response.body == "user=42 post=7"

    def test_request_path_params(self, posts_app) -> None:
        dispatcher, router, _ = posts_app
        router.get("/posts/:id:", "Posts#view")
        request = Request("GET", "/posts/5?draft=1")

        dispatcher.dispatch(request)

        assert request.path_params == {"id": "5"}

    def test_action_response_passes_through(self, posts_app) -> None:
        dispatcher, router, _ = posts_app
        router.post("/posts", "Posts#create")

        response = dispatcher.dispatch(Request("POST", "/posts"))

        assert response.status_code == 201
        assert response.body == "created"


class TestNotFound:
    def test_no_route(self, posts_app) -> None:
        dispatcher, router, hooks = posts_app
        router.get("/posts", "Posts#index")
        events = []
        hooks.register(LifecycleEvents.ON_404, lambda data: events.append(data))
        hooks.register(LifecycleEvents.BEFORE_CONTROLLER_LOAD, lambda data: events.append("loaded"))

        response = dispatcher.dispatch(Request("GET", "/missing?x=1"))

        assert response.status_code == 404
        assert response.body == "404 - Route not found"
        assert events == [{"uri": "/missing", "method": "GET"}]

    def test_wrong_method(self, posts_app) -> None:
        dispatcher, router, _ = posts_app
        router.post("/posts", "Posts#create")
        assert dispatcher.dispatch(Request("GET", "/posts")).status_code == 404


class TestErrors:
    def test_missing_action(self, posts_app) -> None:
        dispatcher, router, hooks = posts_app
        router.get("/posts", "Posts#nope")
        errors = []
        hooks.register(LifecycleEvents.ON_ERROR, lambda data: errors.append(data))

        response = dispatcher.dispatch(Request("GET", "/posts"))

        assert response.status_code == 500
        assert response.body == "500 - Internal Server Error<br>"
        assert "error_id" in response.data
        assert len(errors) == 1
        assert "nope" in errors[0]["message"]
        assert set(errors[0]) == {"exception", "message", "file", "line", "trace"}

    def test_missing_controller(self, posts_app) -> None:
        dispatcher, router, _ = posts_app
        router.get("/ghost", "Ghost#index")
        assert dispatcher.dispatch(Request("GET", "/ghost")).status_code == 500

    def test_invalid_handler(self, posts_app) -> None:
        dispatcher, router, _ = posts_app
        router.get("/bad", "Posts")
        assert dispatcher.dispatch(Request("GET", "/bad")).status_code == 500

    def test_private_action_is_not_dispatched(self, posts_app) -> None:
        dispatcher, router, _ = posts_app
        router.get("/secret", "Posts#_secret")
        assert dispatcher.dispatch(Request("GET", "/secret")).status_code == 500

    def test_action_exception_generic_in_production(self, posts_app) -> None:
        dispatcher, router, _ = posts_app
        router.get("/fail", "Posts#fail")

        response = dispatcher.dispatch(Request("GET", "/fail"))

        assert response.status_code == 500
        assert "alert" not in response.body

    def test_debug_details_are_escaped(self) -> None:
        dispatcher, router, _ = _make(debug=True)
        router.get("/fail", "Posts#fail")

        response = dispatcher.dispatch(Request("GET", "/fail"))

        assert response.status_code == 500
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in response.body
        assert "<script>" not in response.body
        assert "<pre>" in response.body
        assert "RuntimeError" in response.body

    def test_abort_returns_its_response(self, posts_app) -> None:
        dispatcher, router, hooks = posts_app
        router.get("/deny", "Posts#deny")
        errors = []
        hooks.register(LifecycleEvents.ON_ERROR, lambda data: errors.append(data))

        response = dispatcher.dispatch(Request("GET", "/deny"))

        assert response.status_code == 403
        assert errors == []

    def test_hook_fault_does_not_break_dispatch(self, posts_app) -> None:
        dispatcher, router, hooks = posts_app
        router.get("/posts", "Posts#index")

        def broken(data):
            raise RuntimeError("bad hook")

        hooks.register(LifecycleEvents.BEFORE_ACTION_EXECUTE, broken)

        assert dispatcher.dispatch(Request("GET", "/posts")).body == "all posts"


class TestLifecycle:
    def test_event_order(self, posts_app) -> None:
        dispatcher, router, hooks = posts_app
        router.get("/posts/:id:", "Posts#view").hook("trace")
        events = []

        class TraceHook(NamedHook):
            def handle(self, data):
                events.append("route_hooks")

        hooks.register_class("trace", TraceHook)
        for event in (
            LifecycleEvents.BEFORE_ROUTE_MATCH,
            LifecycleEvents.AFTER_ROUTE_MATCH,
            LifecycleEvents.BEFORE_CONTROLLER_LOAD,
            LifecycleEvents.AFTER_CONTROLLER_INSTANTIATE,
            LifecycleEvents.BEFORE_ACTION_EXECUTE,
            LifecycleEvents.AFTER_ACTION_EXECUTE,
        ):
            hooks.register(event, lambda data, event=event: events.append(event))

        dispatcher.dispatch(Request("GET", "/posts/1"))

        assert events == [
            "before_route_match",
            "after_route_match",
            "before_controller_load",
            "after_controller_instantiate",
            "route_hooks",
            "before_action_execute",
            "after_action_execute",
        ]

    def test_event_payloads(self, posts_app) -> None:
        dispatcher, router, hooks = posts_app
        router.get("/posts/:id:", "Posts#view")
        seen = {}
        for event in (
            LifecycleEvents.BEFORE_ROUTE_MATCH,
            LifecycleEvents.AFTER_ROUTE_MATCH,
            LifecycleEvents.AFTER_CONTROLLER_INSTANTIATE,
        ):
            hooks.register(event, lambda data, event=event: seen.__setitem__(event, data))

        dispatcher.dispatch(Request("GET", "/posts/3"))

        assert seen["before_route_match"]["uri"] == "/posts/3"
        assert seen["after_route_match"]["params"] == {"id": "3"}
        assert seen["after_route_match"]["pattern"] == "/posts/:id:"
        assert isinstance(seen["after_controller_instantiate"]["instance"], Posts)

    def test_route_hooks_rewrite_params(self, posts_app) -> None:
        dispatcher, router, hooks = posts_app
        router.get("/posts/:id:", "Posts#view").hook("rewrite")
        hooks.register_class("rewrite", RewriteHook)
        seen = []
        hooks.register(LifecycleEvents.BEFORE_ACTION_EXECUTE, lambda data: seen.append(data["marker"]))

        response = dispatcher.dispatch(Request("GET", "/posts/1"))

        assert response.body == "post 99"
        assert seen == ["route-hook"]

    def test_global_hook_rewrites_params(self, posts_app) -> None:
        dispatcher, router, hooks = posts_app
        router.get("/posts/:id:", "Posts#view").hook("rewrite")
        hooks.register_class("rewrite", RewriteHook, params={"value": "from-route"})

        def rewrite(data):
            return {**data, "params": {"id": "from-global"}}

        hooks.register(LifecycleEvents.BEFORE_ACTION_EXECUTE, rewrite)

        assert dispatcher.dispatch(Request("GET", "/posts/1")).body == "post from-global"

    def test_any_route_hooks_fire_for_every_method(self, posts_app) -> None:
        dispatcher, router, hooks = posts_app
        router.any("/posts/:id:", "Posts#view").hook("rewrite")
        hooks.register_class("rewrite", RewriteHook)

        assert dispatcher.dispatch(Request("DELETE", "/posts/1")).body == "post 99"

    def test_after_action_can_replace_response(self, posts_app) -> None:
        dispatcher, router, hooks = posts_app
        router.get("/posts", "Posts#index")
        hooks.register(
            LifecycleEvents.AFTER_ACTION_EXECUTE,
            lambda data: {**data, "response": Response(status_code=202, body="replaced")},
        )

        response = dispatcher.dispatch(Request("GET", "/posts"))

        assert response.status_code == 202
        assert response.body == "replaced"

    def test_context_headers_are_applied(self, posts_app) -> None:
        dispatcher, router, hooks = posts_app
        router.get("/posts", "Posts#index")

        def add_header(data):
            data["headers"]["X-Trace"] = "abc"

        hooks.register(LifecycleEvents.BEFORE_ACTION_EXECUTE, add_header)

        assert dispatcher.dispatch(Request("GET", "/posts")).headers == {"X-Trace": "abc"}


class TestMethodOverride:
    def test_post_override(self, posts_app) -> None:
        dispatcher, router, _ = posts_app
        router.put("/posts/:id:", "Posts#update")

        response = dispatcher.dispatch(Request("POST", "/posts/8", form={"_method": "put"}))

        assert response.body == "updated 8"

    @pytest.mark.parametrize(
        ("method", "form", "expected"),
        [
            ("POST", {"_method": "DELETE"}, "DELETE"),
            ("POST", {"_method": "PATCH"}, "PATCH"),
            ("POST", {"_method": "GET"}, "POST"),
            ("POST", {}, "POST"),
            ("GET", {"_method": "DELETE"}, "GET"),
        ],
    )
    def test_resolve_method(self, method, form, expected) -> None:
        assert Dispatcher.resolve_method(Request(method, "/", form=form)) == expected


class TestNormalizeUri:
    @pytest.mark.parametrize(
        ("uri", "base_url", "expected"),
        [
            ("/blog/12/?page=1", "/", "/blog/12"),
            ("", "/", "/"),
            ("/", "/", "/"),
            ("//a//b/", "/", "/a/b"),
            ("/app/blog", "/app", "/blog"),
            ("/app", "/app/", "/"),
            ("/app/", "/app", "/"),
            ("/application/x", "/app", "/application/x"),
            ("blog", "", "/blog"),
        ],
    )
    def test_normalize(self, uri, base_url, expected) -> None:
        assert Dispatcher.normalize_uri(uri, base_url) == expected

    def test_base_url_is_stripped_before_matching(self) -> None:
        dispatcher, router, _ = _make(base_url="/app")
        router.get("/posts/:id:", "Posts#view")

        assert dispatcher.dispatch(Request("GET", "/app/posts/3?x=1")).body == "post 3"

    @pytest.mark.parametrize(
        ("raw_path", "expected"),
        [
            (b"/posts/a%3Fb", "post a%3Fb"),
            (b"/posts/a%2Fb", "post a%2Fb"),
        ],
    )
    def test_encoded_separators_stay_in_segment(self, posts_app, raw_path, expected) -> None:
        dispatcher, router, _ = posts_app
        router.get("/posts/:id:", "Posts#view")

        request = Request.from_scope({"method": "GET", "raw_path": raw_path, "query_string": b"page=2"})

        response = dispatcher.dispatch(request)
        assert response.status_code == 200
        assert response.body == expected
