from pathlib import Path

import pytest

from pyweave import AppConfig, Application, HookManager, Router

SAMPLE_APP = Path(__file__).parent / "sample_app"
CONTROLLERS_PACKAGE = "tests.sample_app.controllers"
TEMPLATE_DIR = SAMPLE_APP / "templates"
HOOKS_DIR = SAMPLE_APP / "hooks"


class FakeBackend:
    """内存键值缓存, 可以模拟读写失败"""

    def __init__(self):
        self.store = {}
        self.ttls = {}
        self.fail_reads = False
        self.fail_writes = False
        self.reject_writes = False

    def get(self, key):
        if self.fail_reads:
            raise ConnectionError("backend down")
        return self.store.get(key)

    def put(self, key, value, ttl=None):
        if self.fail_writes:
            raise ConnectionError("backend down")
        if self.reject_writes:
            return False
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def delete(self, key):
        return self.store.pop(key, None) is not None


@pytest.fixture
def hooks() -> HookManager:
    return HookManager()


@pytest.fixture
def router(hooks: HookManager) -> Router:
    return Router(hooks)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        shared_cache=None,
        controllers_package=CONTROLLERS_PACKAGE,
        template_dir=str(TEMPLATE_DIR),
        log_json=False,
    )


@pytest.fixture
def make_app(tmp_path: Path):
    """创建应用, 默认不在容器中运行"""
    def _make(config: AppConfig, environ=None) -> Application:
        app = Application(config, environ=environ or {})
        app.container_marker = str(tmp_path / "no-dockerenv")
        return app
    return _make


@pytest.fixture
def app(make_app, app_config: AppConfig) -> Application:
    return make_app(app_config)
