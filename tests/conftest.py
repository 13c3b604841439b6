"""Shared test fixtures."""
import pytest


class FakeObserver:
    """Stands in for a watchdog observer; tests fire events on .handler."""

    active = 0
    max_active = 0

    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.handler = None
        self.path = None
        self.started = False
        self.stopped = False
        self.joined = False

    def schedule(self, handler, path, recursive=False):
        self.handler = handler
        self.path = path
        self.recursive = recursive

    def start(self):
        if self.fail_with is not None:
            raise self.fail_with
        self.started = True
        FakeObserver.active += 1
        FakeObserver.max_active = max(FakeObserver.max_active, FakeObserver.active)

    def stop(self):
        if self.started and not self.stopped:
            FakeObserver.active -= 1
        self.stopped = True

    def is_alive(self):
        return self.started and not self.joined

    def join(self, timeout=None):
        self.joined = True


class ObserverFactory:
    """Callable observer factory remembering every observer it built."""

    def __init__(self):
        self.observers = []
        self.fail_with = None

    def __call__(self):
        observer = FakeObserver(fail_with=self.fail_with)
        self.observers.append(observer)
        return observer

    @property
    def last(self):
        return self.observers[-1]


@pytest.fixture
def observers():
    """Fake observer factory with fresh counters."""
    FakeObserver.active = 0
    FakeObserver.max_active = 0
    return ObserverFactory()


@pytest.fixture
def project_dir(tmp_path):
    """A project directory with a minimal entry page."""
    project = tmp_path / "proj"
    project.mkdir()
    (project / "index.html").write_text("<html><body><h1>Hi</h1></body></html>")
    return project


@pytest.fixture
def reset_global_config():
    """Restore the process-wide config after a test."""
    from liveserve import config as config_module

    original = config_module._config
    yield
    config_module.set_config(original)
