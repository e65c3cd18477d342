import pytest

from refreshx import _anchor, host, runtime
from refreshx.options import options


class FakeFiber:
    """Bare fiber exposing only what the runtime relies on."""

    def __init__(self, type, node=None, parent="root", hooks=None):
        self.type = type
        self.node = node
        self.parent = parent
        self.hooks = hooks

    def __repr__(self):
        return f"FakeFiber({getattr(self.type, '__name__', self.type)})"


@pytest.fixture(autouse=True)
def clean_runtime():
    """Every test starts detached, with empty tables and no observers."""
    runtime.detach()
    options.clear()
    _anchor.clear()
    yield
    runtime.detach()
    options.clear()
    _anchor.clear()
    host._pending.clear()


@pytest.fixture
def updates():
    """Attach the runtime to a recording update entry point."""
    log = []
    runtime.attach(log.append)
    return log


@pytest.fixture
def attached_host():
    runtime.attach(host.update)
