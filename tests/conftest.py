import os
import sys

import pytest


def pytest_configure():
    # Ensure `src/` is importable as top-level for `kvstate.*` imports
    root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    src_path = os.path.join(root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


@pytest.fixture
def anyio_backend():
    # test_http_client drives task cancellation with asyncio primitives directly
    return "asyncio"
