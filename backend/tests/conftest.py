"""
Cat Cache 测试配置文件

这个文件包含 pytest fixtures（测试夹具）：
- cache_store：指向临时目录的缓存存储
- StubFetcher：可控的上游源，记录调用次数
- client：包装好的 FastAPI TestClient
"""

import pytest
import sys
from pathlib import Path
from typing import Dict, Optional

from fastapi.testclient import TestClient

# 添加 backend 目录到 Python 路径
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from cat_cache.app import create_app
from cat_cache.cache_manager import ImageCacheStore
from cat_cache.errors import UpstreamNetworkError, UpstreamNotFoundError


# ============================================
# Stub origin
# ============================================

class StubFetcher:
    """
    替代 OriginFetcher 的测试桩。

    images 中存在的 key 返回对应字节；
    network_error=True 时所有请求都模拟网络错误。
    """

    def __init__(self, images: Optional[Dict[str, bytes]] = None, network_error: bool = False):
        self.images = images or {}
        self.network_error = network_error
        self.calls = []
        self.closed = False

    def url_for(self, key: str) -> str:
        return f"https://origin.test/{key}"

    async def fetch(self, key: str) -> bytes:
        self.calls.append(key)
        if self.network_error:
            raise UpstreamNetworkError("connection refused", key=key)
        if key not in self.images:
            raise UpstreamNotFoundError(f"Origin has no image for {key}", key=key)
        return self.images[key]

    async def close(self) -> None:
        self.closed = True


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def cache_dir(tmp_path):
    """每个测试使用独立的缓存目录"""
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def cache_store(cache_dir):
    return ImageCacheStore(cache_dir)


@pytest.fixture
def fetcher():
    return StubFetcher(images={"200": b"\xff\xd8ok-cat", "418": b"\xff\xd8teapot-cat"})


@pytest.fixture
def app(cache_store, fetcher):
    return create_app(cache_store=cache_store, origin_fetcher=fetcher)


@pytest.fixture
def client(app):
    """
    创建 TestClient。

    使用 with 语句以触发 lifespan（关闭时调用 fetcher.close()）。
    """
    with TestClient(app) as test_client:
        yield test_client
