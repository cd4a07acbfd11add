# tests/integration/conftest.py — v1
"""Shared fixtures for integration tests.

Container lifecycle:
- session scope: the Redis container starts once per pytest session
- function scope: each test gets its own key namespace for isolation

Containers are reached through their bridge network IP rather than
localhost:mapped_port, which is unreachable from inside a devcontainer
running docker-outside-of-docker.
"""

from __future__ import annotations

import logging
import time
import uuid

import pytest

from ragcache.cache.models import SearchResult
from ragcache.search.collaborators import BaseEmbedder, BaseVectorSearch

logger = logging.getLogger(__name__)


# ── Pytest markers ──────────────────────────────────────────────

def pytest_configure(config):
    config.addinivalue_line("markers", "redis: marks tests requiring Redis container")


# =====================================================================
#  DEVCONTAINER NETWORKING HELPERS
# =====================================================================

def _get_container_bridge_ip(container, max_attempts: int = 10) -> str:
    """Get container bridge network IP with retries."""
    for attempt in range(max_attempts):
        try:
            wrapped = container.get_wrapped_container()
            wrapped.reload()
            networks = wrapped.attrs.get("NetworkSettings", {}).get("Networks", {})
            for net_name, net_info in networks.items():
                ip = net_info.get("IPAddress", "")
                if ip:
                    logger.info(
                        "Container %s IP: %s (network: %s, attempt %d)",
                        wrapped.short_id, ip, net_name, attempt + 1,
                    )
                    return ip
            logger.debug("Container IP empty, attempt %d/%d", attempt + 1, max_attempts)
        except Exception as e:
            logger.debug("Error getting IP (attempt %d): %s", attempt + 1, e)
        time.sleep(0.5)

    raise RuntimeError(
        f"Could not obtain container bridge IP after {max_attempts} attempts"
    )


def _docker_available() -> bool:
    """Check if Docker daemon is reachable."""
    try:
        import docker
        client = docker.from_env()
        client.ping()
        return True
    except Exception:
        return False


# =====================================================================
#  IN-PROCESS SEARCH COLLABORATORS — no Docker required
# =====================================================================

class KeywordEmbedder(BaseEmbedder):
    """Embeds a query as the lowercase words it contains (as code points)."""

    async def embed_query(self, query: str) -> list[float]:
        return [float(ord(c)) for c in query.lower()]

    @property
    def dimensions(self) -> int:
        return 0


class TranscriptIndex(BaseVectorSearch):
    """Tiny in-memory 'vector index': similarity is the share of query words in a chunk."""

    def __init__(self, chunks: list[SearchResult]) -> None:
        self._chunks = chunks
        self.calls = 0

    async def search(
        self,
        query_embedding: list[float],
        match_count: int,
        similarity_threshold: float,
        video_ids: list[str] | None = None,
    ) -> list[SearchResult]:
        self.calls += 1
        words = set("".join(chr(int(c)) for c in query_embedding).split())
        scored = []
        for chunk in self._chunks:
            if video_ids is not None and chunk.video_id not in video_ids:
                continue
            text_words = set(chunk.chunk_text.lower().replace(".", "").split())
            similarity = len(words & text_words) / max(len(words), 1)
            if similarity >= similarity_threshold:
                scored.append(chunk.model_copy(update={"similarity": similarity}))
        scored.sort(key=lambda r: r.similarity, reverse=True)
        return scored[:match_count]


def _chunk(chunk_id: str, video_id: str, text: str) -> SearchResult:
    return SearchResult(
        chunk_id=chunk_id,
        video_id=video_id,
        chunk_text=text,
        start_time_seconds=0.0,
        end_time_seconds=30.0,
        similarity=0.0,
    )


@pytest.fixture
def transcript_index() -> TranscriptIndex:
    return TranscriptIndex([
        _chunk("c1", "v1", "Create your first course from the dashboard."),
        _chunk("c2", "v1", "Upload videos to a module of your course."),
        _chunk("c3", "v2", "Pricing plans and coupons for your course."),
        _chunk("c4", "v3", "Export analytics for every student."),
    ])


@pytest.fixture
def keyword_embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


# =====================================================================
#  REDIS CONTAINER — session scope (bridge IP)
# =====================================================================

REDIS_IMAGE = "redis:7-alpine"
REDIS_PORT = 6379


@pytest.fixture(scope="session")
def redis_container():
    if not _docker_available():
        pytest.skip("Docker not available")

    from testcontainers.core.container import DockerContainer
    from testcontainers.core.waiting_utils import wait_for_logs

    container = DockerContainer(REDIS_IMAGE).with_exposed_ports(REDIS_PORT)
    container.start()

    wait_for_logs(container, predicate=r"Ready to accept connections", timeout=30)

    ip = _get_container_bridge_ip(container)
    logger.info("Redis ready at %s:%d", ip, REDIS_PORT)
    yield {"host": ip, "port": REDIS_PORT}
    container.stop()


@pytest.fixture(scope="session")
def redis_url(redis_container) -> str:
    c = redis_container
    return f"redis://{c['host']}:{c['port']}/0"


@pytest.fixture
def redis_namespace() -> str:
    return f"test_{uuid.uuid4().hex[:8]}:"
