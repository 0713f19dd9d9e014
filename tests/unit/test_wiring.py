"""Composition root: sink selection and container lifecycle."""
from unittest.mock import AsyncMock, MagicMock

from config.settings import Settings
from src.pw_notify.infrastructure.sinks import LoggingNotificationSink, RedisNotificationSink
from src.wiring import build_container
from tests.fakes import build_world


def _settings(**overrides) -> Settings:
    return Settings(JWT_SECRET="wiring-test", **overrides)


class TestBuildContainer:
    def test_logging_sink_when_notify_disabled(self):
        container = build_container(_settings(NOTIFY_ENABLED=False))
        assert isinstance(container.sink, LoggingNotificationSink)
        assert container.redis is None

    def test_redis_sink_when_notify_enabled(self):
        container = build_container(_settings(NOTIFY_ENABLED=True))
        assert isinstance(container.sink, RedisNotificationSink)
        assert container.redis is not None

    def test_redis_client_has_socket_timeout(self):
        container = build_container(
            _settings(NOTIFY_ENABLED=True, REDIS_SOCKET_TIMEOUT_SECONDS=2.5)
        )
        kwargs = container.redis.connection_pool.connection_kwargs
        assert kwargs["socket_timeout"] == 2.5

    def test_admin_ids(self):
        container = build_container(
            _settings(NOTIFY_ENABLED=False, ADMIN_EXTERNAL_IDS=["ops-1", "ops-2"])
        )
        assert container.admin_external_ids == frozenset({"ops-1", "ops-2"})


class TestContainerLifecycle:
    async def test_start_stop_with_scheduler(self):
        world = build_world()
        container = world.container
        container.scheduler_enabled = True

        await container.start()
        assert container.scheduler.is_running
        await container.stop()
        assert not container.scheduler.is_running

    async def test_stop_closes_redis(self):
        world = build_world()
        container = world.container
        container.redis = MagicMock()
        container.redis.aclose = AsyncMock()

        await container.start()
        await container.stop()

        container.redis.aclose.assert_awaited_once()
