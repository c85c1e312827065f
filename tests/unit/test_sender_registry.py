"""Unit tests for SenderRegistry"""
import pytest

from core.sender import SendResult, SendStatus
from core.sender_registry import Channel, SenderRegistry, select_channel


class MockProvider:
    """Mock send provider for testing"""

    def __init__(self, name: str, should_succeed: bool = True, raises: Exception = None):
        self.name = name
        self._should_succeed = should_succeed
        self._raises = raises
        self.send_count = 0
        self.closed = False

    async def send(self, transaction) -> SendResult:
        self.send_count += 1
        if self._raises is not None:
            raise self._raises

        if self._should_succeed:
            return SendResult(
                status=SendStatus.SUCCESS,
                signature='sig_' + self.name,
                provider=self.name,
            )
        return SendResult(
            status=SendStatus.FAILED,
            provider=self.name,
            error='Mock failure'
        )

    async def close(self) -> None:
        self.closed = True


class TestSelectChannel:

    @pytest.mark.parametrize('tip,channel', [
        (None, Channel.STANDARD),
        (0, Channel.STANDARD),
        (1, Channel.RELAY),
        (1_000_000, Channel.RELAY),
    ])
    def test_channel_depends_only_on_tip(self, tip, channel):
        assert select_channel(tip) == channel
        assert select_channel(tip) == select_channel(tip)


class TestSenderRegistry:

    @pytest.fixture
    def providers(self):
        return {
            Channel.STANDARD: MockProvider('rpc'),
            Channel.RELAY: MockProvider('relay'),
        }

    @pytest.fixture
    def registry(self, providers):
        registry = SenderRegistry()
        for channel, provider in providers.items():
            registry.register(channel, provider)
        return registry

    def test_register_provider(self, registry, providers):
        assert registry.get_provider(Channel.STANDARD) is providers[Channel.STANDARD]
        assert registry.get_provider(Channel.RELAY) is providers[Channel.RELAY]

    @pytest.mark.asyncio
    async def test_untipped_goes_to_rpc(self, registry, providers):
        result = await registry.send(object(), tip_lamports=0)

        assert result.provider == 'rpc'
        assert providers[Channel.STANDARD].send_count == 1
        assert providers[Channel.RELAY].send_count == 0

    @pytest.mark.asyncio
    async def test_tipped_goes_to_relay(self, registry, providers):
        result = await registry.send(object(), tip_lamports=1000)

        assert result.provider == 'relay'
        assert providers[Channel.RELAY].send_count == 1
        assert providers[Channel.STANDARD].send_count == 0

    @pytest.mark.asyncio
    async def test_missing_provider(self):
        result = await SenderRegistry().send(object(), tip_lamports=1000)

        assert result.status == SendStatus.FAILED
        assert 'relay' in result.error

    @pytest.mark.asyncio
    async def test_provider_exception_becomes_failure(self):
        registry = SenderRegistry()
        registry.register(Channel.STANDARD, MockProvider('rpc', raises=RuntimeError('boom')))

        result = await registry.send(object())

        assert result.status == SendStatus.FAILED
        assert result.error == 'boom'

    @pytest.mark.asyncio
    async def test_close_all(self, registry, providers):
        await registry.close()
        assert all(p.closed for p in providers.values())
