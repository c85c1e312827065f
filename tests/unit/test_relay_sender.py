"""Unit tests for the relay and RPC senders"""
import asyncio

import aiohttp
import pytest
from unittest.mock import AsyncMock, MagicMock

from core.errors import RpcError
from core.relay_sender import RelaySender
from core.sender import RpcSender, SendStatus
from core.settings import DEFAULT_RELAY_URL
from core.transaction import signature_of, to_base64


def make_relay_session(status=200, post_error=None):
    response = MagicMock()
    response.status = status

    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=response)
    ctx.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.closed = False
    if post_error is not None:
        session.post = MagicMock(side_effect=post_error)
    else:
        session.post = MagicMock(return_value=ctx)
    session.close = AsyncMock()
    return session


class TestRelaySender:

    @pytest.mark.asyncio
    async def test_posts_base64_body(self, signed_tx):
        sender = RelaySender()
        sender._session = make_relay_session(200)

        result = await sender.send(signed_tx)

        assert result.is_success
        assert result.signature == signature_of(signed_tx)
        assert result.provider == 'relay'

        args, kwargs = sender._session.post.call_args
        assert args[0] == DEFAULT_RELAY_URL
        assert kwargs['data'] == to_base64(signed_tx).encode('ascii')
        assert kwargs['headers'] == {'Content-Type': 'application/octet-stream'}

    @pytest.mark.asyncio
    async def test_any_2xx_is_success(self, signed_tx):
        sender = RelaySender('https://relay.example.com/send')
        sender._session = make_relay_session(204)
        assert (await sender.send(signed_tx)).is_success

    @pytest.mark.asyncio
    async def test_http_500_fails(self, signed_tx):
        sender = RelaySender()
        sender._session = make_relay_session(500)

        result = await sender.send(signed_tx)

        assert result.status == SendStatus.FAILED
        assert 'Fail to send request' in result.error
        assert signature_of(signed_tx) in result.error

    @pytest.mark.asyncio
    @pytest.mark.parametrize('error', [aiohttp.ClientConnectionError('reset'), asyncio.TimeoutError()])
    async def test_transport_error_fails(self, signed_tx, error):
        sender = RelaySender()
        sender._session = make_relay_session(post_error=error)

        result = await sender.send(signed_tx)
        assert result.status == SendStatus.FAILED

    @pytest.mark.asyncio
    async def test_close(self):
        sender = RelaySender()
        session = make_relay_session()
        sender._session = session
        await sender.close()
        session.close.assert_awaited_once()


class TestRpcSender:

    @pytest.mark.asyncio
    async def test_send_skips_preflight(self, mock_rpc_client, signed_tx):
        result = await RpcSender(mock_rpc_client).send(signed_tx)

        assert result.is_success
        assert result.signature == signature_of(signed_tx)
        mock_rpc_client.send_transaction.assert_awaited_once_with(
            signed_tx,
            skip_preflight=True,
            preflight_commitment='confirmed',
            max_retries=0,
        )

    @pytest.mark.asyncio
    async def test_rpc_error_is_failed_result(self, mock_rpc_client, signed_tx):
        mock_rpc_client.send_transaction = AsyncMock(side_effect=RpcError('node busy'))
        result = await RpcSender(mock_rpc_client).send(signed_tx)

        assert result.status == SendStatus.FAILED
        assert result.error == 'node busy'
