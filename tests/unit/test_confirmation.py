"""Unit tests for ConfirmationPoller"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from solders.transaction_status import TransactionConfirmationStatus

from core.cancel import CancelToken
from core.confirmation import (
    ConfirmationLevel,
    ConfirmationOutcome,
    ConfirmationPoller,
    SignatureStatus,
)
from core.errors import RpcError, SubmissionCancelledError

SIG = 'sig_confirm_test'


class TestConfirmationPoller:

    @pytest.mark.asyncio
    async def test_confirmed_first_poll(self, mock_rpc_client, fast_policy, make_status):
        mock_rpc_client.get_signature_statuses = AsyncMock(return_value=[make_status('finalized')])
        result = await ConfirmationPoller(mock_rpc_client).poll(SIG, fast_policy)

        assert result.outcome == ConfirmationOutcome.CONFIRMED
        assert result.confirmed
        assert result.polls == 1
        assert result.level == ConfirmationLevel.FINALIZED
        mock_rpc_client.get_signature_statuses.assert_awaited_once_with([SIG])

    @pytest.mark.asyncio
    async def test_processed_keeps_polling(self, mock_rpc_client, fast_policy, make_status):
        mock_rpc_client.get_signature_statuses = AsyncMock(side_effect=[
            [make_status('processed')],
            [make_status('confirmed')],
        ])
        result = await ConfirmationPoller(mock_rpc_client).poll(SIG, fast_policy)

        assert result.outcome == ConfirmationOutcome.CONFIRMED
        assert result.polls == 2

    @pytest.mark.asyncio
    async def test_on_chain_error_is_rejected(self, mock_rpc_client, fast_policy, make_status):
        err = {'InstructionError': [2, {'Custom': 1}]}
        mock_rpc_client.get_signature_statuses = AsyncMock(return_value=[make_status('processed', err=err)])
        result = await ConfirmationPoller(mock_rpc_client).poll(SIG, fast_policy)

        assert result.outcome == ConfirmationOutcome.REJECTED
        assert result.error == err
        assert result.polls == 1

    @pytest.mark.asyncio
    async def test_unknown_signature_times_out(self, mock_rpc_client, fast_policy):
        mock_rpc_client.get_signature_statuses = AsyncMock(return_value=[None])
        result = await ConfirmationPoller(mock_rpc_client).poll(SIG, fast_policy)

        assert result.outcome == ConfirmationOutcome.TIMED_OUT
        assert result.polls == fast_policy.confirm_attempts
        assert mock_rpc_client.get_signature_statuses.await_count == fast_policy.confirm_attempts

    @pytest.mark.asyncio
    async def test_transport_errors_are_inconclusive(self, mock_rpc_client, fast_policy):
        mock_rpc_client.get_signature_statuses = AsyncMock(side_effect=RpcError('timeout'))
        result = await ConfirmationPoller(mock_rpc_client).poll(SIG, fast_policy)

        assert result.outcome == ConfirmationOutcome.TIMED_OUT
        assert result.last_transport_error == 'timeout'

    @pytest.mark.asyncio
    async def test_cancelled_before_poll(self, mock_rpc_client, fast_policy):
        token = CancelToken()
        token.cancel()
        with pytest.raises(SubmissionCancelledError):
            await ConfirmationPoller(mock_rpc_client).poll(SIG, fast_policy, token)
        mock_rpc_client.get_signature_statuses.assert_not_awaited()


class TestSignatureStatus:

    def test_from_status(self):
        status = SignatureStatus.from_status(MagicMock(
            slot=72,
            confirmations=10,
            err=None,
            confirmation_status=TransactionConfirmationStatus.Confirmed,
        ))
        assert status.slot == 72
        assert status.confirmations == 10
        assert status.confirmation_status == ConfirmationLevel.CONFIRMED

    def test_from_status_without_level(self):
        status = SignatureStatus.from_status(
            MagicMock(slot=1, confirmations=None, err=None, confirmation_status=None)
        )
        assert status.confirmation_status is None

    @pytest.mark.parametrize("value,expected", [
        (TransactionConfirmationStatus.Processed, ConfirmationLevel.PROCESSED),
        (TransactionConfirmationStatus.Finalized, ConfirmationLevel.FINALIZED),
        ('finalized', ConfirmationLevel.FINALIZED),
        ('rooted', None),
        ('', None),
    ])
    def test_parse_level(self, value, expected):
        assert ConfirmationLevel.parse(value) == expected

    @pytest.mark.asyncio
    async def test_unknown_level_is_inconclusive(self, mock_rpc_client, fast_policy, make_status):
        rooted = SignatureStatus.from_status(
            MagicMock(slot=9, confirmations=None, err=None, confirmation_status='rooted')
        )
        mock_rpc_client.get_signature_statuses = AsyncMock(side_effect=[
            [rooted],
            [make_status('confirmed')],
        ])

        result = await ConfirmationPoller(mock_rpc_client).poll(SIG, fast_policy)

        assert result.outcome == ConfirmationOutcome.CONFIRMED
        assert result.polls == 2
