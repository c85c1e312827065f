"""
Pytest fixtures for tx-lander tests
"""
import pytest
from unittest.mock import MagicMock, AsyncMock

from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from core.confirmation import ConfirmationLevel, SignatureStatus
from core.retry_policy import RetryPolicy
from core.transaction import signature_of, tip_transfer


def _make_status(level='confirmed', err=None, slot=250000000):
    """SignatureStatus as returned by getSignatureStatuses"""
    return SignatureStatus(
        slot=slot,
        confirmations=None,
        err=err,
        confirmation_status=ConfirmationLevel(level) if level else None,
    )


@pytest.fixture
def make_status():
    return _make_status


@pytest.fixture
def signer():
    return Keypair.from_seed(bytes(range(32)))


@pytest.fixture
def fee_payer():
    return Keypair.from_seed(bytes(range(32, 64)))


@pytest.fixture
def recent_blockhash():
    return Hash(bytes([7] * 32))


@pytest.fixture
def tip_recipient():
    return Pubkey.from_string('EoXEM37CZpA4pPv2pet4befGQ93sw2ZRNUrEWVQRJQnK')


@pytest.fixture
def signed_tx(signer, tip_recipient, recent_blockhash):
    """One-transfer transaction signed by `signer`"""
    message = Message([tip_transfer(signer.pubkey(), tip_recipient, 1)], signer.pubkey())
    return Transaction([signer], message, recent_blockhash)


@pytest.fixture
def mock_rpc_client(recent_blockhash):
    """Mock SolanaClient"""
    client = MagicMock()
    client.get_latest_blockhash = AsyncMock(return_value=recent_blockhash)
    client.get_balance = AsyncMock(return_value=1_000_000_000)  # 1 SOL
    client.send_transaction = AsyncMock(side_effect=lambda tx, **kwargs: signature_of(tx))
    client.get_signature_statuses = AsyncMock(return_value=[_make_status('confirmed')])
    client.get_recent_prioritization_fees = AsyncMock(return_value=[])
    client.close = AsyncMock()
    return client


@pytest.fixture
def fast_policy():
    """Standard-shaped policy without delays"""
    return RetryPolicy(max_submit_retries=3, submit_delay=0.0, confirm_attempts=2, confirm_delay=0.0)


@pytest.fixture
def fast_tipped_policy():
    return RetryPolicy(max_submit_retries=1, submit_delay=0.0, confirm_attempts=4, confirm_delay=0.0)


def _decode_instructions(tx):
    """(program id, data, account keys) for each compiled instruction of `tx`"""
    keys = tx.message.account_keys
    return [
        (keys[ix.program_id_index], bytes(ix.data), [keys[i] for i in ix.accounts])
        for ix in tx.message.instructions
    ]


@pytest.fixture
def decode_instructions():
    return _decode_instructions
