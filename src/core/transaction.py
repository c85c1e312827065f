"""
Helpers over solders transactions shared by the senders and the submitter.
"""

import base64

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction


def tip_transfer(from_pubkey: Pubkey, to_pubkey: Pubkey, lamports: int) -> Instruction:
    """System program transfer paying a relay tip."""
    return transfer(TransferParams(from_pubkey=from_pubkey, to_pubkey=to_pubkey, lamports=lamports))


def signature_of(transaction: Transaction) -> str:
    """Base58 id of a signed transaction (its first signature)."""
    return str(transaction.signatures[0])


def to_base64(transaction: Transaction) -> str:
    return base64.b64encode(bytes(transaction)).decode("ascii")
