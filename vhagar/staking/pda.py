"""
Deterministic account derivation for the staking program.

The per-user lock account is a program derived address seeded with the
literal tag ``b"user_lock_info"``, the user's key and the pool key, in that
order. It must match the program byte for byte or the lock record will not
be found. The user's token account is the standard associated token account
for the staking mint.
"""

from typing import Sequence, Tuple, Union

import base58
from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

USER_LOCK_INFO_SEED = b"user_lock_info"
MAX_SEED_LENGTH = 32
MAX_SEEDS = 16
PUBKEY_LENGTH = 32

KeyLike = Union[str, bytes, Pubkey]


def key_bytes(key: KeyLike) -> bytes:
    """32 raw bytes of a base58 address (bytes and Pubkeys passed through)."""
    if isinstance(key, Pubkey):
        return bytes(key)
    raw = bytes(key) if isinstance(key, (bytes, bytearray)) else base58.b58decode(key)
    if len(raw) != PUBKEY_LENGTH:
        raise ValueError(f"Public key must be {PUBKEY_LENGTH} bytes, got {len(raw)}")
    return raw


def to_pubkey(key: KeyLike) -> Pubkey:
    if isinstance(key, Pubkey):
        return key
    return Pubkey.from_bytes(key_bytes(key))


def to_address(raw: bytes) -> str:
    return str(Pubkey.from_bytes(raw))


def is_on_curve(key: KeyLike) -> bool:
    """True when ``key`` is a point on the Ed25519 curve (a wallet, not a PDA)."""
    return to_pubkey(key).is_on_curve()


def _check_seeds(seeds: Sequence[bytes]) -> None:
    # The bump seed counts toward MAX_SEEDS
    if len(seeds) + 1 > MAX_SEEDS:
        raise ValueError(f"At most {MAX_SEEDS - 1} seeds allowed")
    for seed in seeds:
        if len(seed) > MAX_SEED_LENGTH:
            raise ValueError(f"Seed longer than {MAX_SEED_LENGTH} bytes")


def find_program_address(seeds: Sequence[bytes], program_id: KeyLike) -> Tuple[str, int]:
    """(base58 address, bump) for the first off-curve bump seed."""
    _check_seeds(seeds)
    pda, bump = Pubkey.find_program_address(list(seeds), to_pubkey(program_id))
    return str(pda), bump


def derive_user_lock_info_address(user: KeyLike, staking_pool: KeyLike, program_id: KeyLike) -> str:
    """PDA holding ``user``'s lock slots in ``staking_pool``."""
    address, _bump = find_program_address(
        [USER_LOCK_INFO_SEED, key_bytes(user), key_bytes(staking_pool)],
        program_id,
    )
    return address


def derive_user_token_account(owner: KeyLike, mint: KeyLike) -> str:
    """Associated token account of ``owner`` for the staking mint."""
    return str(get_associated_token_address(to_pubkey(owner), to_pubkey(mint)))
