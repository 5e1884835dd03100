"""
qvledger.state — records, the owned store, the write journal and snapshots.

Layout:
  accounts.py  : Account record + identity normalization
  proposals.py : Proposal record
  store.py     : LedgerState (single-writer store)
  journal.py   : copy-on-write overlays with checkpoint/commit/revert
  snapshot.py  : canonical CBOR encode/decode + state root
"""

from .accounts import Account, AccountId, normalize_account_id
from .journal import Journal
from .proposals import Proposal
from .store import LedgerState, VoteKey

__all__ = [
    "Account",
    "AccountId",
    "normalize_account_id",
    "Proposal",
    "LedgerState",
    "VoteKey",
    "Journal",
]
