"""
Ledger capability shared by the two transfer engines.

A ledger moves money in and out of one kind of account record. It does not
decide whether a movement is allowed; the engines do that, inside
``hold(...)``, which:

- takes a per-account ``asyncio.Lock`` for every account involved, in sorted
  key order so two transfers over the same pair cannot deadlock, and
- reloads each held account from its store, so the balance checks that follow
  see the latest committed value rather than whatever the caller loaded
  earlier in the request.

Locks only serialize work inside one process. Across processes the stores'
conditional balance write (see ``ezpay.db.repositories``) rejects a stale
write with ``ConcurrentUpdateError`` instead of losing it.
"""

import asyncio
import weakref
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Hashable, Optional

from ezpay.db.repositories import AccountHolderRepository, UPIAccountRepository
from ezpay.logging_config import get_logger

logger = get_logger("ezpay.ledger")


class AccountLocks:
    """
    Process-wide registry of one lock per account key.

    Entries are weak: a lock lives only while some coroutine holds or awaits
    it, so keys of deleted accounts do not accumulate.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[Hashable, asyncio.Lock]" = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def get(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock


account_locks = AccountLocks()


class Ledger:
    namespace = "account"

    def __init__(self, store, locks: Optional[AccountLocks] = None, exclusive: bool = True):
        self.store = store
        self.locks = locks if locks is not None else account_locks
        self.exclusive = exclusive

    def key(self, account) -> Hashable:
        return (self.namespace, account.id)

    @asynccontextmanager
    async def hold(self, *accounts) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            if self.exclusive:
                for key in sorted({self.key(a) for a in accounts}):
                    await stack.enter_async_context(self.locks.get(key))
            for account in accounts:
                await self.store.refresh(account)
            yield

    async def debit(self, account, amount):
        new_balance = account.balance - amount
        logger.info("Debit %s %s: %s -> %s", self.namespace, account.id, account.balance, new_balance)
        return await self.store.update_balance(account, new_balance)

    async def credit(self, account, amount):
        new_balance = account.balance + amount
        logger.info("Credit %s %s: %s -> %s", self.namespace, account.id, account.balance, new_balance)
        return await self.store.update_balance(account, new_balance)


class HolderLedger(Ledger):
    """Float balances on account holders."""

    namespace = "account_holder"

    def __init__(self, store: AccountHolderRepository, locks: Optional[AccountLocks] = None, exclusive: bool = True):
        super().__init__(store, locks, exclusive)


class UPILedger(Ledger):
    """Integer balances on UPI accounts."""

    namespace = "upi_account"

    def __init__(self, store: UPIAccountRepository, locks: Optional[AccountLocks] = None, exclusive: bool = True):
        super().__init__(store, locks, exclusive)
