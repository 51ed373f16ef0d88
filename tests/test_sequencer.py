"""Tests for operator nonce sequencing."""

import asyncio

import pytest

from mantle_faucet.utils.locks import LockTimeoutError
from mantle_faucet.withdrawal.sequencer import NonceSequencer

OPERATOR = "0x" + "cd" * 20
CHAIN = ("rpc.sepolia.mantle.xyz", 5003)


def pending(value):
    async def fetch():
        return value
    return fetch


class TestNonceSequencer:

    @pytest.mark.asyncio
    async def test_uses_chain_nonce_first(self):
        sequencer = NonceSequencer()

        async with sequencer.reserve(OPERATOR, CHAIN, pending(5)) as reservation:
            assert reservation.nonce == 5

    @pytest.mark.asyncio
    async def test_commit_advances_past_stale_chain_nonce(self):
        """A node that has not caught up yet does not cause nonce reuse."""
        sequencer = NonceSequencer()

        async with sequencer.reserve(OPERATOR, CHAIN, pending(5)) as reservation:
            reservation.commit()

        async with sequencer.reserve(OPERATOR, CHAIN, pending(5)) as reservation:
            assert reservation.nonce == 6

    @pytest.mark.asyncio
    async def test_chain_nonce_wins_when_higher(self):
        sequencer = NonceSequencer()

        async with sequencer.reserve(OPERATOR, CHAIN, pending(5)) as reservation:
            reservation.commit()

        async with sequencer.reserve(OPERATOR, CHAIN, pending(9)) as reservation:
            assert reservation.nonce == 9

    @pytest.mark.asyncio
    async def test_uncommitted_reservation_does_not_advance(self):
        sequencer = NonceSequencer()

        async with sequencer.reserve(OPERATOR, CHAIN, pending(5)):
            pass

        async with sequencer.reserve(OPERATOR, CHAIN, pending(5)) as reservation:
            assert reservation.nonce == 5

    @pytest.mark.asyncio
    async def test_failure_inside_block_does_not_advance(self):
        sequencer = NonceSequencer()

        with pytest.raises(RuntimeError):
            async with sequencer.reserve(OPERATOR, CHAIN, pending(5)):
                raise RuntimeError("broadcast failed")

        async with sequencer.reserve(OPERATOR, CHAIN, pending(5)) as reservation:
            assert reservation.nonce == 5

    @pytest.mark.asyncio
    async def test_fetch_failure_releases_lock(self):
        sequencer = NonceSequencer(lock_timeout=0.1)

        async def broken():
            raise ConnectionError("node down")

        with pytest.raises(ConnectionError):
            async with sequencer.reserve(OPERATOR, CHAIN, broken):
                pass

        async with sequencer.reserve(OPERATOR, CHAIN, pending(1)) as reservation:
            assert reservation.nonce == 1

    @pytest.mark.asyncio
    async def test_concurrent_reservations_get_distinct_nonces(self):
        sequencer = NonceSequencer()
        nonces = []

        async def disburse():
            async with sequencer.reserve(OPERATOR, CHAIN, pending(3)) as reservation:
                await asyncio.sleep(0.01)
                nonces.append(reservation.nonce)
                reservation.commit()

        await asyncio.gather(*(disburse() for _ in range(5)))

        assert sorted(nonces) == [3, 4, 5, 6, 7]

    @pytest.mark.asyncio
    async def test_lock_timeout(self):
        sequencer = NonceSequencer(lock_timeout=0.05)

        async def hold():
            async with sequencer.reserve(OPERATOR, CHAIN, pending(0)):
                await asyncio.sleep(0.3)

        task = asyncio.create_task(hold())
        await asyncio.sleep(0.01)

        with pytest.raises(LockTimeoutError):
            async with sequencer.reserve(OPERATOR, CHAIN, pending(0)):
                pass

        await task

    @pytest.mark.asyncio
    async def test_chains_are_counted_separately(self):
        sequencer = NonceSequencer()
        other_chain = ("rpc.mantle.xyz", 5000)

        async with sequencer.reserve(OPERATOR, CHAIN, pending(50)) as reservation:
            reservation.commit()

        async with sequencer.reserve(OPERATOR, other_chain, pending(0)) as reservation:
            assert reservation.nonce == 0
            reservation.commit()

        async with sequencer.reserve(OPERATOR, CHAIN, pending(50)) as reservation:
            assert reservation.nonce == 51

    @pytest.mark.asyncio
    async def test_address_case_shares_counter(self):
        sequencer = NonceSequencer()

        async with sequencer.reserve(OPERATOR, CHAIN, pending(5)) as reservation:
            reservation.commit()

        async with sequencer.reserve(OPERATOR.upper().replace("0X", "0x"), CHAIN, pending(5)) as reservation:
            assert reservation.nonce == 6
