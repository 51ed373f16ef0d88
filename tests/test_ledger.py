"""Tests for the cooldown ledger."""

from datetime import datetime, timedelta, timezone

import pytest

from mantle_faucet.ledger.repository import CooldownLedger

ADDRESS = "0x" + "ab12" * 10
DAY = timedelta(hours=24)
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestEligibility:
    """Tests for is_eligible."""

    def test_unknown_address_is_eligible(self):
        ledger = CooldownLedger()

        assert ledger.is_eligible(ADDRESS, DAY, T0)
        assert ledger.is_eligible(ADDRESS, timedelta(0), T0)
        assert ledger.get(ADDRESS) is None

    @pytest.mark.parametrize(
        "elapsed, eligible",
        [
            (timedelta(0), False),
            (timedelta(hours=23, minutes=59, seconds=59), False),
            (DAY, True),
            (DAY + timedelta(seconds=1), True),
        ],
    )
    def test_cooldown_boundary(self, elapsed, eligible):
        ledger = CooldownLedger()
        ledger.record(ADDRESS, T0)

        assert ledger.is_eligible(ADDRESS, DAY, T0 + elapsed) is eligible

    def test_is_eligible_has_no_side_effects(self):
        ledger = CooldownLedger()

        ledger.is_eligible(ADDRESS, DAY, T0)

        assert len(ledger) == 0

    def test_addresses_are_case_insensitive(self):
        ledger = CooldownLedger()
        ledger.record(ADDRESS.upper().replace("0X", "0x"), T0)

        assert not ledger.is_eligible(ADDRESS.lower(), DAY, T0 + timedelta(hours=1))

    def test_other_addresses_unaffected(self):
        ledger = CooldownLedger()
        ledger.record(ADDRESS, T0)

        assert ledger.is_eligible("0x" + "34" * 20, DAY, T0)


class TestRecord:
    """Tests for record."""

    def test_record_creates_entry(self):
        ledger = CooldownLedger()

        record = ledger.record(ADDRESS, T0)

        assert record.address == ADDRESS
        assert record.last_withdraw_time == T0
        assert ledger.get(ADDRESS) == record

    def test_record_overwrites(self):
        ledger = CooldownLedger()
        ledger.record(ADDRESS, T0)
        later = T0 + timedelta(days=2)

        ledger.record(ADDRESS, later)

        assert len(ledger) == 1
        assert ledger.get(ADDRESS).last_withdraw_time == later
        assert not ledger.is_eligible(ADDRESS, DAY, later + timedelta(hours=1))


class TestHold:
    """Tests for the per-address exclusive section."""

    @pytest.mark.asyncio
    async def test_hold_is_per_address_and_case_insensitive(self):
        ledger = CooldownLedger()

        async with ledger.hold(ADDRESS.lower()):
            assert ledger.is_busy(ADDRESS)
            assert ledger.in_flight == 1
            assert ledger._locks.is_locked(ADDRESS.lower())
            assert not ledger._locks.is_locked("0x" + "34" * 20)

        assert not ledger._locks.is_locked(ADDRESS.lower())
        assert not ledger.is_busy(ADDRESS)
        assert ledger.in_flight == 0
