"""Test day rollover, backup restore and startup maintenance."""

import itertools

import pytest

from pedometer.accumulator import (
    StartupMaintenance,
    credit_steps,
    restore_days,
    roll_over,
    run_startup_maintenance,
)
from pedometer.ledger import NOT_FOUND
from pedometer.models import CORRUPT_THRESHOLD
from tests.helpers import DAY, TOMORROW, TWO_DAYS_AGO, YESTERDAY


class TestRollOver:

    @pytest.mark.asyncio
    async def test_first_day_without_previous_record(self, ledger):
        assert await roll_over(ledger, DAY, 1500) is True

        assert await ledger.get_steps(DAY) == -1500
        assert await ledger.get_steps(YESTERDAY) is NOT_FOUND

    @pytest.mark.asyncio
    async def test_credits_previous_day(self, ledger):
        await ledger.restore_day(YESTERDAY, 800)

        await roll_over(ledger, DAY, 250)

        assert await ledger.get_steps(DAY) == -250
        assert await ledger.get_steps(YESTERDAY) == 1050

    @pytest.mark.asyncio
    async def test_existing_day_is_left_alone(self, ledger):
        await ledger.restore_day(YESTERDAY, 800)
        await roll_over(ledger, DAY, 250)

        assert await roll_over(ledger, DAY, 9999) is False

        assert await ledger.get_steps(DAY) == -250
        assert await ledger.get_steps(YESTERDAY) == 1050

    @pytest.mark.asyncio
    async def test_negative_counter_writes_nothing(self, ledger):
        await ledger.restore_day(YESTERDAY, 800)

        assert await roll_over(ledger, DAY, -5) is False

        assert await ledger.get_steps(DAY) is NOT_FOUND
        assert await ledger.get_steps(YESTERDAY) == 800

    @pytest.mark.asyncio
    async def test_lost_insert_race_still_credits_yesterday(self, ledger, monkeypatch):
        await ledger.restore_day(YESTERDAY, 100)
        await ledger.create_day(DAY, -40)
        real_get_steps = ledger.get_steps

        async def stale_get_steps(day):
            # the check ran before the other writer's insert landed
            if day == DAY:
                return NOT_FOUND
            return await real_get_steps(day)

        monkeypatch.setattr(ledger, "get_steps", stale_get_steps)

        assert await roll_over(ledger, DAY, 60) is False
        monkeypatch.undo()

        assert await ledger.get_steps(DAY) == -40
        assert await ledger.get_steps(YESTERDAY) == 160

    @pytest.mark.asyncio
    async def test_worked_example(self, ledger):
        await roll_over(ledger, DAY, 1500)
        assert await ledger.get_steps(DAY) == -1500

        await credit_steps(ledger, DAY, 1700)
        assert await ledger.get_steps(DAY) == 200

        await roll_over(ledger, TOMORROW, 300)
        assert await ledger.get_steps(DAY) == 500
        assert await ledger.get_steps(TOMORROW) == -300

    @pytest.mark.asyncio
    async def test_reboot_mid_day(self, ledger):
        # counter read 1000 at midnight, 400 more steps, reboot resets it to 0
        await roll_over(ledger, DAY, 1000)
        await credit_steps(ledger, DAY, 1400)
        assert await ledger.get_steps(DAY) == 400

        # after the reboot the sensor reports steps counted from zero again
        await credit_steps(ledger, DAY, 250)
        assert await ledger.get_steps(DAY) == 650
        assert await ledger.get_total_excluding_today(TOMORROW) == 650


class TestRestoreDays:

    @pytest.mark.asyncio
    async def test_counts_restored_and_skipped(self, ledger):
        await roll_over(ledger, DAY, 10)

        report = await restore_days(
            ledger, [(TWO_DAYS_AGO, 3000), (YESTERDAY, 4000), (DAY, 5000), (TOMORROW, -1)]
        )

        assert report.restored == 2
        assert report.skipped == 2
        assert report.total == 4
        assert await ledger.get_steps(DAY) == -10

    @pytest.mark.asyncio
    async def test_does_not_touch_neighbouring_days(self, ledger):
        await ledger.restore_day(YESTERDAY, 100)

        await restore_days(ledger, [(DAY, 500)])

        assert await ledger.get_steps(YESTERDAY) == 100

    @pytest.mark.asyncio
    async def test_order_independent(self, database):
        from pedometer.ledger import DayLedger

        entries = [(TWO_DAYS_AGO, 10), (YESTERDAY, 20), (DAY, 30), (TOMORROW, 40)]
        states = set()
        for ordering in itertools.permutations(entries):
            async with database.session() as session:
                ledger = DayLedger(session)
                for record in await ledger.get_days():
                    await session.delete(record)
                await session.commit()

                # live data that every ordering has to leave alone
                await ledger.create_day(DAY, -7)
                await restore_days(ledger, ordering)
                states.add(tuple((r.day, r.delta) for r in await ledger.get_days()))

        assert states == {((TWO_DAYS_AGO, 10), (YESTERDAY, 20), (DAY, -7), (TOMORROW, 40))}

    @pytest.mark.asyncio
    async def test_same_entries_twice(self, ledger):
        entries = [(YESTERDAY, 20), (DAY, 30)]

        first = await restore_days(ledger, entries)
        second = await restore_days(ledger, reversed(entries))

        assert (first.restored, first.skipped) == (2, 0)
        assert (second.restored, second.skipped) == (0, 2)
        assert [r.delta for r in await ledger.get_days()] == [20, 30]


class TestMaintenance:

    @pytest.mark.asyncio
    async def test_purges_negative_then_corrupt(self, ledger):
        await ledger.create_day(TWO_DAYS_AGO, -10)
        await ledger.restore_day(YESTERDAY, CORRUPT_THRESHOLD + 5)
        await ledger.restore_day(DAY, 300)

        report = await run_startup_maintenance(ledger)

        assert report.negative_removed == 1
        assert report.corrupt_removed == 1
        assert [(r.day, r.delta) for r in await ledger.get_days()] == [(DAY, 300)]

    @pytest.mark.asyncio
    async def test_runs_once(self, ledger):
        maintenance = StartupMaintenance()
        await ledger.create_day(YESTERDAY, -10)

        assert await maintenance.run(ledger) is not None
        await ledger.create_day(DAY, -20)

        assert await maintenance.run(ledger) is None
        assert await ledger.get_steps(DAY) == -20

    @pytest.mark.asyncio
    async def test_refused_after_rollover(self, ledger, caplog):
        maintenance = StartupMaintenance()
        await roll_over(ledger, DAY, 500)
        maintenance.mark_rollover()

        assert await maintenance.run(ledger) is None

        assert await ledger.get_steps(DAY) == -500
        assert "Skipping maintenance purge" in caplog.text
