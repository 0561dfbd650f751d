# -*- coding: utf-8 -*-

from __future__ import annotations

import shutil
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pulselog.healthstore import (
    HEART_RATE_CAPABILITIES,
    Capability,
    FileHealthStore,
    HeartRateSample,
    PermissionDeniedError,
    StoreError,
)
from pulselog.session import HeartRateSessionController

NOW = datetime(2024, 3, 10, 8, 30, tzinfo=timezone.utc)
PLUS_FIVE_THIRTY = timezone(timedelta(hours=5, minutes=30))


class TestFileHealthStore(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="pulselog-test-"))
        self.store = FileHealthStore(self._tmp, auto_grant=False)

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    async def test_no_grants_initially(self) -> None:
        self.assertEqual(await self.store.get_granted_capabilities(), frozenset())
        self.assertEqual(await self.store.request_capabilities(HEART_RATE_CAPABILITIES), frozenset())

    async def test_grant_revoke_persist(self) -> None:
        self.store.grant(HEART_RATE_CAPABILITIES)
        reopened = FileHealthStore(self._tmp, auto_grant=False)
        self.assertEqual(await reopened.get_granted_capabilities(), HEART_RATE_CAPABILITIES)

        reopened.revoke([Capability.WRITE_HEART_RATE])
        self.assertEqual(await self.store.get_granted_capabilities(), frozenset({Capability.READ_HEART_RATE}))

    async def test_auto_grant_request(self) -> None:
        store = FileHealthStore(self._tmp, auto_grant=True)
        self.assertEqual(await store.request_capabilities(HEART_RATE_CAPABILITIES), HEART_RATE_CAPABILITIES)

    async def test_insert_and_query_window(self) -> None:
        self.store.grant(HEART_RATE_CAPABILITIES)
        inside = HeartRateSample(beats_per_minute=64, timestamp=(NOW - timedelta(hours=2)).astimezone(PLUS_FIVE_THIRTY))
        outside = HeartRateSample(beats_per_minute=65, timestamp=NOW - timedelta(hours=30))

        ids = await self.store.insert([inside, outside])
        self.assertEqual(len(ids), 2)
        self.assertEqual(len(set(ids)), 2)

        found = await self.store.query(NOW - timedelta(hours=24), NOW)
        self.assertEqual(len(found), 1)
        self.assertEqual(found[0].beats_per_minute, 64)
        self.assertEqual(found[0].timestamp, inside.timestamp)
        self.assertEqual(found[0].zone_offset_seconds, 5 * 3600 + 30 * 60)
        self.assertIn(found[0].id, ids)

    async def test_writes_and_reads_need_their_capability(self) -> None:
        sample = HeartRateSample(beats_per_minute=70, timestamp=NOW)
        with self.assertRaises(PermissionDeniedError) as ctx:
            await self.store.insert([sample])
        self.assertEqual(ctx.exception.capability, Capability.WRITE_HEART_RATE)

        self.store.grant([Capability.WRITE_HEART_RATE])
        await self.store.insert([sample])
        with self.assertRaises(PermissionDeniedError):
            await self.store.query(NOW - timedelta(hours=1), NOW)

    async def test_unreadable_files_are_skipped(self) -> None:
        self.store.grant(HEART_RATE_CAPABILITIES)
        await self.store.insert([HeartRateSample(beats_per_minute=70, timestamp=NOW)])
        (self._tmp / "healthstore" / "heart_rate" / "broken.json").write_text("{not json", encoding="utf-8")
        (self._tmp / "healthstore" / "heart_rate" / "bad.json").write_text('{"sample": {"beats_per_minute": 999}}', encoding="utf-8")

        found = await self.store.query(NOW - timedelta(hours=1), NOW)
        self.assertEqual([s.beats_per_minute for s in found], [70])

    async def test_undecodable_and_non_object_files_are_skipped(self) -> None:
        self.store.grant(HEART_RATE_CAPABILITIES)
        controller = HeartRateSessionController(self.store, clock=lambda: NOW, tz=timezone.utc)
        await controller.save(71, NOW - timedelta(minutes=5))
        samples_dir = self._tmp / "healthstore" / "heart_rate"
        (samples_dir / "yyy.json").write_bytes(b"\xff\xfe{")
        (samples_dir / "zzz.json").write_text("[]", encoding="utf-8")

        state = await controller.load()

        self.assertIsNone(state.error)
        self.assertEqual([r.beats_per_minute for r in state.records], [71])

    async def test_corrupt_grants_file_is_a_store_error(self) -> None:
        (self._tmp / "healthstore").mkdir(parents=True)
        (self._tmp / "healthstore" / "grants.json").write_text("[", encoding="utf-8")
        with self.assertRaises(StoreError):
            await self.store.get_granted_capabilities()

    async def test_reversed_range_rejected(self) -> None:
        self.store.grant(HEART_RATE_CAPABILITIES)
        with self.assertRaises(StoreError):
            await self.store.query(NOW, NOW - timedelta(hours=1))

    async def test_session_round_trip(self) -> None:
        self.store.grant(HEART_RATE_CAPABILITIES)
        controller = HeartRateSessionController(self.store, clock=lambda: NOW, tz=timezone.utc)

        self.assertTrue((await controller.refresh_permissions()).permissions_granted)
        state = await controller.submit("72", "2024-03-10 08:00")

        self.assertIsNone(state.error)
        self.assertEqual(len(state.records), 1)
        self.assertEqual(state.records[0].beats_per_minute, 72)
        self.assertEqual(state.records[0].timestamp, datetime(2024, 3, 10, 8, 0, tzinfo=timezone.utc))


if __name__ == "__main__":
    unittest.main()
