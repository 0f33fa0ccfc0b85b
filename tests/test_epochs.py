"""
Epoch registry tests.
"""

import json
import unittest

from trustlend import (
    Epoch,
    EpochNotFound,
    EpochRegistry,
    ManualClock,
    Unauthorized,
    make_witnesses,
)

from support import ADMIN, DAY, START, STRANGER


ROSTER_A = make_witnesses(["0x" + "01" * 20, "0x" + "02" * 20, "0x" + "03" * 20])
ROSTER_B = make_witnesses(["0x" + "04" * 20, "0x" + "05" * 20])


class TestEpochRegistry(unittest.TestCase):

    def setUp(self):
        self.clock = ManualClock(START)
        self.registry = EpochRegistry(owner=ADMIN, epoch_duration=DAY, clock=self.clock)

    def test_empty_registry_has_no_current_epoch(self):
        with self.assertRaises(EpochNotFound):
            self.registry.get(0)

    def test_first_epoch(self):
        epoch = self.registry.append(ADMIN, ROSTER_A, 2)

        self.assertEqual(epoch.id, 1)
        self.assertEqual(epoch.start_time, START)
        self.assertEqual(epoch.end_time, START + DAY)
        self.assertEqual(epoch.min_committee_size, 2)
        self.assertEqual(len(epoch.witnesses), 3)

    def test_append_closes_previous_epoch(self):
        first = self.registry.append(ADMIN, ROSTER_A, 2)
        self.clock.advance(3600)
        second = self.registry.append(ADMIN, ROSTER_B, 1)

        self.assertEqual(second.id, 2)
        self.assertEqual(first.end_time, START + 3600)
        self.assertEqual(second.start_time, START + 3600)
        self.assertIs(self.registry.current(), second)

    def test_get_by_id(self):
        self.registry.append(ADMIN, ROSTER_A, 2)
        self.registry.append(ADMIN, ROSTER_B, 1)

        self.assertEqual(self.registry.get(1).witnesses, ROSTER_A)
        self.assertEqual(self.registry.get(2).witnesses, ROSTER_B)
        self.assertEqual(self.registry.get(0).id, 2)

    def test_unknown_epoch(self):
        self.registry.append(ADMIN, ROSTER_A, 2)
        with self.assertRaises(EpochNotFound):
            self.registry.get(2)

    def test_only_owner_appends(self):
        with self.assertRaises(Unauthorized):
            self.registry.append(STRANGER, ROSTER_A, 2)
        self.assertEqual(len(self.registry), 0)

    def test_owner_match_is_case_insensitive(self):
        epoch = self.registry.append(ADMIN.upper().replace("0X", "0x"), ROSTER_A, 1)
        self.assertEqual(epoch.id, 1)

    def test_committee_size_must_fit_u8(self):
        with self.assertRaises(ValueError):
            self.registry.append(ADMIN, ROSTER_A, 256)
        with self.assertRaises(ValueError):
            self.registry.append(ADMIN, ROSTER_A, -1)

    def test_epoch_wire_form(self):
        epoch = self.registry.append(ADMIN, ROSTER_B, 1)
        data = json.loads(json.dumps(epoch.to_dict()))

        self.assertEqual(data["id"], 1)
        self.assertEqual(data["startTime"], START)
        self.assertEqual(data["endTime"], START + DAY)
        self.assertEqual(data["minCommitteeSize"], 1)
        self.assertEqual([w["address"] for w in data["witnesses"]], [w.address for w in ROSTER_B])
        self.assertEqual(Epoch.from_dict(data), epoch)

    def test_undo_append(self):
        self.registry.append(ADMIN, ROSTER_A, 2)
        snap = self.registry.snapshot()
        self.clock.advance(10)
        self.registry.append(ADMIN, ROSTER_B, 1)

        self.registry.restore(snap)

        self.assertEqual(len(self.registry), 1)
        self.assertEqual(self.registry.current().end_time, START + DAY)

    def test_snapshot_restores_ids_and_times(self):
        self.registry.append(ADMIN, ROSTER_A, 2)
        self.clock.advance(10)
        self.registry.append(ADMIN, ROSTER_B, 1)

        restored = EpochRegistry.from_dict(self.registry.to_dict(), clock=self.clock)

        self.assertEqual(restored.owner, ADMIN)
        self.assertEqual([e.to_dict() for e in restored], [e.to_dict() for e in self.registry])

    def test_snapshot_requires_sequential_ids(self):
        data = self.registry.to_dict()
        data["epochs"] = [Epoch(2, START, START + DAY, ROSTER_A, 1).to_dict()]
        with self.assertRaises(ValueError):
            EpochRegistry.from_dict(data)


if __name__ == "__main__":
    unittest.main()
