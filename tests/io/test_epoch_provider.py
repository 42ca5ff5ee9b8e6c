#!/usr/bin/env python3
"""Test suite for epoch providers"""

import unittest

import numpy as np

from pyrtk.core.data_structures import ReceiverEpoch, SatTypeValueMap
from pyrtk.core.exceptions import EndOfData, MalformedRecord
from pyrtk.core.satellite import SatelliteSystem, SatID
from pyrtk.core.time import CommonTime, TimeSystem
from pyrtk.core.type_id import C1G
from pyrtk.io.epoch_provider import RecordEpochProvider, parse_record, parse_time


def record(sow, **overrides):
    data = {
        "time": {"week": 2138, "sow": sow},
        "position": [-3961905.0, 3348994.0, 3698212.0],
        "receiver": "ROVER",
        "observations": {"G05": {"C1G": 2.1e7, "L1G": 2.1e7 + 0.5}},
    }
    data.update(overrides)
    return data


class TestParseTime(unittest.TestCase):

    def test_week_seconds(self):
        t = parse_time({"week": 2138, "sow": 345600.5})
        self.assertIs(t.time_system, TimeSystem.GPS)
        self.assertEqual(t.to_gps_week_seconds(), (2138, 345600.5))

    def test_mjd(self):
        t = parse_time({"mjd": 59246.5, "system": "UTC"})
        self.assertEqual(t.day, 59246)
        self.assertEqual(t.sod, 43200.0)
        self.assertIs(t.time_system, TimeSystem.UTC)

    def test_common_time_passthrough(self):
        t = CommonTime(59246, 1000)
        self.assertIs(parse_time(t), t)

    def test_unsupported(self):
        with self.assertRaises(ValueError):
            parse_time("2021-02-01")
        with self.assertRaises(ValueError):
            parse_time({"sow": 1.0})


class TestParseRecord(unittest.TestCase):

    def test_record(self):
        epoch = parse_record(record(10.0))
        self.assertEqual(epoch.receiver, "ROVER")
        self.assertEqual(epoch.num_sats(), 1)
        self.assertEqual(epoch.observations[SatID(SatelliteSystem.GPS, 5)][C1G], 2.1e7)
        np.testing.assert_array_equal(epoch.position, [-3961905.0, 3348994.0, 3698212.0])

    def test_position_optional(self):
        data = record(10.0)
        del data["position"]
        self.assertIsNone(parse_record(data).position)

    def test_malformed(self):
        bad = [
            {"time": {"week": 2138, "sow": 0.0}},
            record(0.0, time={"week": "x", "sow": 0.0}),
            record(0.0, position=[1.0, 2.0]),
            record(0.0, observations={"X05": {"C1G": 1.0}}),
            record(0.0, observations={"G05": {"C1G": "abc"}}),
        ]
        for data in bad:
            with self.subTest(data=data):
                with self.assertRaises(MalformedRecord):
                    parse_record(data)


class TestRecordEpochProvider(unittest.TestCase):

    def setUp(self):
        self.provider = RecordEpochProvider([record(0.0), record(1.0), record(2.0), record(4.0)])

    def sow(self, epoch):
        return epoch.time.to_gps_week_seconds()[1]

    def test_read_until_end(self):
        self.assertEqual(len(self.provider), 4)
        seconds = [self.sow(self.provider.read_epoch()) for _ in range(4)]
        self.assertEqual(seconds, [0.0, 1.0, 2.0, 4.0])
        with self.assertRaises(EndOfData):
            self.provider.read_epoch()

    def test_peek_does_not_consume(self):
        first = self.provider.peek()
        self.assertIs(self.provider.read_epoch(), first)
        self.assertEqual(self.sow(self.provider.read_epoch()), 1.0)

    def test_read_epoch_at(self):
        t2 = CommonTime.from_gps_week_seconds(2138, 2.0)
        epoch = self.provider.read_epoch_at(t2)
        self.assertEqual(self.sow(epoch), 2.0)
        # 3 s is missing, 4 s stays queued
        self.assertIsNone(self.provider.read_epoch_at(t2 + 1.0))
        self.assertEqual(self.sow(self.provider.read_epoch_at(t2 + 2.0)), 4.0)
        with self.assertRaises(EndOfData):
            self.provider.read_epoch_at(t2 + 3.0)

    def test_any_system_matches(self):
        t1 = CommonTime.from_gps_week_seconds(2138, 1.0).with_system(TimeSystem.ANY)
        self.assertEqual(self.sow(self.provider.read_epoch_at(t1)), 1.0)

    def test_time_system_mismatch_is_malformed(self):
        provider = RecordEpochProvider([
            record(1.0, time={"week": 2138, "sow": 1.0, "system": "BDT"})])
        t1 = CommonTime.from_gps_week_seconds(2138, 1.0)
        with self.assertRaises(MalformedRecord):
            provider.read_epoch_at(t1)

    def test_epoch_objects(self):
        epoch = ReceiverEpoch(CommonTime(59246), SatTypeValueMap())
        provider = RecordEpochProvider([epoch])
        self.assertIs(provider.read_epoch(), epoch)

    def test_malformed_surfaces_when_reached(self):
        provider = RecordEpochProvider([record(0.0), {"observations": {}}])
        provider.read_epoch()
        with self.assertRaises(MalformedRecord):
            provider.read_epoch()


if __name__ == '__main__':
    unittest.main()
