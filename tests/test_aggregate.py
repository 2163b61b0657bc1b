import dataclasses
import unittest

import fakes  # noqa: F401  (puts the repo root on sys.path)

from nettui.aggregate import Aggregator, HistoryBuffer, MissingPolicy, Selection
from nettui.rates import RatePoint


def point(name, dl, ul, t=1.0):
    return RatePoint(name=name, download=dl, upload=ul, timestamp=t)


class HistoryBufferTests(unittest.TestCase):
    def test_evicts_oldest_first(self):
        buf = HistoryBuffer(5)
        for v in range(5 + 3):
            buf.append(float(v))
        self.assertEqual(len(buf), 5)
        self.assertEqual(buf.snapshot(), (3.0, 4.0, 5.0, 6.0, 7.0))
        self.assertEqual(buf.last(), 7.0)

    def test_never_exceeds_capacity(self):
        buf = HistoryBuffer(3)
        for v in range(100):
            buf.append(float(v))
            self.assertLessEqual(len(buf), buf.capacity)

    def test_empty_last_default(self):
        self.assertEqual(HistoryBuffer(2).last(), 0.0)
        self.assertEqual(HistoryBuffer(2).last(default=-1.0), -1.0)

    def test_capacity_must_be_positive(self):
        with self.assertRaises(ValueError):
            HistoryBuffer(0)


class SelectionTests(unittest.TestCase):
    def test_total_skips_loopback_and_excluded(self):
        sel = Selection(exclude=frozenset({"virbr0"}))
        self.assertTrue(sel.tracks("eth0"))
        self.assertTrue(sel.tracks("docker0"))
        self.assertFalse(sel.tracks("lo"))
        self.assertFalse(sel.tracks("virbr0"))
        self.assertEqual(sel.describe(), "total")

    def test_single_interface(self):
        sel = Selection(interface="wlan0")
        self.assertTrue(sel.tracks("wlan0"))
        self.assertFalse(sel.tracks("eth0"))
        self.assertEqual(sel.describe(), "wlan0")


class AggregatorTests(unittest.TestCase):
    def test_total_sums_tracked_interfaces(self):
        agg = Aggregator(10)
        agg.ingest({point("eth0", 1000, 100), point("wlan0", 500, 50), point("lo", 9999, 9999)})
        snap = agg.current()
        self.assertEqual(snap.download, 1500)
        self.assertEqual(snap.upload, 150)
        self.assertEqual(snap.download_history, (1500,))

    def test_single_interface_passes_through(self):
        agg = Aggregator(10, selection=Selection(interface="wlan0"))
        agg.ingest({point("eth0", 1000, 100), point("wlan0", 500, 50)})
        snap = agg.current()
        self.assertEqual((snap.download, snap.upload), (500, 50))

    def test_missing_zero_policy(self):
        agg = Aggregator(10, selection=Selection(interface="wlan0"), missing=MissingPolicy.ZERO)
        agg.ingest({point("wlan0", 500, 50)})
        agg.ingest({point("eth0", 1000, 100)})
        snap = agg.current()
        self.assertEqual(snap.download_history, (500, 0.0))
        self.assertEqual(snap.upload_history, (50, 0.0))

    def test_missing_hold_policy(self):
        agg = Aggregator(10, selection=Selection(interface="wlan0"), missing="hold")
        agg.ingest(set())
        agg.ingest({point("wlan0", 500, 50)})
        agg.ingest(set())
        agg.ingest(set())
        snap = agg.current()
        self.assertEqual(snap.download_history, (0.0, 500, 500, 500))
        self.assertEqual(snap.upload, 50)

    def test_one_value_per_ingest(self):
        agg = Aggregator(4)
        for i in range(6):
            agg.ingest({point("eth0", float(i), 0.0)})
        snap = agg.current()
        self.assertEqual(snap.download_history, (2.0, 3.0, 4.0, 5.0))
        self.assertEqual(snap.ticks, 6)
        self.assertEqual(snap.capacity, 4)

    def test_snapshot_is_point_in_time_copy(self):
        agg = Aggregator(10)
        agg.ingest({point("eth0", 100, 10)})
        before = agg.current()
        agg.ingest({point("eth0", 200, 20)})
        self.assertEqual(before.download_history, (100,))
        self.assertEqual(before.download, 100)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            before.download = 0.0

    def test_interfaces_sorted_by_traffic(self):
        agg = Aggregator(10)
        agg.ingest({point("a", 1, 1), point("b", 100, 0), point("c", 1, 1)})
        names = [p.name for p in agg.current().interfaces]
        self.assertEqual(names, ["b", "a", "c"])

    def test_interfaces_reflect_latest_tick_only(self):
        agg = Aggregator(10)
        agg.ingest({point("eth0", 1, 1), point("tun0", 1, 1)})
        agg.ingest({point("eth0", 2, 2)})
        self.assertEqual([p.name for p in agg.current().interfaces], ["eth0"])


if __name__ == "__main__":
    unittest.main()
