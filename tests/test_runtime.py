import math
import threading
import unittest

from bubblecompass.core.config import CompassProfile
from bubblecompass.core.sensors import HeadingReading, LocationFix, MotionSample
from bubblecompass.navigation.bearing import TOTTENHAM_HOTSPUR_STADIUM, compute_bearing_and_distance, GeoPoint
from bubblecompass.platform.haptics import CallbackHaptic, HapticNotifier
from bubblecompass.runtime.service import CompassRuntime

WESTMINSTER = GeoPoint(51.5007, -0.1246)


def make_runtime(**kwargs) -> CompassRuntime:
    kwargs.setdefault("haptic", HapticNotifier())
    return CompassRuntime(CompassProfile(poll_interval_s=0.01), **kwargs)


class RuntimeDerivationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.pulses = []
        self.rt = make_runtime(haptic=CallbackHaptic(self.pulses.append))
        self.expected_bearing, self.expected_distance = compute_bearing_and_distance(
            WESTMINSTER, TOTTENHAM_HOTSPUR_STADIUM
        )

    def test_nothing_derived_before_first_fix(self) -> None:
        snap = self.rt.apply(HeadingReading(self.expected_bearing))
        self.assertFalse(snap.derived.computed)
        self.assertEqual(snap.derived.bearing_to_target, 0.0)
        self.assertEqual(snap.distance_text, "--")
        self.assertEqual(self.pulses, [])
        self.assertEqual(snap.updates, 1)

    def test_fix_derives_bearing_and_distance(self) -> None:
        snap = self.rt.apply(LocationFix(WESTMINSTER.latitude, WESTMINSTER.longitude))
        self.assertTrue(snap.derived.computed)
        self.assertAlmostEqual(snap.derived.bearing_to_target, self.expected_bearing)
        self.assertAlmostEqual(snap.derived.distance_m, self.expected_distance)
        self.assertEqual(snap.distance_text, "12.2 km")
        self.assertAlmostEqual(snap.derived.arrow_rotation, self.expected_bearing)

    def test_heading_with_stale_position_recomputes(self) -> None:
        self.rt.apply(LocationFix(WESTMINSTER.latitude, WESTMINSTER.longitude))
        snap = self.rt.apply(HeadingReading(magnetic_heading=200.0, true_heading=-1.0))
        self.assertEqual(snap.device.heading, 200.0)
        self.assertAlmostEqual(snap.derived.arrow_rotation, self.expected_bearing - 200.0)
        self.assertFalse(snap.derived.is_aligned)

    def test_true_heading_preferred(self) -> None:
        snap = self.rt.apply(HeadingReading(magnetic_heading=10.0, true_heading=12.5))
        self.assertEqual(snap.device.heading, 12.5)

    def test_motion_converted_to_degrees(self) -> None:
        snap = self.rt.apply(MotionSample(pitch_rad=math.pi / 6, roll_rad=-math.pi / 4))
        self.assertAlmostEqual(snap.device.pitch, 30.0)
        self.assertAlmostEqual(snap.device.roll, -45.0)

    def test_haptic_fires_once_per_approach(self) -> None:
        self.rt.apply(LocationFix(WESTMINSTER.latitude, WESTMINSTER.longitude))
        self.rt.apply(HeadingReading(self.expected_bearing + 2.0))
        self.rt.apply(HeadingReading(self.expected_bearing - 1.0))
        self.rt.apply(MotionSample(0.1, 0.1))
        self.assertEqual(len(self.pulses), 1)
        snap = self.rt.apply(HeadingReading(self.expected_bearing + 90.0))
        self.assertEqual(snap.haptic_state, "armed")
        snap = self.rt.apply(HeadingReading(self.expected_bearing + 360.0))
        self.assertTrue(snap.derived.is_aligned)
        self.assertEqual(snap.haptic_state, "fired")
        self.assertEqual(snap.haptic_pulses, 2)
        self.assertEqual(len(self.pulses), 2)
        kinds = [e["type"] for e in self.rt.get_timeline()]
        self.assertEqual(kinds.count("haptic"), 2)
        self.assertIn("lost", kinds)

    def test_haptic_receives_a_frozen_status(self) -> None:
        self.rt.apply(LocationFix(WESTMINSTER.latitude, WESTMINSTER.longitude))
        self.rt.apply(HeadingReading(self.expected_bearing))
        self.rt.apply(HeadingReading(200.0))
        self.assertEqual(len(self.pulses), 1)
        fired = self.pulses[0]
        self.assertIsNot(fired, self.rt.status)
        self.assertTrue(fired.derived.is_aligned)
        self.assertAlmostEqual(fired.device.heading, self.expected_bearing)
        self.assertEqual(fired.haptic_pulses, 1)

    def test_nan_heading_does_not_raise(self) -> None:
        self.rt.apply(LocationFix(WESTMINSTER.latitude, WESTMINSTER.longitude))
        snap = self.rt.apply(HeadingReading(float("nan")))
        self.assertTrue(math.isnan(snap.derived.arrow_rotation))
        self.assertFalse(snap.derived.is_aligned)

    def test_listener_receives_each_recompute(self) -> None:
        seen = []
        self.rt.add_listener(seen.append)
        self.rt.apply(MotionSample(0.0, 0.0))
        self.rt.apply(LocationFix(WESTMINSTER.latitude, WESTMINSTER.longitude))
        self.rt.apply(HeadingReading(0.0))
        self.assertEqual(len(seen), 2)
        self.rt.remove_listener(seen.append)
        self.rt.apply(HeadingReading(1.0))
        self.assertEqual(len(seen), 2)

    def test_failing_listener_and_haptic_are_contained(self) -> None:
        def boom(_):
            raise RuntimeError("boom")

        rt = make_runtime(haptic=CallbackHaptic(boom))
        rt.add_listener(boom)
        rt.apply(LocationFix(WESTMINSTER.latitude, WESTMINSTER.longitude))
        snap = rt.apply(HeadingReading(self.expected_bearing))
        self.assertTrue(snap.derived.is_aligned)
        self.assertEqual(snap.haptic_pulses, 1)

    def test_snapshot_is_a_copy(self) -> None:
        self.rt.apply(LocationFix(WESTMINSTER.latitude, WESTMINSTER.longitude))
        snap = self.rt.snapshot()
        snap.device.heading = 123.0
        snap.derived.is_aligned = True
        self.assertEqual(self.rt.status.device.heading, 0.0)
        self.assertEqual(self.rt.snapshot().derived.is_aligned, False)

    def test_status_dict(self) -> None:
        self.rt.apply(LocationFix(WESTMINSTER.latitude, WESTMINSTER.longitude))
        out = self.rt.snapshot().to_dict()
        self.assertEqual(out["target"]["name"], "Tottenham Hotspur Stadium")
        self.assertEqual(out["position"], {"latitude": 51.5007, "longitude": -0.1246})
        self.assertEqual(out["distance_text"], "12.2 km")
        self.assertEqual(out["haptic"]["state"], "armed")


class RuntimeThreadingTests(unittest.TestCase):
    def test_queue_consumer_applies_updates_in_order(self) -> None:
        rt = make_runtime()
        rt.start()
        try:
            rt.submit(LocationFix(WESTMINSTER.latitude, WESTMINSTER.longitude))
            for h in range(0, 360, 10):
                rt.submit(HeadingReading(float(h)))
            self.assertTrue(rt.wait_idle(timeout=5.0))
            snap = rt.snapshot()
            self.assertTrue(snap.running)
            self.assertEqual(snap.updates, 37)
            self.assertEqual(snap.device.heading, 350.0)
        finally:
            rt.stop()
        self.assertFalse(rt.snapshot().running)

    def test_concurrent_providers_are_serialized(self) -> None:
        rt = make_runtime()
        rt.start()
        rt.submit(LocationFix(WESTMINSTER.latitude, WESTMINSTER.longitude))

        def heading_provider():
            for i in range(100):
                rt.submit(HeadingReading(float(i % 360)))

        def motion_provider():
            for _ in range(100):
                rt.submit(MotionSample(0.01, -0.01))

        threads = [threading.Thread(target=heading_provider), threading.Thread(target=motion_provider)]
        try:
            for t in threads:
                t.start()
            for t in threads:
                t.join()
            self.assertTrue(rt.wait_idle(timeout=5.0))
            snap = rt.snapshot()
            self.assertEqual(snap.updates, 201)
            self.assertAlmostEqual(snap.derived.arrow_rotation, snap.derived.bearing_to_target - snap.device.heading)
        finally:
            rt.stop()

    def test_start_is_idempotent(self) -> None:
        rt = make_runtime()
        rt.start()
        first = rt._thread
        rt.start()
        self.assertIs(rt._thread, first)
        rt.stop()


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
