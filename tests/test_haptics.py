import unittest

from bubblecompass.platform.haptics import CallbackHaptic, HapticNotifier, LogHaptic, make_haptic


class MakeHapticTests(unittest.TestCase):
    def test_modes(self):
        self.assertIsInstance(make_haptic("log"), LogHaptic)
        self.assertEqual(make_haptic("none").name, "none")
        self.assertIsInstance(make_haptic("callback", callback=lambda s: None), CallbackHaptic)

    def test_callback_mode_needs_callback(self):
        with self.assertRaises(ValueError):
            make_haptic("callback")

    def test_unknown_mode(self):
        with self.assertRaises(ValueError):
            make_haptic("buzz")

    def test_log_haptic_counts_pulses(self):
        haptic = LogHaptic()
        haptic.fire(None)
        haptic.fire(None)
        self.assertEqual(haptic.pulses, 2)

    def test_base_notifier_is_silent(self):
        self.assertIsNone(HapticNotifier().fire(None))


if __name__ == "__main__":
    unittest.main()
