import unittest

from bubblecompass.core.hysteresis import ARMED, FIRED, AlignmentNotifier


class AlignmentNotifierTests(unittest.TestCase):
    def setUp(self) -> None:
        self.notifier = AlignmentNotifier()

    def feed(self, samples):
        return [self.notifier.update(s) for s in samples]

    def test_initial_state_is_armed(self) -> None:
        self.assertEqual(self.notifier.current, ARMED)
        self.assertFalse(self.notifier.previous_aligned)

    def test_fires_once_per_approach(self) -> None:
        fired = self.feed([False, True, True, True])
        self.assertEqual(fired, [False, True, False, False])
        self.assertEqual(self.notifier.current, FIRED)

    def test_rearms_after_leaving_alignment(self) -> None:
        fired = self.feed([True, False, True, True, False, False, True])
        self.assertEqual(fired, [True, False, True, False, False, False, True])

    def test_stays_armed_while_not_aligned(self) -> None:
        self.assertEqual(self.feed([False, False, False]), [False, False, False])
        self.assertEqual(self.notifier.current, ARMED)

    def test_previous_tracked_every_cycle(self) -> None:
        self.notifier.update(True)
        self.assertTrue(self.notifier.previous_aligned)
        self.notifier.update(True)
        self.assertTrue(self.notifier.previous_aligned)
        self.notifier.update(False)
        self.assertFalse(self.notifier.previous_aligned)
        self.assertEqual(self.notifier.current, ARMED)

    def test_reset(self) -> None:
        self.feed([True])
        self.notifier.reset()
        self.assertEqual(self.notifier.current, ARMED)
        self.assertTrue(self.notifier.update(True))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
