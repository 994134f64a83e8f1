import math
import unittest

from skilltrack.pipeline.levels import (
    experience_required_for,
    experience_to_next_level,
    experience_to_reach_level,
    level_for_experience,
)


class ExperienceCurveTests(unittest.TestCase):
    def test_known_thresholds(self):
        self.assertEqual(experience_required_for(1), 0)
        self.assertEqual(experience_required_for(2), 83)
        self.assertEqual(experience_required_for(10), 1154)
        self.assertEqual(experience_required_for(92), 6517253)
        self.assertEqual(experience_required_for(99), 13034431)

    def test_strictly_increasing(self):
        values = [experience_required_for(lvl) for lvl in range(1, 100)]
        self.assertTrue(all(b > a for a, b in zip(values, values[1:])))

    def test_levels_below_one_need_nothing(self):
        self.assertEqual(experience_required_for(0), 0)
        self.assertEqual(experience_required_for(-5), 0)


class LevelForExperienceTests(unittest.TestCase):
    def test_exact_inverse_at_boundaries(self):
        for level in range(1, 100):
            required = experience_required_for(level)
            self.assertEqual(level_for_experience(required), level)
            if level > 1:
                self.assertEqual(level_for_experience(required - 1), level - 1)

    def test_bad_input_is_level_one(self):
        self.assertEqual(level_for_experience(-10), 1)
        self.assertEqual(level_for_experience(float("nan")), 1)
        self.assertEqual(level_for_experience(None), 1)
        self.assertEqual(level_for_experience("junk"), 1)

    def test_far_beyond_cap(self):
        self.assertEqual(level_for_experience(200_000_000), 99)
        self.assertEqual(level_for_experience(math.inf), 99)
        self.assertEqual(experience_to_next_level(200_000_000), 0)


class RemainingExperienceTests(unittest.TestCase):
    def test_next_level_is_zero_only_at_cap(self):
        for xp in (0, 82, 83, 1153, 1154, 6517252, 13034430, 13034431, 50_000_000):
            remaining = experience_to_next_level(xp)
            self.assertEqual(remaining == 0, level_for_experience(xp) == 99, xp)

    def test_next_level_distance(self):
        self.assertEqual(experience_to_next_level(0), 83)
        self.assertEqual(experience_to_next_level(80), 3)
        self.assertEqual(experience_to_next_level(83), experience_required_for(3) - 83)

    def test_reach_level(self):
        self.assertEqual(experience_to_reach_level(0, 99), 13034431)
        self.assertEqual(experience_to_reach_level(13034431, 99), 0)
        self.assertEqual(experience_to_reach_level(2_000_000, 50), 0)
        self.assertEqual(experience_to_reach_level(float("nan"), 2), 83)


if __name__ == "__main__":
    unittest.main()
