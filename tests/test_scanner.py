"""
Scanner tests: end-to-end accumulation, band partitioning and parallel determinism.
"""

import unittest

import numpy as np

from buddhabrot.datatypes import InclusionPolicy, ViewWindow
from buddhabrot.fractal import accumulate
from buddhabrot.parameters import to_complex
from buddhabrot.scanner import BuddhabrotScanner, render_escape_time
from buddhabrot.settings import RenderSettings

ORIGIN_WINDOW = ViewWindow(center=(0.0, 0.0), half_extent=(2.0, 2.0))


def make_settings(**overrides):
    kwargs = dict(
        resolution=(4, 4),
        view=ORIGIN_WINDOW,
        iter_limit=50,
        escape_radius=2.0,
    )
    kwargs.update(overrides)
    return RenderSettings(**kwargs)


class TestEndToEnd(unittest.TestCase):
    def test_small_grid(self):
        settings = make_settings()
        histogram = BuddhabrotScanner(settings, workers=1).scan()

        self.assertEqual(histogram.shape, (4, 4, 1))
        self.assertEqual(histogram.dtype, np.uint8)
        # seed 2/3 + 2/3i visits (2/3, 2/3) and (2/3, 1.56) before escaping at step 2
        self.assertGreater(histogram[2, 2, 0], 0)
        self.assertGreater(histogram[3, 2, 0], 0)
        # mirrored seed 2/3 - 2/3i
        self.assertGreater(histogram[1, 2, 0], 0)
        self.assertGreater(histogram[0, 2, 0], 0)

    def test_matches_sequential_seed_loop(self):
        settings = make_settings(resolution=(12, 9), supersample=2, iter_limit=40)
        histogram = BuddhabrotScanner(settings, workers=3).scan()

        expected = np.zeros_like(histogram)
        trajectory = np.empty(settings.iter_limit, dtype=np.complex128)
        (x0, y0), (w, h) = settings.view.corner, settings.view.size
        grid_width, grid_height = settings.grid_size
        for y in range(grid_height):
            for x in range(grid_width):
                c = complex(to_complex(x, grid_width, w, x0), to_complex(y, grid_height, h, y0))
                accumulate(c, settings.iter_limit, 2.0, True, False, expected,
                           settings.view.corner, settings.view.size, 1, False, trajectory)

        np.testing.assert_array_equal(histogram, expected)

    def test_corner_seeds_escape_immediately_and_draw_nothing(self):
        settings = make_settings(resolution=(2, 2))
        scanner = BuddhabrotScanner(settings, workers=1)
        histogram = scanner.scan()
        # all four seeds are window corners with |c| > 2
        self.assertEqual(scanner.orbits_drawn, 4)
        self.assertFalse(histogram.any())

    def test_nonescaping_policy(self):
        settings = make_settings(
            resolution=(8, 8),
            inclusion=InclusionPolicy(include_escaping=False, include_nonescaping=True),
        )
        histogram = BuddhabrotScanner(settings, workers=2).scan()
        self.assertTrue(histogram.any())


class TestParallelScan(unittest.TestCase):
    def test_worker_count_does_not_change_image(self):
        settings = make_settings(
            resolution=(24, 16),
            view=ViewWindow(center=(-0.5, 0.0), half_extent=(1.8, 1.2)),
            supersample=2,
            iter_limit=60,
            channels=3,
            colorize=True,
            count_scale=3,
            snapshot_bands=3,
        )
        images = [BuddhabrotScanner(settings, workers=workers).scan() for workers in (1, 2, 5)]
        self.assertTrue(images[0].any())
        for image in images[1:]:
            np.testing.assert_array_equal(images[0], image)

    def test_saturation_holds_across_bands(self):
        settings = make_settings(
            resolution=(6, 6),
            supersample=8,
            iter_limit=100,
            count_scale=100,
            snapshot_bands=4,
        )
        histogram = BuddhabrotScanner(settings, workers=4).scan()
        self.assertTrue(np.isin(histogram, [0, 100, 200]).all())

    def test_progress_is_logged_within_a_band(self):
        settings = make_settings(resolution=(6, 10), iter_limit=40)
        with self.assertLogs(level="INFO") as logs:
            histogram = BuddhabrotScanner(settings, workers=2, progress_rows=2).scan()
        progress = [line for line in logs.output if "Rows " in line]
        self.assertEqual(len(progress), 5)
        self.assertIn("Rows 2/10 (20.0%)", progress[0])
        self.assertIn("Rows 10/10 (100.0%)", progress[-1])

        unchunked = BuddhabrotScanner(settings, workers=2, progress_rows=10).scan()
        np.testing.assert_array_equal(histogram, unchunked)


class TestSnapshots(unittest.TestCase):
    def test_band_rows_cover_grid(self):
        settings = make_settings(resolution=(5, 5), supersample=3, snapshot_bands=4)
        rows = BuddhabrotScanner(settings, workers=1).band_rows()
        self.assertEqual(len(rows), 4)
        self.assertEqual(rows[0][0], 0)
        self.assertEqual(rows[-1][1], 15)
        for (_, stop), (start, _) in zip(rows[:-1], rows[1:]):
            self.assertEqual(stop, start)

    def test_snapshot_sequence(self):
        settings = make_settings(resolution=(10, 10), snapshot_bands=3)
        calls = []

        def on_snapshot(histogram, index):
            calls.append((index, histogram.copy()))

        final = BuddhabrotScanner(settings, workers=2).scan(on_snapshot=on_snapshot)

        self.assertEqual([index for index, _ in calls], [0, 1, None])
        np.testing.assert_array_equal(calls[-1][1], final)
        for (_, before), (_, after) in zip(calls[:-1], calls[1:]):
            self.assertTrue((after >= before).all())

    def test_single_band_only_emits_final(self):
        calls = []
        BuddhabrotScanner(make_settings(), workers=1).scan(on_snapshot=lambda h, i: calls.append(i))
        self.assertEqual(calls, [None])


class TestEscapeTime(unittest.TestCase):
    def test_intensity_formula(self):
        settings = make_settings(resolution=(5, 5), mode="escape_time", iter_limit=20)
        image = render_escape_time(settings)
        self.assertEqual(image.shape, (5, 5, 1))
        # center seed 0 never escapes: 20 * 256 // 21
        self.assertEqual(image[2, 2, 0], 20 * 256 // 21)
        # corner seed escapes on the first step
        self.assertEqual(image[0, 0, 0], 0)

    def test_supersampled_rgb(self):
        settings = make_settings(resolution=(6, 4), mode="escape_time", supersample=2, channels=3)
        image = render_escape_time(settings)
        self.assertEqual(image.shape, (4, 6, 3))
        np.testing.assert_array_equal(image[:, :, 0], image[:, :, 2])


if __name__ == '__main__':
    unittest.main()
