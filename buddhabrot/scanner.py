import logging
from time import time

import numpy as np
import numba

from buddhabrot.fractal import scan_band, merge_saturating, compute_escape_counts
from buddhabrot.parameters import seed_grid


class BuddhabrotScanner:
    """
    Scans the supersampled seed grid band by band and accumulates escaping trajectories.

    Each band is split over `workers` private buffers which are merged into the
    histogram before any snapshot is taken, so a snapshot always reflects every
    row above the band boundary.
    """

    def __init__(self, settings, workers=0, progress_rows=0):
        self.settings = settings
        self.workers = workers if workers > 0 else numba.get_num_threads()
        grid_height = settings.grid_size[1]
        self.progress_rows = progress_rows if progress_rows > 0 else max(1, grid_height // 20)
        width, height = settings.resolution
        self.histogram = np.zeros((height, width, settings.channels), dtype=np.uint8)
        self.orbits_drawn = 0

    def band_rows(self):
        """Row boundaries [(start, stop), ...] of the snapshot bands."""
        grid_height = self.settings.grid_size[1]
        bands = self.settings.snapshot_bands
        edges = [band * grid_height // bands for band in range(bands + 1)]
        return list(zip(edges[:-1], edges[1:]))

    def scan(self, on_snapshot=None):
        """
        Run the whole scan. on_snapshot(histogram, index) is called after every band but the
        last, and on_snapshot(histogram, None) once at the end.
        Progress is logged every progress_rows rows, independent of the bands.
        """
        settings = self.settings
        view_corner = tuple(float(v) for v in settings.view.corner)
        view_size = tuple(float(v) for v in settings.view.size)
        grid_size = settings.grid_size
        partials = np.zeros((self.workers,) + self.histogram.shape, dtype=np.uint8)
        bands = self.band_rows()

        logging.info(
            f"Scanning {grid_size[0]}x{grid_size[1]} seeds into {settings.resolution[0]}x{settings.resolution[1]} "
            f"with {self.workers} workers, {len(bands)} bands..."
        )
        start_time = time()
        for index, (band_start, band_stop) in enumerate(bands):
            # partial buffers keep accumulating across chunks, merged once per band
            for row_start in range(band_start, band_stop, self.progress_rows):
                row_stop = min(row_start + self.progress_rows, band_stop)
                self.orbits_drawn += scan_band(
                    row_start,
                    row_stop,
                    grid_size,
                    settings.iter_limit,
                    float(settings.escape_radius),
                    settings.inclusion.include_escaping,
                    settings.inclusion.include_nonescaping,
                    view_corner,
                    view_size,
                    settings.count_scale,
                    settings.colorize,
                    partials,
                )
                elapsed = time() - start_time
                logging.info(
                    f"Rows {row_stop}/{grid_size[1]} ({100.0 * row_stop / grid_size[1]:.1f}%), "
                    f"{self.orbits_drawn} orbits drawn, {elapsed:.2f} seconds."
                )

            for partial in partials:
                merge_saturating(self.histogram, partial, settings.count_scale)
            partials[:] = 0

            if on_snapshot is not None and index < len(bands) - 1:
                on_snapshot(self.histogram, index)

        logging.info(f"Scan completed in {time() - start_time:.2f} seconds.")
        if on_snapshot is not None:
            on_snapshot(self.histogram, None)
        return self.histogram


def render_escape_time(settings):
    """
    Classic escape-time image: intensity iterations * 256 // (iter_limit + 1) per seed,
    box-averaged from the supersampled grid down to the output resolution.
    """
    width, height = settings.resolution
    ss = settings.supersample

    logging.info("Starting escape-time computation...")
    start_time = time()
    seeds = seed_grid(settings.view, settings.grid_size)
    escape_counts = compute_escape_counts(seeds, settings.iter_limit, float(settings.escape_radius))
    intensity = escape_counts.astype(np.int64) * 256 // (settings.iter_limit + 1)
    if ss > 1:
        intensity = intensity.reshape((height, ss, width, ss)).mean(axis=(1, 3))
    logging.info(f"Escape-time computation completed in {time() - start_time:.2f} seconds.")

    image = intensity.astype(np.uint8)[:, :, None]
    return np.repeat(image, settings.channels, axis=2)
