import os
import logging

import numpy as np
from matplotlib import colormaps
from PIL import Image

FINAL_LABEL = "final"
PALETTE = " .-+%#@"


def histogram_to_image(histogram, colormap=None):
    """
    Convert a (h, w, channels) uint8 buffer to a PIL image.
    Single-channel buffers become grayscale, or RGB through a matplotlib colormap.
    """
    if histogram.shape[2] == 3:
        return Image.fromarray(np.ascontiguousarray(histogram), mode="RGB")

    gray = histogram[:, :, 0]
    if colormap is None:
        return Image.fromarray(np.ascontiguousarray(gray), mode="L")

    colored = (colormaps[colormap](gray / 255.0)[:, :, :3] * 255).astype(np.uint8)
    return Image.fromarray(colored, mode="RGB")


def snapshot_path(output_dir, settings, label):
    width, height = settings.resolution
    name = (
        f"{settings.prefix}_{settings.mode}_{width}x{height}"
        f"_it{settings.iter_limit}_ss{settings.supersample}_{label}.png"
    )
    return os.path.join(output_dir, name)


class SnapshotWriter:
    """Writes histogram snapshots as PNG files, one per band plus a final image."""

    def __init__(self, output_dir, settings):
        self.output_dir = output_dir
        self.settings = settings
        self.written = []
        os.makedirs(self.output_dir, exist_ok=True)

    def __call__(self, histogram, index=None):
        label = FINAL_LABEL if index is None else f"{index:03d}"
        file_path = snapshot_path(self.output_dir, self.settings, label)

        image = histogram_to_image(histogram, self.settings.colormap)
        image.save(file_path)

        self.written.append(file_path)
        logging.info(f"Snapshot {label} written to {file_path}.")
        return file_path


def ascii_preview(histogram, columns=80):
    """
    Render a buffer as text using PALETTE, averaging channels and downsampling to columns.
    Rows are halved relative to columns to roughly keep the aspect of terminal cells.
    """
    intensity = histogram.mean(axis=2) if histogram.ndim == 3 else histogram
    height, width = intensity.shape
    columns = max(1, min(columns, width))
    rows = max(1, min(height, round(height * columns / width / 2)))

    ys = np.arange(rows) * height // rows
    xs = np.arange(columns) * width // columns
    sampled = intensity[np.ix_(ys, xs)].astype(np.int64)

    indices = sampled * len(PALETTE) // 256
    return "\n".join("".join(PALETTE[i] for i in row) for row in indices)
