import numpy as np
from numba import njit, prange

from buddhabrot.parameters import to_complex, to_screen

NO_CHANNEL = -1
MAX_COUNT = 255


@njit
def classify(c, iter_limit, escape_radius):
    """
    Iterate z = z^2 + c from z = 0 and report (iterations, escaped, last z).
    Escape means |z| > escape_radius after a step; equality does not escape.
    """
    limit = escape_radius * escape_radius
    z = 0j
    for i in range(iter_limit):
        z = z * z + c
        if z.real * z.real + z.imag * z.imag > limit:
            return i, True, z
    return iter_limit, False, z


@njit
def trace_orbit(c, iter_limit, escape_radius, trajectory):
    """Same walk as classify, storing positions before escape in trajectory[:iterations]."""
    limit = escape_radius * escape_radius
    z = 0j
    for i in range(iter_limit):
        z = z * z + c
        if z.real * z.real + z.imag * z.imag > limit:
            return i, True, z
        trajectory[i] = z
    return iter_limit, False, z


@njit
def classify_channel(c, z, mean):
    d_cz = abs(c - z)
    d_zm = abs(z - mean)
    d_cm = abs(c - mean)
    if d_cz > d_zm and d_cz > d_cm:
        return 0
    if d_zm > d_cz and d_zm > d_cm:
        return 1
    if d_cm > d_cz and d_cm > d_zm:
        return 2
    return NO_CHANNEL


@njit
def saturating_add(histogram, y, x, channel, count_scale):
    # counters within count_scale of the ceiling stop growing
    if histogram[y, x, channel] + count_scale <= MAX_COUNT:
        histogram[y, x, channel] += count_scale


@njit
def plot_trajectory(c, trajectory, iterations, histogram, view_corner, view_size, count_scale, colorize):
    height, width, channels = histogram.shape
    if colorize and channels != 3:
        raise ValueError("Color classification needs a 3-channel histogram")
    total = 0j
    for i in range(iterations):
        z = trajectory[i]
        total += z
        x = to_screen(z.real, width, view_size[0], view_corner[0])
        y = to_screen(z.imag, height, view_size[1], view_corner[1])
        if x < 0 or x >= width or y < 0 or y >= height:
            continue

        if colorize:
            channel = classify_channel(c, z, total / (i + 1))
            if channel != NO_CHANNEL:
                saturating_add(histogram, y, x, channel, count_scale)
        else:
            for channel in range(channels):
                saturating_add(histogram, y, x, channel, count_scale)


@njit
def accumulate(c, iter_limit, escape_radius, include_escaping, include_nonescaping,
               histogram, view_corner, view_size, count_scale, colorize, trajectory):
    """
    Add the trajectory of seed c to the histogram if the inclusion policy selects it.
    Returns whether the orbit was drawn.
    """
    iterations, escaped, _ = trace_orbit(c, iter_limit, escape_radius, trajectory)
    if not ((escaped and include_escaping) or (not escaped and include_nonescaping)):
        return False
    plot_trajectory(c, trajectory, iterations, histogram, view_corner, view_size, count_scale, colorize)
    return True


@njit(parallel=True)
def scan_band(row_start, row_stop, grid_size, iter_limit, escape_radius, include_escaping,
              include_nonescaping, view_corner, view_size, count_scale, colorize, partials):
    """
    Accumulate every seed of grid rows [row_start, row_stop) into per-worker partial buffers.
    Worker w takes rows row_start + w, row_start + w + workers, ...
    Returns the number of orbits drawn.
    """
    grid_width, grid_height = grid_size
    workers = partials.shape[0]
    drawn = np.zeros(workers, dtype=np.int64)

    for w in prange(workers):  # parallelized
        trajectory = np.empty(max(iter_limit, 1), dtype=np.complex128)
        histogram = partials[w]
        for y in range(row_start + np.int64(w), row_stop, workers):
            im = to_complex(y, grid_height, view_size[1], view_corner[1])
            for x in range(grid_width):
                re = to_complex(x, grid_width, view_size[0], view_corner[0])
                if accumulate(complex(re, im), iter_limit, escape_radius, include_escaping,
                              include_nonescaping, histogram, view_corner, view_size,
                              count_scale, colorize, trajectory):
                    drawn[w] += 1

    return drawn.sum()


@njit(parallel=True)
def merge_saturating(histogram, partial, count_scale):
    """
    Fold a partial buffer into the histogram as if its increments had been applied one by one.
    """
    height, width, channels = histogram.shape
    for y in prange(height):
        for x in range(width):
            for channel in range(channels):
                increments = partial[y, x, channel] // count_scale
                headroom = (MAX_COUNT - histogram[y, x, channel]) // count_scale
                histogram[y, x, channel] += count_scale * min(increments, headroom)


@njit(parallel=True)
def compute_escape_counts(seeds, iter_limit, escape_radius):
    """
    Classic escape-time render: iteration count of every seed.
    """
    height, width = seeds.shape
    escape_counts = np.zeros((height, width), dtype=np.int32)

    for i in prange(height):  # parallelized
        for j in range(width):
            count, _, _ = classify(seeds[i, j], iter_limit, escape_radius)
            escape_counts[i, j] = count

    return escape_counts
