import math

import numpy as np
from numba import njit


@njit
def to_complex(coord, grid_size, view_size, view_corner):
    """
    Map an integer grid coordinate onto one axis of the view window.
    Coordinate 0 lands on the corner and grid_size - 1 on the far edge.
    """
    return view_corner + coord * view_size / (grid_size - 1)


@njit
def to_screen(value, screen_size, view_size, view_corner):
    """
    Map one axis of a plane position to an integer pixel coordinate.
    The result may fall outside [0, screen_size - 1]; callers check it.
    """
    # divides by the full screen size, not screen_size - 1 as in to_complex
    return math.floor((value - view_corner) / view_size * screen_size)


def check_range(value, lower, upper, name="value"):
    """Raise if value is outside [lower, upper]."""
    if lower > upper:
        raise ValueError(f"Malformed range for {name}: [{lower}, {upper}]")
    if not lower <= value <= upper:
        raise ValueError(f"{name} must be within [{lower}, {upper}], got {value}")
    return value


def seed_grid(view, resolution):
    """
    Sample the view window on a grid of complex seeds.
    Returns an array of shape (h, w); row y holds imaginary part to_complex(y, h, ...).
    """
    w, h = resolution
    (x0, y0), (width, height) = view.corner, view.size

    re = x0 + np.arange(w) * width / (w - 1)
    im = y0 + np.arange(h) * height / (h - 1)
    RE, IM = np.meshgrid(re, im)

    return RE + 1j * IM
