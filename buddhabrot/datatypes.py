from dataclasses import dataclass


@dataclass(frozen=True)
class InclusionPolicy:
    include_escaping: bool = True
    include_nonescaping: bool = False


@dataclass(frozen=True)
class ViewWindow:
    center: tuple  # (re, im)
    half_extent: tuple  # (width, height) / 2 in plane units

    @property
    def size(self):
        return (2.0 * self.half_extent[0], 2.0 * self.half_extent[1])

    @property
    def corner(self):
        return (self.center[0] - self.half_extent[0], self.center[1] - self.half_extent[1])
