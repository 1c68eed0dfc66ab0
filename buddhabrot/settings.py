from dataclasses import dataclass, field

import yaml

from buddhabrot.datatypes import InclusionPolicy, ViewWindow
from buddhabrot.parameters import check_range

MODES = ("buddhabrot", "escape_time")


@dataclass(frozen=True)
class RenderSettings:
    resolution: tuple  # output (width, height)
    view: ViewWindow
    iter_limit: int
    escape_radius: float
    supersample: int = 1
    channels: int = 1
    colorize: bool = False  # three-way distance classifier, needs 3 channels
    count_scale: int = 1
    inclusion: InclusionPolicy = field(default_factory=InclusionPolicy)
    snapshot_bands: int = 1
    mode: str = "buddhabrot"
    prefix: str = "buddhabrot"
    colormap: str | None = None

    def __post_init__(self):
        width, height = self.resolution
        check_range(width, 2, 1 << 16, "width")
        check_range(height, 2, 1 << 16, "height")
        if self.view.half_extent[0] <= 0 or self.view.half_extent[1] <= 0:
            raise ValueError(f"View half extents must be positive, got {self.view.half_extent}")
        check_range(self.iter_limit, 1, 1 << 31, "iter_limit")
        if self.escape_radius < 0:
            raise ValueError(f"Escape radius must not be negative, got {self.escape_radius}")
        check_range(self.supersample, 1, 64, "supersample")
        if self.channels not in (1, 3):
            raise ValueError(f"Channel count must be 1 or 3, got {self.channels}")
        if self.colorize and self.channels != 3:
            raise ValueError(f"Color classification needs 3 channels, got {self.channels}")
        check_range(self.count_scale, 1, 255, "count_scale")
        check_range(self.snapshot_bands, 1, self.grid_size[1], "snapshot_bands")
        if self.mode not in MODES:
            raise ValueError(f"Unknown mode '{self.mode}', expected one of {MODES}")

    @property
    def grid_size(self):
        return (self.resolution[0] * self.supersample, self.resolution[1] * self.supersample)


default_settings = RenderSettings(
    resolution=(1000, 800),
    view=ViewWindow(center=(-0.5, 0.0), half_extent=(1.75, 1.4)),
    iter_limit=200,
    escape_radius=2.0,
    supersample=4,
    channels=3,
    colorize=True,
    count_scale=1,
    snapshot_bands=8,
)


def settings_to_dict(settings):
    """Convert RenderSettings to a dictionary for YAML serialization."""
    return {
        "view": {
            "center": {
                "x": settings.view.center[0],
                "y": settings.view.center[1],
            },
            "half_extent": {
                "x": settings.view.half_extent[0],
                "y": settings.view.half_extent[1],
            },
        },
        "computation": {
            "mode": settings.mode,
            "iterations": settings.iter_limit,
            "radius": settings.escape_radius,
            "supersample": settings.supersample,
            "include": {
                "escaping": settings.inclusion.include_escaping,
                "nonescaping": settings.inclusion.include_nonescaping,
            },
        },
        "output": {
            "width": settings.resolution[0],
            "height": settings.resolution[1],
            "channels": settings.channels,
            "count_scale": settings.count_scale,
            "snapshot_bands": settings.snapshot_bands,
            "prefix": settings.prefix,
        },
        "presentation": {
            "colorize": settings.colorize,
            "colormap": settings.colormap,
        },
    }


def dict_to_settings(settings_dict):
    """Convert a dictionary to a RenderSettings object."""
    view = settings_dict["view"]
    computation = settings_dict["computation"]
    include = computation.get("include", {})
    output = settings_dict["output"]
    presentation = settings_dict.get("presentation", {})
    return RenderSettings(
        resolution=(int(output["width"]), int(output["height"])),
        view=ViewWindow(
            center=(float(view["center"]["x"]), float(view["center"]["y"])),
            half_extent=(float(view["half_extent"]["x"]), float(view["half_extent"]["y"])),
        ),
        iter_limit=int(computation["iterations"]),
        escape_radius=float(computation["radius"]),
        supersample=int(computation.get("supersample", 1)),
        channels=int(output.get("channels", 1)),
        colorize=bool(presentation.get("colorize", False)),
        count_scale=int(output.get("count_scale", 1)),
        inclusion=InclusionPolicy(
            include_escaping=bool(include.get("escaping", True)),
            include_nonescaping=bool(include.get("nonescaping", False)),
        ),
        snapshot_bands=int(output.get("snapshot_bands", 1)),
        mode=computation.get("mode", "buddhabrot"),
        prefix=output.get("prefix", "buddhabrot"),
        colormap=presentation.get("colormap"),
    )


def load_settings(path):
    with open(path, "r") as file:
        settings_dict = yaml.safe_load(file)
    if not isinstance(settings_dict, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return dict_to_settings(settings_dict)


def save_settings(settings, path):
    with open(path, "w") as file:
        yaml.dump(settings_to_dict(settings), file, default_flow_style=False)
