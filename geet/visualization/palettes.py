"""
Named land-cover colors and the display parameters used by
:class:`geet.visualization.map.GeetMap`.
"""

COLOR = {
    "WATER": "0066ff",
    "FOREST": "009933",
    "PASTURE": "99cc00",
    "URBAN": "ff0000",
    "SHADOW": "000000",
    "NULL": "808080",
}

_CLASS_PALETTES = {
    2: ["SHADOW", "NULL"],
    3: ["URBAN", "FOREST", "WATER"],
    4: ["URBAN", "FOREST", "PASTURE", "WATER"],
    5: ["URBAN", "FOREST", "PASTURE", "WATER", "SHADOW"],
}


def color(name: str) -> str:
    """Return the hex value of a named color (case-insensitive)."""
    key = name.upper()
    if key not in COLOR:
        raise ValueError(
            f"Unknown color '{name}'. Valid options are: "
            f"{', '.join(k.lower() for k in COLOR)}"
        )
    return COLOR[key]


def rgb_vis_params() -> dict:
    return {"bands": "B4,B3,B2", "min": 5000, "max": 30000, "gamma": 1.6}


def ndvi_vis_params() -> dict:
    return {"min": -1, "max": 1, "palette": ["FF0000", "00FF00"]}


def ndwi_vis_params() -> dict:
    return {"min": -1, "max": 1, "palette": ["00FFFF", "0000FF"]}


def class_vis_params(num_classes: int) -> dict:
    """Display parameters for a classified image with 2 to 5 classes."""
    if num_classes not in _CLASS_PALETTES:
        raise ValueError(
            f"Wrong number of classes ({num_classes}). "
            f"Supported: {min(_CLASS_PALETTES)} to {max(_CLASS_PALETTES)}"
        )
    return {
        "min": 0,
        "max": num_classes - 1,
        "palette": [COLOR[name] for name in _CLASS_PALETTES[num_classes]],
    }


def change_vis_params() -> dict:
    """Display parameters for the output of simple change detection (0, 1, 2)."""
    return {
        "min": 0,
        "max": 2,
        "palette": [COLOR["SHADOW"], COLOR["URBAN"], COLOR["PASTURE"]],
    }
