"""Hand-tracked knob: hand anchors -> smoothed rotation value in [0, 1]."""

__version__ = "0.1.0"
