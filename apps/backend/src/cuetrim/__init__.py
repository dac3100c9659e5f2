"""cuetrim - cue point trimming for broadcast automation carts."""

__version__ = "0.1.0"
