"""Client-side orchestration for guided matching and guardian approval."""

__version__ = "0.1.0"
