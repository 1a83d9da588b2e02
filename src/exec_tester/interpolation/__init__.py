"""Interpolation exports."""

from .interpolator import InterpolationResult, interpolate

__all__ = ["InterpolationResult", "interpolate"]
