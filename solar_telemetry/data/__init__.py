"""Packaged calibration data (discharge curve)."""
