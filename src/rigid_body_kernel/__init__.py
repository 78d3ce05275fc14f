"""Rigid-body kinematics for molecular dynamics."""

__version__ = "0.1.0"
