"""I/O utilities for loading robot descriptions.

This module provides functions for parsing URDF documents into
`RobotDescription` objects.
"""

from .urdf_parser import load_urdf, parse_urdf

__all__ = ["load_urdf", "parse_urdf"]
