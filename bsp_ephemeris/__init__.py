"""
BSP Ephemeris
=============

Reader and interpolator for JPL/NAIF SPK (BSP) ephemeris kernels, with NAIF
body and frame tables and a celestial body ephemeris loader.
"""

__version__ = '0.1.0'
