"""
Ephemeris Package
=================

Celestial body ephemerides backed by BSP files.
"""

from .bsp_loader import BSPEphemerisLoader, BSPCelestialBodyEphemeris, EphemerisType, NativeFrame, SpiceJ2000Convention

__all__ = ['BSPEphemerisLoader', 'BSPCelestialBodyEphemeris', 'EphemerisType', 'NativeFrame', 'SpiceJ2000Convention']
