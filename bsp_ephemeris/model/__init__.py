"""
Model Package
=============

Physical constants and time scale conversions.
"""
