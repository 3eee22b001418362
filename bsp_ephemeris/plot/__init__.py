"""
Plot Package
============

Figures of body states computed from the loaded kernels.
"""
