"""
Download Package
================

Retrieval of NAIF generic kernels.
"""
