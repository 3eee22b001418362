"""
Input Package
=============

Command-line arguments and run configuration.
"""
