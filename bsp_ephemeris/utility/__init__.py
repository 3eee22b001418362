"""
Utility Package
===============

Data table loading, logging and printing helpers.
"""
