"""
Validation Package
==================

Test suite for the BSP ephemeris reader.

Modules:
--------
- test_daf          : Tests for the DAF container reader
- test_chebyshev    : Tests for Chebyshev evaluation and fitting
- test_spk_segment  : Tests for SPK descriptors and record evaluation
- test_kernel_pool  : Tests for kernel loading, reference counting and segment search
- test_text_kernel  : Tests for the text kernel parser and variable pool
- test_bodies       : Tests for the NAIF body name/code table
- test_frames       : Tests for the frame table and inertial rotations
- test_spk_reader   : Tests for state computation across segment chains
- test_spk_writer   : Tests for the SPK writer
- test_bsp_loader   : Tests for the celestial body ephemeris loader
- test_model        : Tests for constants and time conversion
- test_input        : Tests for the command line, configuration and main run
- test_utility      : Tests for time helpers, logger, loader and download URLs
- test_regression   : Comparison with SPICE (spiceypy) and DE440 reference values

Usage:
------
Run all tests:
  python -m pytest bsp_ephemeris/validation/ -v

Run a specific test module:
  python -m pytest bsp_ephemeris/validation/test_kernel_pool.py -v

Run a specific test class:
  python -m pytest bsp_ephemeris/validation/test_kernel_pool.py::TestReferenceCounting -v
"""
