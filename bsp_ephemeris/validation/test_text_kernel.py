"""
Unit Tests for Text Kernel Module
=================================

Tests for the text kernel parser and the variable pool.

Tests:
------
TestParser
  - test_sanity_check_assignments        : verify names, operators and typed values in file order
  - test_only_data_blocks_are_read       : verify text outside begindata/begintext blocks is ignored
  - test_values_span_lines               : verify a parenthesized list may continue on later lines
  - test_string_escapes_and_dates        : verify '' escapes and @-dates kept as strings
  - test_syntax_errors                   : verify TextKernelError for malformed assignments
  - test_mixed_types_rejected            : verify a variable cannot mix strings and numbers

TestTextKernelPool
  - test_append_operator                 : verify '+=' appends and '=' replaces
  - test_append_cannot_change_type       : verify '+=' of strings to numbers is rejected
  - test_failed_load_leaves_pool_intact  : verify a syntax error does not change any variable
  - test_typed_access                    : verify integer, float and string accessors
  - test_names_pattern                   : verify variable names filtered by regular expression
  - test_version_counts_changes          : verify the version increments on load and clear
  - test_load_file                       : verify loading from a file and the missing file error

Usage:
------
  python -m pytest bsp_ephemeris/validation/test_text_kernel.py -v
"""
import pytest

from bsp_ephemeris.spice.errors      import KernelFileError, TextKernelError
from bsp_ephemeris.spice.text_kernel import TextKernelPool, parse_text_kernel


FRAME_KERNEL = r"""
KPL/FK

  Test frame kernel. The assignment below is not data:
  FRAME_IGNORED = 1

\begindata

  FRAME_TEST_TOPO       =  1400001
  FRAME_1400001_NAME    = 'TEST_TOPO'
  FRAME_1400001_CLASS   =  4
  FRAME_1400001_CLASS_ID =  1400001
  FRAME_1400001_CENTER  =  399
  BODY399_RADII         = ( 6378.1366   6378.1366
                            6356.7519 )
  BODY399_GM            =  3.9860043543609598D+05

\begintext

  End of kernel.
"""


class TestParser:
  """
  Tests for parse_text_kernel.
  """

  def test_sanity_check_assignments(self):
    assignments = parse_text_kernel(FRAME_KERNEL)
    names = [name for name, _, _ in assignments]

    assert names[0] == 'FRAME_TEST_TOPO'
    assert assignments[0] == ('FRAME_TEST_TOPO', '=', [1400001])
    assert assignments[1] == ('FRAME_1400001_NAME', '=', ['TEST_TOPO'])
    assert isinstance(assignments[0][2][0], int)

  def test_only_data_blocks_are_read(self):
    names = [name for name, _, _ in parse_text_kernel(FRAME_KERNEL)]
    assert 'FRAME_IGNORED' not in names
    assert len(names) == 7

  def test_values_span_lines(self):
    assignments = dict((name, values) for name, _, values in parse_text_kernel(FRAME_KERNEL))
    assert assignments['BODY399_RADII'] == pytest.approx([6378.1366, 6378.1366, 6356.7519])
    assert assignments['BODY399_GM']    == pytest.approx([3.9860043543609598e+05])

  def test_string_escapes_and_dates(self):
    text = "\\begindata\nNAME = 'O''BRIEN'\nEPOCH = @2000-JAN-01/12:00\nLIST = ( 'A', 'B' )\n"
    assignments = {name: values for name, _, values in parse_text_kernel(text)}
    assert assignments['NAME']  == ["O'BRIEN"]
    assert assignments['EPOCH'] == ['@2000-JAN-01/12:00']
    assert assignments['LIST']  == ['A', 'B']

  def test_syntax_errors(self):
    for text in (
      "\\begindata\nNAME 12\n",
      "\\begindata\nNAME = ( 1, 2\n",
      "\\begindata\nNAME = 'unterminated\n",
      "\\begindata\nNAME =\n",
      "\\begindata\nNAME = ( )\n",
      "\\begindata\nNAME = 1.2.3\n",
    ):
      with pytest.raises(TextKernelError):
        parse_text_kernel(text)

  def test_mixed_types_rejected(self):
    with pytest.raises(TextKernelError, match="mixes"):
      parse_text_kernel("\\begindata\nNAME = ( 1, 'TWO' )\n")


class TestTextKernelPool:
  """
  Tests for TextKernelPool.
  """

  def test_append_operator(self):
    pool = TextKernelPool()
    pool.loads("\\begindata\nNAIF_BODY_NAME = 'ALPHA'\nNAIF_BODY_NAME += ( 'BETA' )\n")
    assert pool.get('NAIF_BODY_NAME') == ['ALPHA', 'BETA']

    pool.loads("\\begindata\nNAIF_BODY_NAME = 'GAMMA'\n")
    assert pool.get('NAIF_BODY_NAME') == ['GAMMA']

    pool.loads("\\begindata\nNEW_VARIABLE += 5\n")
    assert pool.get('NEW_VARIABLE') == [5]

  def test_append_cannot_change_type(self):
    pool = TextKernelPool()
    pool.loads("\\begindata\nVALUES = ( 1, 2 )\n")
    with pytest.raises(TextKernelError):
      pool.loads("\\begindata\nVALUES += 'THREE'\n")
    assert pool.get('VALUES') == [1, 2]

  def test_failed_load_leaves_pool_intact(self):
    pool = TextKernelPool()
    pool.loads("\\begindata\nA = 1\n")
    version = pool.version
    with pytest.raises(TextKernelError):
      pool.loads("\\begindata\nA = 2\nB = ( 3\n")
    assert pool.get('A') == [1]
    assert 'B' not in pool
    assert pool.version == version

  def test_typed_access(self):
    pool = TextKernelPool()
    pool.loads(FRAME_KERNEL)

    assert pool.get_int_values('FRAME_1400001_CENTER')   == [399]
    assert pool.get_float_values('FRAME_1400001_CENTER') == [399.0]
    assert pool.get_int_values('BODY399_GM')             == [398600]
    assert pool.get_str_values('FRAME_1400001_NAME')     == ['TEST_TOPO']
    assert pool.get('UNDEFINED') is None
    assert pool.get_int_values('UNDEFINED') is None

    with pytest.raises(TextKernelError):
      pool.get_str_values('BODY399_GM')
    with pytest.raises(TextKernelError):
      pool.get_float_values('FRAME_1400001_NAME')

  def test_names_pattern(self):
    pool = TextKernelPool()
    pool.loads(FRAME_KERNEL)
    assert pool.names(r'BODY399_.*') == ['BODY399_GM', 'BODY399_RADII']
    assert pool.names(r'FRAME_[^\d].*') == ['FRAME_TEST_TOPO']
    assert len(pool.names()) == len(pool) == 7

  def test_version_counts_changes(self):
    pool = TextKernelPool()
    assert pool.version == 0
    pool.loads(FRAME_KERNEL)
    assert pool.version == 1
    pool.loads("no data block here")
    assert pool.version == 1
    pool.clear()
    assert pool.version == 2
    assert len(pool) == 0

  def test_load_file(self, tmp_path):
    filepath = tmp_path / "frames.tf"
    filepath.write_text(FRAME_KERNEL)

    pool = TextKernelPool()
    pool.load(filepath)
    assert pool.get('FRAME_TEST_TOPO') == [1400001]

    with pytest.raises(KernelFileError):
      pool.load(tmp_path / "missing.tf")

    bad_filepath = tmp_path / "bad.tf"
    bad_filepath.write_text("\\begindata\nX = ( 1\n")
    with pytest.raises(TextKernelError, match="bad.tf"):
      pool.load(bad_filepath)
