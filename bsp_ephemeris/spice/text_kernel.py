"""
Text Kernels
============

Parser and variable pool for SPICE text kernels (frame definitions, body
name/code definitions, physical constants).

Syntax:
-------
  Only the lines between a '\\begindata' marker and the next '\\begintext'
  marker are read. Inside them:
    NAME  = value
    NAME  = ( value, value ... )
    NAME += ( value ... )
  Values are integers, floats (a 'D' exponent is accepted), quoted strings
  ('' stands for a quote) or @-dates, which are kept as strings.
  '=' replaces a variable, '+=' appends to it.
"""
import re

from pathlib import Path
from typing  import Optional, Union

from bsp_ephemeris.spice.errors import KernelFileError, TextKernelError


BEGIN_DATA = r'\begindata'
BEGIN_TEXT = r'\begintext'

TOKEN_PATTERN = re.compile(
  r"""\s*(?:
    (?P<string>'(?:[^']|'')*')
    |(?P<operator>\+=|=)
    |(?P<open>\()
    |(?P<close>\))
    |(?P<comma>,)
    |(?P<word>(?:[^\s=(),'+]|\+(?!=))+)
  )""",
  re.VERBOSE,
)
INTEGER_PATTERN = re.compile(r'^[+-]?\d+$')


def _tokenize_line(
  line        : str,
  line_number : int,
) -> list[tuple[str, str, int]]:
  tokens   = []
  position = 0
  while position < len(line):
    if line[position:].strip() == '':
      break
    match = TOKEN_PATTERN.match(line, position)
    if match is None or match.end() == position:
      if line[position:].lstrip().startswith("'"):
        raise TextKernelError(f"Line {line_number}: unterminated string")
      raise TextKernelError(f"Line {line_number}: unexpected text '{line[position:].strip()}'")
    kind  = match.lastgroup
    tokens.append((kind, match.group(kind), line_number))
    position = match.end()
  return tokens


def _parse_value(
  kind        : str,
  text        : str,
  line_number : int,
) -> Union[int, float, str]:
  if kind == 'string':
    return text[1:-1].replace("''", "'")
  if text.startswith('@'):
    return text
  if INTEGER_PATTERN.match(text):
    return int(text)
  try:
    return float(text.replace('D', 'E').replace('d', 'e'))
  except ValueError:
    raise TextKernelError(f"Line {line_number}: invalid value '{text}'") from None


def _data_lines(
  text : str,
) -> list[tuple[int, str]]:
  lines   = []
  in_data = False
  for line_number, line in enumerate(text.splitlines(), start=1):
    marker = line.strip()
    if marker == BEGIN_DATA:
      in_data = True
    elif marker == BEGIN_TEXT:
      in_data = False
    elif in_data:
      lines.append((line_number, line))
  return lines


def parse_text_kernel(
  text : str,
) -> list[tuple[str, str, list]]:
  """
  Parse the data blocks of a text kernel.

  Input:
  ------
    text : str
      Content of the kernel.

  Output:
  -------
    assignments : list[tuple[str, str, list]]
      (name, operator, values) in file order.
  """
  tokens = []
  for line_number, line in _data_lines(text):
    tokens.extend(_tokenize_line(line, line_number))

  assignments = []
  index = 0
  while index < len(tokens):
    kind, name, line_number = tokens[index]
    if kind != 'word':
      raise TextKernelError(f"Line {line_number}: expected a variable name, found '{name}'")
    if index + 1 >= len(tokens) or tokens[index + 1][0] != 'operator':
      raise TextKernelError(f"Line {line_number}: expected '=' or '+=' after '{name}'")
    operator = tokens[index + 1][1]
    index   += 2
    if index >= len(tokens):
      raise TextKernelError(f"Line {line_number}: missing value for '{name}'")

    values = []
    kind, text_value, value_line = tokens[index]
    if kind == 'open':
      index += 1
      while True:
        if index >= len(tokens):
          raise TextKernelError(f"Line {line_number}: unclosed '(' in the value of '{name}'")
        kind, text_value, value_line = tokens[index]
        index += 1
        if kind == 'close':
          break
        if kind == 'comma':
          continue
        if kind not in ('word', 'string'):
          raise TextKernelError(f"Line {value_line}: unexpected '{text_value}' in the value of '{name}'")
        values.append(_parse_value(kind, text_value, value_line))
    elif kind in ('word', 'string'):
      values.append(_parse_value(kind, text_value, value_line))
      index += 1
    else:
      raise TextKernelError(f"Line {value_line}: unexpected '{text_value}' after '{name} {operator}'")

    if not values:
      raise TextKernelError(f"Line {line_number}: empty value for '{name}'")
    _check_uniform(name, values, line_number)
    assignments.append((name, operator, values))
  return assignments


def _is_string(
  value : Union[int, float, str],
) -> bool:
  return isinstance(value, str)


def _check_uniform(
  name        : str,
  values      : list,
  line_number : int,
) -> None:
  if len({_is_string(value) for value in values}) > 1:
    raise TextKernelError(f"Line {line_number}: '{name}' mixes numeric and string values")


class TextKernelPool:
  """
  Variables defined by the loaded text kernels.

  Methods
    load(path)
      Read a text kernel file
    loads(text)
      Read text kernel content
    get(name)
      Values of a variable, None if undefined
    get_int_values(name), get_float_values(name), get_str_values(name)
      Typed access to a variable
    names()
      Defined variable names
    clear()
      Forget every variable
  """
  def __init__(self):
    self._variables = {}
    self.version    = 0

  def __contains__(
    self,
    name : str,
  ) -> bool:
    return name in self._variables

  def __len__(self) -> int:
    return len(self._variables)

  def load(
    self,
    path : Union[str, Path],
  ) -> None:
    path = Path(path).expanduser()
    if not path.is_file():
      raise KernelFileError(f"Text kernel not found: {path}")
    try:
      text = path.read_text(encoding='utf-8', errors='replace')
    except OSError as error:
      raise KernelFileError(f"Text kernel cannot be read: {path}") from error
    try:
      self.loads(text)
    except TextKernelError as error:
      raise TextKernelError(f"{path}: {error}") from None

  def loads(
    self,
    text : str,
  ) -> None:
    """
    Add the assignments of text kernel content to the pool.

    The whole content is parsed before any variable changes, so a syntax
    error leaves the pool untouched.
    """
    assignments = parse_text_kernel(text)
    updated     = dict(self._variables)
    for name, operator, values in assignments:
      if operator == '+=' and name in updated:
        if _is_string(updated[name][0]) != _is_string(values[0]):
          raise TextKernelError(f"'+=' changes the type of variable '{name}'")
        updated[name] = updated[name] + values
      else:
        updated[name] = list(values)
    self._variables = updated
    if assignments:
      self.version += 1

  def get(
    self,
    name : str,
  ) -> Optional[list]:
    values = self._variables.get(name)
    return None if values is None else list(values)

  def get_int_values(
    self,
    name : str,
  ) -> Optional[list[int]]:
    values = self._numeric(name)
    return None if values is None else [int(round(value)) for value in values]

  def get_float_values(
    self,
    name : str,
  ) -> Optional[list[float]]:
    values = self._numeric(name)
    return None if values is None else [float(value) for value in values]

  def get_str_values(
    self,
    name : str,
  ) -> Optional[list[str]]:
    values = self._variables.get(name)
    if values is None:
      return None
    if not _is_string(values[0]):
      raise TextKernelError(f"Variable '{name}' holds numeric values")
    return list(values)

  def _numeric(
    self,
    name : str,
  ) -> Optional[list]:
    values = self._variables.get(name)
    if values is None:
      return None
    if _is_string(values[0]):
      raise TextKernelError(f"Variable '{name}' holds string values")
    return values

  def names(
    self,
    pattern : Optional[str] = None,
  ) -> list[str]:
    """
    Names of the defined variables, optionally filtered by a regular expression.
    """
    if pattern is None:
      return sorted(self._variables)
    regex = re.compile(pattern)
    return sorted(name for name in self._variables if regex.fullmatch(name))

  def clear(self) -> None:
    if self._variables:
      self._variables = {}
      self.version   += 1
