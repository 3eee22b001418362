"""
NAIF Body Codes
===============

Translation between body names and NAIF integer ID codes.

Precedence:
-----------
  1. Definitions read from the text kernel pool (NAIF_BODY_NAME / NAIF_BODY_CODE)
  2. Definitions registered at run time
  3. Built-in definitions (data/naif_bodies.yaml)

  Inside each source, a later definition of a name overrides an earlier one.
  The name reported for a code is the most recently defined name that still
  translates back to that code.
"""
from typing import Iterable, Optional, Union

from bsp_ephemeris.spice.errors import TextKernelError, UnknownBodyError
from bsp_ephemeris.utility.loader import load_data_table


BODIES_TABLE = 'naif_bodies.yaml'


def normalize_name(
  name : str,
) -> str:
  """
  Trim, collapse runs of blanks to a single blank and upper-case a body name.
  """
  return ' '.join(name.split()).upper()


class _DefinitionSet:
  """
  Ordered name -> code definitions where redefining a name moves it to the end.
  """
  def __init__(self):
    self._by_name = {}  # normalized name -> (name, code)

  def define(
    self,
    name : str,
    code : int,
  ) -> None:
    key = normalize_name(name)
    self._by_name.pop(key, None)
    self._by_name[key] = (' '.join(name.split()), int(code))

  def code(
    self,
    key : str,
  ) -> Optional[int]:
    definition = self._by_name.get(key)
    return None if definition is None else definition[1]

  def names_for(
    self,
    code : int,
  ) -> Iterable[str]:
    """
    Names defined for a code, most recent first.
    """
    for name, defined_code in reversed(list(self._by_name.values())):
      if defined_code == code:
        yield name

  def clear(self) -> None:
    self._by_name.clear()

  def __len__(self) -> int:
    return len(self._by_name)


class BodyTable:
  """
  Body name/code translation table.

  Methods
    name_to_code(name)
      NAIF code of a name, None if unknown
    code_to_name(code)
      Name of a code, None if unknown
    code_to_string(code)
      Name of a code, or the code written in decimal
    string_to_code(text)
      NAIF code of a name or an integer literal, None if neither
    resolve(name_or_code)
      NAIF code of a name or code, UnknownBodyError if impossible
    register(name, code)
      Add a run-time definition
    load_from_pool(pool)
      Replace the kernel pool definitions
  """
  def __init__(
    self,
    definitions : Optional[Iterable[tuple[int, str]]] = None,
  ):
    if definitions is None:
      definitions = [(code, name) for code, name in load_data_table(BODIES_TABLE)['bodies']]

    self._builtin = _DefinitionSet()
    for code, name in definitions:
      self._builtin.define(name, code)
    self._user = _DefinitionSet()
    self._pool = _DefinitionSet()

  def __len__(self) -> int:
    return len(self._builtin) + len(self._user) + len(self._pool)

  def _sources(self) -> tuple[_DefinitionSet, ...]:
    return (self._pool, self._user, self._builtin)

  def name_to_code(
    self,
    name : str,
  ) -> Optional[int]:
    key = normalize_name(name)
    if not key:
      return None
    for source in self._sources():
      code = source.code(key)
      if code is not None:
        return code
    return None

  def code_to_name(
    self,
    code : int,
  ) -> Optional[str]:
    for source in self._sources():
      for name in source.names_for(int(code)):
        # A name masked by a higher-precedence definition no longer names this code
        if self.name_to_code(name) == code:
          return name
    return None

  def code_to_string(
    self,
    code : int,
  ) -> str:
    name = self.code_to_name(code)
    return name if name is not None else str(code)

  def string_to_code(
    self,
    text : str,
  ) -> Optional[int]:
    code = self.name_to_code(text)
    if code is not None:
      return code
    try:
      return int(text.strip())
    except ValueError:
      return None

  def resolve(
    self,
    name_or_code : Union[str, int],
  ) -> int:
    """
    Translate a body given by name or code into its NAIF code.

    Input:
    ------
      name_or_code : str | int
        Body name, integer code, or integer code written as a string.

    Output:
    -------
      code : int
        NAIF ID code.
    """
    if isinstance(name_or_code, bool):
      raise UnknownBodyError(f"Invalid body identifier {name_or_code!r}")
    if isinstance(name_or_code, int):
      return name_or_code
    code = self.string_to_code(str(name_or_code))
    if code is None:
      raise UnknownBodyError(f"Unknown body name '{name_or_code}'")
    return code

  def describe(
    self,
    code : int,
  ) -> str:
    """
    Body written as '<code> (<name>)', or '<code>' when the code has no name.
    """
    name = self.code_to_name(code)
    return f"{code} ({name})" if name is not None else f"{code}"

  def register(
    self,
    name : str,
    code : int,
  ) -> None:
    if not normalize_name(name):
      raise ValueError("Body name must contain a non-blank character")
    self._user.define(name, code)

  def load_from_pool(
    self,
    pool,
  ) -> int:
    """
    Replace the kernel pool definitions with NAIF_BODY_NAME / NAIF_BODY_CODE.

    Input:
    ------
      pool : TextKernelPool
        Text kernel variables.

    Output:
    -------
      count : int
        Number of definitions read.
    """
    names = pool.get_str_values('NAIF_BODY_NAME')
    codes = pool.get_int_values('NAIF_BODY_CODE')
    self._pool.clear()
    if names is None and codes is None:
      return 0
    if names is None or codes is None or len(names) != len(codes):
      raise TextKernelError(
        "NAIF_BODY_NAME and NAIF_BODY_CODE must be defined together with the same number of values"
      )
    for name, code in zip(names, codes):
      if normalize_name(name):
        self._pool.define(name, code)
    return len(names)


_default_table = None


def get_body_table() -> BodyTable:
  """
  Shared table holding the built-in definitions, created on first use.
  """
  global _default_table
  if _default_table is None:
    _default_table = BodyTable()
  return _default_table
