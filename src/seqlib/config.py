"""
Module for option files and command-line options.

Options are flat ``key = value`` pairs. Files may contain shell (``#``), C++ (``//``) and C (``/* */``) comments,
values may refer to other options with ``$(key)``, and a ``param=<file>`` option pulls in an option file.

Examples:
    >>> options = parse_arguments(['param=run.bpp', 'alphabet=DNA'])
    >>> options.get_choice('alphabet', ('DNA', 'RNA', 'Protein'))
    'DNA'
"""
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Union, Iterable, Iterator, Any
from warnings import warn

from seqlib import SeqlibWarning


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class OptionError(ValueError):
    """Raised when an option has an invalid value."""
    def __init__(self, key: str, value: Any = None, message: str = None):
        self.key = key
        self.value = value
        super().__init__(message or f'Invalid value for option "{key}": {value!r}')


class MissingOptionError(OptionError):
    """Raised when a required option is not set."""
    def __init__(self, key: str):
        super().__init__(key, None, f'Missing required option "{key}"')


# Constants ------------------------------------------------------------------------------------------------------------
_BLOCK_COMMENT = re.compile(r'/\*.*?\*/', re.DOTALL)
_LINE_COMMENT = re.compile(r'(#|//).*$', re.MULTILINE)
_VARIABLE = re.compile(r'\$\(([^()\s]+)\)')
_TRUE = frozenset({'true', 'yes', 'on', '1', 't', 'y'})
_FALSE = frozenset({'false', 'no', 'off', '0', 'f', 'n'})
_MISSING = object()
INCLUDE_KEY = 'param'


# Classes --------------------------------------------------------------------------------------------------------------
class Options(Mapping):
    """
    A read-only mapping of option names to string values with typed getters.

    Every getter accepts a ``prefix`` prepended to the key and a ``suffix`` appended to it. When
    ``suffix_optional`` is set (the default) and ``key + suffix`` is not set, ``key`` alone is tried, so that
    ``input.sequence.file`` can fall back to ``sequence.file``.

    Args:
        options: Initial option values (converted to stripped strings).
        resolve: Replace ``$(key)`` references by the value of ``key``.
    """
    __slots__ = ('_data',)
    def __init__(self, options: Union[Mapping, Iterable[tuple[str, Any]]] = (), resolve: bool = True):
        items = options.items() if isinstance(options, Mapping) else options
        self._data: dict[str, str] = {str(k).strip(): str(v).strip() for k, v in items}
        if resolve: self._data = resolve_variables(self._data)

    def __getitem__(self, key: str) -> str: return self._data[key]
    def __iter__(self) -> Iterator[str]: return iter(self._data)
    def __len__(self) -> int: return len(self._data)
    def __repr__(self) -> str: return f'Options({self._data!r})'

    def updated(self, other: Mapping) -> 'Options':
        """Returns new options where the values of ``other`` override these."""
        return Options({**self._data, **other})

    def lookup(self, key: str, prefix: str = '', suffix: str = '', suffix_optional: bool = True
               ) -> tuple[str, Union[str, None]]:
        """
        Finds an option, trying ``prefix + key + suffix`` then (if ``suffix_optional``) ``prefix + key``.

        Returns:
            The key that was found (or the first key tried) and its value (``None`` if not set).
        """
        full_key = prefix + key + suffix
        if full_key in self._data: return full_key, self._data[full_key]
        if suffix and suffix_optional and (prefix + key) in self._data:
            return prefix + key, self._data[prefix + key]
        return full_key, None

    def get_string(self, key: str, default: Any = _MISSING, prefix: str = '', suffix: str = '',
                   suffix_optional: bool = True) -> str:
        """
        Returns the value of an option.

        Raises:
            MissingOptionError: If the option is not set (or set to an empty value) and has no default.
        """
        _, value = self._get_typed(key, default, dict(prefix=prefix, suffix=suffix, suffix_optional=suffix_optional))
        return default if value is None else value

    def _get_typed(self, key: str, default: Any, kwargs: dict) -> tuple[str, Union[str, None]]:
        """Returns the key found and its value, or ``None`` as value when the default applies."""
        found, value = self.lookup(key, **kwargs)
        if value is None or value == '':
            if default is _MISSING: raise MissingOptionError(found)
            return found, None
        return found, value

    def get_int(self, key: str, default: Any = _MISSING, **kwargs) -> int:
        found, value = self._get_typed(key, default, kwargs)
        if value is None: return default
        try:
            return int(value)
        except ValueError:
            raise OptionError(found, value) from None

    def get_bool(self, key: str, default: Any = _MISSING, **kwargs) -> bool:
        """Returns a boolean option (true/false, yes/no, on/off, 1/0)."""
        found, value = self._get_typed(key, default, kwargs)
        if value is None: return default
        if (lowered := value.lower()) in _TRUE: return True
        if lowered in _FALSE: return False
        raise OptionError(found, value)

    def get_choice(self, key: str, choices: Iterable[str], default: Any = _MISSING, **kwargs) -> str:
        """
        Returns an option that must be one of ``choices`` (compared case-insensitively).

        Returns:
            The matching entry of ``choices`` (with its canonical case), or ``default``.

        Raises:
            OptionError: If the value is not one of the choices.
        """
        found, value = self._get_typed(key, default, kwargs)
        if value is None: return default
        choices = tuple(choices)
        for choice in choices:
            if choice.lower() == value.lower(): return choice
        raise OptionError(found, value,
                          f'Invalid value for option "{found}": {value!r} (expected one of {", ".join(choices)})')

    def get_path(self, key: str, default: Any = _MISSING, must_exist: bool = False, **kwargs) -> Path:
        """
        Returns an option as a path.

        Raises:
            OptionError: If ``must_exist`` and the file does not exist.
        """
        found, value = self._get_typed(key, default, kwargs)
        if value is None: return default
        path = Path(value).expanduser()
        if must_exist and not path.exists(): raise OptionError(found, value, f'File not found: {value}')
        return path


# Functions ------------------------------------------------------------------------------------------------------------
def strip_comments(text: str) -> str:
    """Removes ``/* */`` block comments and ``#`` or ``//`` line comments."""
    return _LINE_COMMENT.sub('', _BLOCK_COMMENT.sub('', text))


def parse_options(text: str, source: str = '<string>') -> dict[str, str]:
    """
    Parses ``key = value`` lines.

    Later assignments override earlier ones (with a warning). Lines without ``=`` are ignored with a warning.

    Args:
        text: The option text.
        source: A name for the text, used in warnings.
    """
    options = {}
    for line in strip_comments(text).splitlines():
        if not (line := line.strip()): continue
        key, sep, value = line.partition('=')
        if not sep or not (key := key.strip()):
            warn(f'{source}: ignoring line without "key = value": {line!r}', SeqlibWarning)
            continue
        if key in options: warn(f'{source}: option "{key}" is set more than once', SeqlibWarning)
        options[key] = value.strip()
    return options


def read_options(file: Union[str, Path], _seen: frozenset = frozenset()) -> dict[str, str]:
    """
    Reads an option file. A ``param`` option in the file includes another file (relative to this one) whose
    values are overridden by those of the including file.

    Raises:
        OptionError: If the file does not exist or includes itself.
    """
    path = Path(file).expanduser().resolve()
    if path in _seen: raise OptionError(INCLUDE_KEY, str(file), f'Option file includes itself: {file}')
    if not path.is_file(): raise OptionError(INCLUDE_KEY, str(file), f'Option file not found: {file}')
    options = parse_options(path.read_text(), str(file))
    if (include := options.pop(INCLUDE_KEY, None)) is not None:
        options = {**read_options(path.parent / include, _seen | {path}), **options}
    return options


def parse_arguments(args: Iterable[str]) -> Options:
    """
    Builds options from command-line ``key=value`` arguments.

    ``param=<file>`` arguments load option files (in order); other arguments override file values.

    Raises:
        OptionError: If an argument is not of the form ``key=value``.
    """
    from_files, from_args = {}, {}
    for arg in args:
        key, sep, value = arg.partition('=')
        if not sep or not key.strip(): raise OptionError(arg, None, f'Expected "key=value", got {arg!r}')
        key, value = key.strip(), value.strip()
        if key == INCLUDE_KEY: from_files.update(read_options(value))
        else: from_args[key] = value
    return Options({**from_files, **from_args})


def resolve_variables(options: Mapping[str, str], max_depth: int = 32) -> dict[str, str]:
    """
    Replaces ``$(key)`` in values by the value of ``key``, recursively.

    Raises:
        OptionError: If a referenced option is not set or references are circular.
    """
    resolved = dict(options)
    for _ in range(max_depth):
        changed = False
        for key, value in resolved.items():
            def _replace(m: re.Match) -> str:
                if (name := m.group(1)) not in resolved:
                    raise OptionError(key, value, f'Option "{key}" refers to undefined option "{name}"')
                return resolved[name]
            if (new := _VARIABLE.sub(_replace, value)) != value:
                resolved[key], changed = new, True
        if not changed: break
    if circular := [k for k, v in resolved.items() if _VARIABLE.search(v)]:
        raise OptionError(circular[0], resolved[circular[0]], f'Circular option references: {", ".join(circular)}')
    return resolved
