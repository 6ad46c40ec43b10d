"""
Low-level file handling: transparent (de)compression and peekable streams.
"""
from io import IOBase
from typing import Union, BinaryIO, Optional
from pathlib import Path
from sys import stdout, stdin
from importlib import import_module


# Classes --------------------------------------------------------------------------------------------------------------
class PeekableHandle:
    """
    A wrapper around a BinaryIO stream that allows peeking at the beginning of the
    content without consuming it. Used by SeqFile to sniff formats of non-seekable streams.
    """
    __slots__ = ('_stream', '_peek_buffer', '_buffer_pos', '_buffer_len')

    def __init__(self, stream: BinaryIO, max_peek: int = 4096):
        """
        Args:
            stream: The underlying binary stream.
            max_peek: Maximum number of bytes to buffer for peeking.
        """
        self._stream = stream
        self._peek_buffer = stream.read(max_peek)
        self._buffer_pos = 0
        self._buffer_len = len(self._peek_buffer)

    def peek(self, size: int = -1) -> bytes:
        """
        Returns content from the buffer without advancing the stream position.

        Args:
            size: Number of bytes to peek. If -1, returns the entire buffer.

        Returns:
            The peeked bytes.
        """
        if size == -1 or size > self._buffer_len: return self._peek_buffer[self._buffer_pos:]
        return self._peek_buffer[self._buffer_pos:self._buffer_pos + size]

    def read(self, size: int = -1) -> bytes:
        """
        Reads from the stream, consuming the buffer first if available.

        Args:
            size: Number of bytes to read. If -1, reads until EOF.

        Returns:
            The read bytes.
        """
        # 1. Buffer exhausted
        if self._buffer_pos >= self._buffer_len:
            return self._stream.read(size)

        # 2. Read all (rest of buffer + stream)
        if size is None or size < 0:
            chunk = self._peek_buffer[self._buffer_pos:]
            self._buffer_pos = self._buffer_len
            return chunk + self._stream.read()

        # 3. Read partial
        available = self._buffer_len - self._buffer_pos
        if size <= available:
            chunk = self._peek_buffer[self._buffer_pos: self._buffer_pos + size]
            self._buffer_pos += size
            return chunk
        chunk = self._peek_buffer[self._buffer_pos:]
        self._buffer_pos = self._buffer_len
        return chunk + self._stream.read(size - available)

    def readable(self) -> bool: return True

    def __iter__(self):
        """
        Iterates over lines in the stream, handling the buffer seamlessly.

        Yields:
            Lines from the stream.
        """
        if self._buffer_pos < self._buffer_len:
            fragment = self._peek_buffer[self._buffer_pos:]
            self._buffer_pos = self._buffer_len
            lines = fragment.splitlines(keepends=True)
            # The last buffered line may be incomplete; stitch it with the rest of the line from the stream.
            for i, line in enumerate(lines):
                if i == len(lines) - 1 and not line.endswith(b'\n'):
                    yield line + self._stream.readline()
                else:
                    yield line
        yield from self._stream

    def close(self):
        """Closes the underlying stream if possible."""
        if hasattr(self._stream, 'close'): self._stream.close()


class Xopen:
    """
    Handles the Physical Layer: Compression and File System.

    Compression is detected from magic bytes when reading and from the file extension when writing.

    Examples:
        >>> with Xopen("alignment.fasta.gz", "rb") as f:
        ...     content = f.read()
    """
    _MAGIC = {
        b'\x1f\x8b': 'gzip',
        b'\x42\x5a\x68': 'bz2',
        b'\xfd7zXZ\x00': 'lzma',
    }
    _EXT_TO_PKG = {'gz': 'gzip', 'bz2': 'bz2', 'xz': 'lzma'}
    _MIN_N_BYTES = max(len(i) for i in _MAGIC.keys())
    _OPEN_FUNCS = {}

    def __init__(self, file: Union[str, Path, BinaryIO], mode: str = 'rb'):
        """
        Args:
            file: File path (str or Path), '-' for stdin/stdout, or an existing binary file object.
            mode: File opening mode (e.g., 'rb', 'wb', 'ab').
        """
        self.file = file
        self.mode = mode if 'b' in mode else mode + 'b'
        self._handle: Optional[BinaryIO] = None
        self._close_on_exit = False

    @property
    def name(self) -> str:
        """A printable name for the underlying file."""
        return getattr(self.file, 'name', None) or str(self.file)

    def __enter__(self) -> BinaryIO:
        self._handle = self._open()
        return self._handle

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._close_on_exit and self._handle: self._handle.close()
        elif self._handle and self._writing: self._handle.flush()
        self._handle = None

    @property
    def _writing(self) -> bool: return 'w' in self.mode or 'a' in self.mode or 'x' in self.mode

    def _get_opener(self, pkg_name: str):
        """Retrieves (and caches) the ``open`` function of a compression module."""
        if pkg_name not in self._OPEN_FUNCS:
            try:
                self._OPEN_FUNCS[pkg_name] = import_module(pkg_name).open
            except ImportError as e:
                raise ModuleNotFoundError(f"Compression module '{pkg_name}' not installed.") from e
        return self._OPEN_FUNCS[pkg_name]

    def _open(self) -> BinaryIO:
        # 1. Resolve Raw Stream
        should_close = False
        if isinstance(self.file, IOBase): raw_stream = self.file
        elif str(self.file) in {'-', 'stdin'} and not self._writing: raw_stream = stdin.buffer
        elif str(self.file) in {'-', 'stdout'} and self._writing: raw_stream = stdout.buffer
        else:
            path = Path(self.file).expanduser()
            # Write mode: Extension based
            if self._writing:
                self._close_on_exit = True
                ext = path.suffix.lower().lstrip('.')
                if pkg := self._EXT_TO_PKG.get(ext): return self._get_opener(pkg)(path, mode=self.mode)
                return open(path, mode=self.mode)
            raw_stream = open(path, mode='rb')
            should_close = True

        # 2. Write Mode on an existing stream
        if self._writing: return raw_stream

        # 3. Read Mode: Sniff Compression, seekable first
        try:
            if raw_stream.seekable():
                start = raw_stream.read(self._MIN_N_BYTES)
                raw_stream.seek(0)
                for magic, pkg in self._MAGIC.items():
                    if start.startswith(magic):
                        self._close_on_exit = True
                        if should_close:
                            raw_stream.close()
                            return self._get_opener(pkg)(Path(self.file).expanduser(), mode='rb')
                        return self._get_opener(pkg)(raw_stream, mode='rb')
                if should_close: self._close_on_exit = True
                return raw_stream
        except (AttributeError, ValueError, OSError): pass

        # Non-Seekable (stdin, pipes)
        peekable = PeekableHandle(raw_stream)
        start = peekable.peek(self._MIN_N_BYTES)
        for magic, pkg in self._MAGIC.items():
            if start.startswith(magic):
                self._close_on_exit = True
                return self._get_opener(pkg)(peekable, mode='rb')
        if should_close: self._close_on_exit = True
        return peekable
