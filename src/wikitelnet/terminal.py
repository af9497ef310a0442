"""Telnet terminal: raw-mode negotiation and a small line editor.

telnetlib3 handles the wire protocol. On top of it ``TelnetTerminal``
turns the character stream into lines with server-side echo, backspace,
tab completion, and CRLF output translation.
"""

from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING

from telnetlib3.telopt import BINARY, DO, DONT, ECHO, NAWS, SGA, WILL, WONT

if TYPE_CHECKING:
    from collections.abc import Sequence

    from telnetlib3 import TelnetReaderUnicode, TelnetWriterUnicode

    from wikitelnet.protocols import Completer

_BARE_LF_RE = re.compile(r"(?<!\r)\n")

_BACKSPACE = ("\x08", "\x7f")
_INTERRUPT = ("\x03", "\x04")  # Ctrl-C, Ctrl-D
_ESCAPE = "\x1b"
_TAB = "\t"


def telnet_fix_newlines(text: str) -> str:
    """Telnet NVT wants CRLF; bare LF leaves the cursor mid-line on many clients."""
    return _BARE_LF_RE.sub("\r\n", text)


def set_raw_mode(writer: TelnetWriterUnicode, enabled: bool) -> None:
    """Switch the client in or out of character-at-a-time mode.

    Echo and suppress-go-ahead are always negotiated together; clients
    only leave line mode when both are agreed.
    """
    if enabled:
        writer.iac(DO, SGA)
        writer.iac(WILL, SGA)
        writer.iac(WILL, ECHO)
    else:
        writer.iac(DONT, SGA)
        writer.iac(WONT, SGA)
        writer.iac(WONT, ECHO)


def negotiate_session_options(writer: TelnetWriterUnicode) -> None:
    """Ask for 8-bit clean transmission and window-size reports, then go raw."""
    writer.iac(DO, BINARY)
    writer.iac(WILL, BINARY)
    writer.iac(DO, NAWS)
    set_raw_mode(writer, True)


def common_prefix(candidates: Sequence[str]) -> str:
    return os.path.commonprefix(list(candidates))


def format_candidates(candidates: Sequence[str], columns: int) -> str:
    """Lay candidates out in columns, readline style."""
    cell = max(len(candidate) for candidate in candidates) + 2
    per_row = max(1, columns // cell)
    rows = [
        "".join(candidate.ljust(cell) for candidate in candidates[i : i + per_row]).rstrip()
        for i in range(0, len(candidates), per_row)
    ]
    return "\n".join(rows) + "\n"


class TelnetTerminal:
    """TerminalProtocol over a telnetlib3 reader/writer pair."""

    def __init__(self, reader: TelnetReaderUnicode, writer: TelnetWriterUnicode) -> None:
        self._reader = reader
        self._writer = writer
        self._after_cr = False

    @property
    def columns(self) -> int:
        # Updated by telnetlib3 whenever the client sends a NAWS report.
        return int(self._writer.get_extra_info("cols", 80) or 80)

    async def write(self, chunk: str) -> None:
        if self._writer.is_closing():
            raise ConnectionResetError("Telnet connection is closing")
        self._writer.write(telnet_fix_newlines(chunk))
        await self._writer.drain()

    async def _read_char(self) -> str:
        return await self._reader.read(1)

    async def read_line(self, prompt: str, completer: Completer | None = None) -> str | None:
        """Read one line with echo. Returns None at EOF, Ctrl-C or Ctrl-D."""
        await self.write(prompt)
        buffer: list[str] = []

        while True:
            ch = await self._read_char()
            if not ch:
                return None

            # CR LF and CR NUL both end a line once.
            if self._after_cr and ch in ("\n", "\x00"):
                self._after_cr = False
                continue
            self._after_cr = ch == "\r"

            if ch in ("\r", "\n"):
                await self.write("\n")
                return "".join(buffer)

            if ch in _INTERRUPT:
                await self.write("\n")
                return None

            if ch in _BACKSPACE:
                if buffer:
                    buffer.pop()
                    await self.write("\b \b")
                continue

            if ch == _ESCAPE:
                # Arrow keys and friends: swallow the rest of the CSI sequence.
                await self._reader.read(2)
                continue

            if ch == _TAB:
                if completer is not None:
                    buffer = await self._complete(prompt, buffer, completer)
                continue

            if ch < " ":
                continue

            buffer.append(ch)
            await self.write(ch)

    async def _complete(self, prompt: str, buffer: list[str], completer: Completer) -> list[str]:
        partial = "".join(buffer)
        candidates = await completer(partial)
        if not candidates:
            return buffer

        if len(candidates) == 1:
            # Title suggestions may differ in case, so replace rather than extend.
            await self.write("\b \b" * len(buffer) + candidates[0])
            return list(candidates[0])

        prefix = common_prefix(candidates)
        if len(prefix) > len(partial) and prefix.startswith(partial):
            await self.write(prefix[len(partial) :])
            return list(prefix)

        await self.write("\n" + format_candidates(candidates, self.columns) + prompt + partial)
        return buffer
