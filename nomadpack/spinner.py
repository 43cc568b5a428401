"""A terminal spinner that animates a character set in a background thread."""

from __future__ import annotations

import sys
import threading
from typing import Callable, Iterable, TextIO

_WINDOWS = sys.platform == "win32"

_HIDE_CURSOR = "\033[?25l"
_SHOW_CURSOR = "\033[?25h"

# SGR attribute codes for every colour or attribute name the spinner accepts.
_COLOR_CODES: dict[str, int] = {
    # plain names map to foreground colours
    "black": 30,
    "red": 31,
    "green": 32,
    "yellow": 33,
    "blue": 34,
    "magenta": 35,
    "cyan": 36,
    "white": 37,
    # attributes
    "reset": 0,
    "bold": 1,
    "faint": 2,
    "italic": 3,
    "underline": 4,
    "blinkslow": 5,
    "blinkrapid": 6,
    "reversevideo": 7,
    "concealed": 8,
    "crossedout": 9,
    # foreground text
    "fgBlack": 30,
    "fgRed": 31,
    "fgGreen": 32,
    "fgYellow": 33,
    "fgBlue": 34,
    "fgMagenta": 35,
    "fgCyan": 36,
    "fgWhite": 37,
    # foreground high-intensity text
    "fgHiBlack": 90,
    "fgHiRed": 91,
    "fgHiGreen": 92,
    "fgHiYellow": 93,
    "fgHiBlue": 94,
    "fgHiMagenta": 95,
    "fgHiCyan": 96,
    "fgHiWhite": 97,
    # background text
    "bgBlack": 40,
    "bgRed": 41,
    "bgGreen": 42,
    "bgYellow": 43,
    "bgBlue": 44,
    "bgMagenta": 45,
    "bgCyan": 46,
    "bgWhite": 47,
    # background high-intensity text
    "bgHiBlack": 100,
    "bgHiRed": 101,
    "bgHiGreen": 102,
    "bgHiYellow": 103,
    "bgHiBlue": 104,
    "bgHiMagenta": 105,
    "bgHiCyan": 106,
    "bgHiWhite": 107,
}


class InvalidColorError(ValueError):
    """Raised when an unknown colour or attribute name is given."""

    def __init__(self, name: str = "") -> None:
        super().__init__("invalid color" if not name else f"invalid color: {name}")
        self.name = name


def _color_codes(names: Iterable[str]) -> tuple[int, ...]:
    codes = []
    for name in names:
        if name not in _COLOR_CODES:
            raise InvalidColorError(name)
        codes.append(_COLOR_CODES[name])
    return tuple(codes)


class Spinner:
    """A progress indicator cycling through ``chars`` every ``delay`` seconds."""

    def __init__(
        self,
        chars: Iterable[str],
        delay: float,
        *,
        color: str | Iterable[str] | None = None,
        suffix: str = "",
        prefix: str = "",
        final_msg: str = "",
        hide_cursor: bool = False,
        writer: TextIO | None = None,
    ) -> None:
        if color is None:
            color = ("white",)
        elif isinstance(color, str):
            color = (color,)
        self._codes = _color_codes(color)
        self._chars = list(chars)
        self.delay = delay
        self.prefix = prefix
        self.suffix = suffix
        self.final_msg = final_msg
        self.hide_cursor = hide_cursor
        self.writer: TextIO = writer if writer is not None else sys.stdout
        self.pre_update: Callable[[Spinner], object] | None = None
        self.post_update: Callable[[Spinner], object] | None = None

        self._lock = threading.RLock()
        self._active = False
        self._last_output = ""
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    @property
    def chars(self) -> list[str]:
        """A copy of the character set currently in use."""
        with self._lock:
            return list(self._chars)

    def active(self) -> bool:
        """Return whether the spinner is currently running."""
        return self._active

    def start(self) -> None:
        """Start the indicator; does nothing if it is already running."""
        with self._lock:
            if self._active:
                return
            if self.delay <= 0:
                raise ValueError("non-positive delay for spinner")
            if self.hide_cursor and not _WINDOWS:
                sys.stdout.write(_HIDE_CURSOR)
                sys.stdout.flush()
            self._active = True
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=self._run, args=(stop_event, self.delay), daemon=True
            )
            self._thread.start()

    def stop(self) -> None:
        """Stop the indicator, erase it and write the final message if set."""
        with self._lock:
            if not self._active:
                return
            self._active = False
            if self._stop_event is not None:
                self._stop_event.set()
            thread = self._thread
            self._thread = None

        if thread is not None and thread is not threading.current_thread():
            thread.join()

        with self._lock:
            if self.hide_cursor and not _WINDOWS:
                sys.stdout.write(_SHOW_CURSOR)
                sys.stdout.flush()
            self._erase()
            if self.final_msg:
                self._write(self.final_msg)

    def restart(self) -> None:
        """Stop and start the indicator."""
        self.stop()
        self.start()

    def reverse(self) -> None:
        """Reverse the order of the character set."""
        with self._lock:
            self._chars.reverse()

    def set_color(self, *args: str) -> None:
        """Set the colours and attributes used and restart the spinner."""
        codes = _color_codes(args)
        with self._lock:
            self._codes = codes
        self.restart()

    def update_speed(self, delay: float) -> None:
        """Set the delay between frames; it applies from the next start."""
        with self._lock:
            self.delay = delay

    def update_char_set(self, chars: Iterable[str]) -> None:
        """Replace the character set."""
        with self._lock:
            self._chars = list(chars)

    def __enter__(self) -> Spinner:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()

    def _paint(self, text: str) -> str:
        code = ";".join(str(c) for c in self._codes)
        return f"\x1b[{code}m{text}\x1b[0m"

    def _write(self, text: str) -> None:
        self.writer.write(text)
        flush = getattr(self.writer, "flush", None)
        if flush is not None:
            flush()

    def _run(self, stop_event: threading.Event, delay: float) -> None:
        position = 0
        while not stop_event.wait(delay):
            with self._lock:
                if not self._active or stop_event.is_set():
                    return
                if not self._chars:
                    continue
                if position >= len(self._chars):
                    position = 0
                char = self._chars[position]
                position += 1

                self._erase()
                if self.pre_update is not None:
                    self.pre_update(self)

                if _WINDOWS and self.writer is sys.stderr:
                    shown = char
                else:
                    shown = self._paint(char)
                self._write(f"\r{self.prefix}{shown}{self.suffix} ")
                self._last_output = f"\r{self.prefix}{char}{self.suffix} "

                if self.post_update is not None:
                    self.post_update(self)

    def _erase(self) -> None:
        """Remove the last frame written; the caller holds the lock."""
        count = len(self._last_output)
        if _WINDOWS:
            self._write("\r" + " " * count + "\r")
            self._last_output = ""
            return
        for sequence in ("\b", "\127", "\b", "\033[K"):
            self._write(sequence * count)
        self._write("\r\033[K")
        self._last_output = ""


def generate_number_sequence(length: int) -> list[str]:
    """Return the numbers ``0`` to ``length - 1`` as strings."""
    if length < 0:
        raise ValueError("length must not be negative")
    return [str(i) for i in range(length)]