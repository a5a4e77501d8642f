from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

from rich.console import Console

from rosmon.output.json_output import format_json_error, format_json_response
from rosmon.output.rich_output import RichOutput

if TYPE_CHECKING:
    from io import TextIOBase

FORMATS = ("rich", "json", "quiet")


class OutputFormatter:
    """Routes command output to Rich tables or JSON envelopes.

    *force_format* wins when given; otherwise a TTY gets ``"rich"`` and a
    pipe gets ``"json"``.  ``"quiet"`` keeps stdout empty by pointing the
    Rich console at stderr, so only errors and prompts are shown.

    :attr:`router` is stamped into JSON envelopes once the target router
    is known.
    """

    def __init__(
        self,
        *,
        stream: TextIOBase | Any | None = None,
        force_format: str | None = None,
    ) -> None:
        self._stream = stream or sys.stdout
        if force_format is None:
            isatty = getattr(self._stream, "isatty", None)
            force_format = "rich" if isatty is not None and isatty() else "json"
        if force_format not in FORMATS:
            raise ValueError(f"Unknown output format: {force_format!r}")
        self._format = force_format
        self._console = Console(stderr=self._format == "quiet")
        self._rich = RichOutput(self._console)
        self.router: str | None = None

    @property
    def format(self) -> str:  # noqa: A003
        return self._format

    @property
    def console(self) -> Console:
        return self._console

    @property
    def rich(self) -> RichOutput:
        return self._rich

    def _emit(self, text: str) -> None:
        print(text, file=self._stream)  # noqa: T201

    def output(self, data: Any, *, command: str) -> None:
        """Print *data* as a JSON envelope; Rich modes fall back to ``str()``.

        Commands with typed records call the :attr:`rich` table helpers
        directly instead.
        """
        if self._format == "json":
            self._emit(format_json_response(data=data, command=command, router=self.router))
        else:
            self._rich.info(str(data))

    def output_error(self, *, code: str, message: str, command: str) -> None:
        if self._format == "json":
            self._emit(
                format_json_error(code=code, message=message, command=command, router=self.router)
            )
        else:
            self._rich.error(message)
