"""User-facing terminal output.

Everything git-sentry prints for the user goes through a Reporter. Each line
belongs to one of a closed set of channels with a fixed look, so callers say
what a message is (info, warning, command output...) and never pick colors.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text


class Channel(Enum):
    """Semantic output channel: label, label style, text style."""

    INFO = ("[INFO]", "bold blue", "cyan")
    SUCCESS = ("[SUCCESS]", "bold green", "green")
    WARN = ("[WARN]", "bold yellow", "yellow")
    ERROR = ("[ERROR]", "bold red", "red")
    DEBUG = ("[DEBUG]", "bold magenta", "grey50")
    RAW = ("", "", "")

    def __init__(self, label: str, label_style: str, style: str):
        self.label = label
        self.label_style = label_style
        self.style = style


class Stream(Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


Segment = tuple[str, Channel]


class Reporter:
    """Render channel-tagged messages on a rich Console.

    Warnings and errors go to `err_console`; when only `console` is given it
    receives everything.
    """

    def __init__(self, console: Console | None = None, err_console: Console | None = None):
        if console is None:
            console = Console(highlight=False)
            err_console = err_console or Console(stderr=True, highlight=False)
        self.console = console
        self.err_console = err_console or console

    def _target(self, channel: Channel) -> Console:
        return self.err_console if channel in (Channel.WARN, Channel.ERROR) else self.console

    def emit(self, channel: Channel, message: str) -> None:
        if channel is Channel.RAW:
            self.console.print(Text(message), soft_wrap=True)
            return
        stamp = datetime.now().strftime("%H:%M:%S")
        line = Text.assemble(
            (channel.label, channel.label_style),
            " ",
            (stamp, "grey50"),
            " → ",
            (message, channel.style),
        )
        self._target(channel).print(line, soft_wrap=True)

    def info(self, message: str) -> None:
        self.emit(Channel.INFO, message)

    def success(self, message: str) -> None:
        self.emit(Channel.SUCCESS, message)

    def warn(self, message: str) -> None:
        self.emit(Channel.WARN, message)

    def error(self, message: str) -> None:
        self.emit(Channel.ERROR, message)

    def segments(self, *parts: Segment) -> None:
        """Print one line assembled from differently styled parts."""
        self.console.print(Text.assemble(*((text, ch.style) for text, ch in parts)), soft_wrap=True)

    def blank(self) -> None:
        self.console.print()

    def command_output(self, command: str, line: str, stream: Stream) -> None:
        """One line a running command wrote, prefixed with the command."""
        body = Channel.ERROR if stream is Stream.STDERR else Channel.SUCCESS
        self.segments((f"{command} │ ", Channel.WARN), (line, body))


class Spinner:
    """Progress indicator shown while a batch runs, rendered by rich.

    `start()` stops a display this spinner already shows and `stop()` is safe
    to call repeatedly, so callers can pair them in try/finally.
    """

    def __init__(self, console: Console, text: str = "Executing commands…", spinner: str = "moon"):
        self.console = console
        self.text = text
        self.spinner = spinner
        self._progress: Progress | None = None

    @property
    def active(self) -> bool:
        return self._progress is not None

    def start(self) -> None:
        self.stop()
        if not self.console.is_terminal:
            return
        progress = Progress(
            SpinnerColumn(self.spinner),
            TextColumn("[progress.description]{task.description}"),
            console=self.console,
            transient=True,
        )
        progress.add_task(self.text, total=None)
        progress.start()
        self._progress = progress

    def stop(self) -> None:
        if self._progress is None:
            return
        progress, self._progress = self._progress, None
        progress.stop()
