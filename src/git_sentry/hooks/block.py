"""Managed block inside a git hook script.

A hook file is owned by the user; git-sentry only owns the lines between its
start and end markers::

    # >>> git-sentry start v1.0.0 >>>
    ...generated guard...
    # <<< git-sentry end <<<

The file is scanned line by line into plain, start-marker and end-marker
tokens, so a marker is only recognised when it is the whole line. Everything
outside the marker range is written back exactly as it was read.
"""

from __future__ import annotations

import logging
import re
import shlex
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .base import HookInstallResult, InstallStatus

logger = logging.getLogger(__name__)

BLOCK_VERSION = "1.0.0"

SHEBANG = "#!/bin/sh"
HEADER = "# ⚠ Auto-managed by git-sentry, do not edit inside the start/end block"
START_MARKER = "# >>> git-sentry start v{version} >>>"
END_MARKER = "# <<< git-sentry end <<<"
LEGACY_HEADER = "# Auto-generated by git-sentry tool"

CONFIG_CHECK = "{ [ -f .gitsentryrc ] || grep -qs '^\\[tool\\.git-sentry\\]' pyproject.toml; }"

_START_RE = re.compile(r"^# >>> git-sentry start v(\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.+-]+)?) >>>$")


class LineKind(Enum):
    PLAIN = "plain"
    START = "start"
    END = "end"


@dataclass(frozen=True)
class Token:
    kind: LineKind
    version: str | None = None


@dataclass(frozen=True)
class BlockSpan:
    """Line range `[start, end)` of one managed block, markers included."""

    start: int
    end: int
    version: str


class UnterminatedBlockError(ValueError):
    """A start marker has no matching end marker."""


def classify(line: str) -> Token:
    text = line.strip()
    if text == END_MARKER:
        return Token(LineKind.END)
    match = _START_RE.match(text)
    if match:
        return Token(LineKind.START, match.group(1))
    return Token(LineKind.PLAIN)


def find_blocks(lines: list[str]) -> list[BlockSpan]:
    """Locate every managed block in `lines`.

    Raises:
        UnterminatedBlockError: a start marker is followed by another start
            marker or by the end of the file before any end marker.
    """
    spans: list[BlockSpan] = []
    open_at: int | None = None
    open_version = ""

    for idx, line in enumerate(lines):
        token = classify(line)
        if token.kind is LineKind.START:
            if open_at is not None:
                break
            open_at, open_version = idx, token.version or ""
        elif token.kind is LineKind.END and open_at is not None:
            spans.append(BlockSpan(open_at, idx + 1, open_version))
            open_at = None

    if open_at is not None:
        raise UnterminatedBlockError(f"Unterminated git-sentry block at line {open_at + 1}")
    return spans


def strip_legacy_block(lines: list[str]) -> tuple[list[str], bool]:
    """Drop the unversioned fragment older releases wrote.

    The fragment is a `#!/bin/sh` line, the legacy header and one generated
    command line. Only the first occurrence is removed.
    """
    for idx in range(len(lines) - 2):
        if (
            lines[idx].rstrip("\r\n") == SHEBANG
            and lines[idx + 1].rstrip("\r\n") == LEGACY_HEADER
            and lines[idx + 2].strip()
        ):
            return lines[:idx] + lines[idx + 3 :], True
    return lines, False


def normalize_blank_lines(lines: list[str]) -> list[str]:
    """Collapse runs of blank lines to one and trim blank lines at both ends."""
    out: list[str] = []
    for line in lines:
        if not line.strip():
            if not out or not out[-1].strip():
                continue
        out.append(line)
    while out and not out[-1].strip():
        out.pop()
    return out


def render_block(command: str, version: str = BLOCK_VERSION) -> list[str]:
    """Generate the marker-delimited guard around `command`."""
    failed_msg = shlex.quote(f"[git-sentry] {command} failed")
    return [
        START_MARKER.format(version=version),
        'if [ -z "$CI" ] \\',
        "&& command -v python3 >/dev/null 2>&1 \\",
        f"&& {CONFIG_CHECK} \\",
        "&& command -v git-sentry >/dev/null 2>&1; then",
        f"  {command} || {{ echo {failed_msg}; exit 1; }}",
        "else",
        '  echo "[git-sentry] Skipping hook: CI=$CI, python3=$(command -v python3), '
        f'config=$({CONFIG_CHECK} && echo yes || echo no), git-sentry=$(command -v git-sentry)"',
        "  exit 0",
        "fi",
        END_MARKER,
    ]


def render_script(command: str, version: str = BLOCK_VERSION) -> str:
    return "\n".join([SHEBANG, HEADER, "", *render_block(command, version)]) + "\n"


def _read(hook_file: Path) -> str:
    # newline="" keeps \r\n endings intact for the user's lines
    with open(hook_file, encoding="utf-8", newline="") as f:
        return f.read()


def _write(hook_file: Path, content: str) -> None:
    with open(hook_file, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    hook_file.chmod(0o755)


def _replace_blocks(lines: list[str], spans: list[BlockSpan], block: list[str]) -> list[str]:
    out = list(lines[: spans[0].start])
    out.extend(line + "\n" for line in block)
    for prev, span in zip(spans, spans[1:]):
        out.extend(lines[prev.end : span.start])
    out.extend(lines[spans[-1].end :])
    return out


def upsert_block(
    hook_file: Path, command: str, version: str = BLOCK_VERSION, hook: str | None = None
) -> HookInstallResult:
    """Create, append or refresh the managed block in `hook_file`.

    Args:
        hook_file: Path of the hook script (e.g. `.git/hooks/pre-commit`)
        command: Shell command the block runs when its guard passes
        version: Version written into the start marker
        hook: Name reported in the result (default: the file name)

    Returns:
        HookInstallResult with status created, appended, updated, exists or failed
    """
    hook = hook or hook_file.name
    try:
        if not hook_file.exists():
            hook_file.parent.mkdir(exist_ok=True)
            _write(hook_file, render_script(command, version))
            logger.debug("created %s", hook_file)
            return HookInstallResult(
                hook, InstallStatus.CREATED, f"Created new git-sentry hook with version {version}."
            )

        lines = _read(hook_file).splitlines(keepends=True)
        lines, had_legacy = strip_legacy_block(lines)
        if had_legacy:
            logger.debug("removed legacy git-sentry fragment from %s", hook_file)
            lines = normalize_blank_lines(lines)

        spans = find_blocks(lines)
        if spans:
            if len(spans) == 1 and spans[0].version == version:
                if had_legacy:
                    _write(hook_file, "".join(lines))
                return HookInstallResult(hook, InstallStatus.EXISTS, "git-sentry hook already up-to-date.")

            logger.debug("replacing block v%s in %s", spans[0].version, hook_file)
            _write(hook_file, "".join(_replace_blocks(lines, spans, render_block(command, version))))
            return HookInstallResult(
                hook, InstallStatus.UPDATED, f"Replaced git-sentry hook with version {version}."
            )

        content = "".join(lines)
        if content.strip():
            if not content.endswith("\n"):
                content += "\n"
            content += "\n" + "\n".join([HEADER, *render_block(command, version)]) + "\n"
        else:
            content = render_script(command, version)
        _write(hook_file, content)
        return HookInstallResult(
            hook, InstallStatus.APPENDED, f"Appended git-sentry hook with version {version}."
        )
    except UnterminatedBlockError as e:
        return HookInstallResult(hook, InstallStatus.FAILED, str(e))
    except (OSError, UnicodeDecodeError) as e:
        return HookInstallResult(hook, InstallStatus.FAILED, str(e))


def remove_block(hook_file: Path, hook: str | None = None) -> HookInstallResult:
    """Remove the managed block (and any legacy fragment) from `hook_file`.

    The file is deleted when nothing but the generated shebang and header
    would be left.
    """
    hook = hook or hook_file.name
    try:
        if not hook_file.exists():
            return HookInstallResult(hook, InstallStatus.ABSENT, "No hook file.")

        lines = _read(hook_file).splitlines(keepends=True)
        lines, had_legacy = strip_legacy_block(lines)
        spans = find_blocks(lines)
        if not spans and not had_legacy:
            return HookInstallResult(hook, InstallStatus.ABSENT, "No git-sentry block found.")

        kept: list[str] = []
        cursor = 0
        for span in spans:
            kept.extend(lines[cursor : span.start])
            cursor = span.end
        kept.extend(lines[cursor:])
        kept = normalize_blank_lines([line for line in kept if line.strip() != HEADER])

        if all(line.strip() in ("", SHEBANG) for line in kept):
            hook_file.unlink()
            return HookInstallResult(hook, InstallStatus.REMOVED, "Removed git-sentry hook file.")

        content = "".join(kept)
        if not content.endswith("\n"):
            content += "\n"
        _write(hook_file, content)
        return HookInstallResult(
            hook, InstallStatus.REMOVED, "Removed git-sentry block, kept existing hook content."
        )
    except UnterminatedBlockError as e:
        return HookInstallResult(hook, InstallStatus.FAILED, str(e))
    except (OSError, UnicodeDecodeError) as e:
        return HookInstallResult(hook, InstallStatus.FAILED, str(e))
