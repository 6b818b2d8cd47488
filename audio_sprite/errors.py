from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Union

__all__ = [
    "SpriteError",
    "MissingDependency",
    "InputNotFound",
    "DecodeFailure",
    "EncodeFailure",
    "UnsupportedSecondaryConversion",
    "returncode_from_message",
]

_RETURNCODE_RE = re.compile(r"error code:\s*(-?\d+)")


class SpriteError(RuntimeError):
    """
    Base class for failures that abort a sprite build.
    """


class MissingDependency(SpriteError):
    def __init__(self, tool: str) -> None:
        super().__init__(f"{tool} was not found on your path")
        self.tool = tool


class InputNotFound(SpriteError):
    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__(f"File does not exist: {path}")
        self.path = str(path)


class DecodeFailure(SpriteError):
    def __init__(
        self,
        path: Union[str, Path],
        *,
        returncode: Optional[int] = None,
        detail: str = "",
    ) -> None:
        message = f"File could not be added: {path} (retcode={returncode})"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)
        self.path = str(path)
        self.returncode = returncode
        self.detail = detail


class EncodeFailure(SpriteError):
    def __init__(
        self,
        format_name: str,
        *,
        returncode: Optional[int] = None,
        detail: str = "",
    ) -> None:
        message = f"Error exporting file: format={format_name} (retcode={returncode})"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)
        self.format_name = format_name
        self.returncode = returncode
        self.detail = detail


class UnsupportedSecondaryConversion(SpriteError):
    """
    Raised when a derived container cannot be produced on this host.

    Never fatal: the export orchestrator catches it and omits the artifact.
    """

    def __init__(self, format_name: str, reason: str) -> None:
        super().__init__(f"Cannot export {format_name}: {reason}")
        self.format_name = format_name
        self.reason = reason


def returncode_from_message(message: str) -> Optional[int]:
    """
    Extract the ffmpeg exit code pydub embeds in its decode/encode error text.
    """
    match = _RETURNCODE_RE.search(message)
    return int(match.group(1)) if match else None
