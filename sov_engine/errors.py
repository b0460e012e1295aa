from __future__ import annotations


class EngineError(Exception):
    """Base class for errors surfaced to callers of the engine."""


class DecodeError(EngineError):
    def __init__(self, file_name: str, reason: str):
        super().__init__(f"Could not decode {file_name!r}: {reason}")
        self.file_name = file_name
        self.reason = reason


class ConfigurationError(EngineError):
    pass


class TransformCancelled(EngineError):
    def __init__(self, file_name: str, rows_done: int):
        super().__init__(f"Transform of {file_name!r} cancelled after {rows_done} rows")
        self.file_name = file_name
        self.rows_done = rows_done


class RecordIndexError(EngineError, IndexError):
    pass
