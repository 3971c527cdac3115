from __future__ import annotations


class MergeError(RuntimeError):
    """Base class for failures that abort a merge run before publication."""

    kind = "merge error"
    exit_code = 1


class ConfigurationError(MergeError):
    kind = "configuration error"
    exit_code = 2


class TransientIOError(MergeError):
    kind = "transient I/O error"
    exit_code = 3


class FoldError(MergeError):
    kind = "fold error"
    exit_code = 4
