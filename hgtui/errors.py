from __future__ import annotations


class HgTuiError(Exception):
    level = "error"


class InvalidVolume(HgTuiError):
    pass


class InvalidCategory(HgTuiError):
    pass


class NetworkError(HgTuiError):
    pass


class ParseContractViolation(HgTuiError):
    """The page no longer has the structure the parsers rely on."""


class EmptyResult(HgTuiError):
    level = "warn"


class BrowserError(HgTuiError):
    pass
