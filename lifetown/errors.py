"""
lifetown/errors.py

Exceptions raised at the engine's boundaries. The tick itself never
raises; Town methods that accept outside input turn these into an
"error" log entry instead.
"""


class LifetownError(Exception):
    pass


class InvalidSettingError(LifetownError):
    """A speed, town name or observer name outside the accepted range."""


class SaveError(LifetownError):
    pass


class IncompatibleSaveError(SaveError):
    def __init__(self, found: str, current: str):
        self.found = found
        self.current = current
        super().__init__(f"save version {found} is incompatible with {current}")


class CorruptSaveError(SaveError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"save corrupt: {reason}")
