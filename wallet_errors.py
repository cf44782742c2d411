"""Error types raised by the wallet client utilities."""

from __future__ import annotations


class WalletUtilsError(Exception):
    """Base class for wallet utility errors."""

    pass


class ArgumentError(WalletUtilsError, ValueError):
    """Invalid or missing input: empty text, unknown unit, malformed key, unknown scheme."""

    pass


class StateError(WalletUtilsError, RuntimeError):
    """
    Invariant violated after construction.

    Raised for output-order mismatches, a single-key scheme given several
    ring entries, or an input/output balance outside the allowed fee bound.
    No partially built object is returned alongside it.
    """

    pass


class WalletConfigError(WalletUtilsError):
    """Configuration error for the wallet client utilities."""

    pass
