"""Error taxonomy for forte-ed.

Every failure raised by the package derives from ``ForteError`` and also
from the closest built-in exception, so callers that only know about
``ValueError`` or ``OSError`` still catch the right thing.

  InvalidArgument         bad run parameters, configuration or settings
  ConnectionFailure       the BETY database cannot be reached
  IOFailure               the soil-moisture dataset is missing or malformed
  ExternalServiceFailure  a PEcAn platform call failed
"""


class ForteError(Exception):
    """Base class for all forte-ed errors."""


class InvalidArgument(ForteError, ValueError):
    """A precondition on run parameters or configuration failed."""


class ConnectionFailure(ForteError, ConnectionError):
    """The external database could not be reached."""


class IOFailure(ForteError, OSError):
    """A required dataset could not be read or is malformed."""


class ExternalServiceFailure(ForteError, RuntimeError):
    """A call into the PEcAn platform (database or queue) failed."""
