"""episteme: FSRS scheduling rules and what-if simulation."""

from episteme.consts import VERSION

__version__ = VERSION
