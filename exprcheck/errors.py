"""Exceptions raised by exprcheck analyzers.

All of them subclass ``ValueError`` so that batch drivers can treat them as
expected data issues, record them per unit and move on.
"""

from __future__ import annotations


class EmptyInputError(ValueError):
    """Raised when the classifier is given no vectors at all."""


class NoValidDataError(ValueError):
    """Raised when every pooled value is missing."""


class DecodingError(ValueError):
    """Raised when an encoded payload cannot be decoded."""
