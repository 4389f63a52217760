"""
Custom exceptions for enc_styles package.

This module defines exception classes for the fatal error paths of the
symbology compiler. Recoverable conditions (missing symbols, unparsable
attribute values) are not exceptions; they are reported as diagnostics
alongside the compiled style (see :mod:`enc_styles.symbology.diagnostics`).
"""

from typing import Optional


class EncStylesError(Exception):
    """Base exception class for all enc_styles errors."""
    pass


class ConfigurationError(EncStylesError):
    """
    Raised when static configuration or rule data is malformed.

    This covers non-numeric depth thresholds in a LayerConfig, instruction
    strings naming an unknown primitive or conditional procedure, and
    unreadable rule or palette files. The message identifies the offending
    rule or setting. A build that raises this returns no partial style.
    """

    def __init__(self, message: str, rule: Optional[str] = None):
        self.rule = rule
        if rule:
            message = f"{message} (rule: {rule})"
        super().__init__(message)


class RegistryError(EncStylesError):
    """
    Raised when the symbol registry file cannot be read.

    A registry that loads but lacks a given symbol is not an error; the
    affected primitive is dropped with a missing-asset diagnostic.
    """
    pass


class InvalidParameterError(EncStylesError):
    """
    Raised for invalid user inputs.

    Used for parameter validation failures in the public API such as an
    unknown display mode or an unreadable feature catalog.
    """
    pass
