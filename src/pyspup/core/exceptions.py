"""Custom exceptions for pyspup package."""

from __future__ import annotations


class PySpupError(Exception):
    """Base exception for all pyspup errors."""

    pass


class InvalidParameterError(PySpupError):
    """Error raised when distribution or correlogram parameters are out of domain."""

    def __init__(self, message: str, parameter: str | None = None) -> None:
        super().__init__(message)
        self.parameter = parameter


class UnsupportedDistributionError(PySpupError):
    """Error raised for an unknown family or one the sampling method cannot use."""

    pass


class MissingCorrelogramError(PySpupError):
    """Error raised when a spatial method is requested without a correlogram."""

    pass


class InvalidSampleSizeError(PySpupError):
    """Error raised when the sample size is not divisible by the stratum count."""

    def __init__(self, message: str, n: int | None = None, n_strata: int | None = None) -> None:
        super().__init__(message)
        self.n = n
        self.n_strata = n_strata


class InvalidCorrelationMatrixError(PySpupError):
    """Error raised when a cross-correlation matrix is not a valid correlation matrix."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class MisalignedSupportError(PySpupError):
    """Error raised when surfaces of one model do not share spatial support."""

    pass


class ConfigError(PySpupError):
    """Error raised when a configuration document is invalid."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path
