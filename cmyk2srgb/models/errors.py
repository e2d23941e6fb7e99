"""Ошибки конвертации с кодом причины.

Все они превращаются в `StatusCode.FATAL_ERROR` в одном месте: в `Converter`.
"""
from __future__ import annotations

from enum import Enum


class FailureReason(Enum):
    INVALID_ARGUMENTS = "invalid-arguments"
    OUTPUT_PATH_TOO_LONG = "output-path-too-long"
    INPUT_UNREADABLE = "input-unreadable"
    DECODE_FAILED = "decode-failed"
    TARGET_PROFILE_UNUSABLE = "target-profile-unusable"
    BACKSTOP_PROFILE_UNUSABLE = "backstop-profile-unusable"
    TRANSFORM_FAILED = "transform-failed"
    ENCODE_FAILED = "encode-failed"


class ConversionError(Exception):
    """Базовая ошибка: сообщение плюс `FailureReason`."""

    def __init__(self, reason: FailureReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class ArgumentError(ConversionError):
    pass


class TransformError(ConversionError):
    pass


class EncodeError(ConversionError):
    def __init__(self, message: str) -> None:
        super().__init__(FailureReason.ENCODE_FAILED, message)
