"""Перечисления: статусы завершения, источники профиля, интерпретации цвета.

Принципы:
- SRP: только именованные значения, без логики преобразования.
- Целые коды выхода процесса настраиваются отдельно (`ConverterConfig`),
  здесь значения по умолчанию.
"""
from __future__ import annotations

from enum import Enum, IntEnum

from PIL import ImageCms


class StatusCode(IntEnum):
    """Ровно один исход на вызов конвертера."""
    PROBABLY_NOT_CMYK = 0
    FATAL_ERROR = 1
    CMYK_WITH_UNUSABLE_ICC = 2
    CMYK_NO_ICC = 3
    CMYK_WITH_USABLE_ICC = 4


class ProfileSource(Enum):
    """Какой исходный профиль реально применён при преобразовании."""
    EMBEDDED = "embedded"
    BACKSTOP_NO_EMBEDDED = "backstop-no-embedded"
    BACKSTOP_EMBEDDED_UNUSABLE = "backstop-embedded-unusable"

    def to_status(self) -> StatusCode:
        return _SOURCE_STATUS[self]


_SOURCE_STATUS = {
    ProfileSource.EMBEDDED: StatusCode.CMYK_WITH_USABLE_ICC,
    ProfileSource.BACKSTOP_NO_EMBEDDED: StatusCode.CMYK_NO_ICC,
    ProfileSource.BACKSTOP_EMBEDDED_UNUSABLE: StatusCode.CMYK_WITH_UNUSABLE_ICC,
}


class Interpretation(Enum):
    """Цветовая интерпретация изображения, выводится из режима PIL."""
    CMYK = "cmyk"
    SRGB = "srgb"
    GRAY = "gray"
    LAB = "lab"
    YCBCR = "ycbcr"
    MULTIBAND = "multiband"

    @classmethod
    def from_mode(cls, mode: str) -> "Interpretation":
        """Сопоставляет режим PIL (например, "CMYK", "RGBA", "I;16") интерпретации.

        Неизвестные режимы считаются `MULTIBAND`: конвертер их не трогает.
        """
        if mode == "CMYK":
            return cls.CMYK
        if mode in ("RGB", "RGBA", "RGBX", "RGBa", "P", "PA"):
            return cls.SRGB
        if mode in ("1", "L", "LA", "La") or mode.startswith("I;16"):
            return cls.GRAY
        if mode == "LAB":
            return cls.LAB
        if mode == "YCbCr":
            return cls.YCBCR
        return cls.MULTIBAND


class RenderingIntent(Enum):
    """Намерение рендеринга с именами, удобными для CLI и переменных окружения."""
    PERCEPTUAL = "perceptual"
    RELATIVE = "relative"
    SATURATION = "saturation"
    ABSOLUTE = "absolute"

    @property
    def cms_intent(self) -> ImageCms.Intent:
        return _CMS_INTENTS[self]

    @classmethod
    def from_cms(cls, value: int) -> "RenderingIntent":
        for intent, cms_value in _CMS_INTENTS.items():
            if cms_value == value:
                return intent
        raise ValueError(f"Unknown ICC rendering intent: {value}")


_CMS_INTENTS = {
    RenderingIntent.PERCEPTUAL: ImageCms.Intent.PERCEPTUAL,
    RenderingIntent.RELATIVE: ImageCms.Intent.RELATIVE_COLORIMETRIC,
    RenderingIntent.SATURATION: ImageCms.Intent.SATURATION,
    RenderingIntent.ABSOLUTE: ImageCms.Intent.ABSOLUTE_COLORIMETRIC,
}
