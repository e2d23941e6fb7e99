"""Модели данных для изображений.

Принципы:
- SRP: только структура данных, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

from cmyk2srgb.models.status import Interpretation, ProfileSource, RenderingIntent


@dataclass(frozen=True)
class ImageData:
    """Неизменяемая модель открытого (но не декодированного) изображения.

    Fields:
        path: Путь к исходному файлу.
        pil_image: Ленивый объект PIL; пиксели читаются только при `load()`.
        width: Ширина, px.
        height: Высота, px.
        mode: Режим PIL, например "CMYK".
        interpretation: Цветовая интерпретация, выведенная из режима.
        icc_profile: Встроенный ICC-профиль (байты), если есть.
        size_bytes: Размер файла, если доступен.
    """
    path: Path
    pil_image: Image.Image
    width: int
    height: int
    mode: str
    interpretation: Interpretation
    icc_profile: Optional[bytes]
    size_bytes: Optional[int]

    @property
    def is_cmyk(self) -> bool:
        return self.interpretation is Interpretation.CMYK


@dataclass(frozen=True)
class TransformResult:
    """Результат ICC-преобразования CMYK -> sRGB.

    Fields:
        image: Изображение в режиме RGB; владеет им вызывающий код.
        source: Какой исходный профиль применён.
        intent: Фактически использованное намерение рендеринга.
        output_profile: Байты sRGB-профиля для встраивания в JPEG.
        warnings: Некритичные диагностические сообщения.
    """
    image: Image.Image
    source: ProfileSource
    intent: RenderingIntent
    output_profile: bytes
    warnings: Tuple[str, ...] = ()
