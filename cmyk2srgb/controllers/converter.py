"""Конвертер: оркестрация сервисов и выбор кода завершения.

SOLID:
- SRP: класс принимает решения (CMYK или нет, какой статус), работу делают сервисы.
- DIP: сервисы создаются из конфигурации, но их можно подменить в тестах.
Clean Code:
- Исключения сервисов превращаются в `FATAL_ERROR` только здесь.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from cmyk2srgb.models.config import ConverterConfig
from cmyk2srgb.models.errors import ArgumentError, ConversionError, FailureReason
from cmyk2srgb.models.status import StatusCode
from cmyk2srgb.services.icc_service import IccService
from cmyk2srgb.services.image_service import ImageService
from cmyk2srgb.services.jpeg_service import JpegService

logger = logging.getLogger(__name__)


@dataclass
class Converter:
    """Определяет, CMYK ли входное изображение, и при необходимости
    сохраняет его sRGB-копию в JPEG.

    Ответственности:
    - Проверка выходного имени до любого ввода-вывода.
    - Открытие входа только для чтения метаданных через `ImageService`.
    - ICC-преобразование через `IccService`, запись через `JpegService`.
    - Ровно один `StatusCode` на вызов; ни одного незакрытого объекта PIL.
    """
    config: ConverterConfig = field(default_factory=ConverterConfig)
    image_service: ImageService = field(default_factory=ImageService)
    icc_service: Optional[IccService] = None
    jpeg_service: Optional[JpegService] = None

    def __post_init__(self) -> None:
        if self.icc_service is None:
            self.icc_service = IccService(
                backstop_profile=self.config.backstop_profile,
                srgb_profile=self.config.srgb_profile,
                intent=self.config.intent,
            )
        if self.jpeg_service is None:
            self.jpeg_service = JpegService(quality=self.config.jpeg_quality)

    def convert(self, input_path: str | Path, output_stem: str) -> StatusCode:
        """Выполняет одну конвертацию.

        Args:
            input_path: Входное изображение; никогда не перезаписывается
                конвертером (если только `output_stem` не указывает на него же).
            output_stem: Путь результата без расширения.

        Returns:
            Один из пяти `StatusCode`.
        """
        try:
            return self._convert(Path(input_path), output_stem)
        except ConversionError as exc:
            logger.error("%s (%s)", exc, exc.reason.value)
        except (FileNotFoundError, ValueError) as exc:
            logger.error("%s (%s)", exc, FailureReason.INPUT_UNREADABLE.value)
        except OSError as exc:
            logger.error("Cannot read %s: %s (%s)", input_path, exc, FailureReason.INPUT_UNREADABLE.value)
        return StatusCode.FATAL_ERROR

    def _convert(self, input_path: Path, output_stem: str) -> StatusCode:
        self._check_output_stem(output_stem)

        with self.image_service.open_image(input_path) as image:
            if not image.is_cmyk:
                # do nothing
                logger.info("%s is %s, not CMYK; nothing to do", input_path, image.interpretation.value)
                return StatusCode.PROBABLY_NOT_CMYK

            output_path = self.config.output_filename(output_stem)
            exif = image.pil_image.info.get("exif")
            result = self.icc_service.to_srgb(image)
            try:
                self.jpeg_service.save(result.image, output_path, icc_profile=result.output_profile, exif=exif)
            finally:
                result.image.close()

        status = result.source.to_status()
        logger.info(
            "Converted %s -> %s using %s (intent %s): %s",
            input_path, output_path, result.source.value, result.intent.value, status.name,
        )
        return status

    def _check_output_stem(self, output_stem: str) -> None:
        if not output_stem:
            raise ArgumentError(FailureReason.INVALID_ARGUMENTS, "Output name must not be empty")
        limit = self.config.max_stem_length()
        # PATH_MAX counts bytes, not characters
        stem_bytes = len(os.fsencode(output_stem))
        if stem_bytes > limit:
            raise ArgumentError(
                FailureReason.OUTPUT_PATH_TOO_LONG,
                f"Output name is {stem_bytes} bytes long; at most {limit} fit with the extension",
            )
