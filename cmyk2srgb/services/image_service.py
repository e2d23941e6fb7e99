"""Открытие изображений с диска и упаковка метаданных.

Принципы:
- SRP: класс отвечает только за открытие и извлечение свойств, пиксели не декодирует.
- Ресурсы: объект PIL закрывается при выходе из контекста на любом пути.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from PIL import Image, UnidentifiedImageError

from cmyk2srgb.models.image_model import ImageData
from cmyk2srgb.models.status import Interpretation

logger = logging.getLogger(__name__)


class ImageService:
    @contextmanager
    def open_image(self, file_path: str | Path) -> Iterator[ImageData]:
        """Открывает изображение только для чтения заголовков.

        `Image.open` ленив: растр читается позже, при `load()`. На выходе
        из контекста файл закрывается, даже если внутри было исключение.

        Args:
            file_path: Путь до файла изображения.

        Yields:
            `ImageData` с ленивым `PIL.Image.Image`, режимом, интерпретацией
            и встроенным ICC-профилем.

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
            ValueError: если файл не распознан как изображение или превышает
                `Image.MAX_IMAGE_PIXELS`.
            OSError: если файл не удалось прочитать.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")

        try:
            pil_image = Image.open(path)
        except UnidentifiedImageError as exc:
            raise ValueError(f"Файл не является изображением: {path}") from exc
        except Image.DecompressionBombError as exc:
            raise ValueError(f"Изображение слишком велико: {path} ({exc})") from exc

        try:
            try:
                size_bytes: Optional[int] = path.stat().st_size
            except OSError:
                size_bytes = None

            width, height = pil_image.size
            image_data = ImageData(
                path=path,
                pil_image=pil_image,
                width=width,
                height=height,
                mode=pil_image.mode,
                interpretation=Interpretation.from_mode(pil_image.mode),
                icc_profile=pil_image.info.get("icc_profile") or None,
                size_bytes=size_bytes,
            )
            logger.debug(
                "Opened %s: %s %dx%d, interpretation=%s, embedded ICC=%s",
                path, image_data.mode, width, height,
                image_data.interpretation.value, image_data.icc_profile is not None,
            )
            yield image_data
        finally:
            pil_image.close()
