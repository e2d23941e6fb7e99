"""Запись результата в JPEG.

Файл пишется во временный файл рядом с целевым и затем атомарно
переименовывается, поэтому полузаписанного результата не бывает: либо
новый файл целиком, либо прежнее состояние каталога.
"""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from PIL import Image

from cmyk2srgb.models.errors import EncodeError

logger = logging.getLogger(__name__)

# с этого качества цветоразностная субдискретизация отключается (4:4:4)
NO_SUBSAMPLING_QUALITY = 90


class JpegService:
    def __init__(self, quality: int) -> None:
        self.quality = quality

    def save(
        self,
        image: Image.Image,
        output_path: str | Path,
        icc_profile: Optional[bytes] = None,
        exif: Optional[bytes] = None,
    ) -> Path:
        """Кодирует `image` в JPEG по пути `output_path`.

        Args:
            image: RGB-изображение.
            output_path: Итоговый путь; существующий файл перезаписывается.
            icc_profile: Профиль для встраивания (sRGB).
            exif: Блок EXIF исходного файла, если есть.

        Returns:
            Путь к записанному файлу.

        Raises:
            EncodeError: каталог не существует, нет прав или кодер упал.
        """
        path = Path(output_path)
        options = {"quality": self.quality}
        if self.quality >= NO_SUBSAMPLING_QUALITY:
            options["subsampling"] = 0
        if icc_profile:
            options["icc_profile"] = icc_profile
        if exif:
            options["exif"] = exif

        try:
            fd, tmp_name = tempfile.mkstemp(prefix=".cmyk2srgb-", suffix=".tmp", dir=path.parent)
        except OSError as exc:
            raise EncodeError(f"Cannot create output in {path.parent}: {exc}") from exc

        try:
            with os.fdopen(fd, "wb") as fh:
                image.save(fh, format="JPEG", **options)
            # mkstemp creates 0600; give the result the usual permissions
            os.chmod(tmp_name, 0o666 & ~_current_umask())
            os.replace(tmp_name, path)
        except (OSError, ValueError) as exc:
            _discard(tmp_name)
            raise EncodeError(f"Cannot write JPEG {path}: {exc}") from exc
        except BaseException:
            _discard(tmp_name)
            raise

        logger.debug("Wrote %s (quality %d)", path, self.quality)
        return path


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _discard(tmp_name: str) -> None:
    try:
        os.unlink(tmp_name)
    except FileNotFoundError:
        pass
