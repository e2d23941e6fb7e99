"""Конфигурация конвертера.

Заменяет набор констант времени сборки одной неизменяемой структурой.
Значения берутся из аргументов конструктора, из окружения (`from_env`)
или из опций командной строки (см. `cmyk2srgb.main`).
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

from PIL import Image

from cmyk2srgb.models.status import RenderingIntent, StatusCode

DEFAULT_BACKSTOP_PROFILE = Path("/usr/local/share/nip2/data/HP5000_UVDuraImageGlossMaxQ.icc")
DEFAULT_JPEG_QUALITY = 99
DEFAULT_JPEG_EXTENSION = "jpg"
DEFAULT_PATH_MAX = 4096

# longest quality directive the output name must leave room for
QUALITY_DIRECTIVE_MARGIN = len("[Q=100]")

ENV_PREFIX = "CMYK2SRGB_"


def _default_exit_codes() -> Mapping[StatusCode, int]:
    return {status: int(status) for status in StatusCode}


@dataclass(frozen=True)
class ConverterConfig:
    """Параметры конвертации.

    Fields:
        backstop_profile: CMYK-профиль, подставляемый без пригодного встроенного.
        srgb_profile: Целевой sRGB-профиль; `None` означает встроенный в Pillow.
        jpeg_quality: Качество JPEG, 0..100. 99 практически без потерь,
            95 достаточно для фотографий, показываемых в уменьшенном виде.
        jpeg_extension: Расширение без точки; Pillow должен знать его как JPEG.
        intent: Намерение рендеринга.
        path_max: Предельная длина пути выходного файла.
        exit_codes: Отображение статусов в коды выхода процесса.
    """
    backstop_profile: Path = DEFAULT_BACKSTOP_PROFILE
    srgb_profile: Optional[Path] = None
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    jpeg_extension: str = DEFAULT_JPEG_EXTENSION
    intent: RenderingIntent = RenderingIntent.RELATIVE
    path_max: int = DEFAULT_PATH_MAX
    exit_codes: Mapping[StatusCode, int] = field(default_factory=_default_exit_codes)

    def __post_init__(self) -> None:
        if not 0 <= self.jpeg_quality <= 100:
            raise ValueError(f"JPEG quality must be within 0..100, got {self.jpeg_quality}")
        ext = self.jpeg_extension
        if not ext or ext.startswith(".") or Image.registered_extensions().get(f".{ext.lower()}") != "JPEG":
            raise ValueError(f"Not a JPEG extension: {ext!r}")
        if self.path_max <= 0:
            raise ValueError(f"path_max must be positive, got {self.path_max}")
        missing = [status.name for status in StatusCode if status not in self.exit_codes]
        if missing:
            raise ValueError(f"Exit codes missing for: {', '.join(missing)}")

    def exit_code(self, status: StatusCode) -> int:
        return self.exit_codes[status]

    def output_filename(self, output_stem: str) -> str:
        return f"{output_stem}.{self.jpeg_extension}"

    def max_stem_length(self) -> int:
        """Сколько байт (в кодировке файловой системы) остаётся под имя до расширения.

        Резервирует точку, расширение и самый длинный указатель качества
        ("[Q=100]"), чтобы проверка не зависела от способа передачи качества.
        """
        return self.path_max - (len(os.fsencode(self.jpeg_extension)) + 1 + QUALITY_DIRECTIVE_MARGIN)

    def with_overrides(self, **changes) -> "ConverterConfig":
        """Копия с заменой полей; `None` означает «не менять»."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes) if changes else self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ConverterConfig":
        """Собирает конфигурацию из переменных `CMYK2SRGB_*`.

        Raises:
            ValueError: если значение переменной некорректно.
        """
        env = os.environ if environ is None else environ
        kwargs = {}
        if env.get(ENV_PREFIX + "BACKSTOP_ICC"):
            kwargs["backstop_profile"] = Path(env[ENV_PREFIX + "BACKSTOP_ICC"])
        if env.get(ENV_PREFIX + "SRGB_ICM"):
            kwargs["srgb_profile"] = Path(env[ENV_PREFIX + "SRGB_ICM"])
        if env.get(ENV_PREFIX + "JPEG_QUALITY"):
            kwargs["jpeg_quality"] = _parse_int(env, ENV_PREFIX + "JPEG_QUALITY")
        if env.get(ENV_PREFIX + "JPEG_EXTENSION"):
            kwargs["jpeg_extension"] = env[ENV_PREFIX + "JPEG_EXTENSION"]
        if env.get(ENV_PREFIX + "INTENT"):
            kwargs["intent"] = RenderingIntent(env[ENV_PREFIX + "INTENT"].lower())

        exit_codes = dict(_default_exit_codes())
        for status in StatusCode:
            name = f"{ENV_PREFIX}EXIT_{status.name}"
            if env.get(name):
                exit_codes[status] = _parse_int(env, name)
        kwargs["exit_codes"] = exit_codes
        return cls(**kwargs)


def _parse_int(env: Mapping[str, str], name: str) -> int:
    try:
        return int(env[name])
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {env[name]!r}") from exc
