"""Точка входа: cmyk2srgbjpeg INPUT_IMAGE OUTPUT_IMAGE_NAME_BEFORE_EXTENSION."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

from cmyk2srgb.controllers.converter import Converter
from cmyk2srgb.models.config import ConverterConfig
from cmyk2srgb.models.status import RenderingIntent, StatusCode

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class _ArgumentParser(argparse.ArgumentParser):
    """argparse, который при ошибке выходит с кодом FATAL_ERROR, а не 2."""

    def __init__(self, *args, fatal_exit_code: int = int(StatusCode.FATAL_ERROR), **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.fatal_exit_code = fatal_exit_code

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(self.fatal_exit_code, f"{self.prog}: error: {message}\n")


def build_parser(fatal_exit_code: int = int(StatusCode.FATAL_ERROR)) -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="cmyk2srgbjpeg",
        description=(
            "Если INPUT_IMAGE в CMYK, переводит его в sRGB и сохраняет как "
            "OUTPUT_IMAGE_NAME_BEFORE_EXTENSION.jpg. Иначе ничего не делает."
        ),
        epilog=(
            "Коды выхода: 0 не CMYK, 1 ошибка, 2 встроенный профиль непригоден, "
            "3 встроенного профиля нет, 4 использован встроенный профиль."
        ),
        fatal_exit_code=fatal_exit_code,
    )
    parser.add_argument("input_image", metavar="INPUT_IMAGE")
    parser.add_argument("output_stem", metavar="OUTPUT_IMAGE_NAME_BEFORE_EXTENSION")
    parser.add_argument("--backstop-profile", type=Path, default=None,
                        help="CMYK ICC-профиль на случай отсутствия пригодного встроенного")
    parser.add_argument("--srgb-profile", type=Path, default=None,
                        help=("Файл целевого sRGB-профиля; если не задан, используется "
                              "встроенный sRGB-профиль Pillow и файл не нужен"))
    parser.add_argument("--quality", type=int, default=None, help="Качество JPEG, 0..100 (по умолчанию 99)")
    parser.add_argument("--extension", default=None, help="Расширение JPEG без точки (по умолчанию jpg)")
    parser.add_argument("--intent", choices=[i.value for i in RenderingIntent], default=None,
                        help="Намерение рендеринга (по умолчанию relative)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Подробный журнал в stderr")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Разбирает аргументы, запускает конвертер и возвращает код выхода."""
    try:
        env_config = ConverterConfig.from_env()
    except ValueError as exc:
        logging.basicConfig(format=LOG_FORMAT)
        logger.error("Invalid configuration: %s", exc)
        return int(StatusCode.FATAL_ERROR)

    parser = build_parser(env_config.exit_code(StatusCode.FATAL_ERROR))
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format=LOG_FORMAT)

    try:
        config = env_config.with_overrides(
            backstop_profile=args.backstop_profile,
            srgb_profile=args.srgb_profile,
            jpeg_quality=args.quality,
            jpeg_extension=args.extension,
            intent=RenderingIntent(args.intent) if args.intent else None,
        )
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return env_config.exit_code(StatusCode.FATAL_ERROR)

    status = Converter(config).convert(args.input_image, args.output_stem)
    return config.exit_code(status)


if __name__ == "__main__":
    sys.exit(main())
