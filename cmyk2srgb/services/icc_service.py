"""ICC-преобразование CMYK -> sRGB через Pillow ImageCms (LittleCMS).

Политика выбора исходного профиля:
1. Встроенный профиль, если он есть и с ним удаётся построить и применить
   преобразование.
2. Иначе резервный (backstop) CMYK-профиль из конфигурации. Он читается
   лениво, только когда действительно нужен.

Если профиль не поддерживает запрошенное намерение рендеринга, берётся
намерение по умолчанию из заголовка профиля; это предупреждение, не ошибка.
"""
from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image, ImageCms

from cmyk2srgb.models.errors import FailureReason, TransformError
from cmyk2srgb.models.image_model import ImageData, TransformResult
from cmyk2srgb.models.status import ProfileSource, RenderingIntent

logger = logging.getLogger(__name__)

# ошибки, которые Pillow/LittleCMS выдают на битые или неподходящие профили
_PROFILE_ERRORS = (ImageCms.PyCMSError, OSError, TypeError, ValueError)


class IccService:
    def __init__(self, backstop_profile: Path, srgb_profile: Optional[Path], intent: RenderingIntent) -> None:
        self.backstop_profile = backstop_profile
        self.srgb_profile = srgb_profile
        self.intent = intent

    def to_srgb(self, image: ImageData) -> TransformResult:
        """Переводит CMYK-изображение в sRGB.

        Args:
            image: Открытое CMYK-изображение; растр декодируется здесь.

        Returns:
            `TransformResult` с RGB-изображением и источником профиля.

        Raises:
            TransformError: растр не декодируется, целевой или резервный
                профиль непригоден, либо преобразование не удалось.
        """
        warnings: List[str] = []
        pil_image = image.pil_image
        try:
            pil_image.load()
        except (OSError, ValueError, SyntaxError) as exc:
            raise TransformError(FailureReason.DECODE_FAILED, f"Cannot decode {image.path}: {exc}") from exc

        target = self._load_target_profile()

        if image.icc_profile is not None:
            try:
                source = ImageCms.ImageCmsProfile(io.BytesIO(image.icc_profile))
                rgb, intent = self._apply(pil_image, source, target, warnings, "embedded profile")
            except _PROFILE_ERRORS as exc:
                self._warn(warnings, f"Embedded ICC profile of {image.path} is unusable ({exc}); using backstop profile")
                source_kind = ProfileSource.BACKSTOP_EMBEDDED_UNUSABLE
            else:
                return TransformResult(rgb, ProfileSource.EMBEDDED, intent, target.tobytes(), tuple(warnings))
        else:
            logger.info("No embedded ICC profile in %s; using backstop profile", image.path)
            source_kind = ProfileSource.BACKSTOP_NO_EMBEDDED

        backstop = self._load_backstop_profile()
        try:
            rgb, intent = self._apply(pil_image, backstop, target, warnings, "backstop profile")
        except _PROFILE_ERRORS as exc:
            raise TransformError(
                FailureReason.TRANSFORM_FAILED,
                f"Backstop profile {self.backstop_profile} cannot convert {image.path}: {exc}",
            ) from exc
        return TransformResult(rgb, source_kind, intent, target.tobytes(), tuple(warnings))

    def _apply(
        self,
        pil_image: Image.Image,
        source: ImageCms.ImageCmsProfile,
        target: ImageCms.ImageCmsProfile,
        warnings: List[str],
        label: str,
    ) -> Tuple[Image.Image, RenderingIntent]:
        intent = self._supported_intent(source, warnings, label)
        transform = ImageCms.buildTransform(
            source, target, "CMYK", "RGB", renderingIntent=intent.cms_intent,
        )
        rgb = ImageCms.applyTransform(pil_image, transform)
        if rgb is None:
            raise ImageCms.PyCMSError("transform produced no image")
        return rgb, intent

    def _supported_intent(self, profile: ImageCms.ImageCmsProfile, warnings: List[str], label: str) -> RenderingIntent:
        supported = ImageCms.isIntentSupported(profile, self.intent.cms_intent, ImageCms.Direction.INPUT)
        if supported == 1:
            return self.intent
        fallback = RenderingIntent.from_cms(ImageCms.getDefaultIntent(profile))
        self._warn(
            warnings,
            f"Intent {self.intent.value} not supported by {label}; falling back to default intent {fallback.value}",
        )
        return fallback

    def _load_target_profile(self) -> ImageCms.ImageCmsProfile:
        if self.srgb_profile is None:
            return ImageCms.ImageCmsProfile(ImageCms.createProfile("sRGB"))
        try:
            return ImageCms.getOpenProfile(str(self.srgb_profile))
        except _PROFILE_ERRORS as exc:
            raise TransformError(
                FailureReason.TARGET_PROFILE_UNUSABLE, f"Cannot read sRGB profile {self.srgb_profile}: {exc}",
            ) from exc

    def _load_backstop_profile(self) -> ImageCms.ImageCmsProfile:
        try:
            return ImageCms.getOpenProfile(str(self.backstop_profile))
        except _PROFILE_ERRORS as exc:
            raise TransformError(
                FailureReason.BACKSTOP_PROFILE_UNUSABLE,
                f"Cannot read backstop profile {self.backstop_profile}: {exc}",
            ) from exc

    @staticmethod
    def _warn(warnings: List[str], message: str) -> None:
        logger.warning(message)
        warnings.append(message)
