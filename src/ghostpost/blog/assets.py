"""Generate a feature image, upload it, and attach it to the current post.

The three steps run strictly in order and the first failure aborts. If
the attach step fails, the upload has already happened and the asset
stays in the CDN unattached; it is logged, not cleaned up.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Protocol

from ghostpost.blog.models import AttachmentResult, FeatureImage, GeneratedImage, PostPatch, UploadResult
from ghostpost.blog.session import PostSession
from ghostpost.errors import GhostpostError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

ASPECT_RATIO_SIZES: dict[str, str] = {
    "square": "1024x1024",
    "tall": "1024x1536",
    "wide": "1536x1024",
}
DEFAULT_ASPECT_RATIO = "square"


class ImageModel(Protocol):
    def generate_image(self, prompt: str, size: str = ..., n: int = ...) -> list[GeneratedImage]: ...


class CDN(Protocol):
    def upload(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> UploadResult: ...


def size_for_aspect_ratio(aspect_ratio: str | None) -> str:
    """Map square/tall/wide to a pixel size; anything else is square."""
    return ASPECT_RATIO_SIZES.get(aspect_ratio or DEFAULT_ASPECT_RATIO, ASPECT_RATIO_SIZES["square"])


def image_filename(image: GeneratedImage) -> str:
    """Return a fresh unique filename carrying the image's extension."""
    return f"{uuid.uuid4()}.{image.extension or 'png'}"


class AssetPipeline:
    """Attach AI-generated feature images to a session's current post."""

    def __init__(self, image_model: ImageModel, cdn: CDN) -> None:
        self.image_model = image_model
        self.cdn = cdn

    def attach_feature_image(
        self,
        session: PostSession,
        prompt: str,
        aspect_ratio: str = DEFAULT_ASPECT_RATIO,
    ) -> AttachmentResult:
        """Run generate -> upload -> attach for the session's current post.

        Raises:
            StateError: No post is selected (checked before any call).
            ValidationError: The prompt is empty.
            UpstreamError: Any of the three external steps failed.
        """
        current = session.require_current("generating an image")
        if not prompt or not prompt.strip():
            raise ValidationError(
                "An image prompt is required", suggestion="Describe the image to generate"
            )

        # 1. generate
        size = size_for_aspect_ratio(aspect_ratio)
        logger.info("Generating feature image for '%s' (%s)", current.title, size)
        try:
            images = self.image_model.generate_image(prompt=prompt, size=size, n=1)
        except GhostpostError:
            raise
        except Exception as exc:
            raise UpstreamError(f"Image generation failed: {exc}") from exc
        if not images:
            raise UpstreamError("The image model returned no image")
        image = images[0]

        # 2. upload
        filename = image_filename(image)
        upload = self._upload(image, filename, prompt)

        # 3. attach
        patch = PostPatch(feature_image=FeatureImage(url=upload.url, id=upload.id))
        try:
            post = session.update(patch)
        except GhostpostError:
            logger.warning(
                "Image %s was uploaded but could not be attached to post %s; it remains in the CDN",
                upload.url,
                current.id,
            )
            raise

        logger.info("Set feature image of '%s' to %s", post.title, upload.url)
        return AttachmentResult(post=post, upload=upload)

    def _upload(self, image: GeneratedImage, filename: str, prompt: str) -> UploadResult:
        try:
            return self.cdn.upload(
                image.data,
                filename=filename,
                content_type=image.media_type,
                metadata={"prompt": prompt},
            )
        except GhostpostError:
            raise
        except Exception as exc:
            raise UpstreamError(f"Failed to upload {filename}: {exc}") from exc
