"""Post session, gateway and feature-image pipeline for a Ghost blog.

The gateway talks to Ghost, the session holds the one post a conversation
is working on, and the asset pipeline attaches generated feature images
to that post.
"""

from ghostpost.blog.models import (
    AttachmentResult,
    CreatePostData,
    FeatureImage,
    GeneratedImage,
    Post,
    PostPatch,
    PostStatus,
    UpdatePostData,
    UploadResult,
)

__all__ = [
    "AttachmentResult",
    "CreatePostData",
    "FeatureImage",
    "GeneratedImage",
    "Post",
    "PostPatch",
    "PostStatus",
    "UpdatePostData",
    "UploadResult",
]
