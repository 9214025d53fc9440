from docspace.core.config import Settings
from docspace.storage.base import FileStorage, make_object_key
from docspace.storage.local import LocalFileStorage
from docspace.storage.s3 import S3FileStorage


def build_storage(settings: Settings) -> FileStorage:
    """File store selected by ``storage_backend``"""
    if settings.storage_backend == "s3":
        return S3FileStorage(
            settings.s3_bucket,
            region_name=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )
    return LocalFileStorage(settings.upload_dir)


__all__ = [
    "FileStorage",
    "LocalFileStorage",
    "S3FileStorage",
    "build_storage",
    "make_object_key",
]
