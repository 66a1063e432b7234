"""Entry point the pool manager uses to create nearline storage instances."""

from __future__ import annotations

from nearline.services.connector import S3NearlineStorage

PROVIDER_NAME = "org.dcache.nearline-s3"
PROVIDER_DESCRIPTION = "Enables communication to an S3-endpoint"


class S3NearlineStorageProvider:
    @property
    def name(self) -> str:
        return PROVIDER_NAME

    @property
    def description(self) -> str:
        return PROVIDER_DESCRIPTION

    def create_nearline_storage(self, hsm_type: str, hsm_name: str) -> S3NearlineStorage:
        return S3NearlineStorage(hsm_type, hsm_name)
