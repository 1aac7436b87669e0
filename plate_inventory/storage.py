# plate_inventory/storage.py

import boto3
import logging
from botocore.exceptions import ClientError, NoCredentialsError, BotoCoreError
from io import BytesIO
from typing import Optional, Tuple
import uuid
import os
from datetime import datetime
from .config import (
    AWS_ACCESS_KEY_ID,
    AWS_SECRET_ACCESS_KEY,
    AWS_S3_BUCKET_NAME,
    AWS_S3_REGION,
    AWS_S3_BASE_URL
)
from .exceptions import UploadFailure

logger = logging.getLogger(__name__)

IMAGE_PREFIX = "car_images"

CONTENT_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.bmp': 'image/bmp',
    '.tiff': 'image/tiff',
    '.webp': 'image/webp'
}


class S3Manager:
    """Blob store for captured plate images, backed by an S3 bucket"""

    def __init__(self, client=None, bucket_name: str = AWS_S3_BUCKET_NAME, base_url: str = AWS_S3_BASE_URL):
        self.bucket_name = bucket_name
        self.region = AWS_S3_REGION
        self.base_url = base_url.rstrip('/')
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = self._initialize_client()
        return self._client

    def _initialize_client(self):
        """Creates the S3 client on first use and checks the bucket is reachable"""
        if not all([AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, self.bucket_name, self.region]):
            raise UploadFailure("AWS S3 credentials not properly configured")

        try:
            client = boto3.client(
                's3',
                aws_access_key_id=AWS_ACCESS_KEY_ID,
                aws_secret_access_key=AWS_SECRET_ACCESS_KEY,
                region_name=self.region
            )
            client.head_bucket(Bucket=self.bucket_name)
            logger.info(f"S3 client initialized successfully for bucket: {self.bucket_name}")
            return client

        except NoCredentialsError:
            logger.error("AWS credentials not found")
            raise UploadFailure("AWS credentials not configured")
        except ClientError as e:
            error_code = e.response['Error']['Code']
            if error_code == '404':
                logger.error(f"S3 bucket '{self.bucket_name}' not found")
                raise UploadFailure(f"S3 bucket '{self.bucket_name}' not found")
            elif error_code == '403':
                logger.error(f"Access denied to S3 bucket '{self.bucket_name}'")
                raise UploadFailure("Access denied to S3 bucket")
            logger.error(f"S3 initialization error: {e}")
            raise UploadFailure(f"S3 initialization failed: {error_code}")
        except BotoCoreError as e:
            logger.error(f"Unexpected error initializing S3: {e}")
            raise UploadFailure(f"S3 initialization failed: {e}")

    def generate_key(self, filename: str) -> str:
        """Object key: car_images/YYYY/MM/DD/<timestamp>-<uuid><ext>"""
        ext = os.path.splitext(filename)[1] or '.jpg'
        now = datetime.utcnow()
        date_path = f"{now.year:04d}/{now.month:02d}/{now.day:02d}"
        return f"{IMAGE_PREFIX}/{date_path}/{int(now.timestamp() * 1000)}-{uuid.uuid4().hex}{ext}"

    def upload_image(self, image_bytes: bytes, filename: str, content_type: Optional[str] = None) -> Tuple[str, str]:
        """
        Upload an image as a public-read object.

        Returns:
            Tuple of (object key, public URL)

        Raises:
            UploadFailure: the bucket is unreachable or rejected the object.
        """
        key = self.generate_key(filename)
        if not content_type:
            ext = os.path.splitext(filename)[1].lower()
            content_type = CONTENT_TYPES.get(ext, 'image/jpeg')

        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=BytesIO(image_bytes),
                ContentType=content_type,
                ACL='public-read',
                Metadata={
                    'original_filename': filename,
                    'upload_timestamp': datetime.utcnow().isoformat(),
                    'service': 'plate-inventory'
                }
            )
        except ClientError as e:
            error_code = e.response['Error']['Code']
            logger.error(f"S3 upload failed with error {error_code}: {e}")
            raise UploadFailure(f"Failed to upload image to S3: {error_code}")
        except BotoCoreError as e:
            logger.error(f"Unexpected error during S3 upload: {e}")
            raise UploadFailure(f"Failed to upload image to S3: {e}")

        logger.info(f"Successfully uploaded image to S3: {key}")
        return key, self.get_image_url(key)

    def get_image_url(self, key: str) -> str:
        """Public URL for an object key"""
        return f"{self.base_url}/{key}"


_s3_manager: Optional[S3Manager] = None


def get_blob_store() -> S3Manager:
    global _s3_manager
    if _s3_manager is None:
        _s3_manager = S3Manager()
    return _s3_manager
