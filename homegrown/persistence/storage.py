# Avatar bucket access (S3)
import os
import traceback

import boto3
from botocore.exceptions import ClientError

from homegrown.common.logger import get_logger

logger = get_logger(__name__)

AVATAR_BUCKET = os.getenv("HOMEGROWN_AVATAR_BUCKET", "profile-photos")
STORAGE_PUBLIC_URL = os.getenv("HOMEGROWN_STORAGE_PUBLIC_URL")

ALLOWED_EXTENSIONS = {"png", "jpg", "jpeg", "gif"}
LIST_LIMIT = 100


def allowed_file(filename):
    return "." in filename and \
           filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def _make_client():
    return boto3.client(
        "s3",
        aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY"),
        region_name=os.environ.get("AWS_S3_REGION"),
    )


class AvatarStorage:
    def __init__(self, bucket=AVATAR_BUCKET, public_base_url=STORAGE_PUBLIC_URL, client=None):
        self.bucket = bucket
        self.public_base_url = (public_base_url or f"https://{bucket}.s3.amazonaws.com").rstrip("/")
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = _make_client()
        return self._client

    def list_files(self, prefix):
        """File names (without the prefix) directly under ``prefix``."""
        try:
            response = self.client.list_objects_v2(
                Bucket=self.bucket,
                Prefix=prefix,
                MaxKeys=LIST_LIMIT,
            )
        except ClientError as e:
            logger.error(f"[storage] listing {prefix} failed: {str(e)}")
            return []

        names = []
        for obj in response.get("Contents", []):
            name = obj["Key"][len(prefix):]
            if name and "/" not in name:
                names.append(name)
        return names

    def public_url(self, path):
        return f"{self.public_base_url}/{path}"

    def upload_avatar(self, user_id, fileobj, filename, content_type=None):
        if not allowed_file(filename):
            raise ValueError("Avatar must be a png, jpg, jpeg or gif file")

        ext = filename.rsplit(".", 1)[1].lower()
        object_key = f"{user_id}/avatar.{ext}"

        extra = {"ContentType": content_type} if content_type else {}
        try:
            fileobj.seek(0)
            self.client.upload_fileobj(
                fileobj,
                self.bucket,
                object_key,
                ExtraArgs=extra,
            )
        except ClientError as e:
            logger.error(f"[storage] avatar upload failed for {user_id}: {str(e)}")
            logger.error(traceback.format_exc())
            raise

        # An older avatar with another extension would shadow the new one
        for name in self.list_files(f"{user_id}/"):
            if name.lower().startswith("avatar.") and name != f"avatar.{ext}":
                self._delete(f"{user_id}/{name}")

        logger.info(f"[storage] uploaded avatar key={object_key}")
        return object_key

    def _delete(self, object_key):
        try:
            self.client.delete_object(Bucket=self.bucket, Key=object_key)
        except ClientError as e:
            logger.error(f"[storage] removing stale avatar {object_key} failed: {str(e)}")
