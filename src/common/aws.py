"""S3 helpers for the cold-storage archive bucket."""

import logging
import os

import boto3
from botocore.exceptions import ClientError
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def get_s3_client():
    """Create S3 client for the archive bucket.

    ARCHIVE_ENDPOINT lets the archive live on any S3-compatible service;
    credentials fall back to the default boto3 chain when unset.
    """
    return boto3.client(
        "s3",
        endpoint_url=os.environ.get("ARCHIVE_ENDPOINT") or None,
        region_name=os.environ.get("ARCHIVE_REGION") or None,
        aws_access_key_id=os.environ.get("ARCHIVE_ACCESS_KEY_ID") or None,
        aws_secret_access_key=os.environ.get("ARCHIVE_SECRET_ACCESS_KEY") or None,
    )


def build_archive_key(site_identifier: str, year: int, week: int, filename: str) -> str:
    """Build an archive key path partitioned by site and ISO week."""
    return f"{site_identifier}/{year}/{week}/{filename}"


def put_object_bytes(s3, bucket: str, key: str, body: bytes, content_type: str = "application/json") -> None:
    """Upload bytes to S3."""
    s3.put_object(
        Bucket=bucket,
        Key=key,
        Body=body,
        ContentType=content_type,
    )
    logger.debug("Uploaded %d bytes to s3://%s/%s", len(body), bucket, key)


def get_object_bytes(s3, bucket: str, key: str) -> bytes | None:
    """Download an object, returning None when the key does not exist."""
    try:
        response = s3.get_object(Bucket=bucket, Key=key)
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
            return None
        raise
    return response["Body"].read()


def list_object_keys(s3, bucket: str, prefix: str) -> list[str]:
    """List all keys under an S3 prefix."""
    keys = []
    paginator = s3.get_paginator("list_objects_v2")

    for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
        for obj in page.get("Contents", []):
            keys.append(obj["Key"])

    return keys
