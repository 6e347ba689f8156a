"""
S3 Resource Fetchers Module.

This module contains functions for reading S3 buckets and their
configuration. A bucket that does not exist, or lives in another region,
reads as None.
"""

from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from ....utils import error_code, is_not_found, parse_policy_document, remote_error_handler, setup_logging
from ...address import ResourceAddress
from ...tags import from_aws_tags
from ...types import S3Client
from .addr import BucketAddress
from .resource import Acl, Bucket, Grant, PublicAccessBlock

logger = setup_logging()

NOT_FOUND_CODES = ("404", "NoSuchBucket", "NotFound")


def bucket_arn(name: str) -> str:
    return f"arn:aws:s3:::{name}"


def _bucket_region(client: S3Client, name: str) -> str:
    # us-east-1 is reported as an empty location constraint
    location = client.get_bucket_location(Bucket=name).get("LocationConstraint")
    return location or "us-east-1"


def _get_policy(client: S3Client, name: str) -> Optional[Dict[str, Any]]:
    try:
        response = client.get_bucket_policy(Bucket=name)
    except ClientError as e:
        if error_code(e) == "NoSuchBucketPolicy":
            return None
        raise
    return parse_policy_document(response.get("Policy"))


def _get_public_access_block(client: S3Client, name: str) -> Optional[PublicAccessBlock]:
    try:
        response = client.get_public_access_block(Bucket=name)
    except ClientError as e:
        if error_code(e) == "NoSuchPublicAccessBlockConfiguration":
            return None
        raise
    conf = response.get("PublicAccessBlockConfiguration", {})
    return PublicAccessBlock(
        block_public_acls=conf.get("BlockPublicAcls", False),
        ignore_public_acls=conf.get("IgnorePublicAcls", False),
        block_public_policy=conf.get("BlockPublicPolicy", False),
        restrict_public_buckets=conf.get("RestrictPublicBuckets", False),
    )


def _get_acl(client: S3Client, name: str) -> Acl:
    response = client.get_bucket_acl(Bucket=name)
    grants = [
        Grant(grantee_id=grant["Grantee"].get("ID", ""), permission=grant["Permission"])
        for grant in response.get("Grants", [])
        if grant.get("Grantee") and grant.get("Permission")
    ]
    return Acl(owner_id=response.get("Owner", {}).get("ID", ""), grants=grants)


def _get_tags(client: S3Client, name: str) -> Dict[str, str]:
    try:
        response = client.get_bucket_tagging(Bucket=name)
    except ClientError as e:
        if error_code(e) == "NoSuchTagSet":
            return {}
        raise
    return from_aws_tags(response.get("TagSet"))


@remote_error_handler("GetBucket")
def get_bucket(client: S3Client, region: str, name: str) -> Optional[Bucket]:
    try:
        client.head_bucket(Bucket=name)
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise

    if _bucket_region(client, name) != region:
        logger.debug(f"[S3] Bucket {name} exists outside {region}")
        return None

    return Bucket(
        policy=_get_policy(client, name),
        public_access_block=_get_public_access_block(client, name),
        acl=_get_acl(client, name),
        tags=_get_tags(client, name),
    )


@remote_error_handler("ListBuckets")
def list_buckets(client: S3Client, region: str) -> List[ResourceAddress]:
    results: List[ResourceAddress] = []
    kwargs: Dict[str, Any] = {"BucketRegion": region}
    while True:
        response = client.list_buckets(**kwargs)
        for bucket in response.get("Buckets", []):
            if bucket.get("Name"):
                results.append(BucketAddress(region, bucket["Name"]))
        token = response.get("ContinuationToken")
        if not token:
            break
        kwargs["ContinuationToken"] = token

    logger.debug(f"[S3] Listed {len(results)} bucket(s) in {region}")
    return results
