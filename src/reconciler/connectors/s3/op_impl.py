"""
S3 operation implementations.
"""

from typing import Any, Dict, Mapping, Optional

from botocore.exceptions import ClientError

from ....utils import dump_policy_document, error_code, partial_outputs, remote_error_handler, setup_logging
from ...op import OpExecResponse
from ...tags import to_aws_tags
from ...types import S3Client
from .fetch import bucket_arn
from .resource import Acl, Bucket, PublicAccessBlock

logger = setup_logging()


def _public_access_block_configuration(block: PublicAccessBlock) -> Dict[str, bool]:
    return {
        "BlockPublicAcls": block.block_public_acls,
        "IgnorePublicAcls": block.ignore_public_acls,
        "BlockPublicPolicy": block.block_public_policy,
        "RestrictPublicBuckets": block.restrict_public_buckets,
    }


def _access_control_policy(acl: Acl) -> Dict[str, Any]:
    return {
        "Owner": {"ID": acl.owner_id},
        "Grants": [
            {"Grantee": {"ID": grant.grantee_id, "Type": "CanonicalUser"}, "Permission": grant.permission}
            for grant in acl.grants
        ],
    }


def put_tags(client: S3Client, name: str, tags: Mapping[str, str]) -> None:
    """S3 replaces the whole tag set; an empty set is removed instead."""
    if tags:
        client.put_bucket_tagging(Bucket=name, Tagging={"TagSet": to_aws_tags(tags)})
    else:
        client.delete_bucket_tagging(Bucket=name)


@remote_error_handler("CreateBucket")
def create_bucket(client: S3Client, region: str, name: str, bucket: Bucket) -> OpExecResponse:
    kwargs: Dict[str, Any] = {"Bucket": name}
    # us-east-1 rejects an explicit location constraint
    if region != "us-east-1":
        kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}

    try:
        client.create_bucket(**kwargs)
        message = f"Created S3 bucket {name} in region {region}"
    except ClientError as e:
        if error_code(e) != "BucketAlreadyOwnedByYou":
            raise
        logger.info(f"[S3] Bucket {name} already exists and is owned by this account")
        message = f"S3 bucket {name} in region {region} already exists and is owned by you"

    outputs = {"bucket_arn": bucket_arn(name)}

    with partial_outputs("CreateBucket", outputs):
        if bucket.public_access_block is not None:
            client.put_public_access_block(
                Bucket=name,
                PublicAccessBlockConfiguration=_public_access_block_configuration(bucket.public_access_block),
            )
        if bucket.policy is not None:
            client.put_bucket_policy(Bucket=name, Policy=dump_policy_document(bucket.policy))
        if bucket.acl is not None:
            client.put_bucket_acl(Bucket=name, AccessControlPolicy=_access_control_policy(bucket.acl))
        if bucket.tags:
            put_tags(client, name, bucket.tags)

    return OpExecResponse(dict(outputs), message)


@remote_error_handler("UpdateBucketPolicy")
def update_bucket_policy(client: S3Client, name: str, policy: Optional[Dict[str, Any]]) -> OpExecResponse:
    if policy is None:
        client.delete_bucket_policy(Bucket=name)
        return OpExecResponse({}, f"Deleted policy for S3 bucket {name}")
    client.put_bucket_policy(Bucket=name, Policy=dump_policy_document(policy))
    return OpExecResponse({}, f"Updated policy for S3 bucket {name}")


@remote_error_handler("UpdateBucketPublicAccessBlock")
def update_bucket_public_access_block(client: S3Client, name: str, block: Optional[PublicAccessBlock]) -> OpExecResponse:
    if block is None:
        client.delete_public_access_block(Bucket=name)
        return OpExecResponse({}, f"Deleted public access block for S3 bucket {name}")
    client.put_public_access_block(Bucket=name, PublicAccessBlockConfiguration=_public_access_block_configuration(block))
    return OpExecResponse({}, f"Updated public access block for S3 bucket {name}")


@remote_error_handler("UpdateBucketAcl")
def update_bucket_acl(client: S3Client, name: str, acl: Acl) -> OpExecResponse:
    client.put_bucket_acl(Bucket=name, AccessControlPolicy=_access_control_policy(acl))
    return OpExecResponse({}, f"Updated ACL for S3 bucket {name}")


@remote_error_handler("UpdateBucketTags")
def update_bucket_tags(client: S3Client, name: str, tags: Mapping[str, str]) -> OpExecResponse:
    put_tags(client, name, tags)
    return OpExecResponse({}, f"Updated tags for S3 bucket {name}")


@remote_error_handler("DeleteBucket")
def delete_bucket(client: S3Client, name: str) -> OpExecResponse:
    client.delete_bucket(Bucket=name)
    return OpExecResponse({"bucket_arn": None}, f"Deleted S3 bucket {name}")
