"""
KMS Resource Fetchers Module.

This module contains functions for reading customer managed keys and aliases.
AWS managed keys and keys pending deletion are treated as absent.
"""

from typing import Any, Dict, List, Optional, Tuple

from botocore.exceptions import ClientError

from ....utils import is_not_found, parse_policy_document, remote_error_handler, setup_logging
from ...address import ResourceAddress
from ...tags import from_aws_tags
from ...types import KMSClient, Outputs, Tags
from .addr import AliasAddress, KeyAddress
from .resource import Alias, Key

logger = setup_logging()

NOT_FOUND_CODES = ("NotFoundException",)

ALIAS_PREFIX = "alias/"

# Key states in which the key is, for our purposes, already gone
GONE_STATES = ("PendingDeletion", "PendingReplicaDeletion")


def alias_full_name(alias_name: str) -> str:
    return f"{ALIAS_PREFIX}{alias_name}"


def describe_key(client: KMSClient, key_id: str) -> Optional[Dict[str, Any]]:
    try:
        metadata = client.describe_key(KeyId=key_id)["KeyMetadata"]
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise
    if metadata.get("KeyManager") == "AWS" or metadata.get("KeyState") in GONE_STATES:
        return None
    return metadata


def list_key_tags(client: KMSClient, key_id: str) -> Tags:
    tags: Tags = {}
    for page in client.get_paginator("list_resource_tags").paginate(KeyId=key_id):
        tags.update(from_aws_tags(page.get("Tags"), "TagKey", "TagValue"))
    return tags


@remote_error_handler("GetKey")
def get_key(client: KMSClient, key_id: str) -> Optional[Tuple[Key, Outputs]]:
    metadata = describe_key(client, key_id)
    if metadata is None:
        return None

    key_spec = metadata.get("KeySpec", "SYMMETRIC_DEFAULT")
    rotation = None
    if key_spec == "SYMMETRIC_DEFAULT" and metadata.get("Origin", "AWS_KMS") == "AWS_KMS":
        rotation = client.get_key_rotation_status(KeyId=key_id).get("KeyRotationEnabled", False)

    policy = client.get_key_policy(KeyId=key_id, PolicyName="default").get("Policy")

    key = Key(
        description=metadata.get("Description", ""),
        key_usage=metadata.get("KeyUsage", "ENCRYPT_DECRYPT"),
        key_spec=key_spec,
        multi_region=metadata.get("MultiRegion", False),
        enabled=metadata.get("Enabled", True),
        key_rotation_enabled=rotation,
        policy=parse_policy_document(policy) if policy else None,
        tags=list_key_tags(client, key_id),
    )
    return key, {"key_id": metadata["KeyId"], "key_arn": metadata.get("Arn")}


def find_alias(client: KMSClient, alias_name: str) -> Optional[Dict[str, Any]]:
    """Return the alias entry for a name, or None; aliases cannot be described directly."""
    full_name = alias_full_name(alias_name)
    for page in client.get_paginator("list_aliases").paginate():
        for alias in page.get("Aliases", []):
            if alias.get("AliasName") == full_name:
                return alias
    return None


@remote_error_handler("GetAlias")
def get_alias(client: KMSClient, alias_name: str) -> Optional[Alias]:
    alias = find_alias(client, alias_name)
    if alias is None or not alias.get("TargetKeyId"):
        return None
    return Alias(target_key_id=alias["TargetKeyId"])


@remote_error_handler("ListKmsResources")
def list_kms_resources(client: KMSClient, region: str) -> List[ResourceAddress]:
    """
    List customer managed keys and the aliases that point at them.

    Aliases of AWS managed keys (alias/aws/...) are skipped.
    """
    results: List[ResourceAddress] = []
    for page in client.get_paginator("list_keys").paginate():
        for entry in page.get("Keys", []):
            key_id = entry.get("KeyId")
            if key_id and describe_key(client, key_id) is not None:
                results.append(KeyAddress(region, key_id))

    for page in client.get_paginator("list_aliases").paginate():
        for alias in page.get("Aliases", []):
            name = alias.get("AliasName", "")
            if not name.startswith(ALIAS_PREFIX) or name.startswith(f"{ALIAS_PREFIX}aws/"):
                continue
            if not alias.get("TargetKeyId"):
                continue
            alias_name = name[len(ALIAS_PREFIX) :]
            # Nested alias names do not fit a single path segment
            if "/" in alias_name:
                continue
            results.append(AliasAddress(region, alias_name))

    logger.debug(f"[KMS] Listed {len(results)} resource(s) in {region}")
    return results
