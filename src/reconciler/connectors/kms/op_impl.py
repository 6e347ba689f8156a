"""
KMS operation implementations.
"""

from typing import Any, Dict, Mapping

from ....utils import dump_policy_document, partial_outputs, remote_error_handler
from ...op import OpExecResponse
from ...tags import tag_diff, to_aws_tags
from ...types import KMSClient
from .fetch import alias_full_name
from .resource import Key


@remote_error_handler("CreateKey")
def create_key(client: KMSClient, region: str, key: Key) -> OpExecResponse:
    """
    Create a key, then apply the settings CreateKey does not accept.

    Returns:
        OpExecResponse with key_id and key_arn outputs
    """
    kwargs: Dict[str, Any] = {
        "Description": key.description,
        "KeyUsage": key.key_usage,
        "KeySpec": key.key_spec,
        "MultiRegion": key.multi_region,
    }
    if key.policy is not None:
        kwargs["Policy"] = dump_policy_document(key.policy)
    if key.tags:
        kwargs["Tags"] = to_aws_tags(key.tags, "TagKey", "TagValue")

    metadata = client.create_key(**kwargs)["KeyMetadata"]
    key_id = metadata["KeyId"]
    outputs = {"key_id": key_id, "key_arn": metadata["Arn"]}

    with partial_outputs("CreateKey", outputs):
        if key.key_rotation_enabled:
            client.enable_key_rotation(KeyId=key_id)
        if not key.enabled:
            client.disable_key(KeyId=key_id)

    return OpExecResponse(dict(outputs), f"Created KMS key `{key_id}` in region `{region}`")


@remote_error_handler("UpdateKeyDescription")
def update_key_description(client: KMSClient, key_id: str, description: str) -> OpExecResponse:
    client.update_key_description(KeyId=key_id, Description=description)
    return OpExecResponse({}, f"Updated description of KMS key `{key_id}`")


@remote_error_handler("UpdateKeyTags")
def update_key_tags(client: KMSClient, key_id: str, old: Mapping[str, str], new: Mapping[str, str]) -> OpExecResponse:
    keys_to_remove, pairs_to_set = tag_diff(old, new)
    if keys_to_remove:
        client.untag_resource(KeyId=key_id, TagKeys=sorted(keys_to_remove))
    if pairs_to_set:
        client.tag_resource(KeyId=key_id, Tags=to_aws_tags(pairs_to_set, "TagKey", "TagValue"))
    return OpExecResponse({}, f"Updated tags for KMS key `{key_id}`")


@remote_error_handler("PutKeyPolicy")
def update_key_policy(client: KMSClient, key_id: str, policy: Dict[str, Any]) -> OpExecResponse:
    client.put_key_policy(KeyId=key_id, PolicyName="default", Policy=dump_policy_document(policy))
    return OpExecResponse({}, f"Updated key policy of KMS key `{key_id}`")


@remote_error_handler("EnableKey")
def enable_key(client: KMSClient, key_id: str) -> OpExecResponse:
    client.enable_key(KeyId=key_id)
    return OpExecResponse({}, f"Enabled KMS key `{key_id}`")


@remote_error_handler("DisableKey")
def disable_key(client: KMSClient, key_id: str) -> OpExecResponse:
    client.disable_key(KeyId=key_id)
    return OpExecResponse({}, f"Disabled KMS key `{key_id}`")


@remote_error_handler("EnableKeyRotation")
def enable_key_rotation(client: KMSClient, key_id: str) -> OpExecResponse:
    client.enable_key_rotation(KeyId=key_id)
    return OpExecResponse({}, f"Enabled automatic key rotation for KMS key `{key_id}`")


@remote_error_handler("DisableKeyRotation")
def disable_key_rotation(client: KMSClient, key_id: str) -> OpExecResponse:
    client.disable_key_rotation(KeyId=key_id)
    return OpExecResponse({}, f"Disabled automatic key rotation for KMS key `{key_id}`")


@remote_error_handler("ScheduleKeyDeletion")
def delete_key(client: KMSClient, key_id: str, pending_window_in_days: int) -> OpExecResponse:
    client.schedule_key_deletion(KeyId=key_id, PendingWindowInDays=pending_window_in_days)
    return OpExecResponse(
        {"key_id": None, "key_arn": None},
        f"Scheduled deletion of KMS key `{key_id}` in {pending_window_in_days} days",
    )


@remote_error_handler("CreateAlias")
def create_alias(client: KMSClient, alias_name: str, target_key_id: str) -> OpExecResponse:
    client.create_alias(AliasName=alias_full_name(alias_name), TargetKeyId=target_key_id)
    return OpExecResponse(
        {"alias_name": alias_full_name(alias_name)}, f"Created KMS alias `{alias_name}` for key `{target_key_id}`"
    )


@remote_error_handler("UpdateAlias")
def update_alias(client: KMSClient, alias_name: str, target_key_id: str) -> OpExecResponse:
    client.update_alias(AliasName=alias_full_name(alias_name), TargetKeyId=target_key_id)
    return OpExecResponse({}, f"Pointed KMS alias `{alias_name}` at key `{target_key_id}`")


@remote_error_handler("DeleteAlias")
def delete_alias(client: KMSClient, alias_name: str) -> OpExecResponse:
    client.delete_alias(AliasName=alias_full_name(alias_name))
    return OpExecResponse({"alias_name": None}, f"Deleted KMS alias `{alias_name}`")
