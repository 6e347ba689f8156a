"""
IAM operation implementations.

Functions take physical ARNs for policies; user and role names are the same
in the repository and in AWS.
"""

from typing import Any, Callable, Dict, Mapping

from ....utils import dump_policy_document, remote_error_handler, setup_logging
from ...op import OpExecResponse
from ...tags import tag_diff, to_aws_tags
from ...types import IAMClient

logger = setup_logging()

# IAM keeps at most five versions of a managed policy
MAX_POLICY_VERSIONS = 5


def _update_tags(
    tag: Callable[..., Any], untag: Callable[..., Any], old: Mapping[str, str], new: Mapping[str, str], **ident: str
) -> None:
    keys_to_remove, pairs_to_set = tag_diff(old, new)
    if keys_to_remove:
        untag(TagKeys=sorted(keys_to_remove), **ident)
    if pairs_to_set:
        tag(Tags=to_aws_tags(pairs_to_set), **ident)


def _tags_kwargs(tags: Mapping[str, str]) -> Dict[str, Any]:
    return {"Tags": to_aws_tags(tags)} if tags else {}


# User


@remote_error_handler("CreateUser")
def create_user(client: IAMClient, name: str, tags: Mapping[str, str]) -> OpExecResponse:
    response = client.create_user(UserName=name, **_tags_kwargs(tags))
    return OpExecResponse({"user_arn": response["User"]["Arn"]}, f"Created IAM user `{name}`")


@remote_error_handler("AttachUserPolicy")
def attach_user_policy(client: IAMClient, name: str, policy_arn: str) -> OpExecResponse:
    client.attach_user_policy(UserName=name, PolicyArn=policy_arn)
    return OpExecResponse({}, f"Attached policy {policy_arn} for IAM user `{name}`")


@remote_error_handler("DetachUserPolicy")
def detach_user_policy(client: IAMClient, name: str, policy_arn: str) -> OpExecResponse:
    client.detach_user_policy(UserName=name, PolicyArn=policy_arn)
    return OpExecResponse({}, f"Detached policy {policy_arn} from IAM user `{name}`")


@remote_error_handler("UpdateUserTags")
def update_user_tags(client: IAMClient, name: str, old: Mapping[str, str], new: Mapping[str, str]) -> OpExecResponse:
    _update_tags(client.tag_user, client.untag_user, old, new, UserName=name)
    return OpExecResponse({}, f"Updated tags for IAM user `{name}`")


@remote_error_handler("DeleteUser")
def delete_user(client: IAMClient, name: str) -> OpExecResponse:
    # Managed policies must be detached before the user can be deleted
    for page in client.get_paginator("list_attached_user_policies").paginate(UserName=name):
        for policy in page.get("AttachedPolicies", []):
            client.detach_user_policy(UserName=name, PolicyArn=policy["PolicyArn"])
    client.delete_user(UserName=name)
    return OpExecResponse({"user_arn": None}, f"Deleted IAM user `{name}`")


# Role


@remote_error_handler("CreateRole")
def create_role(
    client: IAMClient, name: str, assume_role_policy: Dict[str, Any], tags: Mapping[str, str]
) -> OpExecResponse:
    response = client.create_role(
        RoleName=name,
        AssumeRolePolicyDocument=dump_policy_document(assume_role_policy),
        **_tags_kwargs(tags),
    )
    return OpExecResponse({"role_arn": response["Role"]["Arn"]}, f"Created IAM role `{name}`")


@remote_error_handler("UpdateAssumeRolePolicy")
def update_assume_role_policy(client: IAMClient, name: str, policy: Dict[str, Any]) -> OpExecResponse:
    client.update_assume_role_policy(RoleName=name, PolicyDocument=dump_policy_document(policy))
    return OpExecResponse({}, f"Updated AssumeRolePolicy for IAM role `{name}`")


@remote_error_handler("AttachRolePolicy")
def attach_role_policy(client: IAMClient, name: str, policy_arn: str) -> OpExecResponse:
    client.attach_role_policy(RoleName=name, PolicyArn=policy_arn)
    return OpExecResponse({}, f"Attached policy {policy_arn} for IAM role `{name}`")


@remote_error_handler("DetachRolePolicy")
def detach_role_policy(client: IAMClient, name: str, policy_arn: str) -> OpExecResponse:
    client.detach_role_policy(RoleName=name, PolicyArn=policy_arn)
    return OpExecResponse({}, f"Detached policy {policy_arn} from IAM role `{name}`")


@remote_error_handler("UpdateRoleTags")
def update_role_tags(client: IAMClient, name: str, old: Mapping[str, str], new: Mapping[str, str]) -> OpExecResponse:
    _update_tags(client.tag_role, client.untag_role, old, new, RoleName=name)
    return OpExecResponse({}, f"Updated tags for IAM role `{name}`")


@remote_error_handler("DeleteRole")
def delete_role(client: IAMClient, name: str) -> OpExecResponse:
    for page in client.get_paginator("list_attached_role_policies").paginate(RoleName=name):
        for policy in page.get("AttachedPolicies", []):
            client.detach_role_policy(RoleName=name, PolicyArn=policy["PolicyArn"])
    client.delete_role(RoleName=name)
    return OpExecResponse({"role_arn": None}, f"Deleted IAM role `{name}`")


# Policy


@remote_error_handler("CreatePolicy")
def create_policy(client: IAMClient, name: str, document: Dict[str, Any], tags: Mapping[str, str]) -> OpExecResponse:
    response = client.create_policy(
        PolicyName=name,
        PolicyDocument=dump_policy_document(document),
        **_tags_kwargs(tags),
    )
    return OpExecResponse({"policy_arn": response["Policy"]["Arn"]}, f"Created IAM policy `{name}`")


@remote_error_handler("UpdatePolicyDocument")
def update_policy_document(client: IAMClient, arn: str, document: Dict[str, Any]) -> OpExecResponse:
    versions = client.list_policy_versions(PolicyArn=arn).get("Versions", [])
    if len(versions) >= MAX_POLICY_VERSIONS:
        stale = sorted((v for v in versions if not v.get("IsDefaultVersion")), key=lambda v: v["CreateDate"])
        if stale:
            logger.info(f"[IAM] Deleting policy version {stale[0]['VersionId']} of {arn} to make room")
            client.delete_policy_version(PolicyArn=arn, VersionId=stale[0]["VersionId"])

    client.create_policy_version(PolicyArn=arn, PolicyDocument=dump_policy_document(document), SetAsDefault=True)
    return OpExecResponse({}, f"Updated policy document for IAM policy {arn}")


@remote_error_handler("UpdatePolicyTags")
def update_policy_tags(client: IAMClient, arn: str, old: Mapping[str, str], new: Mapping[str, str]) -> OpExecResponse:
    _update_tags(client.tag_policy, client.untag_policy, old, new, PolicyArn=arn)
    return OpExecResponse({}, f"Updated tags for IAM policy {arn}")


@remote_error_handler("DeletePolicy")
def delete_policy(client: IAMClient, arn: str) -> OpExecResponse:
    # Non-default versions must be removed first
    for version in client.list_policy_versions(PolicyArn=arn).get("Versions", []):
        if not version.get("IsDefaultVersion"):
            client.delete_policy_version(PolicyArn=arn, VersionId=version["VersionId"])
    client.delete_policy(PolicyArn=arn)
    return OpExecResponse({"policy_arn": None}, f"Deleted IAM policy {arn}")
