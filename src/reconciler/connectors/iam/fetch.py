"""
IAM Resource Fetchers Module.

This module contains functions for reading IAM users, roles and customer
managed policies. Attached policies are returned as ARNs; the connector maps
them back to repository names.
"""

from typing import List, Optional, Set

from botocore.exceptions import ClientError

from ....utils import is_not_found, parse_policy_document, remote_error_handler, setup_logging
from ...address import ResourceAddress
from ...tags import from_aws_tags
from ...types import IAMClient
from .addr import PolicyAddress, RoleAddress, UserAddress
from .resource import Policy, Role, User

logger = setup_logging()

NOT_FOUND_CODES = ("NoSuchEntity", "NoSuchEntityException")

AWS_MANAGED_POLICY_PREFIX = "arn:aws:iam::aws:policy/"


def user_arn(account_id: str, name: str) -> str:
    return f"arn:aws:iam::{account_id}:user/{name}"


def role_arn(account_id: str, name: str) -> str:
    return f"arn:aws:iam::{account_id}:role/{name}"


def policy_arn(account_id: str, name: str) -> str:
    return f"arn:aws:iam::{account_id}:policy/{name}"


def arn_account_id(arn: str) -> str:
    """The account field of an ARN (arn:partition:service:region:account:resource)."""
    parts = arn.split(":")
    return parts[4] if len(parts) > 5 else ""


def _attached_policies(client: IAMClient, operation: str, **kwargs: str) -> Set[str]:
    paginator = client.get_paginator(operation)
    arns: Set[str] = set()
    for page in paginator.paginate(**kwargs):
        for policy in page.get("AttachedPolicies", []):
            if policy.get("PolicyArn"):
                arns.add(policy["PolicyArn"])
    return arns


@remote_error_handler("GetUser")
def get_user(client: IAMClient, name: str) -> Optional[User]:
    try:
        user = client.get_user(UserName=name)["User"]
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise
    return User(
        attached_policies=_attached_policies(client, "list_attached_user_policies", UserName=name),
        tags=from_aws_tags(user.get("Tags")),
    )


@remote_error_handler("GetRole")
def get_role(client: IAMClient, name: str) -> Optional[Role]:
    try:
        role = client.get_role(RoleName=name)["Role"]
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise
    return Role(
        assume_role_policy_document=parse_policy_document(role.get("AssumeRolePolicyDocument")),
        attached_policies=_attached_policies(client, "list_attached_role_policies", RoleName=name),
        tags=from_aws_tags(role.get("Tags")),
    )


@remote_error_handler("GetPolicy")
def get_policy(client: IAMClient, arn: str) -> Optional[Policy]:
    try:
        policy = client.get_policy(PolicyArn=arn)["Policy"]
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise
    version = client.get_policy_version(PolicyArn=arn, VersionId=policy["DefaultVersionId"])["PolicyVersion"]
    return Policy(
        policy_document=parse_policy_document(version.get("Document")),
        tags=from_aws_tags(policy.get("Tags")),
    )


@remote_error_handler("ListIamResources")
def list_iam_resources(client: IAMClient, account_id: Optional[str]) -> List[ResourceAddress]:
    """
    List users, roles and customer managed policies owned by the account.

    Service-linked roles are managed by AWS and are not listed.
    """
    results: List[ResourceAddress] = []

    def owned(arn: str) -> bool:
        return account_id is None or arn_account_id(arn) == account_id

    for page in client.get_paginator("list_users").paginate():
        for user in page.get("Users", []):
            if owned(user.get("Arn", "")):
                results.append(UserAddress(user["UserName"]))

    for page in client.get_paginator("list_roles").paginate():
        for role in page.get("Roles", []):
            if role.get("Path", "").startswith("/aws-service-role/"):
                continue
            if owned(role.get("Arn", "")):
                results.append(RoleAddress(role["RoleName"]))

    for page in client.get_paginator("list_policies").paginate(Scope="Local"):
        for policy in page.get("Policies", []):
            if owned(policy.get("Arn", "")):
                results.append(PolicyAddress(policy["PolicyName"]))

    logger.debug(f"[IAM] Listed {len(results)} resource(s)")
    return results
