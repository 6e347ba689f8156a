"""
ECR Resource Fetchers Module.

This module contains functions for reading ECR repositories, their policies
and pull-through cache rules.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from botocore.exceptions import ClientError

from ....utils import is_not_found, parse_policy_document, remote_error_handler, setup_logging
from ...address import ResourceAddress
from ...tags import from_aws_tags
from ...types import ECRClient, Outputs
from .addr import LifecyclePolicyAddress, PullThroughCacheRuleAddress, RepositoryAddress, RepositoryPolicyAddress
from .resource import (
    EncryptionConfiguration,
    ImageScanningConfiguration,
    LifecyclePolicy,
    PullThroughCacheRule,
    Repository,
    RepositoryPolicy,
)

logger = setup_logging()

REPOSITORY_NOT_FOUND = ("RepositoryNotFoundException",)
POLICY_NOT_FOUND = REPOSITORY_NOT_FOUND + ("RepositoryPolicyNotFoundException",)
LIFECYCLE_NOT_FOUND = REPOSITORY_NOT_FOUND + ("LifecyclePolicyNotFoundException",)
RULE_NOT_FOUND = ("PullThroughCacheRuleNotFoundException",)


def repository_outputs(repo: Dict[str, Any]) -> Outputs:
    return {
        "repository_name": repo.get("repositoryName"),
        "repository_uri": repo.get("repositoryUri"),
        "repository_arn": repo.get("repositoryArn"),
    }


def describe_repository(client: ECRClient, name: str) -> Optional[Dict[str, Any]]:
    try:
        repositories = client.describe_repositories(repositoryNames=[name]).get("repositories", [])
    except ClientError as e:
        if is_not_found(e, REPOSITORY_NOT_FOUND):
            return None
        raise
    return repositories[0] if repositories else None


@remote_error_handler("DescribeRepositories")
def get_repository(client: ECRClient, name: str) -> Optional[Tuple[Repository, Outputs]]:
    repo = describe_repository(client, name)
    if repo is None:
        return None

    tags = client.list_tags_for_resource(resourceArn=repo["repositoryArn"]).get("tags", [])
    encryption = repo.get("encryptionConfiguration")
    scanning = repo.get("imageScanningConfiguration")

    repository = Repository(
        encryption_configuration=EncryptionConfiguration(
            encryption_type=encryption.get("encryptionType", "AES256"),
            kms_key=encryption.get("kmsKey"),
        )
        if encryption
        else None,
        image_tag_mutability=repo.get("imageTagMutability"),
        image_scanning_configuration=ImageScanningConfiguration(scan_on_push=scanning.get("scanOnPush", False))
        if scanning
        else None,
        tags=from_aws_tags(tags),
    )
    return repository, repository_outputs(repo)


@remote_error_handler("GetRepositoryPolicy")
def get_repository_policy(client: ECRClient, name: str) -> Optional[RepositoryPolicy]:
    try:
        response = client.get_repository_policy(repositoryName=name)
    except ClientError as e:
        if is_not_found(e, POLICY_NOT_FOUND):
            return None
        raise
    if not response.get("policyText"):
        return None
    return RepositoryPolicy(policy_document=parse_policy_document(response["policyText"]))


@remote_error_handler("GetLifecyclePolicy")
def get_lifecycle_policy(client: ECRClient, name: str) -> Optional[LifecyclePolicy]:
    try:
        response = client.get_lifecycle_policy(repositoryName=name)
    except ClientError as e:
        if is_not_found(e, LIFECYCLE_NOT_FOUND):
            return None
        raise
    if not response.get("lifecyclePolicyText"):
        return None
    return LifecyclePolicy(lifecycle_policy_text=json.loads(response["lifecyclePolicyText"]))


@remote_error_handler("DescribePullThroughCacheRules")
def get_pull_through_cache_rule(client: ECRClient, prefix: str) -> Optional[PullThroughCacheRule]:
    try:
        rules = client.describe_pull_through_cache_rules(ecrRepositoryPrefixes=[prefix]).get("pullThroughCacheRules", [])
    except ClientError as e:
        if is_not_found(e, RULE_NOT_FOUND):
            return None
        raise
    if not rules:
        return None
    return PullThroughCacheRule(
        upstream_registry_url=rules[0]["upstreamRegistryUrl"],
        credential_arn=rules[0].get("credentialArn"),
    )


@remote_error_handler("ListEcrResources")
def list_ecr_resources(client: ECRClient, region: str) -> List[ResourceAddress]:
    """
    List repositories with the policies attached to them, and the region's
    pull-through cache rules.

    Repository names containing "/" cannot be expressed as a single path
    segment and are skipped.
    """
    results: List[ResourceAddress] = []

    for page in client.get_paginator("describe_repositories").paginate():
        for repo in page.get("repositories", []):
            name = repo.get("repositoryName")
            if not name:
                continue
            if "/" in name:
                logger.debug(f"[ECR] Skipping namespaced repository {name}")
                continue
            results.append(RepositoryAddress(region, name))
            if get_repository_policy(client, name) is not None:
                results.append(RepositoryPolicyAddress(region, name))
            if get_lifecycle_policy(client, name) is not None:
                results.append(LifecyclePolicyAddress(region, name))

    for page in client.get_paginator("describe_pull_through_cache_rules").paginate():
        for rule in page.get("pullThroughCacheRules", []):
            prefix = rule.get("ecrRepositoryPrefix")
            if prefix and "/" not in prefix:
                results.append(PullThroughCacheRuleAddress(region, prefix))

    logger.debug(f"[ECR] Listed {len(results)} resource(s) in {region}")
    return results
