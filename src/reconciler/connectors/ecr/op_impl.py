"""
ECR operation implementations.
"""

import json
from typing import Any, Dict, Mapping, Optional

from botocore.exceptions import ClientError

from ....utils import dump_policy_document, is_not_found, remote_error_handler, setup_logging
from ...errors import RemoteError
from ...op import OpExecResponse
from ...tags import tag_diff, to_aws_tags
from ...types import ECRClient
from .fetch import LIFECYCLE_NOT_FOUND, POLICY_NOT_FOUND, describe_repository, repository_outputs
from .resource import Repository

logger = setup_logging()


@remote_error_handler("CreateRepository")
def create_repository(client: ECRClient, name: str, repository: Repository) -> OpExecResponse:
    kwargs: Dict[str, Any] = {"repositoryName": name}
    if repository.image_tag_mutability:
        kwargs["imageTagMutability"] = repository.image_tag_mutability
    if repository.encryption_configuration is not None:
        encryption: Dict[str, str] = {"encryptionType": repository.encryption_configuration.encryption_type}
        if repository.encryption_configuration.kms_key:
            encryption["kmsKey"] = repository.encryption_configuration.kms_key
        kwargs["encryptionConfiguration"] = encryption
    if repository.image_scanning_configuration is not None:
        kwargs["imageScanningConfiguration"] = {"scanOnPush": repository.image_scanning_configuration.scan_on_push}
    if repository.tags:
        kwargs["tags"] = to_aws_tags(repository.tags)

    created = client.create_repository(**kwargs)["repository"]
    return OpExecResponse(repository_outputs(created), f"Created ECR repository {name}")


@remote_error_handler("UpdateRepositoryTags")
def update_repository_tags(client: ECRClient, name: str, old: Mapping[str, str], new: Mapping[str, str]) -> OpExecResponse:
    repo = describe_repository(client, name)
    if repo is None:
        raise RemoteError("UpdateRepositoryTags", LookupError(f"repository {name} not found"))
    arn = repo["repositoryArn"]

    keys_to_remove, pairs_to_set = tag_diff(old, new)
    if keys_to_remove:
        client.untag_resource(resourceArn=arn, tagKeys=sorted(keys_to_remove))
    if pairs_to_set:
        client.tag_resource(resourceArn=arn, tags=to_aws_tags(pairs_to_set))
    return OpExecResponse({}, f"Updated tags for ECR repository {name}")


@remote_error_handler("PutImageTagMutability")
def update_image_tag_mutability(client: ECRClient, name: str, mutability: str) -> OpExecResponse:
    client.put_image_tag_mutability(repositoryName=name, imageTagMutability=mutability)
    return OpExecResponse({}, f"Set image tag mutability to {mutability} for ECR repository {name}")


@remote_error_handler("PutImageScanningConfiguration")
def update_image_scanning_configuration(client: ECRClient, name: str, scan_on_push: bool) -> OpExecResponse:
    client.put_image_scanning_configuration(
        repositoryName=name, imageScanningConfiguration={"scanOnPush": scan_on_push}
    )
    return OpExecResponse({}, f"Set scan_on_push to {scan_on_push} for ECR repository {name}")


@remote_error_handler("DeleteRepository")
def delete_repository(client: ECRClient, name: str, force: bool) -> OpExecResponse:
    client.delete_repository(repositoryName=name, force=force)
    return OpExecResponse(
        {"repository_name": None, "repository_uri": None, "repository_arn": None},
        f"Deleted ECR repository {name}",
    )


@remote_error_handler("SetRepositoryPolicy")
def set_repository_policy(client: ECRClient, name: str, policy: Dict[str, Any]) -> OpExecResponse:
    client.set_repository_policy(repositoryName=name, policyText=dump_policy_document(policy))
    return OpExecResponse({}, f"Set repository policy for ECR repository {name}")


@remote_error_handler("DeleteRepositoryPolicy")
def delete_repository_policy(client: ECRClient, name: str) -> OpExecResponse:
    try:
        client.delete_repository_policy(repositoryName=name)
    except ClientError as e:
        if not is_not_found(e, POLICY_NOT_FOUND):
            raise
        # Deleting the repository removes its policy too
        return OpExecResponse({}, f"Repository policy for ECR repository {name} was already gone")
    return OpExecResponse({}, f"Deleted repository policy for ECR repository {name}")


@remote_error_handler("PutLifecyclePolicy")
def set_lifecycle_policy(client: ECRClient, name: str, policy: Dict[str, Any]) -> OpExecResponse:
    client.put_lifecycle_policy(repositoryName=name, lifecyclePolicyText=json.dumps(policy, separators=(",", ":")))
    return OpExecResponse({}, f"Set lifecycle policy for ECR repository {name}")


@remote_error_handler("DeleteLifecyclePolicy")
def delete_lifecycle_policy(client: ECRClient, name: str) -> OpExecResponse:
    try:
        client.delete_lifecycle_policy(repositoryName=name)
    except ClientError as e:
        if not is_not_found(e, LIFECYCLE_NOT_FOUND):
            raise
        return OpExecResponse({}, f"Lifecycle policy for ECR repository {name} was already gone")
    return OpExecResponse({}, f"Deleted lifecycle policy for ECR repository {name}")


@remote_error_handler("CreatePullThroughCacheRule")
def create_pull_through_cache_rule(
    client: ECRClient, prefix: str, upstream_registry_url: str, credential_arn: Optional[str]
) -> OpExecResponse:
    kwargs: Dict[str, str] = {"ecrRepositoryPrefix": prefix, "upstreamRegistryUrl": upstream_registry_url}
    if credential_arn:
        kwargs["credentialArn"] = credential_arn
    client.create_pull_through_cache_rule(**kwargs)
    return OpExecResponse(
        {"ecr_repository_prefix": prefix},
        f"Created pull through cache rule for prefix {prefix} with upstream {upstream_registry_url}",
    )


@remote_error_handler("DeletePullThroughCacheRule")
def delete_pull_through_cache_rule(client: ECRClient, prefix: str) -> OpExecResponse:
    client.delete_pull_through_cache_rule(ecrRepositoryPrefix=prefix)
    return OpExecResponse({"ecr_repository_prefix": None}, f"Deleted pull through cache rule for prefix {prefix}")
