"""
ECR Connector Module.
"""

from typing import Any, List, Optional, Tuple

from ...address import ResourceAddress
from ...connector import Connector, check_immutable
from ...errors import InvalidOpError
from ...op import ConnectorOp, OpExecResponse, PlanResponseElement, SkeletonResponse, skeleton
from ...resource import ResourceModel
from ...tags import describe_tag_diff
from ...types import ECRClient, Outputs
from . import fetch, op_impl
from .addr import (
    ECR_ADDRESS_TYPES,
    LifecyclePolicyAddress,
    PullThroughCacheRuleAddress,
    RepositoryAddress,
    RepositoryPolicyAddress,
)
from .op import (
    ECR_OPS,
    CreatePullThroughCacheRule,
    CreateRepository,
    DeleteLifecyclePolicy,
    DeletePullThroughCacheRule,
    DeleteRepository,
    DeleteRepositoryPolicy,
    SetLifecyclePolicy,
    SetRepositoryPolicy,
    UpdateImageScanningConfiguration,
    UpdateImageTagMutability,
    UpdateRepositoryTags,
)
from .resource import (
    EncryptionConfiguration,
    ImageScanningConfiguration,
    LifecyclePolicy,
    PullThroughCacheRule,
    Repository,
    RepositoryPolicy,
)


class EcrConnector(Connector):
    NAME = "ecr"
    SERVICE = "ecr"

    ADDRESS_TYPES = ECR_ADDRESS_TYPES
    RESOURCE_TYPES = {
        RepositoryAddress: Repository,
        RepositoryPolicyAddress: RepositoryPolicy,
        LifecyclePolicyAddress: LifecyclePolicy,
        PullThroughCacheRuleAddress: PullThroughCacheRule,
    }
    OPS = ECR_OPS

    def do_list(self, client: ECRClient, region: str) -> List[ResourceAddress]:
        return fetch.list_ecr_resources(client, region)

    def do_get(self, client: ECRClient, addr: ResourceAddress) -> Optional[Tuple[ResourceModel, Outputs]]:
        if isinstance(addr, RepositoryAddress):
            return fetch.get_repository(client, addr.name)
        if isinstance(addr, RepositoryPolicyAddress):
            policy = fetch.get_repository_policy(client, addr.name)
            return (policy, {}) if policy else None
        if isinstance(addr, LifecyclePolicyAddress):
            lifecycle = fetch.get_lifecycle_policy(client, addr.name)
            return (lifecycle, {}) if lifecycle else None
        if isinstance(addr, PullThroughCacheRuleAddress):
            rule = fetch.get_pull_through_cache_rule(client, addr.prefix)
            return (rule, {"ecr_repository_prefix": addr.prefix}) if rule else None
        return None

    def plan_create(self, addr: ResourceAddress, new: Any) -> List[PlanResponseElement]:
        if isinstance(addr, RepositoryAddress):
            return [
                CreateRepository(repository=new).plan(f"Create new ECR repository {addr.name} in region {addr.region}")
            ]
        if isinstance(addr, RepositoryPolicyAddress):
            return [
                SetRepositoryPolicy(policy_document=new.policy_document).plan(
                    f"Create repository policy for ECR repository {addr.name} in region {addr.region}"
                )
            ]
        if isinstance(addr, LifecyclePolicyAddress):
            return [
                SetLifecyclePolicy(lifecycle_policy_text=new.lifecycle_policy_text).plan(
                    f"Create lifecycle policy for ECR repository {addr.name} in region {addr.region}"
                )
            ]
        if isinstance(addr, PullThroughCacheRuleAddress):
            return [self._create_rule(addr, new, f"Create pull through cache rule for prefix {addr.prefix} in region {addr.region}")]
        raise InvalidOpError(addr.to_path(), "Create")

    def plan_delete(self, addr: ResourceAddress, old: Any) -> List[PlanResponseElement]:
        if isinstance(addr, RepositoryAddress):
            return [DeleteRepository(force=True).plan(f"DELETE ECR repository {addr.name} in region {addr.region}")]
        if isinstance(addr, RepositoryPolicyAddress):
            return [DeleteRepositoryPolicy().plan(f"DELETE repository policy for ECR repository {addr.name}")]
        if isinstance(addr, LifecyclePolicyAddress):
            return [DeleteLifecyclePolicy().plan(f"DELETE lifecycle policy for ECR repository {addr.name}")]
        if isinstance(addr, PullThroughCacheRuleAddress):
            return [DeletePullThroughCacheRule().plan(f"DELETE pull through cache rule for prefix {addr.prefix}")]
        raise InvalidOpError(addr.to_path(), "Delete")

    def plan_update(self, addr: ResourceAddress, old: Any, new: Any) -> List[PlanResponseElement]:
        ops: List[PlanResponseElement] = []

        if isinstance(addr, RepositoryAddress):
            check_immutable(addr, old, new, ["encryption_configuration"])
            if old.tags != new.tags:
                ops.append(
                    UpdateRepositoryTags(old=old.tags, new=new.tags).plan(
                        f"Modify tags for ECR repository `{addr.name}`\n{describe_tag_diff(old.tags, new.tags)}"
                    )
                )
            if old.image_tag_mutability != new.image_tag_mutability and new.image_tag_mutability:
                ops.append(
                    UpdateImageTagMutability(image_tag_mutability=new.image_tag_mutability).plan(
                        f"Update image tag mutability to {new.image_tag_mutability} for ECR repository `{addr.name}`"
                    )
                )
            scanning = new.image_scanning_configuration
            if old.image_scanning_configuration != scanning and scanning is not None:
                ops.append(
                    UpdateImageScanningConfiguration(scan_on_push=scanning.scan_on_push).plan(
                        f"Update image scanning configuration (scan_on_push: {scanning.scan_on_push}) "
                        f"for ECR repository `{addr.name}`"
                    )
                )
            return ops

        if isinstance(addr, RepositoryPolicyAddress):
            if old.policy_document != new.policy_document:
                ops.append(
                    SetRepositoryPolicy(policy_document=new.policy_document).plan(
                        f"Update repository policy for ECR repository `{addr.name}`"
                    )
                )
            return ops

        if isinstance(addr, LifecyclePolicyAddress):
            if old.lifecycle_policy_text != new.lifecycle_policy_text:
                ops.append(
                    SetLifecyclePolicy(lifecycle_policy_text=new.lifecycle_policy_text).plan(
                        f"Update lifecycle policy for ECR repository `{addr.name}`"
                    )
                )
            return ops

        if isinstance(addr, PullThroughCacheRuleAddress):
            # Rules cannot be modified in place
            return [
                DeletePullThroughCacheRule().plan(f"DELETE existing pull through cache rule for prefix {addr.prefix}"),
                self._create_rule(addr, new, f"CREATE updated pull through cache rule for prefix {addr.prefix}"),
            ]

        raise InvalidOpError(addr.to_path(), "Update")

    def _create_rule(self, addr: PullThroughCacheRuleAddress, rule: PullThroughCacheRule, message: str) -> PlanResponseElement:
        return CreatePullThroughCacheRule(
            upstream_registry_url=rule.upstream_registry_url, credential_arn=rule.credential_arn
        ).plan(message)

    def do_op_exec(self, client: ECRClient, addr: ResourceAddress, phy: ResourceAddress, op: ConnectorOp) -> OpExecResponse:
        if isinstance(addr, RepositoryAddress):
            if isinstance(op, CreateRepository):
                return op_impl.create_repository(client, addr.name, op.repository)
            if isinstance(op, UpdateRepositoryTags):
                return op_impl.update_repository_tags(client, addr.name, op.old, op.new)
            if isinstance(op, UpdateImageTagMutability):
                return op_impl.update_image_tag_mutability(client, addr.name, op.image_tag_mutability)
            if isinstance(op, UpdateImageScanningConfiguration):
                return op_impl.update_image_scanning_configuration(client, addr.name, op.scan_on_push)
            if isinstance(op, DeleteRepository):
                return op_impl.delete_repository(client, addr.name, op.force)

        elif isinstance(addr, RepositoryPolicyAddress):
            if isinstance(op, SetRepositoryPolicy):
                return op_impl.set_repository_policy(client, addr.name, op.policy_document)
            if isinstance(op, DeleteRepositoryPolicy):
                return op_impl.delete_repository_policy(client, addr.name)

        elif isinstance(addr, LifecyclePolicyAddress):
            if isinstance(op, SetLifecyclePolicy):
                return op_impl.set_lifecycle_policy(client, addr.name, op.lifecycle_policy_text)
            if isinstance(op, DeleteLifecyclePolicy):
                return op_impl.delete_lifecycle_policy(client, addr.name)

        elif isinstance(addr, PullThroughCacheRuleAddress):
            if isinstance(op, CreatePullThroughCacheRule):
                return op_impl.create_pull_through_cache_rule(
                    client, addr.prefix, op.upstream_registry_url, op.credential_arn
                )
            if isinstance(op, DeletePullThroughCacheRule):
                return op_impl.delete_pull_through_cache_rule(client, addr.prefix)

        raise InvalidOpError(addr.to_path(), op.tag())

    def get_skeletons(self) -> List[SkeletonResponse]:
        return [
            skeleton(
                RepositoryAddress("[region]", "[repository_name]"),
                Repository(
                    encryption_configuration=EncryptionConfiguration(encryption_type="AES256"),
                    image_tag_mutability="IMMUTABLE",
                    image_scanning_configuration=ImageScanningConfiguration(scan_on_push=True),
                ),
            ),
            skeleton(
                RepositoryPolicyAddress("[region]", "[repository_name]"),
                RepositoryPolicy(
                    policy_document={
                        "Version": "2012-10-17",
                        "Statement": [
                            {
                                "Sid": "AllowPull",
                                "Effect": "Allow",
                                "Principal": {"AWS": "arn:aws:iam::[account_id]:root"},
                                "Action": ["ecr:BatchGetImage", "ecr:GetDownloadUrlForLayer"],
                            }
                        ],
                    }
                ),
            ),
            skeleton(
                LifecyclePolicyAddress("[region]", "[repository_name]"),
                LifecyclePolicy(
                    lifecycle_policy_text={
                        "rules": [
                            {
                                "rulePriority": 1,
                                "description": "Expire untagged images",
                                "selection": {
                                    "tagStatus": "untagged",
                                    "countType": "sinceImagePushed",
                                    "countUnit": "days",
                                    "countNumber": 14,
                                },
                                "action": {"type": "expire"},
                            }
                        ]
                    }
                ),
            ),
            skeleton(
                PullThroughCacheRuleAddress("[region]", "[prefix]"),
                PullThroughCacheRule(upstream_registry_url="public.ecr.aws"),
            ),
        ]
