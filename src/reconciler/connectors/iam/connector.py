"""
IAM Connector Module.

IAM is global: every address shares one client, created in GLOBAL_REGION.
Users, roles and policies are named by the user, so their addresses resolve
to themselves; the ARNs AWS assigns are recorded as outputs.
"""

from typing import Any, List, Optional, Tuple

from ...address import ResourceAddress
from ...connector import Connector
from ...errors import InvalidOpError
from ...op import ConnectorOp, OpExecResponse, PlanResponseElement, SkeletonResponse, skeleton
from ...resolver import ReadOutput
from ...resource import ResourceModel
from ...tags import describe_tag_diff
from ...types import IAMClient, Outputs
from . import fetch, op_impl
from .addr import IAM_ADDRESS_TYPES, PolicyAddress, RoleAddress, UserAddress
from .op import (
    IAM_OPS,
    AttachRolePolicy,
    AttachUserPolicy,
    CreatePolicy,
    CreateRole,
    CreateUser,
    DeletePolicy,
    DeleteRole,
    DeleteUser,
    DetachRolePolicy,
    DetachUserPolicy,
    UpdateAssumeRolePolicy,
    UpdatePolicyDocument,
    UpdatePolicyTags,
    UpdateRoleTags,
    UpdateUserTags,
)
from .resource import Policy, Role, User


class IamConnector(Connector):
    NAME = "iam"
    SERVICE = "iam"
    GLOBAL_REGION = "us-east-1"

    ADDRESS_TYPES = IAM_ADDRESS_TYPES
    RESOURCE_TYPES = {UserAddress: User, RoleAddress: Role, PolicyAddress: Policy}
    OPS = IAM_OPS

    # Policy references

    def is_managed_policy(self, name: str) -> bool:
        policy = PolicyAddress(name)
        return self.has_document(policy) or self.store.exists(policy)

    def policy_arn(self, name: str) -> str:
        return self.phy_value(PolicyAddress(name), "policy_arn", fetch.policy_arn(self.account_id or "", name))

    def policy_ref_to_arn(self, ref: str) -> str:
        """Resolve an attached-policy reference to the ARN IAM expects."""
        if ref.startswith("arn:"):
            return ref
        if self.is_managed_policy(ref):
            return self.policy_arn(ref)
        return fetch.AWS_MANAGED_POLICY_PREFIX + ref

    def policy_arn_to_ref(self, arn: str) -> str:
        """Inverse of policy_ref_to_arn: the shortest reference that resolves back to `arn`."""
        if arn.startswith(fetch.AWS_MANAGED_POLICY_PREFIX):
            name = arn[len(fetch.AWS_MANAGED_POLICY_PREFIX):]
            return name if not self.is_managed_policy(name) else arn
        name = arn.rsplit("/", 1)[-1]
        if self.is_managed_policy(name) and self.policy_arn(name) == arn:
            return name
        return arn

    # Read

    def do_list(self, client: IAMClient, region: str) -> List[ResourceAddress]:
        return fetch.list_iam_resources(client, self.account_id)

    def do_get(self, client: IAMClient, addr: ResourceAddress) -> Optional[Tuple[ResourceModel, Outputs]]:
        account_id = self.account_id or ""

        if isinstance(addr, UserAddress):
            user = fetch.get_user(client, addr.name)
            if user is None:
                return None
            user = user.model_copy(update={"attached_policies": {self.policy_arn_to_ref(a) for a in user.attached_policies}})
            return user, {"user_arn": fetch.user_arn(account_id, addr.name)}

        if isinstance(addr, RoleAddress):
            role = fetch.get_role(client, addr.name)
            if role is None:
                return None
            role = role.model_copy(update={"attached_policies": {self.policy_arn_to_ref(a) for a in role.attached_policies}})
            return role, {"role_arn": fetch.role_arn(account_id, addr.name)}

        if isinstance(addr, PolicyAddress):
            arn = self.policy_arn(addr.name)
            policy = fetch.get_policy(client, arn)
            return (policy, {"policy_arn": arn}) if policy else None

        return None

    # Plan

    def plan_create(self, addr: ResourceAddress, new: Any) -> List[PlanResponseElement]:
        if isinstance(addr, UserAddress):
            ops = [CreateUser(user=new).plan(f"Create new IAM user {addr.name}")]
            ops.extend(
                AttachUserPolicy(policy=p).plan(f"Attach policy `{p}` for IAM user `{addr.name}`")
                for p in sorted(new.attached_policies)
            )
            return ops
        if isinstance(addr, RoleAddress):
            ops = [CreateRole(role=new).plan(f"Create new IAM role {addr.name}")]
            ops.extend(
                AttachRolePolicy(policy=p).plan(f"Attach policy `{p}` for IAM role `{addr.name}`")
                for p in sorted(new.attached_policies)
            )
            return ops
        if isinstance(addr, PolicyAddress):
            return [CreatePolicy(policy=new).plan(f"Create new IAM policy {addr.name}")]
        raise InvalidOpError(addr.to_path(), "Create")

    def plan_delete(self, addr: ResourceAddress, old: Any) -> List[PlanResponseElement]:
        if isinstance(addr, UserAddress):
            return [DeleteUser().plan(f"DELETE IAM user {addr.name}")]
        if isinstance(addr, RoleAddress):
            return [DeleteRole().plan(f"DELETE IAM role {addr.name}")]
        if isinstance(addr, PolicyAddress):
            return [DeletePolicy().plan(f"DELETE IAM policy {addr.name}")]
        raise InvalidOpError(addr.to_path(), "Delete")

    def plan_update(self, addr: ResourceAddress, old: Any, new: Any) -> List[PlanResponseElement]:
        ops: List[PlanResponseElement] = []

        if isinstance(addr, UserAddress):
            if old.tags != new.tags:
                ops.append(
                    UpdateUserTags(old=old.tags, new=new.tags).plan(
                        f"Modify tags for IAM user `{addr.name}`\n{describe_tag_diff(old.tags, new.tags)}"
                    )
                )
            ops.extend(
                AttachUserPolicy(policy=p).plan(f"Attach policy `{p}` for IAM user `{addr.name}`")
                for p in sorted(new.attached_policies - old.attached_policies)
            )
            ops.extend(
                DetachUserPolicy(policy=p).plan(f"Detach policy `{p}` from IAM user `{addr.name}`")
                for p in sorted(old.attached_policies - new.attached_policies)
            )
            return ops

        if isinstance(addr, RoleAddress):
            if old.assume_role_policy_document != new.assume_role_policy_document:
                ops.append(
                    UpdateAssumeRolePolicy(
                        old=old.assume_role_policy_document, new=new.assume_role_policy_document
                    ).plan(f"Modify AssumeRolePolicy for IAM role `{addr.name}`")
                )
            if old.tags != new.tags:
                ops.append(
                    UpdateRoleTags(old=old.tags, new=new.tags).plan(
                        f"Modify tags for IAM role `{addr.name}`\n{describe_tag_diff(old.tags, new.tags)}"
                    )
                )
            ops.extend(
                AttachRolePolicy(policy=p).plan(f"Attach policy `{p}` for IAM role `{addr.name}`")
                for p in sorted(new.attached_policies - old.attached_policies)
            )
            ops.extend(
                DetachRolePolicy(policy=p).plan(f"Detach policy `{p}` from IAM role `{addr.name}`")
                for p in sorted(old.attached_policies - new.attached_policies)
            )
            return ops

        if isinstance(addr, PolicyAddress):
            if old.policy_document != new.policy_document:
                ops.append(
                    UpdatePolicyDocument(old=old.policy_document, new=new.policy_document).plan(
                        f"Modify policy document for IAM policy `{addr.name}`"
                    )
                )
            if old.tags != new.tags:
                ops.append(
                    UpdatePolicyTags(old=old.tags, new=new.tags).plan(
                        f"Modify tags for IAM policy `{addr.name}`\n{describe_tag_diff(old.tags, new.tags)}"
                    )
                )
            return ops

        raise InvalidOpError(addr.to_path(), "Update")

    # Execute

    def op_dependencies(self, addr: ResourceAddress, op: ConnectorOp) -> List[ReadOutput]:
        if isinstance(op, (AttachUserPolicy, AttachRolePolicy)) and not op.policy.startswith("arn:"):
            return self.require_output(PolicyAddress(op.policy), "policy_arn")
        return []

    def do_op_exec(self, client: IAMClient, addr: ResourceAddress, phy: ResourceAddress, op: ConnectorOp) -> OpExecResponse:
        if isinstance(addr, UserAddress):
            if isinstance(op, CreateUser):
                return op_impl.create_user(client, addr.name, op.user.tags)
            if isinstance(op, AttachUserPolicy):
                return op_impl.attach_user_policy(client, addr.name, self.policy_ref_to_arn(op.policy))
            if isinstance(op, DetachUserPolicy):
                return op_impl.detach_user_policy(client, addr.name, self.policy_ref_to_arn(op.policy))
            if isinstance(op, UpdateUserTags):
                return op_impl.update_user_tags(client, addr.name, op.old, op.new)
            if isinstance(op, DeleteUser):
                return op_impl.delete_user(client, addr.name)

        elif isinstance(addr, RoleAddress):
            if isinstance(op, CreateRole):
                return op_impl.create_role(client, addr.name, op.role.assume_role_policy_document, op.role.tags)
            if isinstance(op, UpdateAssumeRolePolicy):
                return op_impl.update_assume_role_policy(client, addr.name, op.new)
            if isinstance(op, AttachRolePolicy):
                return op_impl.attach_role_policy(client, addr.name, self.policy_ref_to_arn(op.policy))
            if isinstance(op, DetachRolePolicy):
                return op_impl.detach_role_policy(client, addr.name, self.policy_ref_to_arn(op.policy))
            if isinstance(op, UpdateRoleTags):
                return op_impl.update_role_tags(client, addr.name, op.old, op.new)
            if isinstance(op, DeleteRole):
                return op_impl.delete_role(client, addr.name)

        elif isinstance(addr, PolicyAddress):
            if isinstance(op, CreatePolicy):
                return op_impl.create_policy(client, addr.name, op.policy.policy_document, op.policy.tags)
            if isinstance(op, UpdatePolicyDocument):
                return op_impl.update_policy_document(client, self.policy_arn(addr.name), op.new)
            if isinstance(op, UpdatePolicyTags):
                return op_impl.update_policy_tags(client, self.policy_arn(addr.name), op.old, op.new)
            if isinstance(op, DeletePolicy):
                return op_impl.delete_policy(client, self.policy_arn(addr.name))

        raise InvalidOpError(addr.to_path(), op.tag())

    def get_skeletons(self) -> List[SkeletonResponse]:
        assume_role = {
            "Version": "2012-10-17",
            "Statement": [
                {"Effect": "Allow", "Principal": {"Service": "[service].amazonaws.com"}, "Action": "sts:AssumeRole"}
            ],
        }
        policy_document = {
            "Version": "2012-10-17",
            "Statement": [{"Effect": "Allow", "Action": ["[service]:[action]"], "Resource": "*"}],
        }
        return [
            skeleton(UserAddress("[user_name]"), User(attached_policies={"ReadOnlyAccess"})),
            skeleton(RoleAddress("[role_name]"), Role(assume_role_policy_document=assume_role)),
            skeleton(PolicyAddress("[policy_name]"), Policy(policy_document=policy_document)),
        ]
