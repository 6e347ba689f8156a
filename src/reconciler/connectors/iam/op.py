"""
IAM operations.
"""

from typing import Any, Dict

from ...op import ConnectorOp, op_registry
from ...resource import TagMap
from .resource import Policy, Role, User


class CreateUser(ConnectorOp):
    user: User


class UpdateUserTags(ConnectorOp):
    old: TagMap
    new: TagMap


class AttachUserPolicy(ConnectorOp):
    policy: str


class DetachUserPolicy(ConnectorOp):
    policy: str


class DeleteUser(ConnectorOp):
    pass


class CreateRole(ConnectorOp):
    role: Role


class UpdateAssumeRolePolicy(ConnectorOp):
    old: Dict[str, Any]
    new: Dict[str, Any]


class AttachRolePolicy(ConnectorOp):
    policy: str


class DetachRolePolicy(ConnectorOp):
    policy: str


class UpdateRoleTags(ConnectorOp):
    old: TagMap
    new: TagMap


class DeleteRole(ConnectorOp):
    pass


class CreatePolicy(ConnectorOp):
    policy: Policy


class UpdatePolicyDocument(ConnectorOp):
    old: Dict[str, Any]
    new: Dict[str, Any]


class UpdatePolicyTags(ConnectorOp):
    old: TagMap
    new: TagMap


class DeletePolicy(ConnectorOp):
    pass


IAM_OPS = op_registry(
    CreateUser,
    UpdateUserTags,
    AttachUserPolicy,
    DetachUserPolicy,
    DeleteUser,
    CreateRole,
    UpdateAssumeRolePolicy,
    AttachRolePolicy,
    DetachRolePolicy,
    UpdateRoleTags,
    DeleteRole,
    CreatePolicy,
    UpdatePolicyDocument,
    UpdatePolicyTags,
    DeletePolicy,
)
