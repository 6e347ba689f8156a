"""
KMS operations.
"""

from typing import Any, Dict

from ...op import ConnectorOp, op_registry
from ...resource import TagMap
from .resource import Key


class CreateKey(ConnectorOp):
    key: Key


class UpdateKeyDescription(ConnectorOp):
    description: str


class UpdateKeyTags(ConnectorOp):
    old: TagMap
    new: TagMap


class UpdateKeyPolicy(ConnectorOp):
    policy: Dict[str, Any]


class EnableKey(ConnectorOp):
    pass


class DisableKey(ConnectorOp):
    pass


class EnableKeyRotation(ConnectorOp):
    pass


class DisableKeyRotation(ConnectorOp):
    pass


class DeleteKey(ConnectorOp):
    # Keys are never removed at once; deletion is scheduled after this window
    pending_window_in_days: int = 7


class CreateAlias(ConnectorOp):
    target_key_id: str


class UpdateAlias(ConnectorOp):
    target_key_id: str


class DeleteAlias(ConnectorOp):
    pass


KMS_OPS = op_registry(
    CreateKey,
    UpdateKeyDescription,
    UpdateKeyTags,
    UpdateKeyPolicy,
    EnableKey,
    DisableKey,
    EnableKeyRotation,
    DisableKeyRotation,
    DeleteKey,
    CreateAlias,
    UpdateAlias,
    DeleteAlias,
)
