"""
KMS Connector Module.

Manages customer managed keys and their aliases. Deleting a key schedules
its deletion; AWS keeps it for the pending window.
"""

from typing import Any, List, Optional, Tuple

from ...address import ResourceAddress
from ...connector import Connector, check_immutable
from ...errors import InvalidOpError
from ...op import ConnectorOp, OpExecResponse, PlanResponseElement, SkeletonResponse, skeleton
from ...resolver import ReadOutput
from ...resource import ResourceModel
from ...tags import describe_tag_diff
from ...types import KMSClient, Outputs
from . import fetch, op_impl
from .addr import KMS_ADDRESS_TYPES, AliasAddress, KeyAddress
from .op import (
    KMS_OPS,
    CreateAlias,
    CreateKey,
    DeleteAlias,
    DeleteKey,
    DisableKey,
    DisableKeyRotation,
    EnableKey,
    EnableKeyRotation,
    UpdateAlias,
    UpdateKeyDescription,
    UpdateKeyPolicy,
    UpdateKeyTags,
)
from .resource import Alias, Key


class KmsConnector(Connector):
    NAME = "kms"
    SERVICE = "kms"

    ADDRESS_TYPES = KMS_ADDRESS_TYPES
    RESOURCE_TYPES = {
        KeyAddress: Key,
        AliasAddress: Alias,
    }
    OPS = KMS_OPS

    def do_list(self, client: KMSClient, region: str) -> List[ResourceAddress]:
        return fetch.list_kms_resources(client, region)

    def do_get(self, client: KMSClient, addr: ResourceAddress) -> Optional[Tuple[ResourceModel, Outputs]]:
        if isinstance(addr, KeyAddress):
            return fetch.get_key(client, addr.key_id)
        if isinstance(addr, AliasAddress):
            alias = fetch.get_alias(client, addr.alias_name)
            if alias is None:
                return None
            target = self.virt_name(KeyAddress(addr.region, alias.target_key_id), "key_id")
            return Alias(target_key_id=target), {"alias_name": fetch.alias_full_name(addr.alias_name)}
        return None

    def _phy_key_id(self, region: str, key_id: str) -> str:
        return self.phy_value(KeyAddress(region, key_id), "key_id", key_id)

    def plan_create(self, addr: ResourceAddress, new: Any) -> List[PlanResponseElement]:
        if isinstance(addr, KeyAddress):
            return [CreateKey(key=new).plan(f"Create new KMS key {addr.key_id} ({new.key_spec}) in region {addr.region}")]
        if isinstance(addr, AliasAddress):
            return [
                CreateAlias(target_key_id=new.target_key_id).plan(
                    f"Create new KMS alias {addr.alias_name} for key {new.target_key_id} in region {addr.region}"
                )
            ]
        raise InvalidOpError(addr.to_path(), "Create")

    def plan_delete(self, addr: ResourceAddress, old: Any) -> List[PlanResponseElement]:
        if isinstance(addr, KeyAddress):
            op = DeleteKey()
            return [
                op.plan(
                    f"DELETE KMS key {addr.key_id} in region {addr.region} "
                    f"(scheduled after {op.pending_window_in_days} days)"
                )
            ]
        if isinstance(addr, AliasAddress):
            return [DeleteAlias().plan(f"DELETE KMS alias {addr.alias_name} in region {addr.region}")]
        raise InvalidOpError(addr.to_path(), "Delete")

    def plan_update(self, addr: ResourceAddress, old: Any, new: Any) -> List[PlanResponseElement]:
        ops: List[PlanResponseElement] = []

        if isinstance(addr, KeyAddress):
            check_immutable(addr, old, new, ["key_usage", "key_spec", "multi_region"])
            if old.description != new.description:
                ops.append(
                    UpdateKeyDescription(description=new.description).plan(
                        f"Update description of KMS key `{addr.key_id}` to {new.description!r}"
                    )
                )
            if new.policy is not None and old.policy != new.policy:
                ops.append(UpdateKeyPolicy(policy=new.policy).plan(f"Update key policy of KMS key `{addr.key_id}`"))
            if old.enabled != new.enabled:
                if new.enabled:
                    ops.append(EnableKey().plan(f"Enable KMS key `{addr.key_id}`"))
                else:
                    ops.append(DisableKey().plan(f"Disable KMS key `{addr.key_id}`"))
            if new.key_rotation_enabled is not None and old.key_rotation_enabled != new.key_rotation_enabled:
                if new.key_rotation_enabled:
                    ops.append(EnableKeyRotation().plan(f"Enable automatic key rotation for KMS key `{addr.key_id}`"))
                else:
                    ops.append(DisableKeyRotation().plan(f"Disable automatic key rotation for KMS key `{addr.key_id}`"))
            if old.tags != new.tags:
                ops.append(
                    UpdateKeyTags(old=old.tags, new=new.tags).plan(
                        f"Modify tags for KMS key `{addr.key_id}`\n{describe_tag_diff(old.tags, new.tags)}"
                    )
                )
            return ops

        if isinstance(addr, AliasAddress):
            if old.target_key_id != new.target_key_id:
                ops.append(
                    UpdateAlias(target_key_id=new.target_key_id).plan(
                        f"Point KMS alias `{addr.alias_name}` at key {new.target_key_id}"
                    )
                )
            return ops

        raise InvalidOpError(addr.to_path(), "Update")

    def op_dependencies(self, addr: ResourceAddress, op: ConnectorOp) -> List[ReadOutput]:
        if isinstance(addr, AliasAddress) and isinstance(op, (CreateAlias, UpdateAlias)):
            return self.require_output(KeyAddress(addr.region, op.target_key_id), "key_id")
        return []

    def do_op_exec(self, client: KMSClient, addr: ResourceAddress, phy: ResourceAddress, op: ConnectorOp) -> OpExecResponse:
        if isinstance(addr, KeyAddress):
            key_id = phy.key_id
            if isinstance(op, CreateKey):
                return op_impl.create_key(client, addr.region, op.key)
            if isinstance(op, UpdateKeyDescription):
                return op_impl.update_key_description(client, key_id, op.description)
            if isinstance(op, UpdateKeyTags):
                return op_impl.update_key_tags(client, key_id, op.old, op.new)
            if isinstance(op, UpdateKeyPolicy):
                return op_impl.update_key_policy(client, key_id, op.policy)
            if isinstance(op, EnableKey):
                return op_impl.enable_key(client, key_id)
            if isinstance(op, DisableKey):
                return op_impl.disable_key(client, key_id)
            if isinstance(op, EnableKeyRotation):
                return op_impl.enable_key_rotation(client, key_id)
            if isinstance(op, DisableKeyRotation):
                return op_impl.disable_key_rotation(client, key_id)
            if isinstance(op, DeleteKey):
                return op_impl.delete_key(client, key_id, op.pending_window_in_days)

        elif isinstance(addr, AliasAddress):
            if isinstance(op, CreateAlias):
                return op_impl.create_alias(client, addr.alias_name, self._phy_key_id(addr.region, op.target_key_id))
            if isinstance(op, UpdateAlias):
                return op_impl.update_alias(client, addr.alias_name, self._phy_key_id(addr.region, op.target_key_id))
            if isinstance(op, DeleteAlias):
                return op_impl.delete_alias(client, addr.alias_name)

        raise InvalidOpError(addr.to_path(), op.tag())

    def get_skeletons(self) -> List[SkeletonResponse]:
        return [
            skeleton(
                KeyAddress("[region]", "[key_id]"),
                Key(description="[description]", key_rotation_enabled=True),
            ),
            skeleton(AliasAddress("[region]", "[alias_name]"), Alias(target_key_id="[key_id]")),
        ]
