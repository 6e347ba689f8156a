"""
API Gateway v2 Connector Module.

Manages HTTP and WebSocket APIs with their routes, integrations and stages.
A route's target names an integration of the same API by its repository
name ("integrations/<name>"); the connector swaps in the physical id on the
way out and back.
"""

from typing import Any, List, Optional, Tuple

from ...address import ResourceAddress
from ...connector import Connector, changed_fields, check_immutable
from ...errors import InvalidOpError
from ...op import ConnectorOp, OpExecResponse, PlanResponseElement, SkeletonResponse, skeleton
from ...resolver import ReadOutput
from ...resource import ResourceModel
from ...tags import describe_tag_diff
from ...types import ApiGatewayV2Client, Outputs
from . import fetch, op_impl
from .addr import APIGATEWAYV2_ADDRESS_TYPES, ApiAddress, IntegrationAddress, RouteAddress, StageAddress
from .op import (
    APIGATEWAYV2_OPS,
    CreateApi,
    CreateIntegration,
    CreateRoute,
    CreateStage,
    DeleteApi,
    DeleteIntegration,
    DeleteRoute,
    DeleteStage,
    UpdateApi,
    UpdateApiTags,
    UpdateIntegration,
    UpdateRoute,
    UpdateStage,
    UpdateStageTags,
)
from .resource import Api, Integration, Route, Stage

TARGET_PREFIX = "integrations/"


def target_integration(target: Optional[str]) -> Optional[str]:
    """The integration id named by a route target, if it names one."""
    if target and target.startswith(TARGET_PREFIX):
        return target[len(TARGET_PREFIX) :]
    return None


class ApiGatewayV2Connector(Connector):
    NAME = "apigatewayv2"
    SERVICE = "apigatewayv2"

    ADDRESS_TYPES = APIGATEWAYV2_ADDRESS_TYPES
    RESOURCE_TYPES = {
        ApiAddress: Api,
        RouteAddress: Route,
        IntegrationAddress: Integration,
        StageAddress: Stage,
    }
    OPS = APIGATEWAYV2_OPS

    def do_list(self, client: ApiGatewayV2Client, region: str) -> List[ResourceAddress]:
        return fetch.list_api_resources(client, region)

    def do_get(self, client: ApiGatewayV2Client, addr: ResourceAddress) -> Optional[Tuple[ResourceModel, Outputs]]:
        if isinstance(addr, ApiAddress):
            api = fetch.get_api(client, addr.api_id)
            return (api, {"api_id": addr.api_id}) if api else None

        if isinstance(addr, RouteAddress):
            route = fetch.get_route(client, addr.api_id, addr.route_id)
            if route is None:
                return None
            integration_id = target_integration(route.target)
            if integration_id:
                name = self.virt_name(IntegrationAddress(addr.region, addr.api_id, integration_id), "integration_id")
                route = route.model_copy(update={"target": TARGET_PREFIX + name})
            return route, {"route_id": addr.route_id}

        if isinstance(addr, IntegrationAddress):
            integration = fetch.get_integration(client, addr.api_id, addr.integration_id)
            return (integration, {"integration_id": addr.integration_id}) if integration else None

        if isinstance(addr, StageAddress):
            stage = fetch.get_stage(client, addr.api_id, addr.stage_name)
            return (stage, {"stage_name": addr.stage_name}) if stage else None

        return None

    def _phy_target(self, addr: RouteAddress, target: Optional[str]) -> Optional[str]:
        integration_id = target_integration(target)
        if not integration_id:
            return target
        integration = IntegrationAddress(addr.region, addr.api_id, integration_id)
        return TARGET_PREFIX + self.phy_value(integration, "integration_id", integration_id)

    def plan_create(self, addr: ResourceAddress, new: Any) -> List[PlanResponseElement]:
        if isinstance(addr, ApiAddress):
            return [
                CreateApi(api=new).plan(
                    f"Create new {new.protocol_type} API `{new.name}` ({addr.api_id}) in region {addr.region}"
                )
            ]
        if isinstance(addr, RouteAddress):
            return [CreateRoute(route=new).plan(f"Create new route `{new.route_key}` for API {addr.api_id}")]
        if isinstance(addr, IntegrationAddress):
            return [
                CreateIntegration(integration=new).plan(
                    f"Create new {new.integration_type} integration {addr.integration_id} for API {addr.api_id}"
                )
            ]
        if isinstance(addr, StageAddress):
            return [CreateStage(stage=new).plan(f"Create new stage {addr.stage_name} for API {addr.api_id}")]
        raise InvalidOpError(addr.to_path(), "Create")

    def plan_delete(self, addr: ResourceAddress, old: Any) -> List[PlanResponseElement]:
        if isinstance(addr, ApiAddress):
            return [DeleteApi().plan(f"DELETE API `{old.name}` ({addr.api_id}) in region {addr.region}")]
        if isinstance(addr, RouteAddress):
            return [DeleteRoute().plan(f"DELETE route `{old.route_key}` from API {addr.api_id}")]
        if isinstance(addr, IntegrationAddress):
            return [DeleteIntegration().plan(f"DELETE integration {addr.integration_id} from API {addr.api_id}")]
        if isinstance(addr, StageAddress):
            return [DeleteStage().plan(f"DELETE stage {addr.stage_name} from API {addr.api_id}")]
        raise InvalidOpError(addr.to_path(), "Delete")

    def plan_update(self, addr: ResourceAddress, old: Any, new: Any) -> List[PlanResponseElement]:
        ops: List[PlanResponseElement] = []

        if isinstance(addr, ApiAddress):
            check_immutable(addr, old, new, ["protocol_type"])
            changes = changed_fields(old, new, ["name", "description", "route_selection_expression"])
            if changes:
                ops.append(
                    UpdateApi(**changes).plan(f"Update {', '.join(changes)} of API `{addr.api_id}`")
                )
            if old.tags != new.tags:
                ops.append(
                    UpdateApiTags(old=old.tags, new=new.tags).plan(
                        f"Modify tags for API `{addr.api_id}`\n{describe_tag_diff(old.tags, new.tags)}"
                    )
                )
            return ops

        if isinstance(addr, RouteAddress):
            changes = changed_fields(old, new, ["route_key", "target"])
            return [
                UpdateRoute(**changes).plan(
                    f"Update {', '.join(changes)} of route `{new.route_key}` of API {addr.api_id}"
                )
            ]

        if isinstance(addr, IntegrationAddress):
            changes = changed_fields(
                old, new, ["integration_type", "integration_uri", "integration_method", "payload_format_version"]
            )
            return [
                UpdateIntegration(**changes).plan(
                    f"Update {', '.join(changes)} of integration {addr.integration_id} of API {addr.api_id}"
                )
            ]

        if isinstance(addr, StageAddress):
            changes = changed_fields(old, new, ["auto_deploy", "description"])
            if changes:
                ops.append(
                    UpdateStage(**changes).plan(
                        f"Update {', '.join(changes)} of stage {addr.stage_name} for API {addr.api_id}"
                    )
                )
            if old.tags != new.tags:
                ops.append(
                    UpdateStageTags(old=old.tags, new=new.tags).plan(
                        f"Modify tags for stage `{addr.stage_name}`\n{describe_tag_diff(old.tags, new.tags)}"
                    )
                )
            return ops

        raise InvalidOpError(addr.to_path(), "Update")

    def op_dependencies(self, addr: ResourceAddress, op: ConnectorOp) -> List[ReadOutput]:
        if isinstance(addr, RouteAddress) and isinstance(op, (CreateRoute, UpdateRoute)):
            target = op.route.target if isinstance(op, CreateRoute) else op.target
            integration_id = target_integration(target)
            if integration_id:
                return self.require_output(
                    IntegrationAddress(addr.region, addr.api_id, integration_id), "integration_id"
                )
        return []

    def do_op_exec(
        self, client: ApiGatewayV2Client, addr: ResourceAddress, phy: ResourceAddress, op: ConnectorOp
    ) -> OpExecResponse:
        if isinstance(addr, ApiAddress):
            if isinstance(op, CreateApi):
                return op_impl.create_api(client, addr.region, op.api)
            if isinstance(op, UpdateApi):
                return op_impl.update_api(client, addr.region, phy.api_id, op.changes())
            if isinstance(op, UpdateApiTags):
                return op_impl.update_api_tags(client, addr.region, phy.api_id, op.old, op.new)
            if isinstance(op, DeleteApi):
                return op_impl.delete_api(client, addr.region, phy.api_id)

        elif isinstance(addr, RouteAddress):
            if isinstance(op, CreateRoute):
                return op_impl.create_route(client, phy.api_id, op.route, self._phy_target(addr, op.route.target))
            if isinstance(op, UpdateRoute):
                changes = op.changes()
                if "target" in changes:
                    changes["target"] = self._phy_target(addr, changes["target"])
                return op_impl.update_route(client, phy.api_id, phy.route_id, changes)
            if isinstance(op, DeleteRoute):
                return op_impl.delete_route(client, phy.api_id, phy.route_id)

        elif isinstance(addr, IntegrationAddress):
            if isinstance(op, CreateIntegration):
                return op_impl.create_integration(client, phy.api_id, op.integration)
            if isinstance(op, UpdateIntegration):
                return op_impl.update_integration(client, phy.api_id, phy.integration_id, op.changes())
            if isinstance(op, DeleteIntegration):
                return op_impl.delete_integration(client, phy.api_id, phy.integration_id)

        elif isinstance(addr, StageAddress):
            if isinstance(op, CreateStage):
                return op_impl.create_stage(client, phy.api_id, addr.stage_name, op.stage)
            if isinstance(op, UpdateStage):
                return op_impl.update_stage(client, phy.api_id, addr.stage_name, op.changes())
            if isinstance(op, UpdateStageTags):
                return op_impl.update_stage_tags(client, addr.region, phy.api_id, addr.stage_name, op.old, op.new)
            if isinstance(op, DeleteStage):
                return op_impl.delete_stage(client, phy.api_id, addr.stage_name)

        raise InvalidOpError(addr.to_path(), op.tag())

    def get_skeletons(self) -> List[SkeletonResponse]:
        return [
            skeleton(ApiAddress("[region]", "[api_id]"), Api(name="[api_name]", protocol_type="HTTP")),
            skeleton(
                IntegrationAddress("[region]", "[api_id]", "[integration_id]"),
                Integration(
                    integration_type="AWS_PROXY",
                    integration_uri="[lambda_function_arn]",
                    payload_format_version="2.0",
                ),
            ),
            skeleton(
                RouteAddress("[region]", "[api_id]", "[route_id]"),
                Route(route_key="GET /", target="integrations/[integration_id]"),
            ),
            skeleton(StageAddress("[region]", "[api_id]", "$default"), Stage(auto_deploy=True)),
        ]
