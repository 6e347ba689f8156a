"""
API Gateway v2 operation implementations.

Every function takes physical API, route and integration ids.
"""

from typing import Any, Dict, Mapping, Optional

from ....utils import remote_error_handler
from ...op import OpExecResponse
from ...tags import tag_diff
from ...types import ApiGatewayV2Client
from .fetch import api_arn, stage_arn
from .resource import Api, Integration, Route, Stage


def _update_tags(client: ApiGatewayV2Client, arn: str, old: Mapping[str, str], new: Mapping[str, str]) -> None:
    keys_to_remove, pairs_to_set = tag_diff(old, new)
    if keys_to_remove:
        client.untag_resource(ResourceArn=arn, TagKeys=sorted(keys_to_remove))
    if pairs_to_set:
        client.tag_resource(ResourceArn=arn, Tags=dict(pairs_to_set))


def _params(changes: Mapping[str, Any], fields: Mapping[str, str]) -> Dict[str, Any]:
    """API parameters for the changed document fields; cleared strings are sent as ""."""
    return {param: "" if changes[name] is None else changes[name] for name, param in fields.items() if name in changes}


def _integration_params(integration: Integration) -> Dict[str, str]:
    params = {"IntegrationType": integration.integration_type}
    if integration.integration_uri:
        params["IntegrationUri"] = integration.integration_uri
    if integration.integration_method:
        params["IntegrationMethod"] = integration.integration_method
    if integration.payload_format_version:
        params["PayloadFormatVersion"] = integration.payload_format_version
    return params


# API


@remote_error_handler("CreateApi")
def create_api(client: ApiGatewayV2Client, region: str, api: Api) -> OpExecResponse:
    kwargs: Dict[str, Any] = {"Name": api.name, "ProtocolType": api.protocol_type}
    if api.description:
        kwargs["Description"] = api.description
    if api.route_selection_expression:
        kwargs["RouteSelectionExpression"] = api.route_selection_expression
    if api.tags:
        kwargs["Tags"] = dict(api.tags)
    api_id = client.create_api(**kwargs)["ApiId"]
    return OpExecResponse({"api_id": api_id}, f"Created API Gateway V2 API `{api.name}` in region `{region}`")


@remote_error_handler("UpdateApi")
def update_api(client: ApiGatewayV2Client, region: str, api_id: str, changes: Mapping[str, Any]) -> OpExecResponse:
    params = _params(
        changes, {"name": "Name", "description": "Description", "route_selection_expression": "RouteSelectionExpression"}
    )
    if params:
        client.update_api(ApiId=api_id, **params)
    return OpExecResponse({}, f"Updated API Gateway V2 API `{api_id}` in region `{region}`")


@remote_error_handler("UpdateApiTags")
def update_api_tags(
    client: ApiGatewayV2Client, region: str, api_id: str, old: Mapping[str, str], new: Mapping[str, str]
) -> OpExecResponse:
    _update_tags(client, api_arn(region, api_id), old, new)
    return OpExecResponse({}, f"Updated tags for API Gateway V2 API `{api_id}` in region `{region}`")


@remote_error_handler("DeleteApi")
def delete_api(client: ApiGatewayV2Client, region: str, api_id: str) -> OpExecResponse:
    client.delete_api(ApiId=api_id)
    return OpExecResponse({"api_id": None}, f"Deleted API Gateway V2 API `{api_id}` in region `{region}`")


# Route


@remote_error_handler("CreateRoute")
def create_route(client: ApiGatewayV2Client, api_id: str, route: Route, target: Optional[str]) -> OpExecResponse:
    kwargs: Dict[str, str] = {"ApiId": api_id, "RouteKey": route.route_key}
    if target:
        kwargs["Target"] = target
    route_id = client.create_route(**kwargs)["RouteId"]
    return OpExecResponse({"route_id": route_id}, f"Created API Gateway V2 Route `{route.route_key}` for API `{api_id}`")


@remote_error_handler("UpdateRoute")
def update_route(client: ApiGatewayV2Client, api_id: str, route_id: str, changes: Mapping[str, Any]) -> OpExecResponse:
    """Apply route changes; `target` must already hold the physical integration id."""
    params = _params(changes, {"route_key": "RouteKey", "target": "Target"})
    if params:
        client.update_route(ApiId=api_id, RouteId=route_id, **params)
    return OpExecResponse({}, f"Updated API Gateway V2 Route `{route_id}` for API `{api_id}`")


@remote_error_handler("DeleteRoute")
def delete_route(client: ApiGatewayV2Client, api_id: str, route_id: str) -> OpExecResponse:
    client.delete_route(ApiId=api_id, RouteId=route_id)
    return OpExecResponse({"route_id": None}, f"Deleted API Gateway V2 Route `{route_id}` for API `{api_id}`")


# Integration


@remote_error_handler("CreateIntegration")
def create_integration(client: ApiGatewayV2Client, api_id: str, integration: Integration) -> OpExecResponse:
    integration_id = client.create_integration(ApiId=api_id, **_integration_params(integration))["IntegrationId"]
    return OpExecResponse(
        {"integration_id": integration_id},
        f"Created API Gateway V2 Integration `{integration.integration_type}` for API `{api_id}`",
    )


@remote_error_handler("UpdateIntegration")
def update_integration(
    client: ApiGatewayV2Client, api_id: str, integration_id: str, changes: Mapping[str, Any]
) -> OpExecResponse:
    params = _params(
        changes,
        {
            "integration_type": "IntegrationType",
            "integration_uri": "IntegrationUri",
            "integration_method": "IntegrationMethod",
            "payload_format_version": "PayloadFormatVersion",
        },
    )
    if params:
        client.update_integration(ApiId=api_id, IntegrationId=integration_id, **params)
    return OpExecResponse({}, f"Updated API Gateway V2 Integration `{integration_id}` for API `{api_id}`")


@remote_error_handler("DeleteIntegration")
def delete_integration(client: ApiGatewayV2Client, api_id: str, integration_id: str) -> OpExecResponse:
    client.delete_integration(ApiId=api_id, IntegrationId=integration_id)
    return OpExecResponse(
        {"integration_id": None}, f"Deleted API Gateway V2 Integration `{integration_id}` for API `{api_id}`"
    )


# Stage


@remote_error_handler("CreateStage")
def create_stage(client: ApiGatewayV2Client, api_id: str, stage_name: str, stage: Stage) -> OpExecResponse:
    kwargs: Dict[str, Any] = {"ApiId": api_id, "StageName": stage_name, "AutoDeploy": stage.auto_deploy}
    if stage.description:
        kwargs["Description"] = stage.description
    if stage.tags:
        kwargs["Tags"] = dict(stage.tags)
    stage_name = client.create_stage(**kwargs)["StageName"]
    return OpExecResponse({"stage_name": stage_name}, f"Created API Gateway V2 Stage `{stage_name}` for API `{api_id}`")


@remote_error_handler("UpdateStage")
def update_stage(client: ApiGatewayV2Client, api_id: str, stage_name: str, changes: Mapping[str, Any]) -> OpExecResponse:
    params = _params(changes, {"auto_deploy": "AutoDeploy", "description": "Description"})
    if params:
        client.update_stage(ApiId=api_id, StageName=stage_name, **params)
    return OpExecResponse({}, f"Updated API Gateway V2 Stage `{stage_name}` for API `{api_id}`")


@remote_error_handler("UpdateStageTags")
def update_stage_tags(
    client: ApiGatewayV2Client, region: str, api_id: str, stage_name: str, old: Mapping[str, str], new: Mapping[str, str]
) -> OpExecResponse:
    _update_tags(client, stage_arn(region, api_id, stage_name), old, new)
    return OpExecResponse({}, f"Updated tags for API Gateway V2 Stage `{stage_name}` for API `{api_id}`")


@remote_error_handler("DeleteStage")
def delete_stage(client: ApiGatewayV2Client, api_id: str, stage_name: str) -> OpExecResponse:
    client.delete_stage(ApiId=api_id, StageName=stage_name)
    return OpExecResponse({"stage_name": None}, f"Deleted API Gateway V2 Stage `{stage_name}` for API `{api_id}`")
