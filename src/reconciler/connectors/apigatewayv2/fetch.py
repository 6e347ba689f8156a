"""
API Gateway v2 Resource Fetchers Module.

This module contains functions for reading HTTP and WebSocket APIs together
with their routes, integrations and stages.
"""

from typing import List, Optional

from botocore.exceptions import ClientError

from ....utils import is_not_found, remote_error_handler, setup_logging
from ...address import ResourceAddress
from ...types import ApiGatewayV2Client
from .addr import ApiAddress, IntegrationAddress, RouteAddress, StageAddress
from .resource import Api, Integration, Route, Stage

logger = setup_logging()

NOT_FOUND_CODES = ("NotFoundException",)

# Route selection expression AWS assigns to every HTTP API
DEFAULT_ROUTE_SELECTION_EXPRESSION = "$request.method $request.path"


def api_arn(region: str, api_id: str) -> str:
    return f"arn:aws:apigateway:{region}::/apis/{api_id}"


def stage_arn(region: str, api_id: str, stage_name: str) -> str:
    return f"arn:aws:apigateway:{region}::/apis/{api_id}/stages/{stage_name}"


@remote_error_handler("GetApi")
def get_api(client: ApiGatewayV2Client, api_id: str) -> Optional[Api]:
    try:
        api = client.get_api(ApiId=api_id)
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise

    expression = api.get("RouteSelectionExpression")
    if api.get("ProtocolType") == "HTTP" and expression == DEFAULT_ROUTE_SELECTION_EXPRESSION:
        expression = None

    return Api(
        name=api["Name"],
        protocol_type=api["ProtocolType"],
        description=api.get("Description"),
        route_selection_expression=expression,
        tags=api.get("Tags") or {},
    )


@remote_error_handler("GetRoute")
def get_route(client: ApiGatewayV2Client, api_id: str, route_id: str) -> Optional[Route]:
    try:
        route = client.get_route(ApiId=api_id, RouteId=route_id)
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise
    return Route(route_key=route["RouteKey"], target=route.get("Target"))


@remote_error_handler("GetIntegration")
def get_integration(client: ApiGatewayV2Client, api_id: str, integration_id: str) -> Optional[Integration]:
    try:
        integration = client.get_integration(ApiId=api_id, IntegrationId=integration_id)
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise
    return Integration(
        integration_type=integration["IntegrationType"],
        integration_uri=integration.get("IntegrationUri"),
        integration_method=integration.get("IntegrationMethod"),
        payload_format_version=integration.get("PayloadFormatVersion"),
    )


@remote_error_handler("GetStage")
def get_stage(client: ApiGatewayV2Client, api_id: str, stage_name: str) -> Optional[Stage]:
    try:
        stage = client.get_stage(ApiId=api_id, StageName=stage_name)
    except ClientError as e:
        if is_not_found(e, NOT_FOUND_CODES):
            return None
        raise
    return Stage(
        auto_deploy=stage.get("AutoDeploy", False),
        description=stage.get("Description"),
        tags=stage.get("Tags") or {},
    )


@remote_error_handler("ListApis")
def list_api_resources(client: ApiGatewayV2Client, region: str) -> List[ResourceAddress]:
    """
    List every API in a region, each followed by its routes, integrations
    and stages.
    """
    results: List[ResourceAddress] = []
    for page in client.get_paginator("get_apis").paginate():
        for api in page.get("Items", []):
            api_id = api.get("ApiId")
            if not api_id:
                continue
            results.append(ApiAddress(region, api_id))

            for routes in client.get_paginator("get_routes").paginate(ApiId=api_id):
                results.extend(RouteAddress(region, api_id, r["RouteId"]) for r in routes.get("Items", []))
            for integrations in client.get_paginator("get_integrations").paginate(ApiId=api_id):
                results.extend(
                    IntegrationAddress(region, api_id, i["IntegrationId"]) for i in integrations.get("Items", [])
                )
            for stages in client.get_paginator("get_stages").paginate(ApiId=api_id):
                results.extend(StageAddress(region, api_id, s["StageName"]) for s in stages.get("Items", []))

    logger.debug(f"[APIGatewayV2] Listed {len(results)} resource(s) in {region}")
    return results
