"""
API Gateway v2 operations.
"""

from typing import Optional

from ...op import ConnectorOp, FieldUpdateOp, op_registry
from ...resource import TagMap
from .resource import Api, Integration, Route, Stage


class CreateApi(ConnectorOp):
    api: Api


class UpdateApi(FieldUpdateOp):
    name: Optional[str] = None
    description: Optional[str] = None
    route_selection_expression: Optional[str] = None


class UpdateApiTags(ConnectorOp):
    old: TagMap
    new: TagMap


class DeleteApi(ConnectorOp):
    pass


class CreateRoute(ConnectorOp):
    route: Route


class UpdateRoute(FieldUpdateOp):
    route_key: Optional[str] = None
    target: Optional[str] = None


class DeleteRoute(ConnectorOp):
    pass


class CreateIntegration(ConnectorOp):
    integration: Integration


class UpdateIntegration(FieldUpdateOp):
    integration_type: Optional[str] = None
    integration_uri: Optional[str] = None
    integration_method: Optional[str] = None
    payload_format_version: Optional[str] = None


class DeleteIntegration(ConnectorOp):
    pass


class CreateStage(ConnectorOp):
    stage: Stage


class UpdateStage(FieldUpdateOp):
    auto_deploy: Optional[bool] = None
    description: Optional[str] = None


class UpdateStageTags(ConnectorOp):
    old: TagMap
    new: TagMap


class DeleteStage(ConnectorOp):
    pass


APIGATEWAYV2_OPS = op_registry(
    CreateApi,
    UpdateApi,
    UpdateApiTags,
    DeleteApi,
    CreateRoute,
    UpdateRoute,
    DeleteRoute,
    CreateIntegration,
    UpdateIntegration,
    DeleteIntegration,
    CreateStage,
    UpdateStage,
    UpdateStageTags,
    DeleteStage,
)
