"""
API Gateway v2 resource documents.
"""

from typing import Optional

from pydantic import Field

from ...resource import ResourceModel, TagMap


class Api(ResourceModel):
    name: str
    # HTTP or WEBSOCKET
    protocol_type: str
    description: Optional[str] = None
    # Required for WEBSOCKET APIs; HTTP APIs use the AWS default
    route_selection_expression: Optional[str] = None
    tags: TagMap = Field(default_factory=dict)


class Route(ResourceModel):
    # e.g. "GET /items" or "$default"
    route_key: str
    # "integrations/<integration id>", naming an integration of the same API
    target: Optional[str] = None


class Integration(ResourceModel):
    # AWS_PROXY, HTTP_PROXY, MOCK, ...
    integration_type: str
    integration_uri: Optional[str] = None
    integration_method: Optional[str] = None
    payload_format_version: Optional[str] = None


class Stage(ResourceModel):
    auto_deploy: bool = False
    description: Optional[str] = None
    tags: TagMap = Field(default_factory=dict)
