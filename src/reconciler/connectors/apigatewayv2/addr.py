"""
API Gateway v2 address variants.

    aws/apigatewayv2/<region>/apis/<api_id>.json
    aws/apigatewayv2/<region>/apis/<api_id>/routes/<route_id>.json
    aws/apigatewayv2/<region>/apis/<api_id>/integrations/<integration_id>.json
    aws/apigatewayv2/<region>/apis/<api_id>/stages/<stage_name>.json

API, route and integration ids are assigned by AWS; stage names are chosen by
the user.
"""

from dataclasses import dataclass
from typing import List

from ...address import PhyKey, ResourceAddress


@dataclass(frozen=True)
class ApiAddress(ResourceAddress):
    TEMPLATE = "aws/apigatewayv2/{region}/apis/{api_id}.json"

    region: str
    api_id: str

    def phy_keys(self) -> List[PhyKey]:
        return [PhyKey("api_id", self, "api_id")]


@dataclass(frozen=True)
class RouteAddress(ResourceAddress):
    TEMPLATE = "aws/apigatewayv2/{region}/apis/{api_id}/routes/{route_id}.json"

    region: str
    api_id: str
    route_id: str

    @property
    def api(self) -> ApiAddress:
        return ApiAddress(self.region, self.api_id)

    def phy_keys(self) -> List[PhyKey]:
        return [PhyKey("api_id", self.api, "api_id"), PhyKey("route_id", self, "route_id")]


@dataclass(frozen=True)
class IntegrationAddress(ResourceAddress):
    TEMPLATE = "aws/apigatewayv2/{region}/apis/{api_id}/integrations/{integration_id}.json"

    region: str
    api_id: str
    integration_id: str

    @property
    def api(self) -> ApiAddress:
        return ApiAddress(self.region, self.api_id)

    def phy_keys(self) -> List[PhyKey]:
        return [PhyKey("api_id", self.api, "api_id"), PhyKey("integration_id", self, "integration_id")]


@dataclass(frozen=True)
class StageAddress(ResourceAddress):
    TEMPLATE = "aws/apigatewayv2/{region}/apis/{api_id}/stages/{stage_name}.json"

    region: str
    api_id: str
    stage_name: str

    @property
    def api(self) -> ApiAddress:
        return ApiAddress(self.region, self.api_id)

    def phy_keys(self) -> List[PhyKey]:
        return [PhyKey("api_id", self.api, "api_id")]


APIGATEWAYV2_ADDRESS_TYPES = (ApiAddress, RouteAddress, IntegrationAddress, StageAddress)
