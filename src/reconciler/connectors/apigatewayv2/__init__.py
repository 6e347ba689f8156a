from .connector import ApiGatewayV2Connector

__all__ = ["ApiGatewayV2Connector"]
