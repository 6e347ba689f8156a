from .connector import VpcConnector

__all__ = ["VpcConnector"]
