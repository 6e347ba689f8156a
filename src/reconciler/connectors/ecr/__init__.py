from .connector import EcrConnector

__all__ = ["EcrConnector"]
