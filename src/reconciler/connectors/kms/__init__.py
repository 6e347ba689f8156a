from .connector import KmsConnector

__all__ = ["KmsConnector"]
