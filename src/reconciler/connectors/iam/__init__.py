from .connector import IamConnector

__all__ = ["IamConnector"]
