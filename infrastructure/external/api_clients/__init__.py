"""
API客户端模块

提供与网关 REST API 集成的客户端实现
"""
from .base import BaseAPIClient, APIResponse
from .paygate_client import PaygateHttpClient

__all__ = [
    "BaseAPIClient",
    "APIResponse",
    "PaygateHttpClient",
]
