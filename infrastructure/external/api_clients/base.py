"""
REST API客户端基类

提供通用的HTTP请求功能，包括：
- 幂等请求自动重试（POST 不重试，避免重复取消/扣款）
- 错误处理（统一抛出 GatewayApiException）
- 请求/响应日志
- 认证支持
- 超时控制
"""
import asyncio
import json
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass
from enum import Enum
import httpx
import logging
from datetime import datetime

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

from domain.common.exceptions import GatewayApiException

logger = logging.getLogger(__name__)


class HTTPMethod(Enum):
    """HTTP方法枚举"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


IDEMPOTENT_METHODS = {"GET", "PUT", "DELETE", "HEAD", "OPTIONS"}


@dataclass
class APIResponse:
    """API响应封装"""
    status_code: int
    headers: Dict[str, str]
    data: Any
    raw_content: bytes
    elapsed_ms: float
    request_id: Optional[str] = None

    @property
    def is_success(self) -> bool:
        """判断请求是否成功"""
        return 200 <= self.status_code < 300

    @property
    def is_error(self) -> bool:
        """判断请求是否失败"""
        return self.status_code >= 400

    def json(self) -> Any:
        """获取JSON响应"""
        if self.data is not None:
            return self.data
        if not self.raw_content:
            return {}
        return json.loads(self.raw_content)


class RetryableAPIError(Exception):
    """可重试的API错误（仅在重试循环内部使用）"""

    def __init__(self, response: APIResponse, retry_after: Optional[float] = None):
        super().__init__(f"Transient API error with status {response.status_code}")
        self.response = response
        self.retry_after = retry_after


RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


class BaseAPIClient:
    """
    REST API客户端基类

    提供通用的HTTP请求功能，子类可以继承并实现具体的API调用
    """

    def __init__(
        self,
        base_url: str,
        timeout: Union[float, httpx.Timeout] = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        headers: Optional[Dict[str, str]] = None,
        verify_ssl: bool = True,
        debug: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        初始化API客户端

        Args:
            base_url: API基础URL
            timeout: 请求超时时间（秒或 httpx.Timeout）
            max_retries: 幂等请求最大重试次数
            retry_delay: 重试延迟（秒）
            headers: 默认请求头
            verify_ssl: 是否验证SSL证书
            debug: 是否开启调试模式
            transport: 自定义 httpx 传输层（测试时注入 MockTransport）
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.verify_ssl = verify_ssl
        self.debug = debug
        self._transport = transport

        self.default_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if headers:
            self.default_headers.update(headers)

        self._client: Optional[httpx.AsyncClient] = None

    def set_auth_token(self, token: str, header_name: str = "Authorization", prefix: str = "Bearer"):
        """设置认证令牌"""
        self.default_headers[header_name] = f"{prefix} {token}" if prefix else token

    @property
    def client(self) -> httpx.AsyncClient:
        """获取或创建HTTP客户端"""
        if self._client is None:
            timeout = self.timeout if isinstance(self.timeout, httpx.Timeout) else httpx.Timeout(self.timeout)
            self._client = httpx.AsyncClient(
                timeout=timeout,
                verify=self.verify_ssl,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """关闭HTTP客户端"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _build_url(self, endpoint: str) -> str:
        """构建完整URL"""
        endpoint = endpoint.lstrip('/')
        return f"{self.base_url}/{endpoint}"

    def _log_request(self, method: str, url: str, **kwargs):
        """记录请求日志"""
        if self.debug:
            logger.debug(
                f"API Request: {method} {url}",
                extra={
                    "method": method,
                    "url": url,
                    "params": kwargs.get("params"),
                    "json": kwargs.get("json"),
                    "headers": {k: v for k, v in kwargs.get("headers", {}).items()
                              if k.lower() != "authorization"}
                }
            )

    def _log_response(self, response: APIResponse):
        """记录响应日志"""
        if self.debug:
            logger.debug(
                f"API Response: {response.status_code}",
                extra={
                    "status_code": response.status_code,
                    "elapsed_ms": response.elapsed_ms,
                    "request_id": response.request_id,
                    "data": response.data if response.status_code < 400 else None
                }
            )

    def _handle_error_response(self, response: APIResponse):
        """处理错误响应，子类可覆盖以解析网关错误体"""
        message = f"API request failed with status {response.status_code}"
        if isinstance(response.data, dict):
            message = (
                response.data.get("message") or
                response.data.get("error") or
                response.data.get("detail") or
                message
            )
        raise GatewayApiException(
            message,
            status_code=response.status_code,
            error_id=response.request_id,
        )

    async def _request(
        self,
        method: Union[str, HTTPMethod],
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> APIResponse:
        """
        发送HTTP请求

        Args:
            method: HTTP方法
            endpoint: API端点
            params: 查询参数
            json_data: JSON数据
            headers: 请求头
            **kwargs: 其他httpx参数

        Returns:
            APIResponse: API响应

        Raises:
            GatewayApiException: 网关返回错误或传输失败
        """
        if isinstance(method, HTTPMethod):
            method = method.value

        url = self._build_url(endpoint)

        request_headers = {**self.default_headers}
        if headers:
            request_headers.update(headers)

        self._log_request(method, url, params=params, json=json_data, headers=request_headers)

        async def _send_once() -> APIResponse:
            start_time = datetime.now()
            response = await self.client.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                headers=request_headers,
                **kwargs
            )

            elapsed = (datetime.now() - start_time).total_seconds() * 1000

            content_type = response.headers.get("content-type", "")
            response_data = None

            if "application/json" in content_type:
                try:
                    response_data = response.json()
                except json.JSONDecodeError:
                    response_data = None

            api_response = APIResponse(
                status_code=response.status_code,
                headers=dict(response.headers),
                data=response_data,
                raw_content=response.content,
                elapsed_ms=elapsed,
                request_id=response.headers.get("x-request-id")
            )

            self._log_response(api_response)

            if api_response.is_error and api_response.status_code in RETRY_STATUS_CODES:
                retry_after: Optional[float] = None
                if api_response.status_code == 429:
                    retry_header = api_response.headers.get("retry-after")
                    try:
                        if retry_header:
                            retry_after = float(retry_header)
                    except (TypeError, ValueError):
                        retry_after = None
                    if retry_after:
                        await asyncio.sleep(retry_after)
                raise RetryableAPIError(api_response, retry_after=retry_after)

            if api_response.is_error:
                self._handle_error_response(api_response)

            return api_response

        attempts = self.max_retries + 1 if method in IDEMPOTENT_METHODS else 1
        retrying = AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(
                multiplier=self.retry_delay,
                min=self.retry_delay,
                max=self.retry_delay * 8
            ),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError, RetryableAPIError)),
            before_sleep=before_sleep_log(logger, logging.WARNING)
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await _send_once()
        except httpx.TimeoutException as exc:
            raise GatewayApiException(f"Request timeout after {self.timeout}s") from exc
        except httpx.NetworkError as exc:
            raise GatewayApiException(f"Network error: {exc}") from exc
        except RetryableAPIError as exc:
            self._handle_error_response(exc.response)
        raise GatewayApiException("Request failed without response")

    async def get(self, endpoint: str, **kwargs) -> APIResponse:
        """GET请求"""
        return await self._request(HTTPMethod.GET, endpoint, **kwargs)

    async def post(self, endpoint: str, **kwargs) -> APIResponse:
        """POST请求"""
        return await self._request(HTTPMethod.POST, endpoint, **kwargs)

    async def put(self, endpoint: str, **kwargs) -> APIResponse:
        """PUT请求"""
        return await self._request(HTTPMethod.PUT, endpoint, **kwargs)

    async def delete(self, endpoint: str, **kwargs) -> APIResponse:
        """DELETE请求"""
        return await self._request(HTTPMethod.DELETE, endpoint, **kwargs)
