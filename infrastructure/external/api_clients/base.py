"""
REST API客户端基类

提供通用的HTTP请求功能，包括：
- 可配置的重试（默认不重试）
- 错误处理（按状态码映射异常）
- 请求/响应日志
- 超时控制（未配置时沿用 httpx 默认值）
"""
import asyncio
import json
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass
from enum import Enum
import httpx
from pydantic import BaseModel
import logging
from datetime import datetime

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

logger = logging.getLogger(__name__)


class HTTPMethod(Enum):
    """HTTP方法枚举"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


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
        return 200 <= self.status_code < 300

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400

    def json(self) -> Any:
        """获取JSON响应"""
        if self.data is not None:
            return self.data
        return json.loads(self.raw_content)


class APIError(Exception):
    """API错误基类"""
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[APIResponse] = None,
        request_id: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.response = response
        self.request_id = request_id
        super().__init__(self.message)

    def __str__(self):
        parts = [self.message]
        if self.status_code:
            parts.append(f"Status: {self.status_code}")
        if self.request_id:
            parts.append(f"Request ID: {self.request_id}")
        return " | ".join(parts)


class ConflictError(APIError):
    """资源冲突（如用户名已存在）"""
    pass


class NotFoundError(APIError):
    """资源未找到错误"""
    pass


class ServerError(APIError):
    """服务器错误"""
    pass


class RetryableAPIError(APIError):
    """可重试的API错误"""

    def __init__(self, message: str, status_code: Optional[int], response: Optional[APIResponse]):
        super().__init__(
            message=message,
            status_code=status_code,
            response=response,
            request_id=response.request_id if response else None,
        )


RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


class BaseAPIClient:
    """
    REST API客户端基类

    提供通用的HTTP请求功能，子类可以继承并实现具体的API调用
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        max_retries: int = 0,
        retry_delay: float = 1.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        debug: bool = False
    ):
        """
        初始化API客户端

        Args:
            base_url: API基础URL
            timeout: 请求超时时间（秒），None 表示使用 httpx 默认值
            max_retries: 最大重试次数，0 表示失败即放弃
            retry_delay: 重试延迟（秒）
            headers: 默认请求头
            transport: 自定义传输层（测试时可直连 ASGI 应用）
            debug: 是否开启调试模式
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.transport = transport
        self.debug = debug

        self.default_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": "MineEquipmentLedger/1.0"
        }
        if headers:
            self.default_headers.update(headers)

        self._client: Optional[httpx.AsyncClient] = None

    @property
    async def client(self) -> httpx.AsyncClient:
        """获取或创建HTTP客户端"""
        if self._client is None:
            options: Dict[str, Any] = {"follow_redirects": True}
            if self.timeout is not None:
                options["timeout"] = httpx.Timeout(self.timeout)
            if self.transport is not None:
                options["transport"] = self.transport
            self._client = httpx.AsyncClient(**options)
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

    def _handle_error_response(self, status_code: int, response: APIResponse):
        """处理错误响应"""
        error_map = {
            404: NotFoundError,
            409: ConflictError,
            500: ServerError,
            502: ServerError,
            503: ServerError,
            504: ServerError
        }

        error_class = error_map.get(status_code, APIError)

        error_message = f"API request failed with status {status_code}"
        if isinstance(response.data, dict):
            error_message = (
                response.data.get("message") or
                response.data.get("error") or
                response.data.get("detail") or
                error_message
            )

        raise error_class(
            message=str(error_message),
            status_code=status_code,
            response=response,
            request_id=response.request_id
        )

    async def _request(
        self,
        method: Union[str, HTTPMethod],
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Union[Dict[str, Any], BaseModel]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> APIResponse:
        """
        发送HTTP请求

        Raises:
            APIError: 网络错误、超时或非 2xx 响应
        """
        if isinstance(method, HTTPMethod):
            method = method.value

        url = self._build_url(endpoint)

        request_headers = {**self.default_headers}
        if headers:
            request_headers.update(headers)

        if isinstance(json_data, BaseModel):
            json_data = json_data.model_dump(exclude_unset=True)

        if self.debug:
            logger.debug(f"API Request: {method} {url}")

        async def _send_once() -> APIResponse:
            start_time = datetime.now()
            client = await self.client
            response = await client.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                headers=request_headers,
            )

            elapsed = (datetime.now() - start_time).total_seconds() * 1000

            response_data = None
            if "application/json" in response.headers.get("content-type", ""):
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

            if self.debug:
                logger.debug(f"API Response: {api_response.status_code} ({elapsed:.1f}ms)")

            if api_response.is_error and api_response.status_code in RETRY_STATUS_CODES:
                raise RetryableAPIError(
                    message=f"Transient API error with status {api_response.status_code}",
                    status_code=api_response.status_code,
                    response=api_response,
                )

            if api_response.is_error:
                self._handle_error_response(api_response.status_code, api_response)

            return api_response

        retrying = AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.max_retries + 1),
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
            raise APIError(f"Request timeout: {exc}") from exc
        except httpx.NetworkError as exc:
            raise APIError(f"Network error: {exc}") from exc
        except RetryableAPIError as exc:
            if exc.response:
                self._handle_error_response(exc.status_code or exc.response.status_code, exc.response)
            raise APIError(exc.message) from exc
        except APIError:
            raise
        except (httpx.HTTPError, asyncio.TimeoutError) as exc:
            logger.error(f"Unexpected error during API request: {exc}")
            raise APIError(f"Unexpected error: {exc}") from exc

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
