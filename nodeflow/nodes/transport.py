"""Outbound HTTP for nodes that call external services."""

from __future__ import annotations

from typing import Any

import httpx

from nodeflow.core.cancellation import CancellationSignal
from nodeflow.errors.exceptions import ExternalCallError


async def post_json(
    url: str,
    payload: dict[str, Any],
    *,
    timeout: float,
    signal: CancellationSignal,
    service: str = "API",
) -> Any:
    """POST ``payload`` as JSON and return the decoded JSON body.

    The request races ``signal``; on cancellation the request task is
    cancelled and NodeCancelledError propagates.

    Args:
        url: Endpoint to call.
        payload: JSON body.
        timeout: Request timeout in seconds.
        signal: The run's cancellation signal.
        service: Service name used in error messages.

    Raises:
        ExternalCallError: On connection failure, timeout, non-2xx status
            or a body that is not JSON.
        NodeCancelledError: If the run is cancelled mid-request.
    """

    async def send() -> httpx.Response:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, json=payload)
            response.raise_for_status()
            return response

    try:
        response = await signal.run(send())
    except httpx.ConnectError:
        raise ExternalCallError(f"{service} not reachable at {url}", url=url)
    except httpx.TimeoutException:
        raise ExternalCallError(
            f"Request to {service} timed out after {timeout}s", url=url
        )
    except httpx.HTTPStatusError as e:
        raise ExternalCallError(
            f"API Error: {e.response.status_code} - {e.response.text}",
            url=url,
            status_code=e.response.status_code,
        )
    except httpx.HTTPError as e:
        raise ExternalCallError(f"{service} request failed: {e}", url=url)

    try:
        return response.json()
    except ValueError:
        raise ExternalCallError(f"Invalid response structure from {service}.", url=url)
