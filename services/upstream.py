"""HTTP fetching of resolved targets."""

import asyncio
from collections.abc import AsyncIterator

import httpx

from core.exceptions import UpstreamConnectionError, UpstreamRequestError, UpstreamTimeoutError
from core.request_types import PreparedFetch


class UpstreamClient:
    """Issue streaming GET requests against resolved targets.

    A single deadline, ``timeout`` seconds after the fetch starts, bounds both
    the wait for the response head and the streaming of the body.
    """

    def __init__(self, client: httpx.AsyncClient, timeout: float = 10.0) -> None:
        self._client = client
        self._timeout = timeout

    def deadline(self) -> float:
        """Event loop time at which a fetch started now must be finished."""
        return asyncio.get_running_loop().time() + self._timeout

    async def fetch(self, prepared: PreparedFetch, deadline: float | None = None) -> httpx.Response:
        """Send the request and return once the response head has arrived.

        The caller owns the returned response and must release it with close().
        """
        if deadline is None:
            deadline = self.deadline()
        try:
            request = self._client.build_request(
                "GET",
                prepared.target_url,
                headers=prepared.headers,
                timeout=self._timeout,
            )
        except (httpx.InvalidURL, UnicodeEncodeError, ValueError) as e:
            raise UpstreamRequestError(
                f"Could not build upstream request: {e}",
                target=prepared.target_url,
                url=prepared.raw_url,
            ) from None

        try:
            async with asyncio.timeout_at(deadline):
                return await self._client.send(request, stream=True)
        except (httpx.TimeoutException, TimeoutError):
            raise self._timeout_error(prepared) from None
        except httpx.RequestError as e:
            raise UpstreamConnectionError(
                f"Upstream connection error: {str(e) or type(e).__name__}",
                target=prepared.target_url,
                url=prepared.raw_url,
            ) from None

    async def iter_body(
        self,
        response: httpx.Response,
        prepared: PreparedFetch,
        deadline: float,
    ) -> AsyncIterator[bytes]:
        """Yield raw body chunks until the body ends or the deadline passes."""
        chunks = response.aiter_raw()
        while True:
            try:
                async with asyncio.timeout_at(deadline):
                    chunk = await anext(chunks)
            except StopAsyncIteration:
                return
            except (httpx.TimeoutException, TimeoutError):
                raise self._timeout_error(prepared) from None
            except httpx.HTTPError as e:
                raise UpstreamConnectionError(
                    f"Body stream aborted: {str(e) or type(e).__name__}",
                    target=prepared.target_url,
                    url=prepared.raw_url,
                ) from None
            yield chunk

    async def close(self, response: httpx.Response) -> None:
        """Clean up streaming resources."""
        await response.aclose()

    def _timeout_error(self, prepared: PreparedFetch) -> UpstreamTimeoutError:
        return UpstreamTimeoutError(
            f"Upstream did not respond within {self._timeout:g}s",
            target=prepared.target_url,
            url=prepared.raw_url,
        )
