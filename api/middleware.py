"""CORS handling applied to every route."""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,HEAD,PUT,PATCH,POST,DELETE",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Max-Age": "86400",
}


class AllowAnyOriginMiddleware(BaseHTTPMiddleware):
    """Answer preflights and force ``Access-Control-Allow-Origin: *`` on responses."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method == "OPTIONS":
            headers = dict(PREFLIGHT_HEADERS)
            requested = request.headers.get("access-control-request-headers")
            if requested:
                headers["Access-Control-Allow-Headers"] = requested
            return Response(status_code=204, headers=headers)

        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response
