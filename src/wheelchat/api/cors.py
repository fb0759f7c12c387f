"""CORS middleware for the storefront widget."""

from fastapi import Response, status
from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware

_BODY_HEADERS = ("content-length", "content-type")


class WidgetCORSMiddleware(CORSMiddleware):
    """``CORSMiddleware`` whose accepted preflights carry an empty body.

    Rejected preflights keep Starlette's 400 with the failure text.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != status.HTTP_200_OK:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in _BODY_HEADERS
        }
        return Response(status_code=status.HTTP_200_OK, headers=headers)
