from .codec import (
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
    INTERNAL_ERROR,
    JsonRpcCodecError,
    decode_request,
    encode_error,
    encode_request,
    encode_response,
)
from .models import JsonRpcError, JsonRpcRequest, JsonRpcResponse
from .dispatcher import Dispatcher, JsonRpcAppError, default_error_mapper
from .stdio_transport import StdioTransport

__all__ = [
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonRpcError",
    "JsonRpcAppError",
    "Dispatcher",
    "default_error_mapper",
    "JsonRpcCodecError",
    "decode_request",
    "encode_request",
    "encode_response",
    "encode_error",
    "StdioTransport",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
]
