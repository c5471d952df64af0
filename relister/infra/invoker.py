"""Remote function invocation over AWS Lambda or plain HTTP."""

from __future__ import annotations

import json
import random
from typing import Any, Protocol, TypeVar

import boto3
import httpx
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from ..config import TransportConfig
from ..errors import RemoteBusinessFailure, TransportFailure

ModelT = TypeVar("ModelT", bound=BaseModel)


class Transport(Protocol):
    """Moves a JSON payload to a named function and returns the raw response text."""

    def send(self, function_ref: str, body: str) -> str:
        ...

    def refresh(self, function_ref: str) -> None:
        ...


class LambdaTransport:
    """Invoke functions synchronously through the Lambda API."""

    def __init__(self, client: Any = None, region: str | None = None) -> None:
        self.client = client or boto3.client("lambda", region_name=region)

    def send(self, function_ref: str, body: str) -> str:
        try:
            response = self.client.invoke(FunctionName=function_ref, Payload=body.encode("utf-8"))
        except (BotoCoreError, ClientError) as exc:
            raise TransportFailure(function_ref, str(exc)) from exc
        return response["Payload"].read().decode("utf-8")

    def refresh(self, function_ref: str) -> None:
        # A configuration change forces fresh execution environments
        try:
            self.client.update_function_configuration(
                FunctionName=function_ref, Description=f"{random.random()}"
            )
        except (BotoCoreError, ClientError) as exc:
            raise TransportFailure(function_ref, str(exc)) from exc


class HttpTransport:
    """POST payloads to ``{base_url}/functions/{ref}/invoke``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 900.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.client = client or httpx.Client(base_url=base_url, timeout=httpx.Timeout(timeout))

    def send(self, function_ref: str, body: str) -> str:
        try:
            response = self.client.post(
                f"/functions/{function_ref}/invoke",
                content=body.encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise TransportFailure(function_ref, str(exc)) from exc
        if response.status_code >= 400:
            raise TransportFailure(function_ref, f"HTTP {response.status_code}: {response.text}")
        return response.text

    def refresh(self, function_ref: str) -> None:
        try:
            response = self.client.post(f"/functions/{function_ref}/refresh")
        except httpx.HTTPError as exc:
            raise TransportFailure(function_ref, str(exc)) from exc
        if response.status_code >= 400:
            raise TransportFailure(function_ref, f"HTTP {response.status_code}: {response.text}")

    def close(self) -> None:
        self.client.close()


def build_transport(config: TransportConfig) -> Transport:
    if config.kind == "http":
        return HttpTransport(config.base_url or "", timeout=config.timeout_seconds)
    return LambdaTransport(region=config.region)


class RemoteInvoker:
    """Call a named remote function and unwrap its ``{success, result}`` envelope.

    No retries happen here; callers decide what a failure means.
    """

    def __init__(self, transport: Transport, logger: structlog.BoundLogger | None = None) -> None:
        self.transport = transport
        self.logger = logger or structlog.get_logger("relister.invoker")

    def invoke(self, function_ref: str, payload: dict[str, Any]) -> Any:
        raw = self.transport.send(function_ref, json.dumps(payload, ensure_ascii=False))
        try:
            envelope = json.loads(raw)
        except ValueError as exc:
            raise TransportFailure(function_ref, raw) from exc
        if not isinstance(envelope, dict):
            raise TransportFailure(function_ref, raw)
        if envelope.get("errorMessage") or envelope.get("errorType"):
            raise TransportFailure(function_ref, raw)
        if not isinstance(envelope.get("success"), bool):
            raise TransportFailure(function_ref, raw)
        if envelope["success"] is False:
            raise RemoteBusinessFailure(function_ref)
        return envelope.get("result")

    def call(self, function_ref: str, payload: dict[str, Any], model: type[ModelT]) -> ModelT:
        """Invoke and validate the result into ``model``; bad shapes raise ValidationError."""

        return model.model_validate(self.invoke(function_ref, payload))

    def refresh(self, function_ref: str) -> None:
        """Best-effort remedial restart of a misbehaving function."""

        self.logger.info("refresh_requested", function=function_ref)
        try:
            self.transport.refresh(function_ref)
        except TransportFailure as exc:
            self.logger.warning("refresh_failed", function=function_ref, error=exc.raw)


__all__ = [
    "HttpTransport",
    "LambdaTransport",
    "RemoteInvoker",
    "Transport",
    "build_transport",
]
