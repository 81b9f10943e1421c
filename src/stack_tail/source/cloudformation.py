"""AWS CloudFormation stack event source backed by boto3."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    NoRegionError,
    PartialCredentialsError,
    ProfileNotFound,
    ReadTimeoutError,
)

from ..config import Settings
from ..exceptions import (
    StackAuthError,
    StackNotFoundError,
    StackSourceError,
    TransientStackError,
)
from ..models import StackEvent, StackResource, StackStatus
from ..redaction import sanitize_text
from .base import StackEventSource

_AUTH_ERROR_CODES = frozenset(
    {
        "AccessDenied",
        "AccessDeniedException",
        "UnrecognizedClientException",
        "InvalidClientTokenId",
        "ExpiredToken",
        "ExpiredTokenException",
        "SignatureDoesNotMatch",
        "AuthFailure",
    }
)
_RATE_LIMIT_ERROR_CODES = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
    }
)
_TRANSIENT_ERROR_CODES = _RATE_LIMIT_ERROR_CODES | frozenset(
    {
        "ServiceUnavailable",
        "InternalFailure",
        "RequestTimeout",
    }
)
_CREDENTIAL_ERRORS = (NoCredentialsError, PartialCredentialsError, NoRegionError, ProfileNotFound)
_NETWORK_ERRORS = (
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
    ConnectionClosedError,
)


class CloudFormationSource(StackEventSource):
    """Reads stack events, resources and status from CloudFormation."""

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        client: Any | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        if client is None:
            client = self._build_client(settings)
        self._client = client

    @staticmethod
    def _build_client(settings: Settings) -> Any:
        # Retry policy lives in the tail controller, so botocore makes one attempt.
        boto_config = Config(
            connect_timeout=settings.connect_timeout_seconds,
            read_timeout=settings.read_timeout_seconds,
            retries={"max_attempts": 1, "mode": "standard"},
        )
        try:
            session = boto3.Session(
                profile_name=settings.aws_profile,
                region_name=settings.aws_region,
            )
            return session.client("cloudformation", config=boto_config)
        except _CREDENTIAL_ERRORS as exc:
            raise StackAuthError(
                f"Unable to configure CloudFormation client: {sanitize_text(str(exc))}",
                code=type(exc).__name__,
            ) from exc

    def close(self) -> None:
        close = getattr(self._client, "close", None)
        if callable(close):
            close()

    def fetch_events(self, stack_name: str) -> list[StackEvent]:
        """Fetch every page of ``describe_stack_events`` as one newest-first list."""
        raw_events: list[dict[str, Any]] = []
        pages = 0
        try:
            paginator = self._client.get_paginator("describe_stack_events")
            for page in paginator.paginate(StackName=stack_name):
                pages += 1
                raw_events.extend(page.get("StackEvents", []))
        except (ClientError, BotoCoreError) as exc:
            raise self._translate_error(exc, stack_name, "describe_stack_events") from exc

        self.logger.debug(
            "Fetched stack events stack=%s pages=%d events=%d",
            stack_name,
            pages,
            len(raw_events),
        )
        return [self._normalize_event(raw, stack_name) for raw in raw_events]

    def fetch_resources(self, stack_name: str) -> list[StackResource]:
        try:
            response = self._client.describe_stack_resources(StackName=stack_name)
        except (ClientError, BotoCoreError) as exc:
            raise self._translate_error(exc, stack_name, "describe_stack_resources") from exc

        raw_resources = response.get("StackResources", [])
        self.logger.debug(
            "Fetched stack resources stack=%s resources=%d", stack_name, len(raw_resources)
        )
        return [self._normalize_resource(raw) for raw in raw_resources]

    def fetch_stack_status(self, stack_name: str) -> StackStatus:
        try:
            response = self._client.describe_stacks(StackName=stack_name)
        except (ClientError, BotoCoreError) as exc:
            raise self._translate_error(exc, stack_name, "describe_stacks") from exc

        stacks = response.get("Stacks") or []
        if not stacks:
            raise StackNotFoundError(f"Stack {stack_name!r} does not exist.")
        stack = stacks[0]
        status = stack.get("StackStatus")
        if not isinstance(status, str) or not status:
            raise StackSourceError(
                f"describe_stacks returned no StackStatus for {stack_name!r}.",
                category="malformed",
            )
        return StackStatus(
            stack_name=stack.get("StackName") or stack_name,
            status=status,
            status_reason=stack.get("StackStatusReason"),
        )

    def _normalize_event(self, raw: dict[str, Any], stack_name: str) -> StackEvent:
        try:
            return StackEvent(
                event_id=raw["EventId"],
                stack_name=raw.get("StackName") or stack_name,
                logical_resource_id=raw.get("LogicalResourceId") or "",
                physical_resource_id=raw.get("PhysicalResourceId") or None,
                resource_type=raw.get("ResourceType") or "",
                timestamp=self._require_timestamp(raw.get("Timestamp")),
                status=raw.get("ResourceStatus") or "",
                status_reason=raw.get("ResourceStatusReason") or None,
            )
        except (KeyError, ValueError) as exc:
            raise StackSourceError(
                f"Malformed stack event in describe_stack_events response: {exc}",
                category="malformed",
            ) from exc

    def _normalize_resource(self, raw: dict[str, Any]) -> StackResource:
        try:
            return StackResource(
                logical_resource_id=raw["LogicalResourceId"],
                physical_resource_id=raw.get("PhysicalResourceId") or None,
                resource_type=raw["ResourceType"],
                status=raw["ResourceStatus"],
                status_reason=raw.get("ResourceStatusReason") or None,
                last_updated=self._require_timestamp(raw.get("Timestamp")),
            )
        except (KeyError, ValueError) as exc:
            raise StackSourceError(
                f"Malformed stack resource in describe_stack_resources response: {exc}",
                category="malformed",
            ) from exc

    @staticmethod
    def _require_timestamp(value: Any) -> datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            # botocore parses timestamps already; strings only show up in replayed payloads.
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        raise KeyError("Timestamp")

    def _translate_error(
        self,
        exc: ClientError | BotoCoreError,
        stack_name: str,
        operation: str,
    ) -> StackSourceError:
        if isinstance(exc, _CREDENTIAL_ERRORS):
            return StackAuthError(
                f"{operation} failed: {sanitize_text(str(exc))}",
                code=type(exc).__name__,
            )
        if isinstance(exc, _NETWORK_ERRORS):
            return TransientStackError(
                f"{operation} failed: {sanitize_text(str(exc))}",
                category="network",
                code=type(exc).__name__,
            )
        if isinstance(exc, BotoCoreError):
            return StackSourceError(
                f"{operation} failed: {sanitize_text(str(exc))}",
                code=type(exc).__name__,
            )

        error = exc.response.get("Error", {})
        code = str(error.get("Code") or "")
        message = sanitize_text(str(error.get("Message") or exc))
        http_status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")

        if code == "ValidationError" and "does not exist" in message:
            return StackNotFoundError(f"Stack {stack_name!r} does not exist.", code=code)
        if code in _AUTH_ERROR_CODES or http_status in (401, 403):
            return StackAuthError(f"{operation} was not authorized: {message}", code=code)
        if code in _TRANSIENT_ERROR_CODES:
            return TransientStackError(
                f"{operation} throttled or unavailable: {message}",
                category="rate_limit" if code in _RATE_LIMIT_ERROR_CODES else "server",
                code=code,
            )
        if isinstance(http_status, int) and http_status >= 500:
            return TransientStackError(
                f"{operation} failed with HTTP {http_status}: {message}",
                category="server",
                code=code,
            )
        return StackSourceError(f"{operation} failed ({code or 'unknown'}): {message}", code=code)
