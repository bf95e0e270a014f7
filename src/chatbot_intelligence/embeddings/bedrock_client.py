"""Bedrock client for AWS services."""

import json
import logging
import re

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    ReadTimeoutError,
)

from chatbot_intelligence.errors import (
    InvalidCredentialFormatError,
    MalformedResponseError,
    MissingCredentialError,
    TransportError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

ACCESS_KEY_ID_RE = re.compile(r"^(AKIA|ASIA)[A-Z0-9]{16}$")


def validate_aws_credentials(
    aws_access_key_id: str | None,
    aws_secret_access_key: str | None,
) -> None:
    """
    Validate an explicit AWS key pair.

    Both values empty means the default credential chain is used. Half a pair
    is treated as missing, and an access key id that is not shaped like one
    is rejected before any network call.
    """
    if not aws_access_key_id and not aws_secret_access_key:
        return
    if not aws_access_key_id or not aws_secret_access_key:
        raise MissingCredentialError("AWS access key id and secret must be set together")
    if not ACCESS_KEY_ID_RE.match(aws_access_key_id):
        raise InvalidCredentialFormatError("Invalid AWS access key id format")


class BedrockClient:
    """Client for interacting with AWS Bedrock."""

    def __init__(
        self,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        aws_region: str = "us-east-1",
        read_timeout: float = 30.0,
    ):
        """
        Initialize the Bedrock client.

        Args:
            aws_access_key_id: AWS access key ID (optional, uses credentials chain if not provided).
            aws_secret_access_key: AWS secret access key (optional, uses credentials chain if not provided).
            aws_region: AWS region for Bedrock.
            read_timeout: Socket read timeout in seconds.
        """
        validate_aws_credentials(aws_access_key_id, aws_secret_access_key)

        # Single attempt: callers own the fallback chain
        boto_config = BotoConfig(
            region_name=aws_region,
            retries={"max_attempts": 1, "mode": "standard"},
            read_timeout=read_timeout,
            connect_timeout=10,
            tcp_keepalive=True,
        )

        client_kwargs = {
            "service_name": "bedrock-runtime",
            "region_name": aws_region,
            "config": boto_config,
        }

        if aws_access_key_id and aws_secret_access_key:
            client_kwargs["aws_access_key_id"] = aws_access_key_id
            client_kwargs["aws_secret_access_key"] = aws_secret_access_key

        self.aws_region = aws_region
        self.client = boto3.client(**client_kwargs)
        logger.info(f"Initialized Bedrock client in {aws_region}")

    def invoke_model(
        self,
        model_id: str,
        body: str | bytes,
        agent_name: str = "Unknown",
    ) -> dict:
        """
        Invoke a Bedrock model and return the decoded JSON body.

        Args:
            model_id: The Bedrock model ID to invoke.
            body: Request body (JSON string or bytes).
            agent_name: Name for logging purposes.

        Returns:
            Parsed response body.

        Raises:
            MissingCredentialError: No credentials found in the chain.
            TransportError: Connection failure or timeout.
            UpstreamError: Bedrock rejected the request.
            MalformedResponseError: Response body is not JSON.
        """
        body_bytes = body.encode("utf-8") if isinstance(body, str) else body
        logger.debug(f"[{agent_name}] Invoking Bedrock model {model_id} ({len(body_bytes)} bytes)")

        try:
            response = self.client.invoke_model(
                modelId=model_id,
                body=body_bytes,
                contentType="application/json",
            )
            raw = response["body"].read()
        except NoCredentialsError as e:
            raise MissingCredentialError("AWS credentials not found") from e
        except (
            EndpointConnectionError,
            ConnectTimeoutError,
            ReadTimeoutError,
            BotoConnectionError,
        ) as e:
            logger.error(f"[{agent_name}] Bedrock transport failure for {model_id}: {e}")
            raise TransportError(f"Bedrock request failed: {type(e).__name__}") from e
        except ClientError as e:
            error = e.response.get("Error", {})
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            message = error.get("Message") or str(e)
            if "inference profile" in message.lower() or error.get("Code") == "ValidationException":
                logger.error(
                    f"[{agent_name}] Bedrock rejected {model_id}: {message}. "
                    "Check model access in the Bedrock console or use an inference profile ARN."
                )
            else:
                logger.error(f"[{agent_name}] Bedrock error for {model_id}: {message}")
            raise UpstreamError(message, status_code=status) from e
        except BotoCoreError as e:
            logger.error(f"[{agent_name}] Bedrock client error for {model_id}: {e}")
            raise TransportError(str(e)) from e

        try:
            return json.loads(raw)
        except ValueError as e:
            raise MalformedResponseError("Bedrock response body is not JSON") from e

    def invoke_messages(
        self,
        model_id: str,
        prompt: str,
        system: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        agent_name: str = "Unknown",
    ) -> str:
        """
        Invoke an Anthropic model through the Messages API.

        Args:
            model_id: The Bedrock model ID or inference profile ARN to invoke.
            prompt: The user prompt.
            system: Optional system prompt.
            max_tokens: Maximum tokens for the response.
            temperature: Sampling temperature (0.0 to 1.0).
            agent_name: Name for logging purposes.

        Returns:
            The text completion from the model.
        """
        request = {
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
            "anthropic_version": "bedrock-2023-05-31",
        }
        if system:
            request["system"] = system

        response_body = self.invoke_model(model_id, json.dumps(request), agent_name=agent_name)

        try:
            completion = response_body["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError("Bedrock Messages response has no text content") from e

        logger.info(f"[{agent_name}] Bedrock response received ({len(completion)} characters)")
        return completion.strip()

    def __repr__(self) -> str:
        """String representation."""
        return f"BedrockClient(region={self.aws_region})"
