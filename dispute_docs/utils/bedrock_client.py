"""AWS Bedrock client wrapper for section text generation."""

import asyncio
import logging
import os
from typing import Dict, List, Optional, Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

from .errors import GenerationServiceError, handle_generation_error

# Ensure environment variables are loaded
load_dotenv()

logger = logging.getLogger(__name__)

JSON_RESPONSE_INSTRUCTION = (
    "Respond with exactly one JSON object and nothing else: no prose, "
    "no markdown fences, no trailing commentary."
)


class BedrockClient:
    """
    Wrapper for the AWS Bedrock Runtime Converse API.

    Each call is a single attempt: errors are classified into
    GenerationServiceError (rate limit, server, auth, ...) and retries are
    left to the caller's RetryPolicy. The blocking boto3 call runs in a
    worker thread so concurrent section requests overlap on the event loop.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        model_id: str = "anthropic.claude-3-5-sonnet-20240620-v1:0",
        timeout: int = 120,
        runtime: Optional[Any] = None
    ):
        """
        Initialize Bedrock client.

        Args:
            region: AWS region for Bedrock service
            model_id: Model identifier sent with every request
            timeout: Connect/read timeout in seconds
            runtime: Optional pre-built bedrock-runtime client (used in tests)
        """
        self.region = region
        self.model_id = model_id

        self._using_bearer_token = bool(
            os.getenv("AWS_BEARER_TOKEN_BEDROCK") or os.getenv("BEDROCK_API_KEY")
        )
        if self._using_bearer_token and not os.getenv("AWS_BEARER_TOKEN_BEDROCK"):
            os.environ["AWS_BEARER_TOKEN_BEDROCK"] = os.environ["BEDROCK_API_KEY"].strip()

        if runtime is not None:
            self.runtime = runtime
        else:
            config_kwargs: Dict[str, Any] = {
                "region_name": region,
                "connect_timeout": timeout,
                "read_timeout": timeout,
                "retries": {"max_attempts": 0},  # RetryPolicy handles retries
            }
            if self._using_bearer_token:
                config_kwargs["signature_version"] = "bearer"
            self.runtime = boto3.client("bedrock-runtime", config=Config(**config_kwargs))

        logger.info(
            f"Initialized BedrockClient: region={region}, model={model_id}, "
            f"auth={'api-key' if self._using_bearer_token else 'iam'}"
        )

    async def invoke_text(
        self,
        messages: List[Dict[str, Any]],
        system_prompts: Optional[List[Dict[str, Any]]] = None,
        temperature: float = 0.5,
        max_tokens: int = 1024,
        json_response: bool = True
    ) -> str:
        """
        Invoke the model once via the Converse API and return its text.

        Args:
            messages: List of message dicts with 'role' and 'content'
            system_prompts: Optional system prompts
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            json_response: Append the strict-JSON response instruction

        Returns:
            Concatenated text content of the assistant message

        Raises:
            GenerationServiceError: Classified service or transport failure
        """
        system = list(system_prompts or [])
        if json_response:
            system.append({"text": JSON_RESPONSE_INSTRUCTION})

        params: Dict[str, Any] = {
            "modelId": self.model_id,
            "messages": messages,
            "inferenceConfig": {
                "temperature": temperature,
                "maxTokens": max_tokens
            }
        }
        if system:
            params["system"] = system

        try:
            response = await asyncio.to_thread(self.runtime.converse, **params)
        except ClientError as e:
            handle_generation_error(e, "converse", logger)
        except BotoCoreError as e:
            raise GenerationServiceError.transport_failure(e, operation="converse") from e

        parsed = self._parse_converse_response(response)

        logger.debug(
            f"Converse call finished: stop_reason={parsed['stop_reason']}, "
            f"usage={parsed['usage']}"
        )
        if parsed["stop_reason"] == "max_tokens":
            logger.warning("Model output may be truncated (stop_reason=max_tokens)")

        return parsed["text"]

    def _parse_converse_response(self, response: Dict[str, Any]) -> Dict[str, Any]:
        """
        Parse Converse API response into a simplified format.

        Args:
            response: Raw response from Converse API

        Returns:
            Parsed response dict with 'text', 'stop_reason' and 'usage'
        """
        output = response.get("output", {})
        message = output.get("message", {})

        text_parts = [
            block["text"] for block in message.get("content", [])
            if isinstance(block, dict) and "text" in block
        ]

        return {
            "text": "\n".join(text_parts),
            "role": message.get("role", "assistant"),
            "stop_reason": response.get("stopReason", "unknown"),
            "usage": response.get("usage", {}),
        }
