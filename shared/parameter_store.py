"""
Parameter store access for the edge auth gate.
"""

import asyncio
import functools
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from shared.errors import ExternalServiceError
from shared.logging import get_logger

logger = get_logger("edge_auth.parameter_store")


class ParameterStore:
    """
    Reads parameters from AWS Systems Manager Parameter Store.

    The boto3 client is synchronous, so lookups run in the default executor
    to keep the event loop free.
    """

    def __init__(self, region: str, client: Optional[Any] = None, timeout: float = 5.0):
        """
        Initialize the parameter store.

        Args:
            region: AWS region holding the parameter
            client: Pre-built SSM client (tests inject a stub)
            timeout: Connect/read timeout in seconds
        """
        self.region = region
        self._client = client or boto3.client(
            "ssm",
            region_name=region,
            config=Config(
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"max_attempts": 1},
            ),
        )

    def get_parameter_sync(self, name: str, decrypt: bool = True) -> Optional[str]:
        """
        Fetch a parameter value.

        Args:
            name: Parameter name
            decrypt: Whether to decrypt SecureString values

        Returns:
            The parameter value, or None when the parameter does not exist
            or is empty

        Raises:
            ExternalServiceError: If the store cannot be reached
        """
        try:
            result = self._client.get_parameter(Name=name, WithDecryption=decrypt)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code == "ParameterNotFound":
                logger.warning("Parameter not found", name=name)
                return None
            raise ExternalServiceError(
                "ssm",
                "GetParameter failed",
                details={"name": name, "error_code": error_code},
            ) from e
        except BotoCoreError as e:
            raise ExternalServiceError(
                "ssm",
                "Parameter store unreachable",
                details={"name": name, "error": str(e)},
            ) from e

        value = (result.get("Parameter") or {}).get("Value")
        return value or None

    async def get_parameter(self, name: str, decrypt: bool = True) -> Optional[str]:
        """Async wrapper around :meth:`get_parameter_sync`."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(self.get_parameter_sync, name, decrypt)
        )
