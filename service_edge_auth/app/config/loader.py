"""
Config bundle loading for the edge auth gate.
"""

import json
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shared.errors import ConfigMalformed, ConfigUnavailable, ExternalServiceError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.once import AsyncOnce


class ConfigBundle(BaseModel):
    """Identity-provider settings stored in the parameter store.

    The stored JSON uses camelCase keys; the model exposes snake_case names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    idp_domain: str = Field(alias="cognitoDomain", min_length=1)
    client_id: str = Field(alias="clientId", min_length=1)
    client_secret: str = Field(alias="clientSecret", min_length=1)
    region: str = Field(alias="cognitoRegion", min_length=1)
    user_pool_id: str = Field(alias="userPoolId", min_length=1)
    callback_url: str = Field(alias="callbackUrl", min_length=1)


class ParameterSource(Protocol):
    async def get_parameter(self, name: str, decrypt: bool = True): ...


class ConfigLoader:
    """Loads the config bundle once per execution context."""

    def __init__(self, store: ParameterSource, parameter_name: str, metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.parameter_name = parameter_name
        self.metrics = metrics
        self.logger = get_logger("edge_auth.config")
        self._cell: AsyncOnce[ConfigBundle] = AsyncOnce(self._fetch)

    @property
    def cached(self) -> bool:
        return self._cell.ready

    async def load(self) -> ConfigBundle:
        """Return the config bundle, fetching it on first use.

        Raises:
            ConfigUnavailable: the store is unreachable or holds no value
            ConfigMalformed: the stored value is not a valid bundle
        """
        return await self._cell.get()

    async def _fetch(self) -> ConfigBundle:
        try:
            raw = await self.store.get_parameter(self.parameter_name, decrypt=True)
        except ExternalServiceError as e:
            self._record("unavailable")
            raise ConfigUnavailable(
                "Secret store unreachable",
                details={"parameter": self.parameter_name, **e.details},
            ) from e

        if not raw:
            self._record("unavailable")
            raise ConfigUnavailable(
                "Auth config not found in parameter store",
                details={"parameter": self.parameter_name},
            )

        try:
            bundle = ConfigBundle.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            self._record("malformed")
            raise ConfigMalformed(
                "Auth config does not match expected shape",
                details={"parameter": self.parameter_name, "error": str(e)},
            ) from e

        self._record("ok")
        self.logger.info(
            "Auth config loaded",
            parameter=self.parameter_name,
            idp_domain=bundle.idp_domain,
            user_pool_id=bundle.user_pool_id,
        )
        return bundle

    def _record(self, result: str) -> None:
        if self.metrics:
            self.metrics.record_config_load(result)
