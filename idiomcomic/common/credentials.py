"""
Credential supply and the credential-selection collaborator.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """
    API credentials handed to a backend client at construction time.

    Attributes
    ----------
    llm_api_key:
        Key for the LiteLLM-routed text and speech models. ``None`` lets LiteLLM
        fall back to its own provider-specific environment variables.
    replicate_api_token:
        Token for Replicate image and video models.
    """

    llm_api_key: str | None = None
    replicate_api_token: str | None = None


class CredentialProvider(Protocol):
    def get_credentials(self) -> Credentials:
        ...

    async def has_credential(self) -> bool:
        """Whether a credential usable for video generation is currently selected."""
        ...

    async def request_credential_selection(self) -> None:
        """Ask the user (or the environment) to select a credential."""
        ...


class EnvironmentCredentialProvider:
    """
    Reads credentials from process environment variables on every request.

    Environment variables:
        OPENAI_API_KEY / LITELLM_API_KEY  - text and speech models
        REPLICATE_API_TOKEN               - image and video models
    """

    def __init__(
        self,
        *,
        llm_api_key: str | None = None,
        replicate_api_token: str | None = None,
    ) -> None:
        self._llm_api_key = llm_api_key
        self._replicate_api_token = replicate_api_token

    def get_credentials(self) -> Credentials:
        return Credentials(
            llm_api_key=self._llm_api_key
            or os.getenv("OPENAI_API_KEY")
            or os.getenv("LITELLM_API_KEY"),
            replicate_api_token=self._replicate_api_token or os.getenv("REPLICATE_API_TOKEN"),
        )

    async def has_credential(self) -> bool:
        return bool(self.get_credentials().replicate_api_token)

    async def request_credential_selection(self) -> None:
        logger.warning(
            "No usable video generation credential. Set REPLICATE_API_TOKEN and try again."
        )
