# app/forms/api_client.py
from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

CONSENT_PATH = "/api/consent"
SURVEYS_PATH = "/api/surveys"


class NetworkError(Exception):
    """No hubo respuesta del servidor (fallo de transporte)."""


class ApiError(Exception):
    """El servidor respondió con error; ``message`` es el texto que reportó."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class StudyApiClient:
    """Cliente de la API de consentimientos/encuestas sobre un httpx.AsyncClient."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def submit_consent(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._post(CONSENT_PATH, payload)

    async def submit_survey(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._post(SURVEYS_PATH, payload)

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self.client.post(path, json=payload)
        except httpx.RequestError as e:
            logger.warning("Request to %s failed: %s", path, e)
            raise NetworkError(str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error:
            message = body.get("error") or body.get("message") or f"Server returned {response.status_code}"
            logger.info("API rejected %s (%s): %s", path, response.status_code, message)
            raise ApiError(response.status_code, str(message))
        return body
