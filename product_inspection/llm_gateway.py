"""Chat-completion client for the AI gateway (OpenAI-compatible wire format)."""

from typing import Dict, List

import requests

from .errors import AnalysisFailedError, QuotaExhaustedError, RateLimitError
from .logger import get_logger

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = 'AI rate limit exceeded. Please try again later.'
QUOTA_MESSAGE = 'AI credits exhausted. Please add credits to your workspace.'
FAILURE_MESSAGE = 'AI analysis failed'


class ChatGateway:
    def __init__(self, api_key: str, endpoint: str, model: str,
                 session: requests.Session = None, timeout: float = 60, temperature: float = 0.7):
        self.api_key = api_key
        self.endpoint = endpoint
        self.model = model
        self.http = session or requests
        self.timeout = timeout
        self.temperature = temperature

    def complete(self, messages: List[Dict], max_tokens: int = 500) -> Dict:
        """
        Send one chat-completion request.

        Returns:
            The decoded JSON reply. Its shape is not checked here; callers
            extract the message content themselves.

        Raises:
            RateLimitError: gateway answered 429
            QuotaExhaustedError: gateway answered 402
            AnalysisFailedError: any other failure
        """
        try:
            response = self.http.post(
                self.endpoint,
                headers={
                    'Authorization': f'Bearer {self.api_key}',
                    'Content-Type': 'application/json',
                },
                json={
                    'model': self.model,
                    'messages': messages,
                    'temperature': self.temperature,
                    'max_tokens': max_tokens,
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error('AI gateway request failed: %s', e)
            raise AnalysisFailedError(FAILURE_MESSAGE) from e

        if not response.ok:
            logger.error('AI API error: %s %s', response.status_code, response.text[:500])
            if response.status_code == 429:
                raise RateLimitError(RATE_LIMIT_MESSAGE)
            if response.status_code == 402:
                raise QuotaExhaustedError(QUOTA_MESSAGE)
            raise AnalysisFailedError(FAILURE_MESSAGE)

        try:
            return response.json()
        except ValueError:
            # Not JSON at all: let the parser fall back like any other bad reply
            logger.warning('AI gateway returned a non-JSON body')
            return {}
