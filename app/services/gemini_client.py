# app/services/gemini_client.py
from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

_TRANSIENT = (429, 500, 502, 503, 504)


class GeminiError(RuntimeError):
    pass


class GeminiClient:
    """Thin client for the Gemini ``generateContent`` REST endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_factor: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url or settings.gemini_base_url
        self.api_key = api_key or settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.timeout = timeout if timeout is not None else settings.gemini_timeout
        self.max_retries = max_retries if max_retries is not None else settings.gemini_max_retries
        self.backoff_factor = (
            backoff_factor if backoff_factor is not None else settings.gemini_backoff_factor
        )

        if not self.api_key:
            raise GeminiError("GEMINI_API_KEY is not configured")

        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=transport
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def build_payload(
        system_instruction: str,
        prompt: str,
        *,
        response_schema: Optional[Dict[str, Any]] = None,
        image: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = []
        if image is not None:
            parts.append({
                "inlineData": {
                    "mimeType": mime_type or "application/octet-stream",
                    "data": base64.b64encode(image).decode("ascii"),
                }
            })
        parts.append({"text": prompt})

        payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if response_schema is not None:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }
        return payload

    async def generate(
        self,
        system_instruction: str,
        prompt: str,
        *,
        response_schema: Optional[Dict[str, Any]] = None,
        image: Optional[bytes] = None,
        mime_type: Optional[str] = None,
        model: Optional[str] = None,
    ) -> str:
        """
        Run one generateContent call and return the concatenated candidate text.
        The text may be empty; judging it is the caller's job.
        Raises GeminiError on transport failure.
        """
        payload = self.build_payload(
            system_instruction,
            prompt,
            response_schema=response_schema,
            image=image,
            mime_type=mime_type,
        )
        path = f"/models/{model or self.model}:generateContent"
        headers = {"x-goog-api-key": self.api_key}

        last_exc: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                res = await self._client.post(path, headers=headers, json=payload)
            except httpx.TransportError as e:
                last_exc = e
            else:
                if res.status_code not in _TRANSIENT:
                    if res.status_code >= 400:
                        # 4xx will not improve on retry
                        raise GeminiError(f"HTTP {res.status_code}: {res.text[:200]}")
                    try:
                        data = res.json()
                    except ValueError as e:
                        raise GeminiError(f"Response body is not JSON: {e}") from e
                    return self._extract_text(data)
                last_exc = GeminiError(f"Transient HTTP {res.status_code}: {res.text[:200]}")

            if attempt >= self.max_retries:
                break
            sleep_s = self.backoff_factor * (2 ** attempt)
            logger.warning(
                "Gemini call failed (attempt %d): %s; retrying in %.1fs", attempt + 1, last_exc, sleep_s
            )
            await asyncio.sleep(sleep_s)

        raise GeminiError(f"Gemini call failed after retries: {last_exc}")

    @staticmethod
    def _extract_text(data: Any) -> str:
        if not isinstance(data, dict):
            raise GeminiError(f"Unexpected response body: {data!r}"[:200])
        candidates = data.get("candidates") or []
        if not isinstance(candidates, list):
            raise GeminiError(f"Unexpected candidates: {candidates!r}"[:200])
        if not candidates:
            return ""
        candidate = candidates[0]
        content = candidate.get("content") if isinstance(candidate, dict) else None
        if content is None and isinstance(candidate, dict):
            # blocked or truncated candidates carry no content
            return ""
        if not isinstance(content, dict):
            raise GeminiError(f"Unexpected candidate: {candidate!r}"[:200])
        parts = content.get("parts") or []
        if not isinstance(parts, list):
            raise GeminiError(f"Unexpected content parts: {parts!r}"[:200])
        texts = []
        for p in parts:
            if not isinstance(p, dict):
                raise GeminiError(f"Unexpected content part: {p!r}"[:200])
            text = p.get("text")
            if text is None:
                continue
            if not isinstance(text, str):
                raise GeminiError(f"Unexpected part text: {text!r}"[:200])
            texts.append(text)
        return "".join(texts)
