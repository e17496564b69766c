"""Text-to-image client for the Stability SDXL endpoint.

The service answers with a JSON document holding one ``"base64"`` field per
generated image. The response is scanned leniently rather than parsed
against a schema: every ``"base64"`` value found in document order is a
candidate image, undecodable candidates are skipped, and the result is
padded with placeholder images so callers always receive exactly the number
of images they asked for.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
from itertools import islice
from typing import Any, Iterator, Optional

import httpx
import numpy as np
from PIL import Image

from config import GenerationSettings
from content_filter import PromptSafetyFilter
from errors import DECODE_ERROR, TRANSPORT_ERROR, DecodeError, TransportError
from interfaces import Transport
from logger import get_logger
from models import GenerationRequest, GenerationResult, ResultKind, TransportResponse
from selection import SelectionStateMachine

logger = get_logger("generation_client")

PROMPT_TEMPLATE = "A cute illustration of {keywords}{style}"

PROMPT_STYLE = (
    ", cute korean anime style, chibi style, pastel colors, sparkly eyes, clean lines, "
    "high quality, vibrant, manhwa style for kids, soft lighting, 3d render, "
    "child-friendly, wholesome, bright and cheerful"
)

IMAGE_MARKER = '"base64"'

# Yellow, shared by every placeholder.
PLACEHOLDER_COLOR = (255, 235, 4)


def iter_image_payloads(text: str) -> Iterator[bytes]:
    """Yield decoded bytes for each ``"base64": "..."`` value in ``text``."""
    position = 0
    while True:
        key_index = text.find(IMAGE_MARKER, position)
        if key_index == -1:
            return
        colon_index = text.find(":", key_index + len(IMAGE_MARKER))
        if colon_index == -1:
            return
        quote_start = text.find('"', colon_index)
        if quote_start == -1:
            return
        data_start = quote_start + 1
        data_end = text.find('"', data_start)
        if data_end == -1:
            return
        position = data_end + 1

        value = text[data_start:data_end]
        try:
            yield base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            logger.warning(f"Skipping payload that is not valid base64 at offset {data_start}")


def extract_image_payloads(text: str, max_count: int) -> list[bytes]:
    if max_count <= 0:
        return []
    return list(islice(iter_image_payloads(text), max_count))


def decode_image(data: bytes) -> Image.Image:
    """Materialise encoded image bytes.

    Any decoder failure is raised as DecodeError; a broken PNG chunk, for
    one, surfaces from Pillow as SyntaxError.
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except Exception as exc:
        raise DecodeError(f"undecodable image payload: {exc}") from exc
    return image


def create_placeholder_image(index: int = 0, size: int = 512) -> Image.Image:
    """Solid-color stand-in image; every index gets the same color."""
    pixels = np.full((size, size, 3), PLACEHOLDER_COLOR, dtype=np.uint8)
    return Image.fromarray(pixels)


class HttpxTransport:
    def __init__(self, client: Optional[httpx.AsyncClient] = None) -> None:
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

    async def post_json(
        self,
        url: str,
        headers: dict[str, str],
        body: dict,
        timeout_s: float,
    ) -> TransportResponse:
        try:
            response = await self._client.post(url, headers=headers, json=body, timeout=timeout_s)
        except httpx.TimeoutException as exc:
            raise TransportError(f"request timed out after {timeout_s}s") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"network error: {exc}") from exc
        return TransportResponse(status=response.status_code, body=response.text)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class GenerationClient:
    def __init__(
        self,
        settings: GenerationSettings,
        transport: Transport,
        safety_filter: Optional[PromptSafetyFilter] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._filter = safety_filter or PromptSafetyFilter()

    @property
    def settings(self) -> GenerationSettings:
        return self._settings

    def build_request(self, keywords: str, image_count: int) -> GenerationRequest:
        safe_keywords = self._filter.sanitize(keywords)
        negative_prompt = self._filter.negative_prompt()
        prompt = PROMPT_TEMPLATE.format(keywords=safe_keywords, style=PROMPT_STYLE)

        text_prompts: list[dict[str, Any]] = [{"text": prompt, "weight": 1}]
        if negative_prompt:
            text_prompts.append({"text": negative_prompt, "weight": -1})

        body = {
            "text_prompts": text_prompts,
            "cfg_scale": self._settings.cfg_scale,
            "height": self._settings.height,
            "width": self._settings.width,
            "samples": image_count,
            "steps": self._settings.steps,
        }
        return GenerationRequest(
            sanitized_prompt=prompt,
            negative_prompt=negative_prompt,
            image_count=image_count,
            timeout_s=self._settings.timeout_s,
            body=body,
        )

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def generate(self, keywords: str, image_count: Optional[int] = None) -> GenerationResult:
        count = self._settings.image_count if image_count is None else image_count
        if count <= 0:
            raise ValueError(f"image_count must be positive, got {count}")

        request = self.build_request(keywords, count)
        logger.info(f"Prompt: {request.sanitized_prompt}")
        logger.debug(f"Negative: {request.negative_prompt}")

        try:
            response = await asyncio.wait_for(
                self._transport.post_json(
                    self._settings.api_url,
                    self.headers(),
                    request.body,
                    request.timeout_s,
                ),
                timeout=request.timeout_s,
            )
        except asyncio.TimeoutError:
            logger.error(f"{TRANSPORT_ERROR}: no response within {request.timeout_s}s")
            return self.fallback(count)
        except TransportError as exc:
            logger.error(f"{exc.code}: {exc}")
            return self.fallback(count)
        except Exception as exc:
            logger.error(f"{TRANSPORT_ERROR}: {exc}")
            return self.fallback(count)

        if not response.ok:
            logger.error(
                f"{TRANSPORT_ERROR}: status {response.status}\nResponse: {(response.body or '')[:500]}"
            )
            return self.fallback(count)

        try:
            return self._process_response(response.body, count)
        except Exception as exc:
            logger.error(f"{DECODE_ERROR}: parse error: {exc}")
            return self.fallback(count)

    async def generate_from_selection(
        self, selection: SelectionStateMachine, image_count: Optional[int] = None
    ) -> GenerationResult:
        return await self.generate(selection.compose_prompt(), image_count)

    def fallback(self, image_count: int) -> GenerationResult:
        images = [self._placeholder(i) for i in range(image_count)]
        return GenerationResult(
            kind=ResultKind.FALLBACK, images=images, placeholder_count=image_count
        )

    def _process_response(self, body: str, image_count: int) -> GenerationResult:
        images: list[Image.Image] = []
        for payload in iter_image_payloads(body):
            try:
                image = decode_image(payload)
            except DecodeError as exc:
                logger.warning(f"{exc.code}: skipping payload, {exc}")
                continue
            images.append(image)
            if len(images) == image_count:
                break

        decoded = len(images)
        logger.info(f"Loaded {decoded} of {image_count} images")
        if decoded == 0:
            return self.fallback(image_count)

        images.extend(self._placeholder(i) for i in range(decoded, image_count))
        return GenerationResult(
            kind=ResultKind.SUCCESS, images=images, placeholder_count=image_count - decoded
        )

    def _placeholder(self, index: int) -> Image.Image:
        return create_placeholder_image(index, self._settings.placeholder_size)
