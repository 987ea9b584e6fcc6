"""Client for the script, image and speech generation models."""

import logging
from typing import Any, List, Optional

import httpx
from openai import AsyncOpenAI
from pydantic import ValidationError

from ..config import Config, config as default_config
from ..errors import (
    MalformedResponseError,
    MissingCredentialError,
    NoResourceFoundError,
    ResourceFetchError,
)
from ..models import Storyboard, StoryboardScene
from .parsing import SPEECH_PAUSE, clean_speech_text, extract_first_url, extract_json_object
from .prompts import StyleSelector, build_image_prompt, build_script_prompt, positional_style

logger = logging.getLogger(__name__)


class GenerationClient:
    """Wrapper around an OpenAI-compatible chat endpoint serving three bots.

    Every method performs exactly one remote chat call (plus one download
    for media) and normalises the reply. Calls are independent of each other
    and may run concurrently; they are not idempotent, so a repeated call can
    return different creative output.
    """

    DEFAULT_BASE_URL = "https://api.poe.com/v1"
    DEFAULT_SCRIPT_MODEL = "gemini-3-pro"
    DEFAULT_IMAGE_MODEL = "nano-banana-pro"
    DEFAULT_SPEECH_MODEL = "gemini-2.5-pro-tts"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        script_model: str = DEFAULT_SCRIPT_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
        speech_model: str = DEFAULT_SPEECH_MODEL,
        language: str = "Simplified Chinese",
        scene_count: int = 11,
        style_selector: StyleSelector = positional_style,
        fetch_timeout: float = 60.0,
        chat: Optional[Any] = None,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the generation client.

        Args:
            api_key: Credential for the chat endpoint.
            base_url: OpenAI-compatible API base URL.
            script_model: Bot that writes the storyboard.
            image_model: Bot that draws scene illustrations.
            speech_model: Bot that voices narration.
            language: Narration language used in prompts.
            scene_count: Default number of scenes per script.
            style_selector: Picks the visual style from the scene position.
            fetch_timeout: Timeout for media downloads in seconds.
            chat: Pre-built chat client (anything exposing
                ``chat.completions.create``). Created if not provided.
            http: Pre-built HTTP client for downloads. Created if not provided.

        Raises:
            MissingCredentialError: If ``api_key`` is empty.
        """
        if not api_key:
            raise MissingCredentialError(
                "API key not provided. Set POE_API_KEY (or GEMINI_API_KEY / API_KEY)."
            )

        self._owns_chat = chat is None
        self._owns_http = http is None
        self._chat = chat or AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._http = http or httpx.AsyncClient(timeout=fetch_timeout, follow_redirects=True)
        self._script_model = script_model
        self._image_model = image_model
        self._speech_model = speech_model
        self._language = language
        self._scene_count = scene_count
        self._style_selector = style_selector

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None, **kwargs: Any) -> "GenerationClient":
        """Build a client from application configuration."""
        cfg = cfg or default_config
        return cls(
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            script_model=cfg.script_model,
            image_model=cfg.image_model,
            speech_model=cfg.speech_model,
            language=cfg.language,
            scene_count=cfg.scene_count,
            fetch_timeout=cfg.fetch_timeout,
            **kwargs,
        )

    @property
    def style_selector(self) -> StyleSelector:
        return self._style_selector

    async def aclose(self) -> None:
        """Close transports created by this client."""
        if self._owns_http:
            await self._http.aclose()
        if self._owns_chat:
            await self._chat.close()

    async def __aenter__(self) -> "GenerationClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _complete(self, model: str, prompt: str) -> str:
        response = await self._chat.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.choices[0].message.content or ""

    async def _fetch(self, url: str) -> bytes:
        try:
            response = await self._http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ResourceFetchError(f"Failed to fetch resource {url}: {e}") from e
        return response.content

    async def generate_script(
        self,
        topic: str,
        context: str = "",
        scene_count: Optional[int] = None,
    ) -> List[StoryboardScene]:
        """Ask the script model for a scene-by-scene storyboard.

        Args:
            topic: Video topic.
            context: Detailed description or source material.
            scene_count: Scenes to request. Defaults to the client setting.

        Returns:
            Storyboard scenes in narrative order.

        Raises:
            MalformedResponseError: If the reply is empty, holds no JSON
                object, or the object is not a storyboard.
        """
        logger.info(f"Generating script for topic: {topic}")
        prompt = build_script_prompt(
            topic=topic,
            context=context,
            scene_count=scene_count or self._scene_count,
            language=self._language,
        )
        text = await self._complete(self._script_model, prompt)
        data = extract_json_object(text)

        try:
            storyboard = Storyboard.model_validate(data)
        except ValidationError as e:
            logger.debug(f"Raw script response: {text}")
            raise MalformedResponseError(f"Response is not a storyboard: {e}") from e

        logger.info(f"Script generated with {len(storyboard.scenes)} scenes")
        return storyboard.scenes

    async def generate_image(
        self,
        visual_description: str,
        narration: str,
        scene_index: int,
        total_scenes: int,
    ) -> bytes:
        """Draw one scene illustration.

        Returns:
            The encoded image exactly as served (no re-encoding).

        Raises:
            NoResourceFoundError: If the reply contains no URL.
            ResourceFetchError: If the image cannot be downloaded.
        """
        style = self._style_selector(scene_index, total_scenes)
        logger.info(
            f"Generating image for scene {scene_index + 1}/{total_scenes} ({style.value})"
        )
        prompt = build_image_prompt(
            style=style,
            visual_description=visual_description,
            narration=narration,
            scene_index=scene_index,
            language=self._language,
        )
        text = await self._complete(self._image_model, prompt)

        url = extract_first_url(text)
        if url is None:
            logger.error(f"No image URL found in response: {text[:200]}")
            raise NoResourceFoundError("No image URL found in response")

        logger.debug(f"Image URL found: {url}")
        return await self._fetch(url)

    async def generate_speech(self, text: str) -> bytes:
        """Voice one narration.

        Returns:
            The encoded audio exactly as served.

        Raises:
            NoResourceFoundError: If the reply contains no URL.
            ResourceFetchError: If the audio cannot be downloaded.
        """
        logger.info(f"Generating speech (length: {len(text)})")
        prompt = clean_speech_text(text) + SPEECH_PAUSE
        reply = await self._complete(self._speech_model, prompt)

        url = extract_first_url(reply)
        if url is None:
            logger.error(f"No audio URL found in response: {reply[:200]}")
            raise NoResourceFoundError("No audio URL found in response")

        logger.debug(f"Audio URL found: {url}")
        return await self._fetch(url)
