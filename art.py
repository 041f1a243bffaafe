"""
Art generation: prompt composition, the provider call with hosting upload,
and the placeholder fallback used when the providers are not configured.
"""

import base64
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import cloudinary.exceptions
import cloudinary.uploader
import requests

logger = logging.getLogger(__name__)

UPLOAD_FOLDER = "mood_art_generator"
COLLECTION_TAG = "mood_art"
DEFAULT_CONTENT_TYPE = "image/png"

MOCK_IMAGE_URLS = {
    "happy": "https://placehold.co/600x450/FFD700/000000?text=Happy+Art",
    "sad": "https://placehold.co/600x450/87CEEB/FFFFFF?text=Sad+Art",
    "calm": "https://placehold.co/600x450/90EE90/000000?text=Calm+Art",
    "excited": "https://placehold.co/600x450/FF6347/FFFFFF?text=Excited+Art",
    "angry": "https://placehold.co/600x450/DC143C/FFFFFF?text=Angry+Art",
    "inspired": "https://placehold.co/600x450/BA55D3/FFFFFF?text=Inspired+Art",
    "mixed": "https://placehold.co/600x450/CCCCCC/000000?text=Mixed+Art",
}
DEFAULT_MOCK_IMAGE_URL = "https://placehold.co/600x450/A9A9A9/FFFFFF?text=Generated+Art"


# Prompt composition

def compose_prompt(
    mood: Optional[str] = None,
    prompt: Optional[str] = None,
    style: Optional[str] = None,
    colors: Optional[List[str]] = None,
) -> str:
    """Join mood, diary text, style and colors into one provider prompt.

    An empty diary text counts as absent. Nothing is validated here; a blank
    result is rejected by ``ArtGenerator``.
    """
    if prompt:
        art_prompt = f"{mood}, {prompt}" if mood else prompt
    else:
        art_prompt = mood or ""
    if style:
        art_prompt += f", in {style} style"
    if colors:
        art_prompt += f", with colors {', '.join(colors)}"
    return art_prompt


def collaboration_prompt(mood1: str, mood2: str) -> str:
    return f"Collaborative art blending {mood1} and {mood2}"


def prompt_key(prompt: str) -> str:
    """Lowercased text before the first comma, trimmed."""
    return prompt.lower().split(",")[0].strip()


def select_mock_image(prompt: str) -> str:
    return MOCK_IMAGE_URLS.get(prompt_key(prompt), DEFAULT_MOCK_IMAGE_URL)


# Errors

class InvalidPromptError(ValueError):
    pass


class GenerationErrorCode(str, Enum):
    AUTH_FAILURE = "auth_failure"
    RATE_LIMITED = "rate_limited"
    CONNECTIVITY_FAILURE = "connectivity_failure"
    GENERATION_FAILURE = "generation_failure"


class ArtGenerationError(Exception):
    def __init__(self, code: GenerationErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(frozen=True)
class GenerationResult:
    image_url: Optional[str] = None
    error: Optional[ArtGenerationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# Orchestration

@dataclass(frozen=True)
class ProviderConfig:
    api_url: str = ""
    api_token: str = ""
    cloud_name: str = ""
    cloud_api_key: str = ""
    cloud_api_secret: str = ""
    folder: str = UPLOAD_FOLDER
    # None blocks until the provider answers
    timeout: Optional[float] = None
    mock_delay_seconds: float = 3.0

    @property
    def is_complete(self) -> bool:
        return all(
            (
                self.api_url,
                self.api_token,
                self.cloud_name,
                self.cloud_api_key,
                self.cloud_api_secret,
            )
        )


class ArtGenerator:
    """Resolves a prompt to a hosted image URL.

    With a complete ``ProviderConfig`` the prompt is sent to the generation
    endpoint and the returned bytes are uploaded to Cloudinary. Otherwise a
    placeholder is picked from the prompt's leading mood after a fixed delay,
    so clients relying on the generation wait still see one.
    """

    def __init__(self, config: ProviderConfig):
        self.config = config

    def generate(self, prompt: str) -> str:
        if not isinstance(prompt, str) or not prompt.strip():
            raise InvalidPromptError("Art generation prompt cannot be empty or invalid.")

        if not self.config.is_complete:
            logger.warning(
                "Generation or Cloudinary credentials are missing. Using mock image generation."
            )
            image_url = select_mock_image(prompt)
            time.sleep(self.config.mock_delay_seconds)
            return image_url

        try:
            data_uri = self._request_image(prompt)
            return self._upload(data_uri, prompt)
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            logger.error("Art API returned HTTP %s: %s", status, exc)
            if status == 401:
                raise ArtGenerationError(
                    GenerationErrorCode.AUTH_FAILURE,
                    "AI API authentication failed. Check your ART_API_TOKEN.",
                ) from exc
            if status == 429:
                raise ArtGenerationError(
                    GenerationErrorCode.RATE_LIMITED,
                    "AI API rate limit exceeded. Please try again later.",
                ) from exc
            raise self._generic_failure() from exc
        except (
            requests.exceptions.SSLError,
            requests.exceptions.ProxyError,
            requests.exceptions.ConnectTimeout,
        ) as exc:
            logger.error("Art API request failed before a response: %s", exc)
            raise self._generic_failure() from exc
        except requests.ConnectionError as exc:
            # refused connections and DNS failures
            logger.error("Could not reach art API at %s: %s", self.config.api_url, exc)
            raise ArtGenerationError(
                GenerationErrorCode.CONNECTIVITY_FAILURE,
                "Could not connect to AI API. Check ART_API_URL or your internet connection.",
            ) from exc
        except (requests.RequestException, cloudinary.exceptions.Error, KeyError) as exc:
            logger.error("Error generating art or uploading to Cloudinary: %s", exc)
            raise self._generic_failure() from exc

    def try_generate(self, prompt: str) -> GenerationResult:
        try:
            return GenerationResult(image_url=self.generate(prompt))
        except ArtGenerationError as exc:
            return GenerationResult(error=exc)

    def _request_image(self, prompt: str) -> str:
        response = requests.post(
            self.config.api_url,
            json={"inputs": prompt},
            headers={
                "Authorization": f"Bearer {self.config.api_token}",
                "Content-Type": "application/json",
            },
            timeout=self.config.timeout,
        )
        response.raise_for_status()
        content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        encoded = base64.b64encode(response.content).decode("ascii")
        return f"data:{content_type};base64,{encoded}"

    def _upload(self, data_uri: str, prompt: str) -> str:
        result = cloudinary.uploader.upload(
            data_uri,
            folder=self.config.folder,
            use_filename=True,
            unique_filename=False,
            overwrite=False,
            tags=[prompt_key(prompt), COLLECTION_TAG],
            cloud_name=self.config.cloud_name,
            api_key=self.config.cloud_api_key,
            api_secret=self.config.cloud_api_secret,
        )
        return result["secure_url"]

    @staticmethod
    def _generic_failure() -> ArtGenerationError:
        return ArtGenerationError(
            GenerationErrorCode.GENERATION_FAILURE,
            "Failed to generate art from external service or upload image.",
        )
