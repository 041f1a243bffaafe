"""ArtGenerator: placeholder path, provider path and failure classification."""
from unittest.mock import MagicMock, patch

import cloudinary.exceptions
import pytest
import requests

from art import (
    MOCK_IMAGE_URLS,
    ArtGenerationError,
    ArtGenerator,
    GenerationErrorCode,
    InvalidPromptError,
    ProviderConfig,
)

FULL_CONFIG = ProviderConfig(
    api_url="https://api.example.com/models/sd",
    api_token="hf_token",
    cloud_name="demo",
    cloud_api_key="key",
    cloud_api_secret="secret",
)
SECURE_URL = "https://res.cloudinary.com/demo/image/upload/mood_art_generator/happy.png"


def _image_response(content=b"png", headers=None):
    response = MagicMock()
    response.content = content
    response.headers = {"content-type": "image/jpeg"} if headers is None else headers
    return response


def _http_error(status):
    upstream = requests.Response()
    upstream.status_code = status
    return requests.HTTPError(f"{status} error", response=upstream)


@pytest.mark.parametrize("prompt", ["", "   ", None])
def test_blank_prompt_is_rejected(prompt) -> None:
    with pytest.raises(InvalidPromptError):
        ArtGenerator(ProviderConfig(mock_delay_seconds=0)).generate(prompt)


def test_missing_config_uses_mock_after_delay() -> None:
    with patch("art.time.sleep") as sleep, patch("art.requests.post") as post:
        url = ArtGenerator(ProviderConfig()).generate("Sad")
    assert url == MOCK_IMAGE_URLS["sad"]
    sleep.assert_called_once_with(3.0)
    post.assert_not_called()


def test_partial_config_still_uses_mock() -> None:
    config = ProviderConfig(api_url="https://api.example.com", api_token="t", mock_delay_seconds=0)
    with patch("art.requests.post") as post, patch("art.cloudinary.uploader.upload") as upload:
        url = ArtGenerator(config).generate("Happy, sunny")
    assert url == MOCK_IMAGE_URLS["happy"]
    post.assert_not_called()
    upload.assert_not_called()


def test_provider_path_uploads_data_uri() -> None:
    with patch("art.requests.post", return_value=_image_response()) as post, patch(
        "art.cloudinary.uploader.upload", return_value={"secure_url": SECURE_URL}
    ) as upload:
        url = ArtGenerator(FULL_CONFIG).generate("Happy, in Abstract style")

    assert url == SECURE_URL
    post.assert_called_once()
    args, kwargs = post.call_args
    assert args[0] == FULL_CONFIG.api_url
    assert kwargs["json"] == {"inputs": "Happy, in Abstract style"}
    assert kwargs["headers"]["Authorization"] == "Bearer hf_token"

    upload_args, upload_kwargs = upload.call_args
    assert upload_args[0] == "data:image/jpeg;base64,cG5n"
    assert upload_kwargs["folder"] == "mood_art_generator"
    assert upload_kwargs["tags"] == ["happy", "mood_art"]
    assert upload_kwargs["cloud_name"] == "demo"
    assert upload_kwargs["overwrite"] is False


def test_missing_content_type_defaults_to_png() -> None:
    with patch("art.requests.post", return_value=_image_response(headers={})), patch(
        "art.cloudinary.uploader.upload", return_value={"secure_url": SECURE_URL}
    ) as upload:
        ArtGenerator(FULL_CONFIG).generate("Calm")
    assert upload.call_args[0][0].startswith("data:image/png;base64,")


@pytest.mark.parametrize(
    "status, code",
    [
        (401, GenerationErrorCode.AUTH_FAILURE),
        (429, GenerationErrorCode.RATE_LIMITED),
        (500, GenerationErrorCode.GENERATION_FAILURE),
        (503, GenerationErrorCode.GENERATION_FAILURE),
    ],
)
def test_http_errors_are_classified(status, code) -> None:
    response = _image_response()
    response.raise_for_status.side_effect = _http_error(status)
    with patch("art.requests.post", return_value=response), patch("art.cloudinary.uploader.upload") as upload:
        with pytest.raises(ArtGenerationError) as excinfo:
            ArtGenerator(FULL_CONFIG).generate("Angry")
    assert excinfo.value.code == code
    upload.assert_not_called()


def test_connection_error_is_connectivity_failure() -> None:
    with patch("art.requests.post", side_effect=requests.ConnectionError("Name or service not known")):
        with pytest.raises(ArtGenerationError) as excinfo:
            ArtGenerator(FULL_CONFIG).generate("Angry")
    assert excinfo.value.code == GenerationErrorCode.CONNECTIVITY_FAILURE


def test_timeout_is_generic_failure() -> None:
    with patch("art.requests.post", side_effect=requests.ReadTimeout("slow")):
        with pytest.raises(ArtGenerationError) as excinfo:
            ArtGenerator(FULL_CONFIG).generate("Angry")
    assert excinfo.value.code == GenerationErrorCode.GENERATION_FAILURE


@pytest.mark.parametrize(
    "upload_kwargs",
    [
        {"side_effect": cloudinary.exceptions.Error("Invalid Signature")},
        {"return_value": {}},
    ],
)
def test_upload_failures_are_generic(upload_kwargs) -> None:
    with patch("art.requests.post", return_value=_image_response()), patch(
        "art.cloudinary.uploader.upload", **upload_kwargs
    ):
        with pytest.raises(ArtGenerationError) as excinfo:
            ArtGenerator(FULL_CONFIG).generate("Mixed")
    assert excinfo.value.code == GenerationErrorCode.GENERATION_FAILURE


def test_try_generate_returns_result_values() -> None:
    with patch("art.requests.post", return_value=_image_response()), patch(
        "art.cloudinary.uploader.upload", return_value={"secure_url": SECURE_URL}
    ):
        result = ArtGenerator(FULL_CONFIG).try_generate("Happy")
    assert result.ok
    assert result.image_url == SECURE_URL

    with patch("art.requests.post", side_effect=requests.ConnectionError("refused")):
        result = ArtGenerator(FULL_CONFIG).try_generate("Happy")
    assert not result.ok
    assert result.image_url is None
    assert result.error.code == GenerationErrorCode.CONNECTIVITY_FAILURE


@pytest.mark.parametrize(
    "error",
    [
        requests.exceptions.SSLError("certificate verify failed"),
        requests.exceptions.ProxyError("proxy refused"),
        requests.exceptions.ConnectTimeout("connect timed out"),
    ],
)
def test_tls_proxy_and_connect_timeout_are_generic_failures(error) -> None:
    with patch("art.requests.post", side_effect=error):
        with pytest.raises(ArtGenerationError) as excinfo:
            ArtGenerator(FULL_CONFIG).generate("Angry")
    assert excinfo.value.code == GenerationErrorCode.GENERATION_FAILURE
