"""
Tests for storage locators, object keys and playback URL signing.

Test classes:
- TestLocatorCodec: "<bucket>,<key>" encoding and decoding
- TestObjectKeys: random identifiers and prefixed keys
- TestSignVideo: presigning stored locators at read time
"""

import re

import pytest

from tubely.core.exceptions import MalformedLocator
from tubely.models.locator import Locator, decode_locator, encode_locator
from tubely.models.video import Video
from tubely.utils.security import generate_object_key, generate_random_identifier


OBJECT_KEY_PATTERN = re.compile(r"^wide/[A-Za-z0-9_-]{43}\.mp4$")


@pytest.mark.unit
class TestLocatorCodec:
    """Tests for encode_locator/decode_locator."""

    def test_encode(self):
        assert encode_locator("tubely-videos", "wide/abc.mp4") == "tubely-videos,wide/abc.mp4"

    def test_locator_encode_matches_function(self):
        locator = Locator(bucket="tubely-videos", key="tall/xyz.mp4")
        assert locator.encode() == "tubely-videos,tall/xyz.mp4"

    def test_decode(self):
        assert decode_locator("tubely-videos,wide/abc.mp4") == Locator(
            bucket="tubely-videos", key="wide/abc.mp4"
        )

    def test_decode_none_is_none(self):
        assert decode_locator(None) is None

    @pytest.mark.parametrize(
        "value",
        ["", "no-delimiter", "a,b,c", ",key", "bucket,", ","],
    )
    def test_decode_malformed(self, value):
        with pytest.raises(MalformedLocator) as exc_info:
            decode_locator(value)
        assert exc_info.value.status_code == 500

    @pytest.mark.parametrize(
        "bucket,key",
        [("", "wide/a.mp4"), ("bucket", ""), ("buck,et", "wide/a.mp4"), ("bucket", "wi,de")],
    )
    def test_encode_rejects_ambiguous_parts(self, bucket, key):
        with pytest.raises(MalformedLocator):
            encode_locator(bucket, key)

    def test_decode_inverts_encode(self):
        value = encode_locator("b", "other/k.mp4")
        decoded = decode_locator(value)
        assert (decoded.bucket, decoded.key) == ("b", "other/k.mp4")


@pytest.mark.unit
class TestObjectKeys:
    """Tests for generate_random_identifier/generate_object_key."""

    def test_identifier_is_url_safe_without_padding(self):
        identifier = generate_random_identifier()
        assert len(identifier) == 43
        assert re.fullmatch(r"[A-Za-z0-9_-]+", identifier)

    def test_identifiers_differ(self):
        assert len({generate_random_identifier() for _ in range(50)}) == 50

    def test_object_key_shape(self):
        assert OBJECT_KEY_PATTERN.match(generate_object_key("wide", ".mp4"))

    def test_object_key_uses_prefix(self):
        assert generate_object_key("tall", ".mp4").startswith("tall/")

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            generate_random_identifier(0)


@pytest.mark.unit
class TestSignVideo:
    """Tests for VideoService.sign_video."""

    @pytest.mark.asyncio
    async def test_record_without_video_is_unchanged(self, video_service, mock_storage_client, user_id):
        video = Video(user_id=str(user_id), title="Draft")

        signed = await video_service.sign_video(video)

        assert signed is video
        mock_storage_client.generate_presigned_download_url.assert_not_called()

    @pytest.mark.asyncio
    async def test_signs_stored_locator_for_thirty_minutes(
        self, video_service, mock_storage_client, user_id
    ):
        video = Video(user_id=str(user_id), title="Clip", video_url="test-bucket,wide/abc.mp4")

        signed = await video_service.sign_video(video)

        mock_storage_client.generate_presigned_download_url.assert_called_once_with(
            "test-bucket", "wide/abc.mp4", 1800
        )
        assert signed.video_url.startswith("https://s3.example.com/test-bucket/wide/abc.mp4?")
        assert video.video_url == "test-bucket,wide/abc.mp4"

    @pytest.mark.asyncio
    async def test_malformed_locator_fails(self, video_service, mock_storage_client, user_id):
        video = Video(user_id=str(user_id), title="Clip", video_url="https://example.com/x.mp4")

        with pytest.raises(MalformedLocator):
            await video_service.sign_video(video)

        mock_storage_client.generate_presigned_download_url.assert_not_called()
