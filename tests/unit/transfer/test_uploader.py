"""Tests for TelegramUploader."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from pixelrelay.errors import RelayHTTPError, RelayNetworkError, UploadFailedError
from pixelrelay.transfer import TelegramUploader, Uploader
from pixelrelay.transfer.uploader import CAPTION_LIMIT


def make_api(reply=None, error=None) -> MagicMock:
    api = MagicMock()
    if error is not None:
        api.send_document = AsyncMock(side_effect=error)
    else:
        api.send_document = AsyncMock(return_value=reply)
    return api


@pytest.fixture
def staged(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"data")
    return path


class TestTelegramUploader:
    def test_satisfies_protocol(self):
        assert isinstance(TelegramUploader(MagicMock(), "42"), Uploader)

    @pytest.mark.asyncio
    async def test_success_returns_result(self, staged):
        api = make_api({"ok": True, "result": {"message_id": 9}})
        metrics = MagicMock()

        result = await TelegramUploader(api, "42", metrics).upload(staged, caption="hi")

        assert result == {"message_id": 9}
        api.send_document.assert_awaited_once_with("42", staged, caption="hi")
        metrics.increment.assert_called_once_with("pixelrelay.upload_success_total")

    @pytest.mark.asyncio
    async def test_long_caption_is_truncated(self, staged):
        api = make_api({"ok": True})
        await TelegramUploader(api, "42").upload(staged, caption="x" * 5000)
        caption = api.send_document.await_args.kwargs["caption"]
        assert len(caption) == CAPTION_LIMIT
        assert caption.endswith("…")

    @pytest.mark.asyncio
    async def test_rejected_reply(self, staged):
        api = make_api({"ok": False, "error_code": 413, "description": "Request Entity Too Large"})
        metrics = MagicMock()

        with pytest.raises(UploadFailedError) as exc_info:
            await TelegramUploader(api, "42", metrics).upload(staged)

        err = exc_info.value
        assert err.context["status_code"] == 413
        assert "Request Entity Too Large" in err.message
        metrics.increment.assert_called_once_with("pixelrelay.upload_failure_total")

    @pytest.mark.asyncio
    async def test_rejected_reply_without_description(self, staged):
        with pytest.raises(UploadFailedError, match="rejected by the server"):
            await TelegramUploader(make_api({"ok": False}), "42").upload(staged)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [RelayNetworkError("Network error on POST"), RelayHTTPError("HTTP 500 on POST")],
    )
    async def test_transport_errors(self, staged, error):
        with pytest.raises(UploadFailedError) as exc_info:
            await TelegramUploader(make_api(error=error), "42").upload(staged)
        assert exc_info.value.cause is error

    @pytest.mark.asyncio
    async def test_unreadable_file(self, staged):
        api = make_api(error=FileNotFoundError("gone"))
        with pytest.raises(UploadFailedError) as exc_info:
            await TelegramUploader(api, "42").upload(staged)
        assert isinstance(exc_info.value.cause, OSError)
