"""Tests for the presentation renderer."""

import json

from donutsmp_bot.components.presentation import (
    GENERIC_FAILURE_MESSAGE,
    MAX_MESSAGE_LENGTH,
    attachment_filename,
    render,
    render_error,
    render_failure,
    render_raw_json,
    render_text,
)
from donutsmp_bot.errors import DecodeError, UpstreamHttpError
from donutsmp_bot.services.normalizers import NormalizedFieldSet


class TestRender:
    """Tests for render()."""

    def test_layout(self) -> None:
        """Test title, body, fields and footer are assembled in order."""
        fields = NormalizedFieldSet(body="line one", footer="Page 1")
        fields.add("Username", "Notch", inline=True)
        fields.add("Rank", "VIP", inline=True)
        fields.add("💬 Message", "hello")

        message = render("🔍 Player Lookup: Notch", fields)

        assert message.text == (
            "<b>🔍 Player Lookup: Notch</b>\n\n"
            "line one\n\n"
            "<b>Username:</b> Notch  •  <b>Rank:</b> VIP\n\n"
            "<b>💬 Message</b>\nhello\n\n"
            "<i>Page 1</i>"
        )
        assert message.attachment is None

    def test_field_set_title_wins(self) -> None:
        """Test a normalizer title overrides the request title."""
        fields = NormalizedFieldSet(title="⚔️ Kills Leaderboard (Page 1)", body="x")
        message = render("🏆 Leaderboard", fields)
        assert message.text.startswith("<b>⚔️ Kills Leaderboard (Page 1)</b>")

    def test_plain_text_is_escaped(self) -> None:
        """Test title, field values and footer are escaped."""
        fields = NormalizedFieldSet(footer="a < b")
        fields.add("Name", "<script>")
        message = render("Tom & Jerry", fields)

        assert "<b>Tom &amp; Jerry</b>" in message.text
        assert "&lt;script&gt;" in message.text
        assert "<i>a &lt; b</i>" in message.text

    def test_body_is_capped(self) -> None:
        """Test an oversized body is cut back before sending."""
        fields = NormalizedFieldSet(body="x" * 5000)
        message = render("Title", fields)
        assert len(message.text) <= MAX_MESSAGE_LENGTH
        assert "... and more entries" in message.text

    def test_oversized_message_becomes_attachment(self) -> None:
        """Test messages over Telegram's limit are sent as a document."""
        fields = NormalizedFieldSet(body="x" * 3900)
        for index in range(20):
            fields.add(f"Field {index}", "y" * 50)

        message = render("Big", fields, path="/v1/auction/list/1")

        assert message.attachment is not None
        assert message.attachment.filename == "v1_auction_list_1.txt"
        assert message.text.startswith("<b>Big</b> — Response attached (")
        assert len(message.attachment.content) > MAX_MESSAGE_LENGTH

    def test_attachment_is_plain_text(self) -> None:
        """Test the overflow document carries no HTML markup."""
        fields = NormalizedFieldSet(body="Tom &amp; Jerry\n" + "x" * 3900)
        for index in range(20):
            fields.add(f"Field {index}", "y" * 50)

        message = render("Big <deal>", fields)

        assert message.attachment is not None
        content = message.attachment.content.decode()
        assert content.startswith("Big <deal>\n\nTom & Jerry\n")
        assert "<b>" not in content
        assert "&amp;" not in content


class TestRenderRawJson:
    """Tests for the raw JSON fallback."""

    def test_small_payload_inline(self) -> None:
        """Test small payloads are shown as pretty JSON."""
        message = render_raw_json("Shop", {"a": "<1>"}, "/v1/shop")

        assert message.attachment is None
        assert '<pre><code class="language-json">' in message.text
        assert "&lt;1&gt;" in message.text

    def test_large_payload_attached(self) -> None:
        """Test payloads over the body cap are uploaded as .json."""
        payload = {"items": ["x" * 100 for _ in range(60)]}

        message = render_raw_json("Shop", payload, "/v1/shop/items")

        assert message.attachment is not None
        assert message.attachment.filename == "v1_shop_items.json"
        assert json.loads(message.attachment.content) == payload
        size = len(message.attachment.content)
        assert message.text == f"<b>Shop</b> — Response attached ({size} bytes)"

    def test_attachment_filename(self) -> None:
        """Test paths map to file names."""
        assert attachment_filename("/v1/stats/Notch") == "v1_stats_Notch.json"
        assert attachment_filename("/") == "response.json"


class TestRenderErrors:
    """Tests for error rendering."""

    def test_upstream_error(self) -> None:
        """Test upstream errors carry status and path in the footer."""
        message = render_error(UpstreamHttpError(404, "/v1/stats/Ghost"))

        assert message.text.startswith("<b>DonutSMP API Error</b>")
        assert "Not Found" in message.text
        assert "<i>Status: 404 | Path: /v1/stats/Ghost</i>" in message.text

    def test_decode_error(self) -> None:
        """Test decode errors render their message."""
        message = render_error(DecodeError("bad data"))
        assert "Invalid button data: bad data" in message.text

    def test_failure(self) -> None:
        """Test the generic failure message."""
        assert GENERIC_FAILURE_MESSAGE in render_failure().text

    def test_render_text_guard(self) -> None:
        """Test pre-rendered text is guarded against the message limit."""
        assert render_text("short").attachment is None
        assert render_text("z" * 5000).attachment is not None
