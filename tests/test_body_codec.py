import unittest

from threadbridge.models.chat import ChatAttachment
from threadbridge.services import body_codec


def _encode(content="hello", attachments=(), channel_id="222", message_id="333"):
    return body_codec.encode(
        "Alice",
        "42",
        "abc123",
        "111",
        channel_id,
        message_id,
        content,
        attachments,
    )


class BodyCodecEncodeTests(unittest.TestCase):
    def test_encode_renders_author_link_and_content(self):
        body = _encode()

        link = "https://discord.com/channels/111/222/333"
        self.assertIn(f"[Alice]({link})  `BOT`", body)
        self.assertIn(
            f"<kbd>[![Alice](https://cdn.discordapp.com/avatars/42/abc123.webp?size=40)]({link})</kbd>",
            body,
        )
        self.assertIn("\n\nhello\n", body)

    def test_encode_renders_png_and_jpeg_attachments_only(self):
        attachments = [
            ChatAttachment(url="https://cdn/a.png", name="a.png", content_type="image/png"),
            ChatAttachment(url="https://cdn/b.jpg", name="b.jpg", content_type="image/jpeg"),
            ChatAttachment(url="https://cdn/c.gif", name="c.gif", content_type="image/gif"),
            ChatAttachment(url="https://cdn/d.zip", name="d.zip", content_type=None),
        ]
        body = _encode(attachments=attachments)

        self.assertIn("![a.png](https://cdn/a.png 'a.png')", body)
        self.assertIn("![b.jpg](https://cdn/b.jpg 'b.jpg')", body)
        self.assertNotIn("c.gif", body)
        self.assertNotIn("d.zip", body)

    def test_encode_is_deterministic(self):
        self.assertEqual(_encode(), _encode())

    def test_encode_rejects_ids_decode_could_not_recover(self):
        for channel_id, message_id in (("C1", "333"), ("222", "M7"), ("", "333")):
            with self.subTest(channel_id=channel_id, message_id=message_id):
                with self.assertRaises(ValueError):
                    _encode(channel_id=channel_id, message_id=message_id)

    def test_every_encoded_body_decodes(self):
        body = _encode(channel_id="1234567890123456789", message_id="9876543210987654321")

        self.assertEqual(body_codec.decode(body).message_id, "9876543210987654321")


class BodyCodecDecodeTests(unittest.TestCase):
    def test_decode_recovers_encoded_identity(self):
        ref = body_codec.decode(_encode(channel_id="9001", message_id="9002"))

        self.assertIsNotNone(ref)
        self.assertEqual(ref.guild_id, "111")
        self.assertEqual(ref.channel_id, "9001")
        self.assertEqual(ref.message_id, "9002")

    def test_decode_ignores_surrounding_human_text(self):
        body = "Edited by a maintainer:\n\n" + _encode() + "\n\n> quoted reply\nthanks!"

        ref = body_codec.decode(body)

        self.assertEqual((ref.channel_id, ref.message_id), ("222", "333"))

    def test_decode_returns_none_for_human_bodies(self):
        for body in (
            None,
            "",
            "Steps to reproduce: open the app",
            "see https://discord.com/channels/1/2 for context",
            # Bare link, not inside a markdown link.
            "https://discord.com/channels/1/2/3 ",
            "[x](https://discord.com/channels/a/b/c)",
        ):
            with self.subTest(body=body):
                self.assertIsNone(body_codec.decode(body))
                self.assertFalse(body_codec.is_echo(body))

    def test_decode_uses_first_link(self):
        body = "[a](https://discord.com/channels/1/2/3) [b](https://discord.com/channels/4/5/6)"

        ref = body_codec.decode(body)

        self.assertEqual((ref.guild_id, ref.channel_id, ref.message_id), ("1", "2", "3"))

    def test_is_echo_for_encoded_body(self):
        self.assertTrue(body_codec.is_echo(_encode()))


if __name__ == "__main__":
    unittest.main()
