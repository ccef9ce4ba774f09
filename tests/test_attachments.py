"""Tests for council_chat/attachments.py."""

import base64

from council_chat.attachments import (
    FileAttachment, build_user_content, estimate_size, filter_attachments, parse_data_uri,
)

PNG = "data:image/png;base64,iVBORw0KGgo="


def test_parse_data_uri():
    parsed = parse_data_uri("data:text/plain;charset=utf-8;base64,aGVsbG8=")
    assert parsed == {"media_type": "text/plain", "base64": True, "payload": "aGVsbG8="}
    assert parse_data_uri("https://example.com/a.png") is None


def test_estimate_size_matches_decoded_length():
    assert estimate_size(parse_data_uri("data:text/plain;base64,aGVsbG8=")) == 5
    assert estimate_size(parse_data_uri("data:text/plain,hello")) == 5


def test_invalid_attachments_are_dropped_and_valid_ones_kept():
    big = base64.b64encode(b"x" * 2048).decode()
    parts = filter_attachments([
        FileAttachment(url="https://example.com/remote.png"),
        FileAttachment(url="data:application/zip;base64,UEsDBA=="),
        FileAttachment(url=f"data:text/plain;base64,{big}", filename="big.txt"),
        FileAttachment(url=PNG, filename="dot.png"),
    ])

    assert len(parts) == 1
    assert parts[0]["filename"] == "dot.png"
    assert parts[0]["media_type"] == "image/png"
    assert parts[0]["data"] == "iVBORw0KGgo="
    assert parts[0]["url"] == PNG


def test_declared_media_type_is_checked_against_allow_list():
    parts = filter_attachments([FileAttachment(url=PNG, media_type="application/x-msdownload")])
    assert parts == []


def test_invalid_base64_is_dropped():
    assert filter_attachments([FileAttachment(url="data:text/plain;base64,@@@not-base64@@@")]) == []


def test_plain_payload_is_reencoded_as_base64():
    parts = filter_attachments([FileAttachment(url="data:text/plain,hello%20world", filename="note.txt")])
    assert parts[0]["data"] == base64.b64encode(b"hello world").decode()
    assert parts[0]["url"].startswith("data:text/plain;base64,")


def test_explicit_limits_override_config():
    parts = filter_attachments([FileAttachment(url=PNG)], max_bytes=4)
    assert parts == []
    parts = filter_attachments(
        [FileAttachment(url="data:application/zip;base64,UEsDBA==")],
        allowed_media_types=["application/zip"],
    )
    assert len(parts) == 1


def test_build_user_content():
    assert build_user_content("Hello?", []) == "Hello?"
    assert build_user_content("Hello?", [FileAttachment(url="https://example.com/x.png")]) == "Hello?"

    content = build_user_content("Hello?", [FileAttachment(url=PNG)])
    assert content[0] == {"type": "text", "text": "Hello?"}
    assert content[1]["type"] == "file"
