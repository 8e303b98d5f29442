"""Tests for inbound frame accumulation and outbound encoding."""

import json

from family_steward.framing import (
    MAX_BUFFER_CHARS,
    Complete,
    FrameParser,
    Incomplete,
    Invalid,
    encode_frame,
)


def messages(results: list) -> list[dict]:
    return [r.message for r in results if isinstance(r, Complete)]


def test_bare_json_line():
    parser = FrameParser()
    results = parser.feed('{"id": 1, "method": "tools/list"}\n')
    assert results == [Complete({"id": 1, "method": "tools/list"})]
    assert parser.buffered == ""


def test_content_length_frame_across_lines():
    parser = FrameParser()
    body = '{"id": 2, "method": "prompts/list"}'
    assert parser.feed(f"Content-Length: {len(body)}\r\n") == [Incomplete()]
    assert parser.feed("\r\n") == []
    assert messages(parser.feed(body)) == [{"id": 2, "method": "prompts/list"}]
    assert parser.buffered == ""


def test_content_length_header_is_case_insensitive():
    parser = FrameParser()
    parser.feed("content-length: 12\r\n")
    assert messages(parser.feed('{"id": "x"}')) == [{"id": "x"}]


def test_header_value_does_not_bound_the_payload():
    parser = FrameParser()
    parser.feed("Content-Length: 3\r\n")
    assert messages(parser.feed('{"id": 1, "method": "initialize"}')) == [
        {"id": 1, "method": "initialize"}
    ]


def test_partial_message_stays_buffered_until_completed():
    parser = FrameParser()
    assert parser.feed('{"id": 1, "method":') == [Incomplete()]
    assert parser.buffered == '{"id": 1, "method":'
    assert messages(parser.feed(' "resources/list"}')) == [
        {"id": 1, "method": "resources/list"}
    ]


def test_pretty_printed_message_accumulates():
    parser = FrameParser()
    lines = json.dumps({"id": 7, "method": "tools/list", "params": {}}, indent=2).split("\n")
    results = []
    for line in lines:
        results.extend(parser.feed(line + "\n"))
    assert messages(results) == [{"id": 7, "method": "tools/list", "params": {}}]


def test_blank_line_does_not_reset_partial_frame():
    parser = FrameParser()
    parser.feed('{"id": 1,')
    assert parser.feed("\n") == []
    assert parser.feed("   \r\n") == []
    assert parser.buffered == '{"id": 1,'
    assert messages(parser.feed('"method": "x"}')) == [{"id": 1, "method": "x"}]


def test_two_messages_in_one_chunk():
    parser = FrameParser()
    chunk = '{"id":1,"method":"resources/list"}{"id":2,"method":"prompts/list"}'
    assert messages(parser.feed(chunk)) == [
        {"id": 1, "method": "resources/list"},
        {"id": 2, "method": "prompts/list"},
    ]


def test_frame_followed_by_next_header_on_same_line():
    parser = FrameParser()
    parser.feed("Content-Length: 9\r\n")
    results = parser.feed('{"id": 1}Content-Length: 9')
    assert messages(results) == [{"id": 1}]
    assert results[-1] == Incomplete()
    assert messages(parser.feed('{"id": 2}')) == [{"id": 2}]


def test_header_text_inside_a_bare_message_is_not_a_header():
    parser = FrameParser()
    body = {"id": 1, "method": "x", "params": {"note": "Content-Length: 5"}}
    assert messages(parser.feed(json.dumps(body))) == [body]


def test_unframed_junk_is_dropped_without_wedging():
    parser = FrameParser()
    results = parser.feed("hello there\n")
    assert len(results) == 1
    assert isinstance(results[0], Invalid)
    assert parser.buffered == ""
    assert messages(parser.feed('{"id": 3}')) == [{"id": 3}]


def test_malformed_fragment_dropped_when_next_message_starts():
    """A fragment that never completes is discarded silently once a new frame begins."""
    parser = FrameParser()
    assert parser.feed('{"id": 1, oops') == [Incomplete()]
    results = parser.feed('{"id": 2, "method": "tools/list"}')
    assert isinstance(results[0], Invalid)
    assert messages(results) == [{"id": 2, "method": "tools/list"}]


def test_header_waiting_for_payload_is_not_dropped_by_payload_line():
    parser = FrameParser()
    parser.feed("Content-Length: 10\r\n")
    results = parser.feed('{"id": 10}')
    assert not any(isinstance(r, Invalid) for r in results)
    assert messages(results) == [{"id": 10}]


def test_oversized_buffer_is_discarded():
    parser = FrameParser()
    parser.feed('{"data": "')
    results = parser.feed("x" * (MAX_BUFFER_CHARS + 1))
    assert isinstance(results[-1], Invalid)
    assert parser.buffered == ""


def test_encode_frame_uses_byte_length():
    payload = json.dumps({"text": "café"}, ensure_ascii=False)
    frame = encode_frame(payload)
    header, _, body = frame.partition(b"\r\n\r\n")
    assert header == b"Content-Length: %d" % len(payload.encode())
    assert len(payload.encode()) == len(payload) + 1
    assert body.decode() == payload
