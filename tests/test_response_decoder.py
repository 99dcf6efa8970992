import pytest

from music_agent.errors import UnparseableResponse
from music_agent.response_decoder import decode_response, extract_sse_payload


def test_decodes_plain_json():
    envelope = decode_response('{"jsonrpc": "2.0", "result": {"tools": []}, "id": 1}')
    assert envelope.result == {"tools": []}
    assert envelope.id == 1
    assert envelope.has_result
    assert not envelope.is_error


def test_decodes_bytes():
    envelope = decode_response(b'{"jsonrpc": "2.0", "result": 5, "id": "abc"}')
    assert envelope.result == 5
    assert envelope.id == "abc"


def test_decodes_event_stream_frame():
    body = 'event: message\ndata: {"jsonrpc": "2.0", "result": {"ok": true}, "id": 2}\n\n'
    envelope = decode_response(body)
    assert envelope.result == {"ok": True}
    assert envelope.id == 2


def test_event_stream_skips_done_sentinel_and_other_fields():
    body = 'id: 7\nevent: message\ndata: {"jsonrpc": "2.0", "result": 1, "id": 3}\ndata: [DONE]\n\n'
    assert decode_response(body).result == 1


def test_split_data_lines_are_concatenated():
    body = 'data: {"jsonrpc": "2.0",\ndata: "result": 42, "id": 4}\n\n'
    assert decode_response(body).result == 42


def test_error_member_is_exposed():
    envelope = decode_response(
        '{"jsonrpc": "2.0", "error": {"code": -32602, "message": "Unknown tool: foo"}, "id": 1}'
    )
    assert envelope.is_error
    assert envelope.error.code == -32602
    assert envelope.error.message == "Unknown tool: foo"


def test_null_result_still_counts_as_result():
    envelope = decode_response('{"jsonrpc": "2.0", "result": null, "id": 1}')
    assert envelope.has_result
    assert envelope.result is None


def test_garbage_raises_with_snippet():
    body = "<html>" + "x" * 500
    with pytest.raises(UnparseableResponse) as exc_info:
        decode_response(body)
    assert exc_info.value.snippet == body[:200]
    assert str(exc_info.value).startswith("Unable to parse response: <html>")


def test_event_stream_with_bad_json_raises():
    with pytest.raises(UnparseableResponse):
        decode_response("data: {not json}\n\n")


def test_non_object_json_raises():
    with pytest.raises(UnparseableResponse):
        decode_response("[1, 2, 3]")


def test_extract_sse_payload_ignores_comments():
    assert extract_sse_payload(": keep-alive\n\ndata: {}\n") == "{}"


def test_single_sse_frame_decodes_to_envelope():
    envelope = decode_response('data: {"jsonrpc":"2.0","id":1,"result":{"ok":true}}\n\n')
    assert envelope.jsonrpc == "2.0"
    assert envelope.id == 1
    assert envelope.result == {"ok": True}


def test_direct_json_wins_over_embedded_data_lines():
    body = '{"jsonrpc": "2.0", "id": 9, "result": {"text": "line one\\ndata: {\\"id\\": 2}"}}'
    envelope = decode_response(body)
    assert envelope.id == 9
    assert envelope.result == {"text": 'line one\ndata: {"id": 2}'}


def test_deeply_nested_json_body_is_unparseable():
    with pytest.raises(UnparseableResponse):
        decode_response("[" * 100000)


def test_deeply_nested_event_stream_payload_is_unparseable():
    with pytest.raises(UnparseableResponse):
        decode_response("data: " + '{"a":' * 100000 + "\n\n")
