# tests/test_json_naming_converter.py
from __future__ import annotations

from functions.utils.json_naming_converter import convert_keys_snake_to_camel, snake_to_camel


def test_snake_to_camel_basic() -> None:
    assert snake_to_camel("continuation_token") == "continuationToken"
    assert snake_to_camel("retry_after_ms") == "retryAfterMs"
    assert snake_to_camel("ru") == "ru"  # unchanged when no underscore


def test_snake_to_camel_preserves_leading_and_trailing_underscores() -> None:
    assert snake_to_camel("_rid") == "_rid"
    assert snake_to_camel("hello_world_") == "helloWorld_"
    assert snake_to_camel("__hello_world__") == "__helloWorld__"
    assert snake_to_camel("___") == "___"  # only underscores


def test_convert_keys_snake_to_camel_converts_nested_dict_and_list_keys() -> None:
    inp = {
        "ok": False,
        "error": {"code": "Throttled", "details": {"activity_id": "a", "sub_status": 3200}},
        "cosmos": [{"status_code": 429, "retry_after_ms": 5000}],
    }

    out = convert_keys_snake_to_camel(inp)

    assert out["error"]["details"] == {"activityId": "a", "subStatus": 3200}
    assert out["cosmos"][0] == {"statusCode": 429, "retryAfterMs": 5000}


def test_convert_keys_snake_to_camel_leaves_primitives_intact() -> None:
    assert convert_keys_snake_to_camel("x") == "x"
    assert convert_keys_snake_to_camel(123) == 123
    assert convert_keys_snake_to_camel(None) is None
    assert convert_keys_snake_to_camel(True) is True


def test_preserved_list_container_keeps_document_keys_verbatim() -> None:
    inp = {
        "data": {
            "continuation_token": "t",
            "results": [{"user_id": "u1", "_etag": "x", "nested_doc": {"inner_key": 1}}],
        }
    }

    out = convert_keys_snake_to_camel(inp, preserve_container_keys={"results"})

    assert out["data"]["continuationToken"] == "t"
    assert out["data"]["results"] == [{"user_id": "u1", "_etag": "x", "nested_doc": {"inner_key": 1}}]


def test_preserved_dict_container_keeps_child_keys_and_converts_container_key() -> None:
    inp = {
        "user_documents": {"profile_summary": "keep_this_key"},
        "normal_block": {"inner_key_one": 1},
    }

    out = convert_keys_snake_to_camel(inp, preserve_container_keys=["userDocuments"])

    assert out["userDocuments"] == {"profile_summary": "keep_this_key"}
    assert out["normalBlock"]["innerKeyOne"] == 1


def test_convert_does_not_mutate_input() -> None:
    inp = {"status_code": 200, "results": [{"a_b": 1}]}
    convert_keys_snake_to_camel(inp)
    assert inp == {"status_code": 200, "results": [{"a_b": 1}]}
