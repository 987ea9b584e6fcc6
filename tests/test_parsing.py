import pytest

from shortgen.errors import MalformedResponseError
from shortgen.services.parsing import (
    SPEECH_PAUSE,
    clean_speech_text,
    extract_first_url,
    extract_json_object,
)

PAYLOAD = '{"scenes": [{"title": "Hook", "narration": "Hi"}]}'


def test_fenced_and_bare_objects_parse_identically():
    fenced = f"Here is your script:\n```json\n{PAYLOAD}\n```\nEnjoy!"
    bare = f"Here is your script: {PAYLOAD} Enjoy!"

    assert extract_json_object(fenced) == extract_json_object(bare)
    assert extract_json_object(PAYLOAD)["scenes"][0]["title"] == "Hook"


def test_fence_without_language_tag():
    assert extract_json_object(f"```\n{PAYLOAD}\n```") == extract_json_object(PAYLOAD)


def test_braces_inside_strings_do_not_end_the_object():
    text = 'Sure {"title": "a } b {", "n": 1} trailing }'
    assert extract_json_object(text) == {"title": "a } b {", "n": 1}


def test_escaped_quotes_inside_strings():
    text = r'{"narration": "he said \"{hi}\"", "n": 2}'
    assert extract_json_object(text)["n"] == 2


@pytest.mark.parametrize("text", ["", "   \n", None])
def test_empty_text_is_malformed(text):
    with pytest.raises(MalformedResponseError):
        extract_json_object(text)


def test_unbalanced_braces_are_malformed():
    with pytest.raises(MalformedResponseError):
        extract_json_object('{"scenes": [{"title": "x"}')


def test_text_without_object_is_malformed():
    with pytest.raises(MalformedResponseError):
        extract_json_object("I cannot help with that.")


def test_invalid_json_is_malformed():
    with pytest.raises(MalformedResponseError):
        extract_json_object("{title: 'not json'}")


def test_first_url_from_markdown_image():
    text = "Done! ![scene](https://cdn.example.com/a.png) and https://other.example/b.png"
    assert extract_first_url(text) == "https://cdn.example.com/a.png"


def test_first_url_missing():
    assert extract_first_url("no link here") is None
    assert extract_first_url("") is None


def test_clean_speech_text_keeps_cjk_and_punctuation():
    assert clean_speech_text("你好，世界。Hello, world!") == "你好，世界。Hello, world!"


def test_clean_speech_text_blanks_symbols():
    cleaned = clean_speech_text("Top #1 tip 🎉 (really) *now*")
    assert "#" not in cleaned
    assert "🎉" not in cleaned
    assert "(" not in cleaned and "*" not in cleaned
    assert "Top" in cleaned and "1" in cleaned and "now" in cleaned


def test_speech_pause_marker():
    assert SPEECH_PAUSE == " [medium pause]。"
