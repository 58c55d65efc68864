import unittest
from unittest import mock

from unified_responses import jsonstream
from unified_responses.errors import JsonTokenError
from unified_responses.jsonstream import JsonEvent, JsonTokenizer, tokenize

string_end = jsonstream._string_end


class TokenizeTests(unittest.TestCase):
    def test_document_split_across_fragments(self) -> None:
        events = tokenize(['{"na', 'me": "Ada", "tags": [1, tr', "ue, nu", 'll], "score": 2.', "5e1}"])
        self.assertEqual(
            events,
            [
                JsonEvent("start_object"),
                JsonEvent("string", "name"),
                JsonEvent("colon"),
                JsonEvent("string", "Ada"),
                JsonEvent("comma"),
                JsonEvent("string", "tags"),
                JsonEvent("colon"),
                JsonEvent("start_array"),
                JsonEvent("integer", 1),
                JsonEvent("comma"),
                JsonEvent("boolean", True),
                JsonEvent("comma"),
                JsonEvent("null"),
                JsonEvent("end_array"),
                JsonEvent("comma"),
                JsonEvent("string", "score"),
                JsonEvent("colon"),
                JsonEvent("float", 25.0),
                JsonEvent("end_object"),
            ],
        )

    def test_escaped_quote_split_across_fragments(self) -> None:
        self.assertEqual(tokenize(['"say \\', '"hi\\""']), [JsonEvent("string", 'say "hi"')])

    def test_escape_state_survives_fragment_boundaries(self) -> None:
        self.assertEqual(tokenize(['"x\\', "\\", '"']), [JsonEvent("string", "x\\")])

    def test_open_string_is_not_rescanned(self) -> None:
        starts: list[int] = []

        def recording(buffer: str, resume: int) -> tuple[int | None, int]:
            starts.append(resume)
            return string_end(buffer, resume)

        tokenizer = JsonTokenizer()
        with mock.patch.object(jsonstream, "_string_end", side_effect=recording):
            tokenizer.feed('"')
            for _ in range(5):
                tokenizer.feed("abcd")
            events = tokenizer.feed('"')

        self.assertEqual(events, [JsonEvent("string", "abcd" * 5)])
        self.assertEqual(starts, [1, 1, 5, 9, 13, 17, 21])

    def test_number_waits_for_more_digits(self) -> None:
        tokenizer = JsonTokenizer()
        self.assertEqual(tokenizer.feed("[12"), [JsonEvent("start_array")])
        self.assertEqual(tokenizer.feed("3,-4"), [JsonEvent("integer", 123), JsonEvent("comma")])
        self.assertEqual(tokenizer.feed("]"), [JsonEvent("integer", -4), JsonEvent("end_array")])
        self.assertEqual(tokenizer.close(), [])

    def test_trailing_number_is_flushed_on_close(self) -> None:
        tokenizer = JsonTokenizer()
        self.assertEqual(tokenizer.feed("42"), [])
        self.assertEqual(tokenizer.close(), [JsonEvent("integer", 42)])

    def test_events_are_emitted_eagerly(self) -> None:
        tokenizer = JsonTokenizer()
        self.assertEqual(tokenizer.feed('{"a": fal'), [JsonEvent("start_object"), JsonEvent("string", "a"), JsonEvent("colon")])
        self.assertEqual(tokenizer.feed("se}"), [JsonEvent("boolean", False), JsonEvent("end_object")])

    def test_unterminated_string_raises_on_close(self) -> None:
        tokenizer = JsonTokenizer()
        tokenizer.feed('{"open')
        with self.assertRaises(JsonTokenError):
            tokenizer.close()

    def test_invalid_text_raises(self) -> None:
        with self.assertRaises(JsonTokenError):
            tokenize(["{oops}"])


if __name__ == "__main__":
    unittest.main()
