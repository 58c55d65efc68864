import unittest
from enum import Enum

from unified_responses.errors import FormatError
from unified_responses.options import (
    drop_preserved_paths,
    get_in,
    merge_input,
    merge_text,
    normalize,
    preserve_from,
    preserve_paths,
    split_option,
    stringify_keys_deep,
    stringify_keys_shallow,
)


class Role(Enum):
    USER = "user"


class NormalizeTests(unittest.TestCase):
    def test_mapping_keys_are_stringified_at_every_depth(self) -> None:
        result = normalize({Role.USER: {1: "one"}, "text": {"verbosity": "low"}})
        self.assertEqual(result, {"user": {"1": "one"}, "text": {"verbosity": "low"}})

    def test_pair_sequence_becomes_dict(self) -> None:
        result = normalize([("model", "gpt-4.1"), ("reasoning", [("effort", "high")])])
        self.assertEqual(result, {"model": "gpt-4.1", "reasoning": {"effort": "high"}})

    def test_non_pair_item_raises(self) -> None:
        with self.assertRaises(FormatError):
            normalize([("model", "gpt-4.1"), "oops"])

    def test_scalar_options_raise(self) -> None:
        with self.assertRaises(FormatError):
            normalize(42)

    def test_literal_lists_are_kept(self) -> None:
        messages = [{"role": "user", "content": "hi"}, "plain"]
        result = normalize({"input": messages, "include": ["a", "b"]})
        self.assertEqual(result["input"], messages)
        self.assertEqual(result["include"], ["a", "b"])

    def test_mixed_nested_sequence_falls_back_to_list(self) -> None:
        result = normalize({"values": [("a", 1), "b"]})
        self.assertEqual(result["values"], [["a", 1], "b"])

    def test_lone_tuple_value_is_literal(self) -> None:
        self.assertEqual(normalize({"pair": ("a", 1)}), {"pair": ["a", 1]})

    def test_tuple_of_two_pairs_is_option_set(self) -> None:
        expected = {"reasoning": {"effort": "high", "summary": "auto"}}
        self.assertEqual(normalize({"reasoning": (("effort", "high"), ("summary", "auto"))}), expected)
        self.assertEqual(normalize([("reasoning", (("effort", "high"), ("summary", "auto")))]), expected)
        self.assertEqual(normalize({"reasoning": (("effort", "high"),)}), {"reasoning": {"effort": "high"}})

    def test_input_is_not_mutated(self) -> None:
        options = {"text": {Role.USER: "x"}}
        normalize(options)
        self.assertEqual(options, {"text": {Role.USER: "x"}})


class MergeTests(unittest.TestCase):
    def test_merge_text_keeps_existing_fields(self) -> None:
        options = {"text": {"verbosity": "low"}}
        merged = merge_text(options, {"format": {"type": "json_schema"}})
        self.assertEqual(merged["text"], {"verbosity": "low", "format": {"type": "json_schema"}})
        self.assertEqual(options, {"text": {"verbosity": "low"}})

    def test_merge_input_string_shorthand(self) -> None:
        self.assertEqual(merge_input("hi", {"model": "gpt-4.1"}), {"input": "hi", "model": "gpt-4.1"})

    def test_merge_input_keeps_pair_order(self) -> None:
        merged = merge_input([("input", "hi")], {"model": "gpt-4.1"})
        self.assertEqual(merged, [("input", "hi"), ("model", "gpt-4.1")])

    def test_split_option_from_pairs(self) -> None:
        schema = [("z", "string"), ("a", "string")]
        value, rest = split_option([("input", "hi"), ("schema", schema)], "schema")
        self.assertIs(value, schema)
        self.assertEqual(rest, [("input", "hi")])

    def test_split_option_missing(self) -> None:
        value, rest = split_option({"input": "hi"}, "stream")
        self.assertIsNone(value)
        self.assertEqual(rest, {"input": "hi"})

    def test_stringify_helpers(self) -> None:
        data = {Role.USER: {Role.USER: 1}, "items": [{Role.USER: 2}]}
        self.assertEqual(stringify_keys_shallow(data), {"user": {Role.USER: 1}, "items": [{Role.USER: 2}]})
        self.assertEqual(stringify_keys_deep(data), {"user": {"user": 1}, "items": [{"user": 2}]})


class PreserveTests(unittest.TestCase):
    def setUp(self) -> None:
        self.previous = {
            "id": "resp_1",
            "model": "gpt-5-mini",
            "reasoning": {"effort": "high", "summary": "auto"},
            "text": {"verbosity": "low", "format": {"type": "json_schema"}},
        }
        self.paths = [["model"], ["reasoning", "effort"], ["text", "verbosity"]]

    def test_only_whitelisted_paths_are_copied(self) -> None:
        result = preserve_paths({"input": "next"}, self.previous, self.paths)
        self.assertEqual(
            result,
            {
                "input": "next",
                "model": "gpt-5-mini",
                "reasoning": {"effort": "high"},
                "text": {"verbosity": "low"},
            },
        )

    def test_explicit_values_win(self) -> None:
        result = preserve_paths({"reasoning": {"effort": "low"}}, self.previous, self.paths)
        self.assertEqual(get_in(result, ["reasoning", "effort"]), "low")

    def test_preserve_from_top_level(self) -> None:
        result = preserve_from({"model": "gpt-4.1"}, self.previous, ["model", "id"])
        self.assertEqual(result, {"model": "gpt-4.1", "id": "resp_1"})

    def test_drop_prunes_empty_containers(self) -> None:
        options = preserve_paths({"input": "next"}, self.previous, self.paths)
        result = drop_preserved_paths(options, self.previous, {"input": "next"}, [["reasoning", "effort"]])
        self.assertNotIn("reasoning", result)
        self.assertEqual(result["text"], {"verbosity": "low"})

    def test_drop_skips_user_supplied_values(self) -> None:
        user = {"reasoning": {"effort": "high"}}
        options = preserve_paths(user, self.previous, self.paths)
        result = drop_preserved_paths(options, self.previous, user, [["reasoning", "effort"]])
        self.assertEqual(get_in(result, ["reasoning", "effort"]), "high")

    def test_drop_skips_changed_values(self) -> None:
        options = {"reasoning": {"effort": "medium"}}
        result = drop_preserved_paths(options, self.previous, {}, [["reasoning", "effort"]])
        self.assertEqual(result, options)


if __name__ == "__main__":
    unittest.main()
