import unittest
from decimal import Decimal
from enum import Enum

from unified_responses.pricing import ModelPricing, get_pricing, list_models
from unified_responses.response import (
    calculate_cost,
    extract_function_calls,
    extract_json,
    extract_text,
    process_response,
)
from unified_responses.schema import build_output
from unified_responses.types import Cost, FunctionCall, Response


class Field(Enum):
    TEXT = "text"


def _message(*texts: str) -> dict:
    return {
        "type": "message",
        "role": "assistant",
        "content": [{"type": "output_text", "text": text} for text in texts],
    }


class ExtractTextTests(unittest.TestCase):
    def test_first_assistant_message_only(self) -> None:
        response = Response(body={"output": [{"type": "reasoning"}, _message("a", "b"), _message("again")]})
        self.assertEqual(extract_text(response).text, "a\nb")

    def test_no_output_gives_empty_text(self) -> None:
        self.assertEqual(extract_text(Response(body={})).text, "")


class ExtractJsonTests(unittest.TestCase):
    def test_unwraps_root_array(self) -> None:
        schema = build_output(("array", {"title": "string"}))["schema"]
        body = {
            "text": {"format": {"schema": schema}},
            "output": [_message('{"items": [{"title": "a"}, {"title": "b"}]}')],
        }
        self.assertEqual(extract_json(Response(body=body)).parsed, [{"title": "a"}, {"title": "b"}])

    def test_object_schema_is_not_unwrapped(self) -> None:
        schema = build_output({"name": "string"})["schema"]
        body = {"text": {"format": {"schema": schema}}, "output": [_message('{"name": "Ada"}')]}
        self.assertEqual(extract_json(Response(body=body)).parsed, {"name": "Ada"})

    def test_without_schema_nothing_is_parsed(self) -> None:
        response = extract_json(Response(body={"output": [_message('{"a": 1}')]}))
        self.assertIsNone(response.parsed)

    def test_invalid_json_is_recorded(self) -> None:
        schema = build_output({"name": "string"})["schema"]
        body = {"text": {"format": {"schema": schema}}, "output": [_message("not json")]}
        response = extract_json(Response(body=body))
        self.assertIsNone(response.parsed)
        self.assertIn("json", response.parse_error)


class ExtractFunctionCallsTests(unittest.TestCase):
    def test_good_calls_kept_and_bad_ones_recorded(self) -> None:
        body = {
            "output": [
                {"type": "function_call", "name": "get_weather", "call_id": "c1", "arguments": '{"city": "Paris"}'},
                {"type": "function_call", "name": "broken", "call_id": "c2", "arguments": "{oops"},
                _message("ignored"),
            ]
        }
        response = extract_function_calls(Response(body=body))
        self.assertEqual(
            response.function_calls,
            [FunctionCall(name="get_weather", call_id="c1", arguments={"city": "Paris"})],
        )
        self.assertEqual(len(response.parse_error["function_calls"]), 1)
        self.assertIn("broken", response.parse_error["function_calls"][0])

    def test_errors_are_additive(self) -> None:
        schema = build_output({"name": "string"})["schema"]
        body = {
            "text": {"format": {"schema": schema}},
            "output": [
                _message("not json"),
                {"type": "function_call", "name": "f", "call_id": "c1", "arguments": "nope"},
            ],
        }
        response = process_response(Response(body=body))
        self.assertEqual(set(response.parse_error), {"json", "function_calls"})


class CostTests(unittest.TestCase):
    def test_cost_is_deterministic(self) -> None:
        body = {"model": "gpt-4.1-mini", "usage": {"input_tokens": 1000, "output_tokens": 500}}
        cost = calculate_cost(Response(body=body)).cost
        self.assertEqual(cost.input_cost, Decimal("0.0004"))
        self.assertEqual(cost.output_cost, Decimal("0.0008"))
        self.assertEqual(cost.total_cost, Decimal("0.0012"))
        self.assertEqual(cost.cached_discount, Decimal("0"))

    def test_cached_tokens_are_discounted(self) -> None:
        body = {
            "model": "gpt-4.1-mini",
            "usage": {"input_tokens": 1000, "output_tokens": 0, "input_tokens_details": {"cached_tokens": 400}},
        }
        cost = calculate_cost(Response(body=body)).cost
        self.assertEqual(cost.input_cost, Decimal("0.00028"))
        self.assertEqual(cost.cached_discount, Decimal("0.00012"))

    def test_unknown_model_costs_zero(self) -> None:
        body = {"model": "grok-4", "usage": {"input_tokens": 1000, "output_tokens": 500}}
        self.assertEqual(calculate_cost(Response(body=body)).cost, Cost.zero())

    def test_missing_usage_costs_zero(self) -> None:
        self.assertEqual(calculate_cost(Response(body={"model": "gpt-4.1"})).cost, Cost.zero())

    def test_custom_pricing_lookup(self) -> None:
        pricing = ModelPricing(input=Decimal("1"), cached_input=None, output=Decimal("2"))
        body = {"model": "grok-4", "usage": {"input_tokens": 1_000_000, "output_tokens": 1_000_000}}
        cost = calculate_cost(Response(body=body), pricing_lookup=lambda model: pricing).cost
        self.assertEqual(cost.total_cost, Decimal("3"))

    def test_pricing_table(self) -> None:
        self.assertIsNone(get_pricing("not-a-model"))
        self.assertIn("gpt-4.1-mini", list_models())


class ProcessResponseTests(unittest.TestCase):
    def test_passes_are_idempotent(self) -> None:
        schema = build_output({"name": "string"})["schema"]
        body = {
            "model": "gpt-4.1",
            "text": {"format": {"schema": schema}},
            "usage": {"input_tokens": 10, "output_tokens": 5},
            "output": [_message('{"name": "Ada"}')],
        }
        once = process_response(Response(body=body))
        twice = process_response(once)
        self.assertEqual(once, twice)
        self.assertEqual(once.parsed, {"name": "Ada"})
        self.assertEqual(once.function_calls, [])


class FromMapTests(unittest.TestCase):
    def test_rebuilds_response_and_coerces_cost(self) -> None:
        response = Response.from_map(
            {
                Field.TEXT: "hello",
                "body": {"id": "resp_1"},
                "cost": {"input_cost": "0.5", "output_cost": 1, "total_cost": 1.5, "cached_discount": "bad"},
                "function_calls": [{"name": "f", "call_id": "c1", "arguments": {}}],
                "provider": "openai",
            }
        )
        self.assertEqual(response.text, "hello")
        self.assertEqual(response.body, {"id": "resp_1"})
        self.assertEqual(response.cost.input_cost, Decimal("0.5"))
        self.assertEqual(response.cost.output_cost, Decimal("1"))
        self.assertEqual(response.cost.total_cost, Decimal("1.5"))
        self.assertEqual(response.cost.cached_discount, Decimal("0"))
        self.assertEqual(response.function_calls[0].call_id, "c1")
        self.assertEqual(response.provider, "openai")

    def test_missing_fields_default(self) -> None:
        response = Response.from_map({})
        self.assertEqual(response.body, {})
        self.assertIsNone(response.cost)


if __name__ == "__main__":
    unittest.main()
