import asyncio

from unified_responses.client import ResponsesClient
from unified_responses.config import ResponsesConfig
from unified_responses.schema import build_function
from unified_responses.stream import delta


async def main() -> None:
    async with ResponsesClient(ResponsesConfig(openai_api_key="DUMMY", xai_api_key="DUMMY")) as client:
        # Demonstrate provider routing and option advisories (xAI ignores instructions)
        payload, provider = client.build_request(
            {"input": "hi", "model": "xai:grok-4", "instructions": "Answer like a pirate"}
        )
        print("Routed to:", provider.name, payload)

        weather = build_function("get_weather", "Get the weather for a city", {"city": "string"})
        payload, provider = client.build_request(
            [("input", "What's the weather in Paris?"), ("model", "gpt-4.1-mini"), ("tools", [weather])]
        )
        print("Routed to:", provider.name, payload)

        try:
            await client.create(input="Write a haiku", model="gpt-4.1-mini", stream=delta(print))
        except Exception as e:
            print("Expected error:", type(e).__name__, e)


if __name__ == "__main__":
    asyncio.run(main())
