"""Model pricing in USD per million tokens.

Source: https://platform.openai.com/docs/pricing, last updated on 2025-06-03
(gpt-5 family added 2025-08-07).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ModelPricing:
    """Per-million-token prices; None when the model has no price for that kind."""

    input: Decimal | None
    cached_input: Decimal | None
    output: Decimal | None


# model -> (input, cached input, output)
_PRICES: dict[str, tuple[str | None, str | None, str | None]] = {
    "gpt-4.1": ("2.00", "0.50", "8.00"),
    "gpt-4.1-2025-04-14": ("2.00", "0.50", "8.00"),
    "gpt-4.1-mini": ("0.40", "0.10", "1.60"),
    "gpt-4.1-mini-2025-04-14": ("0.40", "0.10", "1.60"),
    "gpt-4.1-nano": ("0.10", "0.025", "0.40"),
    "gpt-4.1-nano-2025-04-14": ("0.10", "0.025", "0.40"),
    "gpt-4.5-preview": ("75.00", "37.50", "150.00"),
    "gpt-4.5-preview-2025-02-27": ("75.00", "37.50", "150.00"),
    "gpt-4o": ("2.50", "1.25", "10.00"),
    "gpt-4o-2024-08-06": ("2.50", "1.25", "10.00"),
    "gpt-4o-2024-11-20": ("2.50", "1.25", "10.00"),
    "gpt-4o-2024-05-13": ("5.00", None, "15.00"),
    "gpt-4o-audio-preview": ("2.50", None, "10.00"),
    "gpt-4o-audio-preview-2024-12-17": ("2.50", None, "10.00"),
    "gpt-4o-audio-preview-2025-06-03": ("2.50", None, "10.00"),
    "gpt-4o-audio-preview-2024-10-01": ("2.50", None, "10.00"),
    "gpt-4o-realtime-preview": ("5.00", "2.50", "20.00"),
    "gpt-4o-realtime-preview-2024-12-17": ("5.00", "2.50", "20.00"),
    "gpt-4o-realtime-preview-2025-06-03": ("5.00", "2.50", "20.00"),
    "gpt-4o-realtime-preview-2024-10-01": ("5.00", "2.50", "20.00"),
    "gpt-4o-mini": ("0.15", "0.075", "0.60"),
    "gpt-4o-mini-2024-07-18": ("0.15", "0.075", "0.60"),
    "gpt-4o-mini-audio-preview": ("0.15", None, "0.60"),
    "gpt-4o-mini-audio-preview-2024-12-17": ("0.15", None, "0.60"),
    "gpt-4o-mini-realtime-preview": ("0.60", "0.30", "2.40"),
    "gpt-4o-mini-realtime-preview-2024-12-17": ("0.60", "0.30", "2.40"),
    "o1": ("15.00", "7.50", "60.00"),
    "o1-2024-12-17": ("15.00", "7.50", "60.00"),
    "o1-preview-2024-09-12": ("15.00", "7.50", "60.00"),
    "o1-pro": ("150.00", None, "600.00"),
    "o1-pro-2025-03-19": ("150.00", None, "600.00"),
    "o3": ("2.00", "0.50", "8.00"),
    "o3-2025-04-16": ("2.00", "0.50", "8.00"),
    "o3-pro": ("20.00", None, "80.00"),
    "o3-pro-2025-06-10": ("20.00", None, "80.00"),
    "o4-mini": ("1.10", "0.275", "4.40"),
    "o4-mini-2025-04-16": ("1.10", "0.275", "4.40"),
    "o3-mini": ("1.10", "0.55", "4.40"),
    "o3-mini-2025-01-31": ("1.10", "0.55", "4.40"),
    "o1-mini": ("1.10", "0.55", "4.40"),
    "o1-mini-2024-09-12": ("1.10", "0.55", "4.40"),
    "codex-mini-latest": ("1.50", "0.375", "6.00"),
    "gpt-4o-mini-search-preview": ("0.15", None, "0.60"),
    "gpt-4o-mini-search-preview-2025-03-11": ("0.15", None, "0.60"),
    "gpt-4o-search-preview": ("2.50", None, "10.00"),
    "gpt-4o-search-preview-2025-03-11": ("2.50", None, "10.00"),
    "computer-use-preview": ("3.00", None, "12.00"),
    "computer-use-preview-2025-03-11": ("3.00", None, "12.00"),
    "gpt-image-1": ("5.00", "1.25", None),
    "gpt-5": ("1.25", "0.125", "10.00"),
    "gpt-5-2025-08-07": ("1.25", "0.125", "10.00"),
    "gpt-5-chat-latest": ("1.25", "0.125", "10.00"),
    "gpt-5-mini": ("0.25", "0.025", "2.00"),
    "gpt-5-mini-2025-08-07": ("0.25", "0.025", "2.00"),
    "gpt-5-nano": ("0.05", "0.005", "0.40"),
    "gpt-5-nano-2025-08-07": ("0.05", "0.005", "0.40"),
}


def _price(value: str | None) -> Decimal | None:
    return Decimal(value) if value is not None else None


PRICING: dict[str, ModelPricing] = {
    model: ModelPricing(_price(inp), _price(cached), _price(out)) for model, (inp, cached, out) in _PRICES.items()
}


def get_pricing(model: str) -> ModelPricing | None:
    """Return pricing for ``model`` or None when it is not listed."""
    return PRICING.get(model)


def list_models() -> list[str]:
    return sorted(PRICING)
