"""lensmatch - Contact lens identification and order resolution."""

from lensmatch.add_tokens import classify_add
from lensmatch.catalog import Catalog
from lensmatch.config import MatchConfig
from lensmatch.gemini import GeminiLLMProvider
from lensmatch.ordering import quote_order
from lensmatch.pricing import ProductConfig, UnconfiguredSkuError
from lensmatch.resolver import LensResolver
from lensmatch.types import AddState, LensProduct, OrderQuote, Resolution, ResolveResult

__all__ = [
    "AddState",
    "Catalog",
    "classify_add",
    "GeminiLLMProvider",
    "LensProduct",
    "LensResolver",
    "MatchConfig",
    "OrderQuote",
    "ProductConfig",
    "quote_order",
    "Resolution",
    "ResolveResult",
    "UnconfiguredSkuError",
]
